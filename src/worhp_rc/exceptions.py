"""Exceptions raised within the `worhp_rc` library."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from .enums import LoadFailure, SessionStage


class ConfigError(ValueError):
    """Raised when the algorithm cannot run with the given configuration.

    This covers problems the adapter cannot handle (multiple objectives,
    stochastic problems), empty populations, and incompatible settings such as
    a nonzero verbosity combined with the solver's own screen output. It is
    always raised before the solver library is touched.
    """


class LoadError(ValueError):
    """Raised when the solver library cannot be loaded.

    The exception records which path was tried, which check failed and the
    diagnostic text produced by the platform. The message lists the most
    likely causes of the failure, followed by that text.

    Attributes:
        path:    The library path that was tried.
        failure: The check that failed.
        detail:  The original diagnostic text.
        symbol:  The missing entry point, if a symbol could not be bound.
    """

    def __init__(
        self,
        path: Path,
        failure: LoadFailure,
        detail: str,
        *,
        symbol: str | None = None,
    ) -> None:
        """Initialize the LoadError exception.

        Args:
            path:    The library path that was tried.
            failure: The check that failed.
            detail:  The original diagnostic text.
            symbol:  The name of the missing entry point, if applicable.
        """
        self.path = path
        self.failure = failure
        self.detail = detail
        self.symbol = symbol
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        what = f"{self.failure}"
        if self.symbol is not None:
            what += f": `{self.symbol}`"
        return (
            f"An error occurred while loading the WORHP library at run-time "
            f"({what}).\n"
            "This is typically caused by one of the following reasons:\n\n"
            f"- The file declared to be the WORHP library, i.e. {self.path}, is not "
            "found, or it is found but it is not a shared library containing the "
            "necessary symbols (is the file path really pointing to a valid shared "
            "library?).\n"
            "- The library is found and it does contain the symbols, but it needs "
            "linking to some additional libraries that are not found at run-time.\n\n"
            "We report the exact text of the original error:\n\n"
            f" {self.detail}"
        )


class SessionStateError(RuntimeError):
    """Raised when a solver session stage is entered out of order.

    This signals a programming error in the code driving the session, not a
    failure of the solver, and is not meant to be recovered from.
    """

    def __init__(
        self, expected: SessionStage | None, actual: SessionStage | None
    ) -> None:
        """Initialize the SessionStateError exception.

        A stage of `None` refers to a session that has not been
        pre-initialized yet.

        Args:
            expected: The stage the session should be in.
            actual:   The stage the session is in.
        """
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Solver session is in stage {_stage_name(actual)}, "
            f"expected {_stage_name(expected)}"
        )


def _stage_name(stage: SessionStage | None) -> str:
    return "UNINITIALIZED" if stage is None else stage.name
