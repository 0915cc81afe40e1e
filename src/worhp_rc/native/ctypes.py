"""This module implements the ctypes binder plugin."""

from __future__ import annotations

import sys
from ctypes import CDLL, byref, c_int
from typing import TYPE_CHECKING, Any

from worhp_rc.enums import LoadFailure
from worhp_rc.exceptions import LoadError

from ._structs import SIGNATURES
from .base import REQUIRED_SYMBOLS, BinderPlugin, SolverLibrary

if TYPE_CHECKING:
    from pathlib import Path

    from ._structs import Control, Params
    from .base import SolverStructures

# Fragments of loader messages that point at a library other than the one
# being opened:
_DEPENDENCY_MARKERS = ("undefined symbol", "Library not loaded", "dependent")


class CtypesSolverLibrary(SolverLibrary):
    """Solver library bound through `ctypes`.

    The library is opened with `ctypes.CDLL`, and every entry point listed in
    `REQUIRED_SYMBOLS` is bound with explicit argument and result types. The
    structures passed to the entry points must follow the layout defined in
    `worhp_rc.native._structs`.
    """

    def __init__(self, path: Path) -> None:
        """Open the library and bind its entry points.

        Args:
            path: The path of the library file.

        Raises:
            LoadError: If the library cannot be opened or a symbol is missing.
        """
        super().__init__(path)
        try:
            self._lib: CDLL | None = CDLL(str(path))
        except OSError as exc:
            failure = (
                LoadFailure.DEPENDENCY_FAILED
                if _is_dependency_error(path, str(exc))
                else LoadFailure.OPEN_FAILED
            )
            raise LoadError(path, failure, str(exc)) from exc

        self._functions: dict[str, Any] = {}
        for name in REQUIRED_SYMBOLS:
            try:
                function = getattr(self._lib, name)
            except AttributeError as exc:
                raise LoadError(
                    path, LoadFailure.SYMBOL_NOT_FOUND, str(exc), symbol=name
                ) from exc
            function.argtypes, function.restype = SIGNATURES[name]
            self._functions[name] = function

    def pre_init(self, structures: SolverStructures) -> None:
        self._call("WorhpPreInit", structures)

    def read_params(self, filename: str, par: Params) -> int:
        count = c_int(0)
        self._functions["ReadParams"](
            byref(count), filename.encode(sys.getfilesystemencoding()), byref(par)
        )
        return count.value

    def init(self, structures: SolverStructures) -> None:
        self._call("WorhpInit", structures)

    def get_user_action(self, cnt: Control, action: int) -> bool:
        return bool(self._functions["GetUserAction"](byref(cnt), action))

    def done_user_action(self, cnt: Control, action: int) -> None:
        self._functions["DoneUserAction"](byref(cnt), action)

    def iteration_output(self, structures: SolverStructures) -> None:
        self._call("IterationOutput", structures)

    def step(self, structures: SolverStructures) -> None:
        self._call("Worhp", structures)

    def status_message(self, structures: SolverStructures) -> None:
        self._call("StatusMsg", structures)

    def free(self, structures: SolverStructures) -> None:
        self._call("WorhpFree", structures)

    def finite_difference(self, structures: SolverStructures) -> None:
        self._call("WorhpFidif", structures)

    def close(self) -> None:
        """Drop the bound entry points and the reference to the library.

        The shared library itself stays mapped in the process: ctypes offers
        no portable way to unload it.
        """
        self._functions.clear()
        self._lib = None

    def _call(self, name: str, structures: SolverStructures) -> None:
        self._functions[name](
            byref(structures.opt),
            byref(structures.wsp),
            byref(structures.par),
            byref(structures.cnt),
        )


class CtypesBinderPlugin(BinderPlugin):
    """The ctypes binder plugin class."""

    @classmethod
    def create(cls, path: Path) -> CtypesSolverLibrary:
        """Open the library and bind its entry points.

        See the [worhp_rc.native.base.BinderPlugin][] abstract base class.

        # noqa
        """
        return CtypesSolverLibrary(path)

    @classmethod
    def is_supported(cls, path: Path) -> bool:  # noqa: ARG003
        """Check if a library is supported.

        See the [worhp_rc.native.base.BinderPlugin][] abstract base class.

        # noqa
        """
        return True


def _is_dependency_error(path: Path, message: str) -> bool:
    if any(marker in message for marker in _DEPENDENCY_MARKERS):
        return True
    # The loader names the file it failed to open first:
    return not (message.startswith(str(path)) or message.startswith("dlopen("))
