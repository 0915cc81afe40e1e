"""This module defines the interface to the solver library and its binders."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Final

from ._structs import (
    TERMINATE_ERROR,
    TERMINATE_SUCCESS,
    Control,
    OptVar,
    Params,
    Workspace,
)

if TYPE_CHECKING:
    from pathlib import Path

REQUIRED_SYMBOLS: Final = (
    "WorhpPreInit",
    "ReadParams",
    "WorhpInit",
    "GetUserAction",
    "DoneUserAction",
    "IterationOutput",
    "Worhp",
    "StatusMsg",
    "WorhpFree",
    "WorhpFidif",
)
"""The entry points that a solver library must export."""


@dataclass(slots=True)
class SolverStructures:
    """The four structures holding the state of one solve.

    Attributes:
        opt: The optimization variables.
        wsp: The workspace.
        par: The parameters.
        cnt: The control flags.
    """

    opt: OptVar = field(default_factory=OptVar)
    wsp: Workspace = field(default_factory=Workspace)
    par: Params = field(default_factory=Params)
    cnt: Control = field(default_factory=Control)


class SolverLibrary(ABC):
    """Abstract Base Class for bound solver libraries.

    A `SolverLibrary` gives typed access to the entry points of a loaded
    solver library. Each method corresponds to one native entry point, listed
    in `REQUIRED_SYMBOLS`. All call sites in `worhp_rc` depend on this
    interface only; concrete classes are created by
    [`BinderPlugin`][worhp_rc.native.base.BinderPlugin] factories.

    The status thresholds used to classify the control status are class
    attributes, so that binders for solver builds with other conventions can
    override them.
    """

    terminate_success: ClassVar[int] = TERMINATE_SUCCESS
    terminate_error: ClassVar[int] = TERMINATE_ERROR

    def __init__(self, path: Path) -> None:
        """Initialize the library object.

        Args:
            path: The path of the library file.
        """
        self._path = path

    @property
    def path(self) -> Path:
        """The path of the library file."""
        return self._path

    @abstractmethod
    def pre_init(self, structures: SolverStructures) -> None:
        """Initialize empty structures (`WorhpPreInit`)."""

    @abstractmethod
    def read_params(self, filename: str, par: Params) -> int:
        """Read a parameter file into the parameter block (`ReadParams`).

        Args:
            filename: The name of the parameter file.
            par:      The parameter block.

        Returns:
            The number of parameters read from the file.
        """

    @abstractmethod
    def init(self, structures: SolverStructures) -> None:
        """Allocate the solver memory (`WorhpInit`)."""

    @abstractmethod
    def get_user_action(self, cnt: Control, action: int) -> bool:
        """Check if an action is requested (`GetUserAction`)."""

    @abstractmethod
    def done_user_action(self, cnt: Control, action: int) -> None:
        """Acknowledge a requested action (`DoneUserAction`)."""

    @abstractmethod
    def iteration_output(self, structures: SolverStructures) -> None:
        """Print the iteration output of the solver (`IterationOutput`)."""

    @abstractmethod
    def step(self, structures: SolverStructures) -> None:
        """Run one step of the solver (`Worhp`)."""

    @abstractmethod
    def status_message(self, structures: SolverStructures) -> None:
        """Print the final status message (`StatusMsg`)."""

    @abstractmethod
    def free(self, structures: SolverStructures) -> None:
        """Release the solver memory (`WorhpFree`)."""

    @abstractmethod
    def finite_difference(self, structures: SolverStructures) -> None:
        """Run the finite-difference routine (`WorhpFidif`)."""

    def close(self) -> None:  # noqa: B027
        """Release the library.

        Called once the solve that loaded the library has finished. The
        default implementation does nothing.
        """


class BinderPlugin(ABC):
    """Abstract Base Class for binder plugins.

    Binder plugins are factories that open a solver library and bind its
    entry points, producing a [`SolverLibrary`][worhp_rc.native.base.SolverLibrary].
    The [`BinderManager`][worhp_rc.native.BinderManager] selects the plugin
    to use for a given library path.
    """

    @classmethod
    @abstractmethod
    def create(cls, path: Path) -> SolverLibrary:
        """Open a library and bind its entry points.

        Implementations should raise
        [`LoadError`][worhp_rc.exceptions.LoadError] if the library cannot be
        opened, or if an entry point cannot be bound.

        Args:
            path: The path of the library file.

        Returns:
            The bound library.
        """

    @classmethod
    @abstractmethod
    def is_supported(cls, path: Path) -> bool:
        """Verify if this plugin can bind the library at the given path.

        Args:
            path: The path of the library file.

        Returns:
            `True` if the plugin supports the library.
        """
