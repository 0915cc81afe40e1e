"""Run-time binding of the solver library.

The solver is not linked at build time. The
[`load_library`][worhp_rc.native.load_library] function opens the shared
library under the lock of a
[`LoadCoordinator`][worhp_rc.native.LoadCoordinator], and binds its entry
points through a binder plugin, producing a
[`SolverLibrary`][worhp_rc.native.SolverLibrary] object.
"""

from ._structs import Control, OptVar, Params, Workspace, WorhpMatrix
from .base import REQUIRED_SYMBOLS, BinderPlugin, SolverLibrary, SolverStructures
from .loader import BinderManager, LoadCoordinator, default_coordinator, load_library

__all__ = [
    "REQUIRED_SYMBOLS",
    "BinderManager",
    "BinderPlugin",
    "Control",
    "LoadCoordinator",
    "OptVar",
    "Params",
    "SolverLibrary",
    "SolverStructures",
    "WorhpMatrix",
    "Workspace",
    "default_coordinator",
    "load_library",
]
