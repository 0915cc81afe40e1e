"""ctypes layouts of the data structures shared with the solver library.

The solver keeps all its state in four structures, passed by pointer to every
entry point: the optimization variables (`OptVar`), the workspace
(`Workspace`), the parameters (`Params`) and the control flags (`Control`).
Only the fields used by `worhp_rc` are laid out here, in the order of the
reduced unified-solver-interface header that this binding targets. Builds of
the solver with a different layout need their own binder plugin (see
[`BinderPlugin`][worhp_rc.native.base.BinderPlugin]).
"""

from __future__ import annotations

from ctypes import POINTER, Structure, c_bool, c_char_p, c_double, c_int
from typing import Final

WORHP_MATRIX_INIT_DENSE: Final = -1
"""Value of `WorhpMatrix.nnz` declaring a dense matrix."""

TERMINATE_SUCCESS: Final = 1000
"""Status codes at or above this value signal a successful termination."""

TERMINATE_ERROR: Final = -1000
"""Status codes at or below this value signal an error."""

USER_ACTION_SLOTS: Final = 16
"""Number of user action flags held by the control structure."""

NLP_PRINT_SILENT: Final = -1
"""Value of `Params.NLPprint` that suppresses all solver output."""

DEFAULT_PARAM_FILE: Final = "param.xml"
"""Parameter file read when no other file is configured."""

PARAM_FILE_VARIABLE: Final = "WORHP_PARAM_FILE"
"""Environment variable holding the path of the parameter file."""


class WorhpMatrix(Structure):
    _fields_ = [  # noqa: RUF012
        ("nnz", c_int),
        ("nRow", c_int),
        ("nCol", c_int),
        ("val", POINTER(c_double)),
        ("row", POINTER(c_int)),
        ("col", POINTER(c_int)),
    ]


class OptVar(Structure):
    _fields_ = [  # noqa: RUF012
        ("n", c_int),
        ("m", c_int),
        ("X", POINTER(c_double)),
        ("Lambda", POINTER(c_double)),
        ("XL", POINTER(c_double)),
        ("XU", POINTER(c_double)),
        ("F", c_double),
        ("G", POINTER(c_double)),
        ("Mu", POINTER(c_double)),
        ("GL", POINTER(c_double)),
        ("GU", POINTER(c_double)),
        ("initialised", c_bool),
    ]


class Workspace(Structure):
    _fields_ = [  # noqa: RUF012
        ("DF", WorhpMatrix),
        ("DG", WorhpMatrix),
        ("HM", WorhpMatrix),
        ("ScaleObj", c_double),
        ("MajorIter", c_int),
        ("initialised", c_bool),
    ]


class Params(Structure):
    _fields_ = [  # noqa: RUF012
        ("Infty", c_double),
        ("MaxIter", c_int),
        ("NLPprint", c_int),
        ("TolFeas", c_double),
        ("TolOpti", c_double),
        ("UserDF", c_bool),
        ("UserDG", c_bool),
        ("UserHM", c_bool),
        ("UserHMstructure", c_bool),
        ("InitialLMest", c_bool),
        ("initialised", c_bool),
    ]


class Control(Structure):
    _fields_ = [  # noqa: RUF012
        ("status", c_int),
        ("userAction", c_bool * USER_ACTION_SLOTS),
        ("initialised", c_bool),
    ]


# Signatures of the entry points, as (argument types, result type):
SOLVER_ROUTINE: Final = (
    [POINTER(OptVar), POINTER(Workspace), POINTER(Params), POINTER(Control)],
    None,
)
SIGNATURES: Final = {
    "WorhpPreInit": SOLVER_ROUTINE,
    "WorhpInit": SOLVER_ROUTINE,
    "ReadParams": ([POINTER(c_int), c_char_p, POINTER(Params)], None),
    "GetUserAction": ([POINTER(Control), c_int], c_bool),
    "DoneUserAction": ([POINTER(Control), c_int], c_bool),
    "IterationOutput": SOLVER_ROUTINE,
    "Worhp": SOLVER_ROUTINE,
    "StatusMsg": SOLVER_ROUTINE,
    "WorhpFree": SOLVER_ROUTINE,
    "WorhpFidif": SOLVER_ROUTINE,
}
