"""Enumerations used within the `worhp_rc` library."""

from enum import IntEnum, StrEnum


class ActionRequest(IntEnum):
    """Enumerates the actions the solver may request from the caller.

    In the reverse-communication loop the solver never calls back into the
    caller. Instead, it asserts one or more of these actions in its control
    structure, and the caller polls for them using `GetUserAction`. The values
    are the integer codes passed to `GetUserAction` and `DoneUserAction`.

    The derivative evaluations that the solver can request (`evalDF`,
    `evalDG` and `evalHM`, codes 4 to 6) are never asserted, since derivatives
    are always estimated by the solver itself.
    """

    RUN_SOLVER_STEP = 0
    "Run one internal step of the solver (`callWorhp`)."

    REPORT_ITERATION = 1
    "Report the current iteration (`iterOutput`)."

    EVALUATE_OBJECTIVE = 2
    "Evaluate the objective at the current decision vector (`evalF`)."

    EVALUATE_CONSTRAINTS = 3
    "Evaluate the constraints at the current decision vector (`evalG`)."

    COMPUTE_FINITE_DIFFERENCE = 7
    "Run the finite-difference routine of the solver (`fidif`)."


class TerminationStatus(IntEnum):
    """Classification of the status flag of the solver control structure.

    The raw status is an integer owned by the solver. Values at or above the
    success threshold mean that the solver terminated successfully, values at
    or below the error threshold signal an error. Everything in between means
    that the solver is still iterating.
    """

    RUNNING = 0
    """The solver has not terminated yet."""

    SUCCESS = 1
    """The solver terminated successfully."""

    ERROR = 2
    """The solver terminated with an error."""

    @classmethod
    def from_status(
        cls, status: int, *, terminate_success: int, terminate_error: int
    ) -> "TerminationStatus":
        """Classify a raw status code.

        Args:
            status:            The status stored in the control structure.
            terminate_success: The lowest status code signalling success.
            terminate_error:   The highest status code signalling an error.

        Returns:
            The classification of the status.
        """
        if status >= terminate_success:
            return cls.SUCCESS
        if status <= terminate_error:
            return cls.ERROR
        return cls.RUNNING


class LoadFailure(StrEnum):
    """Enumerates the checks that can fail while loading the solver library."""

    NOT_A_FILE = "not a regular file"
    """The library path does not point to a regular file."""

    OPEN_FAILED = "library open failure"
    """The file could not be opened as a shared library."""

    SYMBOL_NOT_FOUND = "symbol not found"
    """A required entry point is missing from the library."""

    DEPENDENCY_FAILED = "link/dependency failure"
    """The library needs other libraries that could not be resolved."""


class SessionStage(IntEnum):
    """The linear stages of a solver session.

    Each stage is a precondition for the next one. A session can only move
    forward, one stage at a time, except for the final stage which may be
    reached from any stage after `INITIALIZED`.
    """

    CREATED = 0
    "Empty structures, pre-initialized by `WorhpPreInit`."

    PARAMS_LOADED = 1
    "The parameter file has been read into the parameter block."

    SIZED = 2
    "Problem dimensions and dense derivative declarations are set."

    INITIALIZED = 3
    "`WorhpInit` has been called, the buffers are valid."

    SEEDED = 4
    "The initial candidate and the bounds have been written."

    RUNNING = 5
    "The reverse-communication loop is executing."

    FINALIZED = 6
    "`StatusMsg` and `WorhpFree` have been called."
