"""The lifecycle of a solver session."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Self

import numpy as np

from .bridge import write_bounds, write_candidate
from .enums import SessionStage, TerminationStatus
from .exceptions import SessionStateError
from .native._structs import (
    DEFAULT_PARAM_FILE,
    NLP_PRINT_SILENT,
    PARAM_FILE_VARIABLE,
    WORHP_MATRIX_INIT_DENSE,
)
from .native.base import SolverStructures

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from .driver import ReverseCommunicationDriver
    from .native.base import SolverLibrary

# Buffers of the optimization variables, and the dimension that sizes them:
_BUFFERS: Final = {
    "X": "n",
    "XL": "n",
    "XU": "n",
    "Lambda": "n",
    "G": "m",
    "GL": "m",
    "GU": "m",
    "Mu": "m",
}

logger = logging.getLogger(__name__)


class SolverSession:
    """A single solve, from the creation to the release of the solver state.

    A session owns the structures shared with the solver, and sequences the
    mandatory calls into the solver library. The stages of a session, listed
    in [`SessionStage`][worhp_rc.enums.SessionStage], must be entered in
    order, one method call per stage:

    1. `pre_init`:    Initialize the empty structures.
    2. `read_params`: Read the parameter file.
    3. `size`:        Declare the problem dimensions.
    4. `init`:        Allocate the solver memory.
    5. `seed`:        Write the initial candidate and the bounds.
    6. `run`:         Run the reverse-communication loop.
    7. `finalize`:    Report the status and release the memory.

    Calling a method out of order raises a
    [`SessionStateError`][worhp_rc.exceptions.SessionStateError]. Sessions
    are context managers: on exit, `finalize` is called if the session was
    initialized, whether the body of the context raised or not. A session is
    never reused for another solve.
    """

    def __init__(self, library: SolverLibrary, *, screen_output: bool = False) -> None:
        """Initialize a solver session.

        Args:
            library:       The bound solver library.
            screen_output: If `False`, the output of the solver is suppressed.
        """
        self._library = library
        self._screen_output = screen_output
        self._structures = SolverStructures()
        self._stage: SessionStage | None = None
        self._param_count = 0
        self._objective_scale = 1.0

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        if self._is_allocated():
            self.finalize()

    @property
    def library(self) -> SolverLibrary:
        """The solver library used by the session."""
        return self._library

    @property
    def structures(self) -> SolverStructures:
        """The structures shared with the solver."""
        return self._structures

    @property
    def stage(self) -> SessionStage | None:
        """The current stage, `None` before `pre_init` is called."""
        return self._stage

    @property
    def param_count(self) -> int:
        """The number of parameters read from the parameter file."""
        return self._param_count

    @property
    def objective_scale(self) -> float:
        """The objective scale factor, fixed when the session is initialized."""
        return self._objective_scale

    @property
    def status(self) -> int:
        """The raw status of the solver control structure."""
        return int(self._structures.cnt.status)

    @property
    def termination(self) -> TerminationStatus:
        """The classification of the current status."""
        return TerminationStatus.from_status(
            self.status,
            terminate_success=self._library.terminate_success,
            terminate_error=self._library.terminate_error,
        )

    def pre_init(self) -> None:
        """Initialize the empty solver structures."""
        self._require(None)
        self._library.pre_init(self._structures)
        self._stage = SessionStage.CREATED

    def read_params(self, filename: str | Path | None = None) -> int:
        """Read the parameter file of the solver.

        If `filename` is not given, the file named by the `WORHP_PARAM_FILE`
        environment variable is read, or `param.xml` if it is not set. A
        missing file is not an error: the solver falls back to its defaults.

        Args:
            filename: The parameter file to read (optional).

        Returns:
            The number of parameters read from the file.
        """
        self._require(SessionStage.CREATED)
        if filename is None:
            filename = os.environ.get(PARAM_FILE_VARIABLE, DEFAULT_PARAM_FILE)
        if not Path(filename).is_file():
            logger.info("Parameter file %s not found, using solver defaults", filename)
        self._param_count = self._library.read_params(
            str(filename), self._structures.par
        )
        self._stage = SessionStage.PARAMS_LOADED
        return self._param_count

    def size(self, n: int, m: int) -> None:
        """Declare the dimensions of the problem.

        Derivative matrices are always declared dense.

        Args:
            n: The number of variables.
            m: The number of constraints.
        """
        self._require(SessionStage.PARAMS_LOADED)
        opt, wsp = self._structures.opt, self._structures.wsp
        opt.n = n
        opt.m = m
        wsp.DF.nnz = WORHP_MATRIX_INIT_DENSE
        wsp.DG.nnz = WORHP_MATRIX_INIT_DENSE
        wsp.HM.nnz = WORHP_MATRIX_INIT_DENSE
        self._stage = SessionStage.SIZED

    def init(self) -> None:
        """Allocate the solver memory.

        The objective scale factor is read from the workspace at this point,
        and stays fixed for the rest of the session.
        """
        self._require(SessionStage.SIZED)
        self._library.init(self._structures)
        self._objective_scale = float(self._structures.wsp.ScaleObj)
        self._stage = SessionStage.INITIALIZED

    def seed(
        self,
        x: ArrayLike,
        f: ArrayLike,
        lower_bounds: ArrayLike,
        upper_bounds: ArrayLike,
        n_eq: int,
    ) -> None:
        """Write the initial candidate, the bounds and the solver options.

        Derivatives are never supplied by the caller: the solver estimates
        them itself. The solver is asked to estimate the initial multipliers.

        Args:
            x:            The initial decision vector.
            f:            The fitness of the initial decision vector.
            lower_bounds: The lower bounds of the variables.
            upper_bounds: The upper bounds of the variables.
            n_eq:         The number of equality constraints.
        """
        self._require(SessionStage.INITIALIZED)
        par = self._structures.par
        par.UserDF = False
        par.UserDG = False
        par.UserHM = False
        par.UserHMstructure = False
        par.InitialLMest = True
        if not self._screen_output:
            par.NLPprint = NLP_PRINT_SILENT
        write_candidate(self, x, f)
        write_bounds(self, lower_bounds, upper_bounds, n_eq)
        self._stage = SessionStage.SEEDED

    def run(self, driver: ReverseCommunicationDriver) -> int:
        """Hand control to the reverse-communication driver.

        Args:
            driver: The driver running the loop.

        Returns:
            The final status of the solver.
        """
        self._require(SessionStage.SEEDED)
        self._stage = SessionStage.RUNNING
        return driver.run(self)

    def finalize(self) -> None:
        """Report the final status and release the solver memory."""
        if not self._is_allocated():
            raise SessionStateError(SessionStage.INITIALIZED, self._stage)
        self._stage = SessionStage.FINALIZED
        try:
            self._library.status_message(self._structures)
        finally:
            self._library.free(self._structures)

    def buffer(self, name: str) -> NDArray[np.float64]:
        """Return a buffer of the optimization variables.

        The result is a NumPy view of the memory allocated by the solver, so
        writes to the view are seen by the solver. Valid names are `X`, `XL`,
        `XU` and `Lambda` (of size `n`), and `G`, `GL`, `GU` and `Mu` (of size
        `m`).

        Args:
            name: The name of the buffer.

        Returns:
            A view of the buffer.
        """
        if name not in _BUFFERS:
            msg = f"Unknown solver buffer: {name}"
            raise KeyError(msg)
        if not self._is_allocated():
            raise SessionStateError(SessionStage.INITIALIZED, self._stage)
        opt = self._structures.opt
        size = int(getattr(opt, _BUFFERS[name]))
        if size == 0:
            return np.empty(0, dtype=np.float64)
        pointer: Any = getattr(opt, name)
        if not pointer:
            msg = f"Solver buffer {name} is not allocated"
            raise RuntimeError(msg)
        return np.ctypeslib.as_array(pointer, shape=(size,))

    def _require(self, stage: SessionStage | None) -> None:
        if self._stage != stage:
            raise SessionStateError(stage, self._stage)

    def _is_allocated(self) -> bool:
        return self._stage is not None and (
            SessionStage.INITIALIZED <= self._stage < SessionStage.FINALIZED
        )
