"""The reverse-communication loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Final

import numpy as np

from .bridge import read_decision_vector, write_constraints, write_objective
from .enums import ActionRequest, TerminationStatus

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .session import SolverSession


@dataclass(frozen=True, slots=True)
class Dispatch:
    """An entry of the dispatch table of the driver.

    Attributes:
        action:      The requested action.
        handler:     The name of the driver method handling the action.
        acknowledge: Whether `DoneUserAction` is called after the handler.
    """

    action: ActionRequest
    handler: str
    acknowledge: bool


DISPATCH_TABLE: Final = (
    # The solver resets this flag itself:
    Dispatch(ActionRequest.RUN_SOLVER_STEP, "_run_solver_step", acknowledge=False),
    Dispatch(ActionRequest.REPORT_ITERATION, "_report_iteration", acknowledge=True),
    Dispatch(
        ActionRequest.EVALUATE_OBJECTIVE, "_evaluate_objective", acknowledge=True
    ),
    Dispatch(
        ActionRequest.EVALUATE_CONSTRAINTS, "_evaluate_constraints", acknowledge=True
    ),
    # Reset by the finite-difference routine:
    Dispatch(
        ActionRequest.COMPUTE_FINITE_DIFFERENCE,
        "_compute_finite_difference",
        acknowledge=False,
    ),
)
"""The actions serviced by the driver, in the order they are polled."""


class ReverseCommunicationDriver:
    """Runs the reverse-communication loop of a solver session.

    In each iteration of the loop the driver polls the solver for every
    action in the `DISPATCH_TABLE`, in order, and handles each action that is
    requested. Several actions may be serviced in one iteration. Actions are
    acknowledged with `DoneUserAction` after handling, except for the solver
    step and the finite-difference routine, which reset their flags
    themselves. The loop ends when the solver status signals a successful or
    a failed termination; the number of iterations is not limited here.

    Objective and constraint values are obtained from the `fitness`
    function, which returns the objective followed by the constraints. When
    both are requested at the same decision vector, the fitness is evaluated
    only once.
    """

    def __init__(
        self,
        fitness: Callable[[NDArray[np.float64]], NDArray[np.float64]],
        *,
        iteration_output: Callable[[SolverSession], None] | None = None,
    ) -> None:
        """Initialize the driver.

        By default, iterations are reported by the `IterationOutput` routine
        of the solver. A callback may be passed via `iteration_output` to
        replace it.

        Args:
            fitness:          Function evaluating the fitness of a decision vector.
            iteration_output: Optional callback reporting the iterations.
        """
        self._fitness = fitness
        self._iteration_output = iteration_output
        self._cached_variables: NDArray[np.float64] | None = None
        self._cached_fitness: NDArray[np.float64] | None = None
        self._iterations = 0

    @property
    def iterations(self) -> int:
        """The number of loop iterations of the last run."""
        return self._iterations

    def run(self, session: SolverSession) -> int:
        """Run the loop until the solver terminates.

        Args:
            session: The solver session, seeded with the initial candidate.

        Returns:
            The final status of the solver.
        """
        library = session.library
        cnt = session.structures.cnt
        self._cached_variables = None
        self._cached_fitness = None
        self._iterations = 0
        while session.termination == TerminationStatus.RUNNING:
            for dispatch in DISPATCH_TABLE:
                if library.get_user_action(cnt, dispatch.action):
                    getattr(self, dispatch.handler)(session)
                    if dispatch.acknowledge:
                        library.done_user_action(cnt, dispatch.action)
            self._iterations += 1
        return session.status

    def _run_solver_step(self, session: SolverSession) -> None:
        session.library.step(session.structures)

    def _report_iteration(self, session: SolverSession) -> None:
        if self._iteration_output is None:
            session.library.iteration_output(session.structures)
        else:
            self._iteration_output(session)

    def _evaluate_objective(self, session: SolverSession) -> None:
        write_objective(session, self._evaluate(session)[0])

    def _evaluate_constraints(self, session: SolverSession) -> None:
        write_constraints(session, self._evaluate(session)[1:])

    def _compute_finite_difference(self, session: SolverSession) -> None:
        session.library.finite_difference(session.structures)

    def _evaluate(self, session: SolverSession) -> NDArray[np.float64]:
        variables = read_decision_vector(session)
        if (
            self._cached_fitness is None
            or self._cached_variables is None
            or not np.array_equal(variables, self._cached_variables)
        ):
            self._cached_variables = variables
            self._cached_fitness = np.asarray(
                self._fitness(variables), dtype=np.float64
            )
        return self._cached_fitness
