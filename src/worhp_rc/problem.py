"""This module defines the protocol followed by optimization problems.

The algorithm does not define problems itself, it consumes them from the
population framework it is plugged into. Any object that follows the
[`Problem`][worhp_rc.problem.Problem] protocol can be optimized.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray


class Problem(Protocol):
    """Protocol for optimization problems.

    The fitness of a problem is a vector holding the objective values,
    followed by the equality constraints and then the inequality constraints.
    Constraints are expressed as violations: equality constraints are
    satisfied when equal to zero, inequality constraints when less than or
    equal to zero, in both cases up to the tolerances given by
    `constraint_tolerances`.
    """

    @property
    def name(self) -> str:
        """The name of the problem."""

    @property
    def dimension(self) -> int:
        """The number of decision variables."""

    @property
    def objective_count(self) -> int:
        """The number of objectives."""

    @property
    def constraint_count(self) -> int:
        """The total number of constraints."""

    @property
    def equality_count(self) -> int:
        """The number of equality constraints, stored first."""

    @property
    def stochastic(self) -> bool:
        """Whether the fitness of the problem is stochastic."""

    @property
    def bounds(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """The lower and upper bounds of the decision variables."""

    @property
    def constraint_tolerances(self) -> NDArray[np.float64]:
        """The tolerances used to check the constraints, one per constraint."""

    def fitness(self, x: NDArray[np.float64], /) -> NDArray[np.float64]:
        """Evaluate the fitness of a decision vector.

        Args:
            x: The decision vector.

        Returns:
            The objective values followed by the constraint values.
        """
