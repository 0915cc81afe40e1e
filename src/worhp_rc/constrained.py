"""Feasibility-aware comparison of fitness vectors."""

from __future__ import annotations

from functools import cmp_to_key
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


class ConstraintInfo(NamedTuple):
    """Summary of the constraint violations of a fitness vector.

    Attributes:
        feasible: `True` if no constraint is violated.
        violated: The number of violated constraints.
        norm:     The Euclidean norm of the violations.
    """

    feasible: bool
    violated: int
    norm: float


def check_constraints(
    constraints: ArrayLike, n_eq: int, tolerances: ArrayLike
) -> ConstraintInfo:
    """Check constraint values against their tolerances.

    The first `n_eq` values are equality constraints, violated when their
    absolute value exceeds the tolerance. The remaining values are inequality
    constraints, violated when they exceed the tolerance.

    Args:
        constraints: The constraint values.
        n_eq:        The number of equality constraints.
        tolerances:  The tolerances, a scalar or one value per constraint.

    Returns:
        The feasibility summary.
    """
    values = np.asarray(constraints, dtype=np.float64)
    tol = np.broadcast_to(np.asarray(tolerances, dtype=np.float64), values.shape)
    violations = np.concatenate(
        (np.abs(values[:n_eq]), np.maximum(values[n_eq:], 0.0))
    )
    is_violated = violations > tol
    violated = int(is_violated.sum())
    norm = float(np.linalg.norm(np.where(is_violated, violations, 0.0)))
    return ConstraintInfo(feasible=violated == 0, violated=violated, norm=norm)


def compare_fc(
    f1: ArrayLike, f2: ArrayLike, n_eq: int, tolerances: ArrayLike
) -> bool:
    """Compare two single-objective fitness vectors.

    Feasible vectors are better than infeasible ones. Two feasible vectors are
    ranked by objective value. Two infeasible vectors are ranked by the number
    of violated constraints, and then by the norm of the violations.

    Args:
        f1:         The first fitness vector.
        f2:         The second fitness vector.
        n_eq:       The number of equality constraints.
        tolerances: The constraint tolerances.

    Returns:
        `True` if `f1` is strictly better than `f2`.
    """
    f1 = np.asarray(f1, dtype=np.float64)
    f2 = np.asarray(f2, dtype=np.float64)
    if f1.shape != f2.shape:
        msg = f"fitness vectors of different sizes: {f1.size} and {f2.size}"
        raise ValueError(msg)
    info1 = check_constraints(f1[1:], n_eq, tolerances)
    info2 = check_constraints(f2[1:], n_eq, tolerances)
    if info1.feasible and info2.feasible:
        return bool(f1[0] < f2[0])
    if info1.feasible or info2.feasible:
        return info1.feasible
    if info1.violated == info2.violated:
        return info1.norm < info2.norm
    return info1.violated < info2.violated


def sort_population_con(
    fitness: NDArray[np.float64], n_eq: int, tolerances: ArrayLike
) -> list[int]:
    """Rank fitness vectors from best to worst.

    Args:
        fitness:    The fitness vectors, one per row.
        n_eq:       The number of equality constraints.
        tolerances: The constraint tolerances.

    Returns:
        The row indices, sorted from best to worst.
    """

    def _compare(idx1: int, idx2: int) -> int:
        if compare_fc(fitness[idx1], fitness[idx2], n_eq, tolerances):
            return -1
        if compare_fc(fitness[idx2], fitness[idx1], n_eq, tolerances):
            return 1
        return 0

    return sorted(range(fitness.shape[0]), key=cmp_to_key(_compare))
