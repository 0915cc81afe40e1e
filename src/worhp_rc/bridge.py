"""Conversion between candidates and the buffers of the solver.

The functions in this module are the only code that reads or writes the
variable buffers of a solver session. The objective is stored in the solver
multiplied by the objective scale factor of the session. Constraints are
expressed as violations, with equality constraints first: equality rows are
bounded to `[0, 0]`, inequality rows to `[-infinity, 0]`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .config.utils import immutable_array

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from .problem import Problem
    from .session import SolverSession


@dataclass(frozen=True, slots=True)
class Candidate:
    """A decision vector with its fitness vector.

    The fitness vector holds the objective, followed by the constraint
    values. Both arrays are immutable.

    Attributes:
        x: The decision vector.
        f: The fitness vector.
    """

    x: NDArray[np.float64]
    f: NDArray[np.float64]

    def __post_init__(self) -> None:
        object.__setattr__(self, "x", immutable_array(self.x, dtype=np.float64))
        object.__setattr__(self, "f", immutable_array(self.f, dtype=np.float64))


def write_decision_vector(session: SolverSession, x: ArrayLike) -> None:
    """Copy a decision vector into the `X` buffer.

    Args:
        session: The solver session.
        x:       The decision vector.
    """
    _copy_into(session.buffer("X"), x, "X")


def write_objective(session: SolverSession, objective: float) -> None:
    """Store a scaled objective value in the `F` slot.

    Args:
        session:   The solver session.
        objective: The objective value.
    """
    session.structures.opt.F = session.objective_scale * float(objective)


def write_constraints(session: SolverSession, constraints: ArrayLike) -> None:
    """Copy constraint values into the `G` buffer.

    Args:
        session:     The solver session.
        constraints: The constraint values.
    """
    _copy_into(session.buffer("G"), constraints, "G")


def write_candidate(session: SolverSession, x: ArrayLike, f: ArrayLike) -> None:
    """Write a candidate into the solver buffers.

    Args:
        session: The solver session.
        x:       The decision vector.
        f:       The fitness vector: objective followed by the constraints.
    """
    fitness = np.asarray(f, dtype=np.float64)
    write_decision_vector(session, x)
    write_objective(session, fitness[0])
    write_constraints(session, fitness[1:])


def write_bounds(
    session: SolverSession,
    lower_bounds: ArrayLike,
    upper_bounds: ArrayLike,
    n_eq: int,
) -> None:
    """Write the variable and constraint bounds.

    Args:
        session:      The solver session.
        lower_bounds: The lower bounds of the variables.
        upper_bounds: The upper bounds of the variables.
        n_eq:         The number of equality constraints.
    """
    _copy_into(session.buffer("XL"), lower_bounds, "XL")
    _copy_into(session.buffer("XU"), upper_bounds, "XU")
    lower = session.buffer("GL")
    upper = session.buffer("GU")
    if not 0 <= n_eq <= lower.size:
        msg = f"invalid number of equality constraints: {n_eq}"
        raise ValueError(msg)
    lower[:n_eq] = 0.0
    lower[n_eq:] = -session.structures.par.Infty
    upper[:] = 0.0


def read_decision_vector(session: SolverSession) -> NDArray[np.float64]:
    """Return a copy of the `X` buffer.

    Args:
        session: The solver session.

    Returns:
        The decision vector.
    """
    return session.buffer("X").copy()


def read_candidate(session: SolverSession, problem: Problem) -> Candidate:
    """Read the final candidate from the solver.

    The fitness is evaluated again by the problem, rather than taken from the
    `F` and `G` slots, which hold a scaled objective and may hold values of
    intermediate finite-difference evaluations.

    Args:
        session: The solver session.
        problem: The problem to evaluate the fitness with.

    Returns:
        The final candidate.
    """
    x = read_decision_vector(session)
    return Candidate(x=x, f=problem.fitness(x))


def _copy_into(buffer: NDArray[np.float64], values: ArrayLike, name: str) -> None:
    array = np.asarray(values, dtype=np.float64)
    if array.shape != buffer.shape:
        msg = f"cannot write {array.size} values into buffer {name} of size {buffer.size}"
        raise ValueError(msg)
    buffer[:] = array
