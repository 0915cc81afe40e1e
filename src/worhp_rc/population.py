"""A minimal population container."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .config.utils import immutable_array
from .constrained import sort_population_con

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from .problem import Problem


class Population:
    """A population of decision vectors and their fitness vectors.

    The population stores one row per individual in two arrays: the decision
    vectors and the corresponding fitness vectors. Fitness vectors are
    computed by the problem when individuals are added without one. The
    arrays returned by the `x` and `f` properties are immutable copies; use
    `set_xf` to modify an individual.
    """

    def __init__(
        self, problem: Problem, size: int = 0, *, seed: int | None = None
    ) -> None:
        """Initialize a population.

        Args:
            problem: The problem of the population.
            size:    The number of individuals to generate.
            seed:    Seed used to generate the individuals.
        """
        self._problem = problem
        self._x = np.empty((0, problem.dimension), dtype=np.float64)
        self._f = np.empty(
            (0, problem.objective_count + problem.constraint_count), dtype=np.float64
        )
        self._fevals = 0
        rng = np.random.default_rng(seed)
        lower, upper = problem.bounds
        for _ in range(size):
            self.push_back(rng.uniform(lower, upper))

    @property
    def problem(self) -> Problem:
        """The problem of the population."""
        return self._problem

    @property
    def x(self) -> NDArray[np.float64]:
        """The decision vectors, one per row."""
        return immutable_array(self._x)

    @property
    def f(self) -> NDArray[np.float64]:
        """The fitness vectors, one per row."""
        return immutable_array(self._f)

    @property
    def fevals(self) -> int:
        """The number of fitness evaluations made by the population."""
        return self._fevals

    def __len__(self) -> int:
        return self._x.shape[0]

    def push_back(self, x: ArrayLike, f: ArrayLike | None = None) -> None:
        """Append an individual.

        Args:
            x: The decision vector.
            f: The fitness vector, evaluated if not given.
        """
        x_row, f_row = self._check_xf(x, f)
        self._x = np.vstack((self._x, x_row))
        self._f = np.vstack((self._f, f_row))

    def set_xf(self, index: int, x: ArrayLike, f: ArrayLike) -> None:
        """Replace an individual.

        Args:
            index: The index of the individual.
            x:     The new decision vector.
            f:     The new fitness vector.
        """
        if not 0 <= index < len(self):
            msg = f"invalid individual index {index} for a population of size {len(self)}"
            raise IndexError(msg)
        self._x[index], self._f[index] = self._check_xf(x, f)

    def best_index(self) -> int:
        """Return the index of the best individual.

        Returns:
            The index of the best individual.
        """
        return self._ranking()[0]

    def worst_index(self) -> int:
        """Return the index of the worst individual.

        Returns:
            The index of the worst individual.
        """
        return self._ranking()[-1]

    def _ranking(self) -> list[int]:
        if len(self) == 0:
            msg = "cannot rank the individuals of an empty population"
            raise ValueError(msg)
        if self._problem.objective_count != 1:
            msg = "ranking is only supported for single-objective problems"
            raise ValueError(msg)
        return sort_population_con(
            self._f,
            self._problem.equality_count,
            self._problem.constraint_tolerances,
        )

    def _check_xf(
        self, x: ArrayLike, f: ArrayLike | None
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        x_row = np.array(x, dtype=np.float64, ndmin=1)
        if x_row.shape != (self._x.shape[1],):
            msg = f"decision vector of size {x_row.size}, expected {self._x.shape[1]}"
            raise ValueError(msg)
        if f is None:
            f = self._problem.fitness(x_row)
            self._fevals += 1
        f_row = np.array(f, dtype=np.float64, ndmin=1)
        if f_row.shape != (self._f.shape[1],):
            msg = f"fitness vector of size {f_row.size}, expected {self._f.shape[1]}"
            raise ValueError(msg)
        return x_row, f_row
