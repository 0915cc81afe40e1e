"""The WORHP algorithm for population-based optimization."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Final, Self

import numpy as np

from .bridge import read_candidate
from .config import WorhpConfig
from .constrained import check_constraints
from .driver import ReverseCommunicationDriver
from .exceptions import ConfigError
from .native import load_library
from .policy import check_index, replace_individual, select_individual
from .session import SolverSession

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .config import Policy
    from .native import BinderManager, LoadCoordinator
    from .population import Population
    from .problem import Problem

LogLine = tuple[int, float, int, float, bool]
"""A log line: evaluations, objective, violations, violation norm, feasibility."""

_HEADER_INTERVAL: Final = 50

logger = logging.getLogger(__name__)


class Worhp:
    """The WORHP (We Optimize Really Huge Problems) algorithm.

    This class adapts the WORHP solver, a large-scale solver for constrained
    nonlinear optimization, to population-based optimization. The solver is
    not linked when `worhp_rc` is installed: it is loaded from a shared
    library at run-time, and driven through its reverse-communication
    interface.

    The [`evolve`][worhp_rc.Worhp.evolve] method selects one individual from
    the population, optimizes it with the solver, and inserts the result back
    into the population if it improves it. The selection and replacement
    policies are set in the configuration, or via
    [`set_selection`][worhp_rc.Worhp.set_selection] and
    [`set_replacement`][worhp_rc.Worhp.set_replacement].

    Derivatives are always estimated by the solver, by finite differences or
    quasi-Newton updates. The exploitation of linear parts of the problem is
    not supported.

    Logging is either done by the solver itself, if `screen_output` is set in
    the configuration, or by `worhp_rc` if a nonzero `verbosity` is set. When
    the verbosity is `n`, every `n` objective evaluations a line is logged
    and recorded in the log returned by [`get_log`][worhp_rc.Worhp.get_log]:

    ```
    objevals:        objval:      violated:    viol. norm:
            1        48.9451              1        1.25272 i
            2         30.153              1       0.716591 i
            3        26.2884              0              0
    ```

    The `i` marks infeasible decision vectors, as established with the
    tolerances of the problem, which may differ from the notion of
    feasibility of the solver.
    """

    def __init__(
        self,
        config: WorhpConfig | dict[str, Any] | None = None,
        *,
        coordinator: LoadCoordinator | None = None,
        binder_manager: BinderManager | None = None,
    ) -> None:
        """Initialize the algorithm.

        Args:
            config:         The configuration of the algorithm.
            coordinator:    The coordinator for library loads (optional).
            binder_manager: The manager providing binder plugins (optional).

        Raises:
            ConfigError: If screen output is combined with a nonzero verbosity.
        """
        if config is None:
            config = WorhpConfig()
        elif not isinstance(config, WorhpConfig):
            config = WorhpConfig.model_validate(config)
        _check_output(config.screen_output, config.verbosity)
        self._config = config
        self._coordinator = coordinator
        self._binder_manager = binder_manager
        self._rng = np.random.default_rng(config.seed)
        self._iteration_callback: Callable[[SolverSession], None] | None = None
        self._last_opt_result: int | None = None
        self._log: list[LogLine] = []
        self._fevals = 0

    @property
    def config(self) -> WorhpConfig:
        """The configuration of the algorithm."""
        return self._config

    @property
    def verbosity(self) -> int:
        """The verbosity level."""
        return self._config.verbosity

    @property
    def last_opt_result(self) -> int | None:
        """The solver status of the last call to `evolve`, if any."""
        return self._last_opt_result

    def set_verbosity(self, verbosity: int) -> Self:
        """Set the verbosity level.

        Args:
            verbosity: Log every `verbosity` objective evaluations (0: off).

        Returns:
            The algorithm object.

        Raises:
            ConfigError: If screen output is enabled and `verbosity` is nonzero.
        """
        _check_output(self._config.screen_output, verbosity)
        self._update_config(verbosity=verbosity)
        return self

    def set_selection(self, policy: Policy | int | str) -> Self:
        """Set the policy selecting the individual to optimize.

        Args:
            policy: An index, or one of `best`, `worst` or `random`.

        Returns:
            The algorithm object.
        """
        self._update_config(selection=policy)
        return self

    def set_replacement(self, policy: Policy | int | str) -> Self:
        """Set the policy selecting the individual to replace.

        Args:
            policy: An index, or one of `best`, `worst` or `random`.

        Returns:
            The algorithm object.
        """
        self._update_config(replacement=policy)
        return self

    def set_iteration_callback(
        self, callback: Callable[[SolverSession], None] | None
    ) -> Self:
        """Replace the iteration output of the solver with a callback.

        The callback is called with the running session each time the
        solver reports an iteration.

        Args:
            callback: The callback, or `None` to restore the solver output.

        Returns:
            The algorithm object.
        """
        self._iteration_callback = callback
        return self

    def get_log(self) -> list[LogLine]:
        """Return the log of the last optimization.

        Returns:
            A copy of the log lines, in chronological order.
        """
        return list(self._log)

    def get_name(self) -> str:
        """Return the name of the algorithm.

        Returns:
            The name of the algorithm.
        """
        return "WORHP"

    def get_extra_info(self) -> str:
        """Return a description of the algorithm settings.

        Returns:
            A human-readable description.
        """
        config = self._config
        output = (
            "(worhp)"
            if config.screen_output
            else f"(worhp_rc) - verbosity {config.verbosity}"
        )
        return (
            f"\tWorhp library filename: {config.library}\n"
            f"\tScreen output: {output}\n"
            f"\tIndividual selection {config.selection}\n"
            f"\tIndividual replacement {config.replacement}\n"
        )

    def evolve(self, population: Population) -> Population:
        """Optimize an individual of a population.

        Selects an individual according to the selection policy, optimizes it
        until the solver terminates, and inserts the result according to the
        replacement policy if it improves on the selected individual. The
        final status of the solver is available afterwards via
        `last_opt_result`; a solver failure is not an error.

        Args:
            population: The population to optimize.

        Returns:
            The population, possibly with one individual replaced.

        Raises:
            ConfigError: If the problem is not single-objective, is stochastic,
                         if the population is empty, or if a policy index is
                         out of range.
            LoadError:   If the solver library cannot be loaded.
        """
        self._last_opt_result = None
        self._log = []
        self._fevals = 0

        problem = population.problem
        if problem.objective_count != 1:
            msg = (
                f"Multiple objectives detected in {problem.name} instance. "
                f"{self.get_name()} cannot deal with them"
            )
            raise ConfigError(msg)
        if problem.stochastic:
            msg = f"The problem appears to be stochastic. {self.get_name()} cannot deal with it"
            raise ConfigError(msg)
        if len(population) == 0:
            msg = f"{self.get_name()} does not work on an empty population"
            raise ConfigError(msg)

        index, seed = select_individual(population, self._config.selection, self._rng)
        check_index(population, self._config.replacement)

        library = load_library(
            self._config.library,
            binder=self._config.binder,
            coordinator=self._coordinator,
            manager=self._binder_manager,
        )

        lower_bounds, upper_bounds = problem.bounds
        driver = ReverseCommunicationDriver(
            lambda x: self._evaluate(problem, x),
            iteration_output=self._iteration_callback,
        )
        try:
            with SolverSession(
                library, screen_output=self._config.screen_output
            ) as session:
                session.pre_init()
                session.read_params(self._config.param_file)
                session.size(problem.dimension, problem.constraint_count)
                session.init()
                session.seed(
                    seed.x,
                    seed.f,
                    lower_bounds,
                    upper_bounds,
                    problem.equality_count,
                )
                self._last_opt_result = session.run(driver)
                result = read_candidate(session, problem)
                termination = session.termination
        finally:
            library.close()

        logger.info(
            "%s finished with status %d (%s) after %d loop iterations",
            self.get_name(),
            self._last_opt_result,
            termination.name.lower(),
            driver.iterations,
        )
        replaced = replace_individual(
            population, self._config.replacement, result, seed, self._rng
        )
        if replaced is None:
            logger.info("No improvement on individual %d, population unchanged", index)
        else:
            logger.info("Individual %d replaced by the optimized candidate", replaced)
        return population

    def _evaluate(
        self, problem: Problem, x: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        f = np.asarray(problem.fitness(x), dtype=np.float64)
        self._fevals += 1
        verbosity = self._config.verbosity
        if verbosity > 0 and (self._fevals - 1) % verbosity == 0:
            info = check_constraints(
                f[1:], problem.equality_count, problem.constraint_tolerances
            )
            if len(self._log) % _HEADER_INTERVAL == 0:
                logger.info(
                    "%9s %15s %15s %15s", "objevals:", "objval:", "violated:", "viol. norm:"
                )
            logger.info(
                "%9d %15.6g %15d %15.6g%s",
                self._fevals,
                f[0],
                info.violated,
                info.norm,
                "" if info.feasible else " i",
            )
            self._log.append(
                (self._fevals, float(f[0]), info.violated, info.norm, info.feasible)
            )
        return f

    def _update_config(self, **kwargs: Any) -> None:  # noqa: ANN401
        self._config = WorhpConfig.model_validate(
            {**self._config.model_dump(), **kwargs}
        )


def _check_output(screen_output: bool, verbosity: int) -> None:  # noqa: FBT001
    if screen_output and verbosity != 0:
        msg = (
            "Cannot set verbosity to a >0 value if WORHP screen output is "
            "chosen upon construction."
        )
        raise ConfigError(msg)
