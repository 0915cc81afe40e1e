"""Selection and replacement of population members."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .bridge import Candidate
from .config import ByIndex, ByName
from .constrained import compare_fc
from .exceptions import ConfigError

if TYPE_CHECKING:
    import numpy as np

    from .config import Policy
    from .population import Population


def check_index(population: Population, policy: Policy) -> None:
    """Check that an index policy designates a member of the population.

    Name policies are resolved against the population when used, and always
    pass.

    Raises:
        ConfigError: If the index is out of the range of the population.
    """
    if isinstance(policy, ByIndex) and policy.index >= len(population):
        msg = (
            f"The index {policy.index} is not valid for a population "
            f"of size {len(population)}"
        )
        raise ConfigError(msg)


def resolve_index(
    population: Population, policy: Policy, rng: np.random.Generator
) -> int:
    """Find the population index designated by a policy.

    Args:
        population: The population.
        policy:     The selection or replacement policy.
        rng:        The random generator used by the `random` policy.

    Returns:
        The index of a member of the population.

    Raises:
        ConfigError: If the index is out of the range of the population.
    """
    match policy:
        case ByIndex(index=index):
            check_index(population, policy)
            return index
        case ByName(name="best"):
            return population.best_index()
        case ByName(name="worst"):
            return population.worst_index()
        case ByName(name="random"):
            return int(rng.integers(len(population)))
    msg = f"Invalid policy: {policy}"
    raise ConfigError(msg)


def select_individual(
    population: Population, policy: Policy, rng: np.random.Generator
) -> tuple[int, Candidate]:
    """Select the member of the population that seeds a solve.

    Args:
        population: The population.
        policy:     The selection policy.
        rng:        The random generator used by the `random` policy.

    Returns:
        The index of the selected member, and a copy of it.
    """
    index = resolve_index(population, policy, rng)
    return index, Candidate(x=population.x[index], f=population.f[index])


def replace_individual(
    population: Population,
    policy: Policy,
    result: Candidate,
    seed: Candidate,
    rng: np.random.Generator,
) -> int | None:
    """Insert an optimized candidate into the population if it improves it.

    The result is inserted only if it is strictly better than the candidate
    that seeded the solve, and not worse than the member it would overwrite,
    according to the feasibility-aware comparison of
    [`compare_fc`][worhp_rc.constrained.compare_fc] with the tolerances of
    the problem.

    Args:
        population: The population.
        policy:     The replacement policy.
        result:     The optimized candidate.
        seed:       The candidate that seeded the solve.
        rng:        The random generator used by the `random` policy.

    Returns:
        The index of the replaced member, or `None` if nothing was replaced.
    """
    problem = population.problem
    n_eq = problem.equality_count
    tolerances = problem.constraint_tolerances
    if not compare_fc(result.f, seed.f, n_eq, tolerances):
        return None
    index = resolve_index(population, policy, rng)
    if compare_fc(population.f[index], result.f, n_eq, tolerances):
        return None
    population.set_xf(index, result.x, result.f)
    return index
