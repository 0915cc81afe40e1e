from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

import numpy as np
import pytest

from worhp_rc.bridge import (
    Candidate,
    read_candidate,
    read_decision_vector,
    write_bounds,
    write_candidate,
    write_constraints,
    write_decision_vector,
    write_objective,
)
from worhp_rc.native import load_library
from worhp_rc.session import SolverSession

if TYPE_CHECKING:
    from pathlib import Path

    from worhp_rc.native import BinderManager, LoadCoordinator


@pytest.fixture(name="make_session")
def make_session_fixture(
    fake_library_path: Path,
    coordinator: LoadCoordinator,
    binder_manager: BinderManager,
) -> Callable[..., SolverSession]:
    def _make_session(n: int, m: int, scale_obj: float = 1.0) -> SolverSession:
        library = load_library(
            fake_library_path, coordinator=coordinator, manager=binder_manager
        )
        library.scale_obj = scale_obj  # type: ignore[attr-defined]
        session = SolverSession(library)
        session.pre_init()
        session.read_params()
        session.size(n, m)
        session.init()
        return session

    return _make_session


@pytest.fixture(name="session")
def session_fixture(make_session: Callable[..., SolverSession]) -> SolverSession:
    return make_session(3, 3)


def test_candidate_is_immutable() -> None:
    candidate = Candidate(x=[1.0, 2.0], f=[3.0])
    assert candidate.x.dtype == np.float64
    assert not candidate.x.flags.writeable
    assert not candidate.f.flags.writeable
    with pytest.raises(ValueError, match="read-only"):
        candidate.x[0] = 0.0


def test_write_read_decision_vector(session: SolverSession) -> None:
    x = np.array([0.1, 1e-300, -7.25e12])
    write_decision_vector(session, x)
    result = read_decision_vector(session)
    assert np.array_equal(result, x)
    result[0] = 99.0
    assert session.buffer("X")[0] == 0.1


def test_write_candidate(session: SolverSession) -> None:
    write_candidate(session, [1.0, 2.0, 3.0], [14.0, -1.0, 0.5, 2.0])
    assert np.allclose(session.buffer("X"), [1.0, 2.0, 3.0])
    assert session.structures.opt.F == 14.0
    assert np.allclose(session.buffer("G"), [-1.0, 0.5, 2.0])


def test_write_objective_scaled(make_session: Callable[..., SolverSession]) -> None:
    session = make_session(1, 0, scale_obj=0.5)
    write_objective(session, 3.0)
    assert session.structures.opt.F == 1.5
    write_constraints(session, [])


def test_write_wrong_size(session: SolverSession) -> None:
    with pytest.raises(ValueError, match="cannot write 2 values into buffer X"):
        write_decision_vector(session, [1.0, 2.0])
    with pytest.raises(ValueError, match="buffer G of size 3"):
        write_constraints(session, [1.0])


@pytest.mark.parametrize("n_eq", [0, 1, 3])
def test_write_bounds(session: SolverSession, n_eq: int) -> None:
    write_bounds(session, [-1.0, -2.0, -3.0], [1.0, 2.0, 3.0], n_eq)
    infty = session.structures.par.Infty
    assert np.allclose(session.buffer("XL"), [-1.0, -2.0, -3.0])
    assert np.allclose(session.buffer("XU"), [1.0, 2.0, 3.0])
    assert np.all(session.buffer("GL")[:n_eq] == 0.0)
    assert np.all(session.buffer("GL")[n_eq:] == -infty)
    assert np.all(session.buffer("GU") == 0.0)


def test_write_bounds_invalid_equalities(session: SolverSession) -> None:
    with pytest.raises(ValueError, match="invalid number of equality constraints"):
        write_bounds(session, [0.0] * 3, [1.0] * 3, 4)


def test_read_candidate(
    make_session: Callable[..., SolverSession], constrained_problem: Any
) -> None:
    session = make_session(2, 1)
    write_decision_vector(session, [2.0, 4.0])
    session.structures.opt.F = -123.0
    candidate = read_candidate(session, constrained_problem)
    assert np.allclose(candidate.x, [2.0, 4.0])
    assert np.allclose(candidate.f, [20.0, -1.0])
