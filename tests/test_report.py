from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np
import pytest

from worhp_rc import Population, Worhp
from worhp_rc.report import LOG_COLUMNS, log_to_frame, log_to_table

if TYPE_CHECKING:
    from pathlib import Path

    from worhp_rc import LogLine
    from worhp_rc.native import BinderManager, LoadCoordinator

_LOG: list[LogLine] = [
    (1, 48.9451, 1, 1.25272, False),
    (2, 30.153, 1, 0.716591, False),
    (3, 26.2884, 0, 0.0, True),
]


def test_log_to_frame() -> None:
    pytest.importorskip("pandas")

    frame = log_to_frame(_LOG)
    assert frame.index.name == "objevals"
    assert list(frame.index) == [1, 2, 3]
    assert list(frame.columns) == list(LOG_COLUMNS[1:])
    assert np.allclose(frame["objval"], [48.9451, 30.153, 26.2884])
    assert list(frame["feasible"]) == [False, False, True]


def test_log_to_frame_empty() -> None:
    pytest.importorskip("pandas")

    frame = log_to_frame([])
    assert frame.empty
    assert list(frame.columns) == list(LOG_COLUMNS[1:])


def test_log_to_table() -> None:
    pytest.importorskip("tabulate")

    lines = log_to_table(_LOG).splitlines()
    assert "objevals" in lines[0]
    assert "viol. norm" in lines[0]
    assert lines[2].rstrip().endswith("i")
    assert lines[3].rstrip().endswith("i")
    assert not lines[4].rstrip().endswith("i")


def test_log_report(
    fake_library_path: Path,
    coordinator: LoadCoordinator,
    binder_manager: BinderManager,
    constrained_problem: Any,
) -> None:
    pytest.importorskip("pandas")

    population = Population(constrained_problem)
    population.push_back([8.0, 8.0])
    algorithm = Worhp(
        {"library": fake_library_path, "verbosity": 2},
        coordinator=coordinator,
        binder_manager=binder_manager,
    )
    algorithm.evolve(population)

    frame = log_to_frame(algorithm.get_log())
    assert len(frame) == len(algorithm.get_log())
    assert frame.index[0] == 1
    assert frame["feasible"].iloc[0]
