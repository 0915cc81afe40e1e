# ruff: noqa: SLF001
from __future__ import annotations

import queue
import threading
from ctypes import POINTER, c_double
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, ClassVar

import numpy as np
import pytest
from scipy.optimize import minimize

from worhp_rc.enums import ActionRequest
from worhp_rc.native import BinderManager, BinderPlugin, LoadCoordinator, SolverLibrary

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from worhp_rc.native import Control, Params, SolverStructures

_FIDIF_STEP = 1e-7
_TIMEOUT = 30.0
_BUFFER_SIZES = {
    "X": "n",
    "XL": "n",
    "XU": "n",
    "Lambda": "n",
    "G": "m",
    "GL": "m",
    "GU": "m",
    "Mu": "m",
}


class _AbortError(Exception):
    pass


class FakeSolverLibrary(SolverLibrary):
    """A solver library that implements the protocol in Python.

    The optimization itself is done by SciPy's SLSQP method, running in a
    worker thread. Each time SLSQP needs a function value, the worker hands
    the point to `step`, which requests an evaluation from the caller. Each
    time SLSQP needs a gradient, `step` requests the finite-difference
    routine, which in turn requests one evaluation per perturbed point.
    Setting `abort_status` makes the first step terminate with that status,
    without moving the variables.
    """

    scale_obj: ClassVar[float] = 1.0
    abort_status: ClassVar[int | None] = None

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        self.calls: list[str] = []
        self.acknowledged: list[int] = []
        self.evaluation_requests = 0
        self.param_files: list[str] = []
        self.closed = False
        self._buffers: dict[str, NDArray[np.float64]] = {}
        self._requests: queue.Queue[tuple[str, Any]] = queue.Queue()
        self._responses: queue.Queue[Any] = queue.Queue()
        self._worker: threading.Thread | None = None
        self._pending: str | None = None
        self._gradient: tuple[NDArray[np.float64], NDArray[np.float64]] | None = None
        self._fidif_base = np.empty(0)
        self._fidif_stage = 0
        self._fidif_values: list[tuple[float, NDArray[np.float64]]] = []

    def pre_init(self, structures: SolverStructures) -> None:
        self.calls.append("WorhpPreInit")
        structures.par.Infty = 1e20
        structures.par.MaxIter = 100
        structures.par.NLPprint = 1
        structures.par.UserDF = True
        structures.par.UserDG = True
        structures.par.UserHM = True
        structures.par.InitialLMest = False
        structures.cnt.status = 0

    def read_params(self, filename: str, par: Params) -> int:  # noqa: ARG002
        self.calls.append("ReadParams")
        self.param_files.append(filename)
        return 3 if Path(filename).is_file() else 0

    def init(self, structures: SolverStructures) -> None:
        self.calls.append("WorhpInit")
        opt = structures.opt
        for name, dim in _BUFFER_SIZES.items():
            buffer = np.zeros(getattr(opt, dim), dtype=np.float64)
            self._buffers[name] = buffer
            setattr(opt, name, buffer.ctypes.data_as(POINTER(c_double)))
        structures.wsp.ScaleObj = self.scale_obj
        for idx in range(len(structures.cnt.userAction)):
            structures.cnt.userAction[idx] = False
        structures.cnt.userAction[ActionRequest.RUN_SOLVER_STEP] = True

    def get_user_action(self, cnt: Control, action: int) -> bool:
        return bool(cnt.userAction[action])

    def done_user_action(self, cnt: Control, action: int) -> None:
        self.acknowledged.append(int(action))
        cnt.userAction[action] = False
        pending = (
            ActionRequest.REPORT_ITERATION,
            ActionRequest.EVALUATE_OBJECTIVE,
            ActionRequest.EVALUATE_CONSTRAINTS,
            ActionRequest.COMPUTE_FINITE_DIFFERENCE,
        )
        if not any(cnt.userAction[flag] for flag in pending):
            cnt.userAction[ActionRequest.RUN_SOLVER_STEP] = True

    def iteration_output(self, structures: SolverStructures) -> None:  # noqa: ARG002
        self.calls.append("IterationOutput")

    def step(self, structures: SolverStructures) -> None:
        self.calls.append("Worhp")
        cnt = structures.cnt
        cnt.userAction[ActionRequest.RUN_SOLVER_STEP] = False
        if self.abort_status is not None:
            cnt.status = self.abort_status
            return
        if self._worker is None:
            self._start_worker(structures)
        elif self._pending == "eval":
            self._responses.put(self._read_values(structures))
        elif self._pending == "grad":
            self._responses.put(self._gradient)
        self._pending = None

        kind, payload = self._requests.get(timeout=_TIMEOUT)
        if kind == "eval":
            self._buffers["X"][:] = payload
            self._request_evaluation(cnt)
            cnt.userAction[ActionRequest.REPORT_ITERATION] = True
            self._pending = "eval"
        elif kind == "grad":
            self._fidif_base = payload
            self._fidif_stage = 0
            self._fidif_values = []
            cnt.userAction[ActionRequest.COMPUTE_FINITE_DIFFERENCE] = True
            self._pending = "grad"
        elif kind == "done":
            self._buffers["X"][:] = payload.x
            cnt.status = (
                self.terminate_success if payload.success else self.terminate_error
            )
        else:
            cnt.status = self.terminate_error - 1

    def finite_difference(self, structures: SolverStructures) -> None:
        self.calls.append("WorhpFidif")
        if self._fidif_stage > 0:
            self._fidif_values.append(self._read_values(structures))
        n = self._fidif_base.size
        if self._fidif_stage <= n:
            x = self._fidif_base.copy()
            if self._fidif_stage > 0:
                x[self._fidif_stage - 1] += _FIDIF_STEP
            self._buffers["X"][:] = x
            self._request_evaluation(structures.cnt)
            self._fidif_stage += 1
            return
        f0, g0 = self._fidif_values[0]
        df = np.array([(f - f0) / _FIDIF_STEP for f, _ in self._fidif_values[1:]])
        dg = np.array([(g - g0) / _FIDIF_STEP for _, g in self._fidif_values[1:]]).T
        self._gradient = (df, dg)
        self._buffers["X"][:] = self._fidif_base
        structures.cnt.userAction[ActionRequest.COMPUTE_FINITE_DIFFERENCE] = False
        structures.cnt.userAction[ActionRequest.RUN_SOLVER_STEP] = True

    def status_message(self, structures: SolverStructures) -> None:  # noqa: ARG002
        self.calls.append("StatusMsg")

    def free(self, structures: SolverStructures) -> None:
        self.calls.append("WorhpFree")
        if self._worker is not None:
            if self._worker.is_alive():
                self._responses.put(None)
            self._worker.join(timeout=_TIMEOUT)
        for name in _BUFFER_SIZES:
            setattr(structures.opt, name, None)
        self._buffers.clear()

    def close(self) -> None:
        self.closed = True

    def _request_evaluation(self, cnt: Control) -> None:
        self.evaluation_requests += 1
        cnt.userAction[ActionRequest.EVALUATE_OBJECTIVE] = True
        cnt.userAction[ActionRequest.EVALUATE_CONSTRAINTS] = True

    def _read_values(
        self, structures: SolverStructures
    ) -> tuple[float, NDArray[np.float64]]:
        return structures.opt.F / self.scale_obj, self._buffers["G"].copy()

    def _start_worker(self, structures: SolverStructures) -> None:
        x0 = self._buffers["X"].copy()
        bounds = list(zip(self._buffers["XL"], self._buffers["XU"], strict=True))
        equalities = self._buffers["GL"] > -structures.par.Infty
        maxiter = structures.par.MaxIter
        self._worker = threading.Thread(
            target=self._optimize,
            args=(x0, bounds, equalities, maxiter),
            daemon=True,
        )
        self._worker.start()

    def _optimize(
        self,
        x0: NDArray[np.float64],
        bounds: list[tuple[float, float]],
        equalities: NDArray[np.bool_],
        maxiter: int,
    ) -> None:
        cache: dict[tuple[str, bytes], Any] = {}

        def _request(kind: str, x: NDArray[np.float64]) -> Any:  # noqa: ANN401
            key = (kind, x.tobytes())
            if key not in cache:
                self._requests.put((kind, x.copy()))
                response = self._responses.get()
                if response is None:
                    raise _AbortError
                cache[key] = response
            return cache[key]

        # SLSQP expects constraints >= 0, the protocol stores violations <= 0:
        constraints = []
        if np.any(equalities):
            constraints.append(
                {
                    "type": "eq",
                    "fun": lambda x: -_request("eval", x)[1][equalities],
                    "jac": lambda x: -_request("grad", x)[1][equalities, :],
                }
            )
        if np.any(~equalities):
            constraints.append(
                {
                    "type": "ineq",
                    "fun": lambda x: -_request("eval", x)[1][~equalities],
                    "jac": lambda x: -_request("grad", x)[1][~equalities, :],
                }
            )
        try:
            result = minimize(
                lambda x: _request("eval", x)[0],
                x0,
                jac=lambda x: _request("grad", x)[0],
                method="SLSQP",
                bounds=bounds,
                constraints=constraints,
                options={"maxiter": maxiter, "ftol": 1e-10},
            )
        except _AbortError:
            return
        except Exception as exc:  # noqa: BLE001
            self._requests.put(("failed", exc))
            return
        self._requests.put(("done", result))


class FakeBinderPlugin(BinderPlugin):
    created: ClassVar[list[FakeSolverLibrary]] = []

    @classmethod
    def create(cls, path: Path) -> FakeSolverLibrary:
        library = FakeSolverLibrary(path)
        cls.created.append(library)
        return library

    @classmethod
    def is_supported(cls, path: Path) -> bool:
        return path.suffix == ".fake"


@dataclass
class SampleProblem:
    """A problem with an objective and constraint functions."""

    objective: Callable[[NDArray[np.float64]], float]
    lower_bounds: NDArray[np.float64]
    upper_bounds: NDArray[np.float64]
    equalities: list[Callable[[NDArray[np.float64]], float]] = field(
        default_factory=list
    )
    inequalities: list[Callable[[NDArray[np.float64]], float]] = field(
        default_factory=list
    )
    tolerance: float = 1e-6
    objectives: int = 1
    is_stochastic: bool = False
    name: str = "test problem"
    fitness_calls: int = 0

    @property
    def dimension(self) -> int:
        return self.lower_bounds.size

    @property
    def objective_count(self) -> int:
        return self.objectives

    @property
    def constraint_count(self) -> int:
        return len(self.equalities) + len(self.inequalities)

    @property
    def equality_count(self) -> int:
        return len(self.equalities)

    @property
    def stochastic(self) -> bool:
        return self.is_stochastic

    @property
    def bounds(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        return self.lower_bounds, self.upper_bounds

    @property
    def constraint_tolerances(self) -> NDArray[np.float64]:
        return np.full(self.constraint_count, self.tolerance)

    def fitness(self, x: NDArray[np.float64], /) -> NDArray[np.float64]:
        self.fitness_calls += 1
        objectives = [self.objective(x)] * self.objectives
        constraints = [
            function(x) for function in self.equalities + self.inequalities
        ]
        return np.array(objectives + constraints, dtype=np.float64)


@pytest.fixture(name="fake_library_path")
def fake_library_path_fixture(tmp_path: Path) -> Path:
    path = tmp_path / "libworhp.fake"
    path.write_bytes(b"\x7fFAKE")
    return path


@pytest.fixture(name="solver_error")
def solver_error_fixture(monkeypatch: pytest.MonkeyPatch) -> int:
    status = FakeSolverLibrary.terminate_error - 17
    monkeypatch.setattr(FakeSolverLibrary, "abort_status", status)
    return status


@pytest.fixture(name="binder_manager")
def binder_manager_fixture() -> BinderManager:
    FakeBinderPlugin.created.clear()
    manager = BinderManager()
    manager._add_plugin("fake", FakeBinderPlugin, prioritize=True)
    return manager


@pytest.fixture(name="coordinator")
def coordinator_fixture() -> LoadCoordinator:
    return LoadCoordinator()


@pytest.fixture(name="constrained_problem")
def constrained_problem_fixture() -> SampleProblem:
    # Minimize x1^2 + x2^2 subject to x1 + x2 >= 5, solution (2.5, 2.5):
    return SampleProblem(
        objective=lambda x: float(x[0] ** 2 + x[1] ** 2),
        lower_bounds=np.array([-10.0, -10.0]),
        upper_bounds=np.array([10.0, 10.0]),
        inequalities=[lambda x: float(5.0 - x[0] - x[1])],
    )


@pytest.fixture(name="equality_problem")
def equality_problem_fixture() -> SampleProblem:
    # Minimize (x1 - 1)^2 + (x2 - 2)^2 subject to x1 = x2, solution (1.5, 1.5):
    return SampleProblem(
        objective=lambda x: float((x[0] - 1.0) ** 2 + (x[1] - 2.0) ** 2),
        lower_bounds=np.array([-10.0, -10.0]),
        upper_bounds=np.array([10.0, 10.0]),
        equalities=[lambda x: float(x[0] - x[1])],
    )


@pytest.fixture(name="unconstrained_problem")
def unconstrained_problem_fixture() -> SampleProblem:
    return SampleProblem(
        objective=lambda x: float(((x - np.array([0.5, -0.5, 1.0])) ** 2).sum()),
        lower_bounds=np.full(3, -5.0),
        upper_bounds=np.full(3, 5.0),
    )
