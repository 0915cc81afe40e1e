"""Population-based optimization with the WORHP solver.

The [`Worhp`][worhp_rc.Worhp] algorithm optimizes one individual of a
[`Population`][worhp_rc.Population] with the WORHP nonlinear programming
solver. The solver is loaded from a shared library at run-time and driven
through its reverse-communication interface.
"""

from .algorithm import LogLine, Worhp
from .config import WorhpConfig
from .enums import ActionRequest, LoadFailure, SessionStage, TerminationStatus
from .exceptions import ConfigError, LoadError, SessionStateError
from .population import Population
from .problem import Problem

__all__ = [
    "ActionRequest",
    "ConfigError",
    "LoadError",
    "LoadFailure",
    "LogLine",
    "Population",
    "Problem",
    "SessionStage",
    "SessionStateError",
    "TerminationStatus",
    "Worhp",
    "WorhpConfig",
]
