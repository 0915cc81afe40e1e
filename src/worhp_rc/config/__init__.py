"""Configuration classes for the WORHP algorithm.

The [`WorhpConfig`][worhp_rc.config.WorhpConfig] class holds the settings of
the algorithm. The selection and replacement policies are tagged variants,
either [`ByIndex`][worhp_rc.config.ByIndex] or
[`ByName`][worhp_rc.config.ByName].
"""

from ._policy import ByIndex, ByName, Policy
from ._worhp_config import WorhpConfig

__all__ = [
    "ByIndex",
    "ByName",
    "Policy",
    "WorhpConfig",
]
