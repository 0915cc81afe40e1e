"""Configuration class for the WORHP algorithm."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, NonNegativeInt

from ._policy import ByName, Policy


class WorhpConfig(BaseModel):
    """Configuration class for the WORHP algorithm.

    This class defines the settings of the [`Worhp`][worhp_rc.Worhp]
    algorithm. It is immutable; use `model_validate` on an updated dump of
    the model to derive modified configurations.

    The `screen_output` flag selects between the solver's own screen output
    and the logging performed by `worhp_rc`, controlled by `verbosity`. The
    two are mutually exclusive: the combination of `screen_output` with a
    nonzero verbosity is rejected by the algorithm.

    The parameter file of the solver is read from `param_file` if given.
    Otherwise the path stored in the `WORHP_PARAM_FILE` environment variable
    is used, falling back to `param.xml` in the current directory. A missing
    parameter file is not an error, the solver then uses its own defaults.

    Attributes:
        library:       Absolute path to the WORHP shared library.
        screen_output: Enable the screen output of the solver.
        verbosity:     Log every `verbosity` objective evaluations (0: off).
        selection:     Policy used to select the individual to optimize.
        replacement:   Policy used to select the individual to replace.
        seed:          Seed for the `random` policies (optional).
        param_file:    Path of the solver parameter file (optional).
        binder:        Name of the binder plugin for the library (optional).
    """

    library: Path = Path("/usr/local/lib/libworhp.so")
    screen_output: bool = False
    verbosity: NonNegativeInt = 0
    selection: Policy = ByName(name="best")
    replacement: Policy = ByName(name="best")
    seed: NonNegativeInt | None = None
    param_file: Path | None = None
    binder: str | None = None

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        validate_default=True,
    )
