"""Configuration of the individual selection and replacement policies."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, NonNegativeInt

from .utils import _convert_policy


class ByIndex(BaseModel):
    """Select or replace the population member at a fixed index.

    Attributes:
        index: The index of the population member.
    """

    kind: Literal["index"] = "index"
    index: NonNegativeInt

    model_config = ConfigDict(extra="forbid", frozen=True)

    def __str__(self) -> str:
        return f"idx: {self.index}"


class ByName(BaseModel):
    """Select or replace a population member using a named strategy.

    The supported strategies are:

    - `best`:   The best member, according to the feasibility-aware ranking.
    - `worst`:  The worst member, according to the same ranking.
    - `random`: A member chosen uniformly at random.

    Attributes:
        name: The name of the strategy.
    """

    kind: Literal["name"] = "name"
    name: Literal["best", "worst", "random"]

    model_config = ConfigDict(extra="forbid", frozen=True)

    def __str__(self) -> str:
        return f"policy: {self.name}"


Policy = Annotated[ByIndex | ByName, BeforeValidator(_convert_policy)]
"""A policy given by index or by name.

Plain integers are converted to [`ByIndex`][worhp_rc.config.ByIndex] values,
and plain strings to [`ByName`][worhp_rc.config.ByName] values.
"""
