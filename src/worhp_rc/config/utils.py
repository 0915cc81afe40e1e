"""Utilities for checking and converting configuration values."""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray


def immutable_array(
    array_like: ArrayLike,
    **kwargs: Any,  # noqa: ANN401
) -> NDArray[Any]:
    """Convert input to an immutable NumPy array.

    This function takes various array-like inputs (e.g., lists, tuples, other
    NumPy arrays) and converts them into a new NumPy array. It then sets the
    `writeable` flag of the resulting array to `False`, making it immutable.

    Args:
        array_like: The input data to convert (e.g., list, tuple, NumPy array).
        kwargs:     Additional keyword arguments passed directly to `numpy.array`.

    Returns:
        A new NumPy array, with its `writeable` flag set to `False`.
    """
    array = np.array(array_like, **kwargs)
    array.setflags(write=False)
    return array


def _convert_policy(value: Any) -> Any:  # noqa: ANN401
    # Bare indices and names are shorthands for the tagged variants:
    if isinstance(value, bool):
        msg = f"invalid policy value: {value}"
        raise ValueError(msg)
    if isinstance(value, int | np.integer):
        return {"kind": "index", "index": int(value)}
    if isinstance(value, str):
        return {"kind": "name", "name": value.strip().lower()}
    return value
