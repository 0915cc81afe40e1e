"""Rendering of the optimization log.

The log recorded by the [`Worhp`][worhp_rc.Worhp] algorithm is a list of
tuples. The functions in this module convert it to a `pandas` data frame or
to a text table. They require the optional `pandas` and `tabulate` modules.
"""

from __future__ import annotations

from importlib.util import find_spec
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .algorithm import LogLine

_HAVE_PANDAS: Final = find_spec("pandas") is not None
_HAVE_TABULATE: Final = find_spec("tabulate") is not None

if _HAVE_PANDAS:
    import pandas as pd

if _HAVE_TABULATE:
    from tabulate import tabulate

LOG_COLUMNS: Final = ("objevals", "objval", "violated", "viol. norm", "feasible")


def log_to_frame(log: Sequence[LogLine]) -> pd.DataFrame:
    """Convert an optimization log to a data frame.

    Args:
        log: The log lines.

    Returns:
        A data frame with one row per log line, indexed by evaluation count.

    Raises:
        NotImplementedError: If the `pandas` module is not available.
    """
    if not _HAVE_PANDAS:
        msg = "log_to_frame requires the `pandas` module"
        raise NotImplementedError(msg)
    frame = pd.DataFrame.from_records(list(log), columns=list(LOG_COLUMNS))
    return frame.set_index(LOG_COLUMNS[0])


def log_to_table(log: Sequence[LogLine]) -> str:
    """Format an optimization log as a text table.

    Infeasible rows are marked with an `i` in the last column.

    Args:
        log: The log lines.

    Returns:
        The formatted table.

    Raises:
        NotImplementedError: If the `tabulate` module is not available.
    """
    if not _HAVE_TABULATE:
        msg = "log_to_table requires the `tabulate` module"
        raise NotImplementedError(msg)
    rows = [
        (fevals, objval, violated, norm, "" if feasible else "i")
        for fevals, objval, violated, norm, feasible in log
    ]
    return tabulate(rows, headers=[*LOG_COLUMNS[:-1], ""], tablefmt="simple")
