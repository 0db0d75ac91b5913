"""Boundary conversion of caller-supplied frames to pandas.

The fitting, date and resampling helpers all work on pandas.  Polars
frames are accepted as well and converted on entry.  Polars is
optional: it is only recognised when it can be imported.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    DataFrameLike: TypeAlias = pd.DataFrame

try:
    import polars as pl
except ImportError:
    pl = None


def _accepted_types() -> str:
    if pl is None:
        return "a pandas DataFrame"
    return "a pandas or Polars DataFrame (or Polars LazyFrame)"


def _ensure_pandas_df(obj: DataFrameLike, *, name: str = "data") -> pd.DataFrame:
    """Return *obj* as a :class:`pandas.DataFrame`.

    pandas frames pass through unchanged (no copy).  A Polars
    ``LazyFrame`` is collected before conversion.

    Raises:
        TypeError: If *obj* is neither a pandas nor a Polars frame.
    """
    if isinstance(obj, pd.DataFrame):
        return obj
    if pl is not None:
        if isinstance(obj, pl.LazyFrame):
            obj = obj.collect()
        if isinstance(obj, pl.DataFrame):
            return obj.to_pandas()
    raise TypeError(f"'{name}' must be {_accepted_types()}, got {type(obj).__name__}.")


def _require_columns(
    df: pd.DataFrame, columns: str | list[str], *, name: str = "data"
) -> list[str]:
    """Return *columns* as a list, raising if any are absent from *df*.

    Args:
        df: Frame to check.
        columns: A single column name or a list of names.
        name: Label used in error messages.

    Raises:
        KeyError: Listing every missing column.
    """
    cols = [columns] if isinstance(columns, str) else list(columns)
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise KeyError(
            f"Column(s) {missing} not found in '{name}'. "
            f"Available columns: {list(df.columns)}"
        )
    return cols
