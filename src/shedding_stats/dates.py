"""Excel serial-date conversion."""

from __future__ import annotations

import pandas as pd

from ._compat import DataFrameLike, _ensure_pandas_df, _require_columns

# Excel counts days from 1900-01-00 and wrongly treats 1900 as a leap
# year; anchoring at 1899-12-30 gives correct dates from 1900-03-01 on.
EXCEL_ORIGIN = pd.Timestamp("1899-12-30")


def excel_date(data: DataFrameLike, columns: str | list[str]) -> pd.DataFrame:
    """Convert Excel serial day numbers to dates.

    Returns a copy of *data* in which each column in *columns* holds
    ``datetime64`` values at midnight.  Fractional (time-of-day) parts
    are truncated and missing values stay missing (``NaT``).

    Args:
        data: Frame read from a spreadsheet export.
        columns: Column name or list of names to convert.

    Raises:
        KeyError: If a column is not in *data*.

    Example:
        >>> df = pd.DataFrame({"id": [1, 2], "onset": [44197, 44198.75]})
        >>> excel_date(df, "onset")["onset"].dt.strftime("%Y-%m-%d").tolist()
        ['2021-01-01', '2021-01-02']
    """
    df = _ensure_pandas_df(data).copy()
    for col in _require_columns(df, columns):
        serial = pd.to_numeric(df[col], errors="raise")
        df[col] = pd.to_datetime(serial, unit="D", origin=EXCEL_ORIGIN).dt.floor("D")
    return df


__all__ = ["excel_date"]
