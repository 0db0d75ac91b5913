"""Typed result object for the permutation coefficient test.

A frozen dataclass that provides:

* **Attribute access** — ``result.p_values``, ``result.nsim``, etc.
* **Dict-like access** — ``result["p_values"]``, ``result.get("key")``,
  ``"key" in result`` for report code that prefers bracket syntax.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy and pandas types converted to native Python.

The result is frozen to communicate that it is a snapshot of a
completed test.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

import numpy as np
import pandas as pd

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _to_python(obj: Any) -> Any:
    """Recursively convert NumPy/pandas objects to Python-native types.

    Series become ``{label: value}`` dicts, DataFrames become
    ``{column: [values]}`` dicts, and NaN floats become ``None`` so the
    output is JSON-serialisable.
    """
    if isinstance(obj, pd.DataFrame):
        return {str(c): _to_python(obj[c].to_numpy()) for c in obj.columns}
    if isinstance(obj, pd.Series):
        return {str(k): _to_python(v) for k, v in obj.items()}
    if isinstance(obj, np.ndarray):
        return [_to_python(v) for v in obj.tolist()]
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        value = float(obj)
        return None if np.isnan(value) else value
    if isinstance(obj, dict):
        return {k: _to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return type(obj)(_to_python(item) for item in obj)
    return obj


class _DictAccessMixin:
    """Dict-like access for result dataclasses.

    1. ``result["key"]``      — raises ``KeyError`` on miss
    2. ``result.get(key, d)`` — returns *d* on miss (default ``None``)
    3. ``"key" in result``    — membership test
    """

    def __getitem__(self, key: str) -> Any:
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain, JSON-serialisable dictionary."""
        return {
            f.name: _to_python(getattr(self, f.name))
            for f in fields(self)  # type: ignore[arg-type]
        }


# ------------------------------------------------------------------ #
# PermutationTestResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True, eq=False)
class PermutationTestResult(_DictAccessMixin):
    """Outcome of :meth:`PermutationTester.run`.

    All fields are accessible both as attributes and via dict syntax.
    """

    # ---- Model -----------------------------------------------------
    response: str
    """Name of the permuted response column."""

    predictors: list[str]
    """Predictor column names (held fixed across permutations)."""

    observed: pd.Series
    """Observed coefficients, intercept first."""

    # ---- Null distribution & p-values ------------------------------
    null_distribution: pd.DataFrame
    """Permuted coefficients ``(nsim, k)`` after jitter.  Failed and
    skipped trials are NaN rows."""

    p_values: pd.Series
    """Two-sided empirical p-values in coefficient order."""

    # ---- Run bookkeeping -------------------------------------------
    nsim: int
    """Number of permutation trials requested."""

    n_failed: int
    """Trials whose refit failed (lenient policy only)."""

    n_skipped: int
    """Trials not started because the deadline had passed."""

    degenerate: list[str]
    """Coefficients whose null distribution had zero spread (no jitter)."""

    jitter: bool
    """Whether tie-breaking jitter was applied."""

    strict: bool
    """Whether the strict error policy was in force."""

    seed_entropy: int
    """Entropy of the root ``SeedSequence``; pass it back as
    ``random_state`` to reproduce the run bit-for-bit."""

    @property
    def n_completed(self) -> int:
        """Trials that produced a coefficient vector."""
        return self.nsim - self.n_failed - self.n_skipped

    @property
    def coefficient_names(self) -> list[str]:
        return [str(name) for name in self.observed.index]


__all__ = ["PermutationTestResult"]
