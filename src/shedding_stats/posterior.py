"""Summaries of posterior draws.

The probability of direction (pd) is the share of the posterior that
lies on the dominant side of a threshold — usually 0 for a regression
coefficient, or 1 for an odds or rate ratio.  It ranges from 0.5 (no
evidence of direction) to 1 (all draws on one side).  One-sided
shares (``">"`` / ``"<"``) answer "how probable is an effect above /
below the threshold".

Draws equal to the threshold count towards neither side.

Reference:
    Makowski, D., Ben-Shachar, M. S., Chen, S. H. A. & Lüdecke, D.
    (2019). Indices of effect existence and significance in the
    Bayesian framework. *Frontiers in Psychology*, 10, 2767.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

_DIRECTIONS = (">", "<", "max")


def _p_direction_1d(draws: np.ndarray, direction: str, threshold: float) -> float:
    draws = np.asarray(draws, dtype=float).ravel()
    if draws.size == 0:
        raise ValueError("p_direction() needs at least one posterior draw.")
    n_above = int(np.sum(draws > threshold))
    n_below = int(np.sum(draws < threshold))
    if direction == ">":
        return n_above / draws.size
    if direction == "<":
        return n_below / draws.size
    return max(n_above, n_below) / draws.size


def p_direction(
    draws: np.ndarray | pd.Series | pd.DataFrame,
    direction: str = "max",
    threshold: float = 0.0,
) -> float | pd.Series:
    """Posterior probability relative to *threshold*.

    Args:
        draws: Posterior draws.  A DataFrame is summarised column by
            column (one parameter per column).
        direction: ``">"`` for the share above *threshold*, ``"<"`` for
            the share below, ``"max"`` for the probability of direction.
        threshold: Reference value (0 for coefficients, 1 for ratios).

    Returns:
        A float, or a Series indexed by column for DataFrame input.

    Raises:
        ValueError: For an unknown *direction* or empty *draws*.

    Example:
        >>> p_direction(np.array([-0.2, 0.4, 0.9, 1.3]), ">", 0)
        0.75
    """
    if direction not in _DIRECTIONS:
        raise ValueError(
            f"Unknown direction {direction!r}. Choose from: {list(_DIRECTIONS)}"
        )
    if isinstance(draws, pd.DataFrame):
        return pd.Series(
            {
                col: _p_direction_1d(draws[col].to_numpy(), direction, threshold)
                for col in draws.columns
            },
            name=f"p_direction({direction}{threshold:g})",
            dtype=float,
        )
    return _p_direction_1d(np.asarray(draws), direction, threshold)


__all__ = ["p_direction"]
