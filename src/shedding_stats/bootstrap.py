"""Cluster bootstrap resampling.

Repeated measurements from the same patient (or household) are not
independent, so resampling rows would understate the variance.  The
cluster bootstrap instead resamples whole clusters with replacement and
carries every row of a chosen cluster along.  A cluster drawn twice
appears twice, each copy tagged with its own ``id_sec`` so downstream
models can treat the copies as distinct clusters.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from ._compat import DataFrameLike, _ensure_pandas_df, _require_columns

logger = logging.getLogger(__name__)


def cluster_bootstrap(
    data: DataFrameLike,
    id_col: str,
    n_samples: int,
    seed: int | np.random.Generator | None = None,
) -> list[pd.DataFrame]:
    """Draw *n_samples* cluster-bootstrap replicates of *data*.

    Each replicate samples ``G`` cluster ids with replacement, where
    ``G`` is the number of distinct ids in ``data[id_col]``, and
    left-joins the rows of each drawn cluster.

    Args:
        data: Long-format frame, one row per observation.
        id_col: Column holding the cluster identifier.
        n_samples: Number of replicates.
        seed: Integer seed or ``numpy.random.Generator``.

    Returns:
        A list of DataFrames with columns ``id`` (original cluster id),
        ``id_sec`` (categorical 1..G, unique per draw) followed by the
        remaining columns of *data*.

    Raises:
        KeyError: If *id_col* is missing.
        ValueError: If *n_samples* < 1 or *data* is empty.
    """
    df = _ensure_pandas_df(data)
    _require_columns(df, id_col)
    if isinstance(n_samples, bool) or int(n_samples) != n_samples or n_samples < 1:
        raise ValueError(f"n_samples must be a positive integer, got {n_samples!r}.")
    if len(df) == 0:
        raise ValueError("cluster_bootstrap() needs at least one row.")
    clashes = [c for c in ("id", "id_sec") if c in df.columns and c != id_col]
    if clashes:
        raise ValueError(f"Rename column(s) {clashes} before resampling on '{id_col}'.")

    rng = np.random.default_rng(seed)
    cluster_ids = df[id_col].drop_duplicates().to_numpy()
    n_clusters = len(cluster_ids)
    rows = df.rename(columns={id_col: "id"})
    logger.debug("Resampling %d clusters x %d replicates", n_clusters, n_samples)

    replicates: list[pd.DataFrame] = []
    for _ in range(int(n_samples)):
        draws = pd.DataFrame(
            {
                "id": rng.choice(cluster_ids, size=n_clusters, replace=True),
                "id_sec": pd.Categorical(np.arange(1, n_clusters + 1)),
            }
        )
        replicates.append(draws.merge(rows, on="id", how="left"))
    return replicates


__all__ = ["cluster_bootstrap"]
