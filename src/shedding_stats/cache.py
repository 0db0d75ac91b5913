"""Load-or-compute caching for expensive analysis steps.

Model fits and permutation runs can take minutes.  :func:`run_cached`
stores the value returned by a computation with ``joblib.dump`` and
hands back the stored copy on later calls, so re-rendering the report
does not repeat the work.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import joblib

from ._config import get_cache_dir

logger = logging.getLogger(__name__)

T = TypeVar("T")

CACHE_SUFFIX = ".joblib"


def cache_path(path: str | os.PathLike[str]) -> Path:
    """Resolve *path* to the on-disk cache file.

    ``".joblib"`` is appended, and relative paths are anchored at
    :func:`~._config.get_cache_dir`.
    """
    resolved = Path(path).expanduser()
    if not resolved.is_absolute():
        resolved = get_cache_dir() / resolved
    return resolved.with_name(resolved.name + CACHE_SUFFIX)


def run_cached(
    compute: Callable[[], T],
    path: str | os.PathLike[str] | None,
    reuse: bool = True,
) -> T:
    """Return a cached result, computing and saving it on a miss.

    Args:
        compute: Zero-argument callable performing the expensive work,
            e.g. ``lambda: fit_glm(df, "days", ["age"], "poisson")``.
        path: Cache location without suffix.  ``None`` or ``""``
            disables saving.
        reuse: When ``False`` the cache is neither read nor written.

    Returns:
        The cached or freshly computed value.

    A missing, unreadable or corrupt cache file counts as a miss.
    Errors raised by *compute* and failures while writing the cache
    propagate.
    """
    target = cache_path(path) if path else None

    if reuse and target is not None:
        try:
            value: Any = joblib.load(target)
        except FileNotFoundError:
            logger.debug("Cache miss: %s", target)
        except Exception as exc:  # noqa: BLE001  any unpickling error is a miss
            logger.warning("Ignoring unreadable cache file %s: %s", target, exc)
        else:
            logger.debug("Cache hit: %s", target)
            return value

    result = compute()

    if reuse and target is not None:
        target.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(result, target)
        logger.debug("Cached result to %s", target)
    return result


__all__ = ["cache_path", "run_cached"]
