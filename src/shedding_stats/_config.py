"""Runtime configuration for the shedding_stats package.

Three settings are configurable.  Each resolves in the same order
(first match wins):

    1. Programmatic override via the matching ``set_*`` function.
    2. An environment variable.
    3. A built-in default.

==================  ===============================  ==============
Setting             Environment variable             Default
==================  ===============================  ==============
error policy        ``SHEDDING_STATS_ERROR_POLICY``  ``"lenient"``
default ``nsim``    ``SHEDDING_STATS_NSIM``          ``2000``
cache directory     ``SHEDDING_STATS_CACHE_DIR``     current dir
==================  ===============================  ==============

The error policy controls how the permutation tester reacts to a
permuted refit that fails to converge or to a coefficient whose null
distribution has zero spread:

* ``"lenient"`` — record a NaN sentinel row (or skip the jitter),
  warn once, and carry on.
* ``"strict"`` — raise immediately; any failure aborts the run.

Examples:
    Abort on the first failure::

        export SHEDDING_STATS_ERROR_POLICY=strict

    or programmatically::

        import shedding_stats
        shedding_stats.set_error_policy("strict")

    Restore the default resolution order::

        shedding_stats.set_error_policy("auto")
"""

from __future__ import annotations

import os
from pathlib import Path

_VALID_POLICIES = {"lenient", "strict", "auto"}

_DEFAULT_NSIM = 2000

# Sentinels indicating "no programmatic override has been set".
_policy_override: str | None = None
_cache_dir_override: Path | None = None


def get_error_policy() -> str:
    """Return the active error policy (``"lenient"`` or ``"strict"``).

    Resolution order:
        1. Value set by :func:`set_error_policy` (unless ``"auto"``).
        2. ``SHEDDING_STATS_ERROR_POLICY`` environment variable.
        3. ``"lenient"``.
    """
    if _policy_override is not None and _policy_override != "auto":
        return _policy_override

    env = os.environ.get("SHEDDING_STATS_ERROR_POLICY", "").strip().lower()
    if env in ("lenient", "strict"):
        return env

    return "lenient"


def set_error_policy(name: str) -> None:
    """Override the error policy.

    Args:
        name: One of ``"lenient"``, ``"strict"``, or ``"auto"``
            (case-insensitive).  ``"auto"`` restores the default
            resolution order.

    Raises:
        ValueError: If *name* is not a recognised policy.
    """
    global _policy_override
    normalised = name.strip().lower()
    if normalised not in _VALID_POLICIES:
        raise ValueError(
            f"Unknown error policy '{name}'. Choose from: {sorted(_VALID_POLICIES)}"
        )
    _policy_override = normalised


def get_default_nsim() -> int:
    """Return the default number of permutations.

    Reads ``SHEDDING_STATS_NSIM`` when set, otherwise 2000.

    Raises:
        ValueError: If the environment variable is not an integer.
    """
    env = os.environ.get("SHEDDING_STATS_NSIM", "").strip()
    if not env:
        return _DEFAULT_NSIM
    try:
        return int(env)
    except ValueError:
        raise ValueError(
            f"SHEDDING_STATS_NSIM must be an integer, got {env!r}."
        ) from None


def get_cache_dir() -> Path:
    """Return the directory that relative cache paths resolve against."""
    if _cache_dir_override is not None:
        return _cache_dir_override

    env = os.environ.get("SHEDDING_STATS_CACHE_DIR", "").strip()
    if env:
        return Path(env).expanduser()

    return Path.cwd()


def set_cache_dir(path: str | os.PathLike[str] | None) -> None:
    """Override the cache directory.  ``None`` restores the default."""
    global _cache_dir_override
    _cache_dir_override = None if path is None else Path(path).expanduser()
