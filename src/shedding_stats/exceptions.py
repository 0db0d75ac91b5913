"""Exception types raised by the shedding_stats package.

Every error subclasses :class:`ShedStatsError` *and* the built-in
exception that best describes it, so callers can catch either the
package-specific type or the familiar built-in (``ValueError``,
``RuntimeError``).
"""

from __future__ import annotations


class ShedStatsError(Exception):
    """Base class for all shedding_stats errors."""


class InvalidSimCount(ShedStatsError, ValueError):
    """The requested number of permutations is not a usable integer.

    Raised before any refit is attempted.
    """

    def __init__(self, nsim: object) -> None:
        self.nsim = nsim
        super().__init__(
            f"nsim must be an integer >= 2, got {nsim!r}.  A single "
            "permutation yields a one-row null distribution whose "
            "standard deviation is undefined."
        )


class RefitFailure(ShedStatsError, RuntimeError):
    """A model could not be (re)fitted on a permuted dataset.

    Attributes:
        trial: Zero-based permutation index, or ``None`` when the
            failure happened outside the permutation loop.
    """

    def __init__(self, message: str, trial: int | None = None) -> None:
        self.trial = trial
        if trial is not None:
            message = f"Permutation trial {trial}: {message}"
        super().__init__(message)


class DegenerateNullDistribution(ShedStatsError, RuntimeError):
    """A coefficient's null distribution has zero (or undefined) spread.

    Attributes:
        coefficient: Name of the offending coefficient.
    """

    def __init__(self, coefficient: str, sd: float) -> None:
        self.coefficient = coefficient
        self.sd = sd
        super().__init__(
            f"Null distribution of coefficient '{coefficient}' is "
            f"degenerate (standard deviation = {sd!r}); tie-breaking "
            "jitter cannot be scaled to it."
        )


__all__ = [
    "DegenerateNullDistribution",
    "InvalidSimCount",
    "RefitFailure",
    "ShedStatsError",
]
