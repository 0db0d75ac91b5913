"""Permutation test for regression coefficients.

Under H₀ the response carries no information about any predictor, so
every reshuffling of the response column is as likely as the observed
ordering.  Refitting the model on ``nsim`` such reshuffles builds an
empirical null distribution for every coefficient at once, against
which the observed coefficients are compared.

This is the Manly (1997) "raw data" scheme: only the response column
is permuted; predictors (and any structure among them) stay fixed.

Pipeline::

    ┌───────────────────────────────────────────────────────┐
    │  PermutationTester(model, nsim, random_state, …)      │
    │  ├─ validate nsim (fail fast)                         │
    │  ├─ SeedSequence(random_state).spawn(nsim + 1)        │
    │  └─ run()                                             │
    │      ├─ null = full((nsim, k), nan)   pre-allocated   │
    │      ├─ trial i: permute y → model.refit → null[i]    │
    │      ├─ jitter_null_distribution(null)  tie-breaking  │
    │      ├─ empirical_p_values(null, observed)            │
    │      └─ PermutationTestResult                         │
    └───────────────────────────────────────────────────────┘

Empirical two-sided p-value
~~~~~~~~~~~~~~~~~~~~~~~~~~~
For coefficient *k* with observed value β_k and B finite null values::

    p_k = (1 + min(#{β*_k > β_k}, #{β*_k < β_k})) / (1 + B/2)

The smaller tail count doubles as a two-sided statistic (hence the
``B/2``), and the ``+1`` in numerator and denominator keeps p strictly
positive: with B = 2000 the smallest attainable value is 1/1001.
Because the two tail counts sum to at most B, ``p_k <= 1``.

Tie-breaking jitter
~~~~~~~~~~~~~~~~~~~
Count-model refits on permuted data can land on identical coefficient
values.  Exact ties with the observed value fall in neither tail and
would inflate the p-value.  Each null column therefore receives
``Normal(0, 1e-5 · sd)`` noise scaled to its own spread.  A column with
zero spread cannot be scaled; it is left untouched (lenient policy) or
rejected with :class:`DegenerateNullDistribution` (strict policy).

Randomness and parallelism
~~~~~~~~~~~~~~~~~~~~~~~~~~
No global random state is read.  A root ``numpy.random.SeedSequence``
is spawned into one child stream per trial plus one for the jitter
step, and trial *i* always writes row *i* of the pre-allocated table.
Results are therefore bit-identical for a given seed no matter how
many joblib threads (``n_jobs``) run the trials.

Failure policy
~~~~~~~~~~~~~~
A permuted response can defeat the fitter (e.g. quasi-separation in a
reshuffled binary outcome).  Under the lenient policy (default) the
trial is recorded as a NaN row, excluded from B for that column, and a
single aggregated warning is emitted.  Under the strict policy the
run aborts with :class:`RefitFailure` carrying the index of the
lowest-numbered failing trial, for any ``n_jobs``.

References:
    Manly, B. F. J. (1997). *Randomization, Bootstrap and Monte Carlo
    Methods in Biology* (2nd ed.). Chapman & Hall.

    Phipson, B. & Smyth, G. K. (2010). Permutation p-values should
    never be zero. *Stat. Appl. Genet. Mol. Biol.*, 9(1), Article 39.
"""

from __future__ import annotations

import logging
import numbers
import time
import warnings

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from ._config import get_default_nsim, get_error_policy
from ._results import PermutationTestResult
from .exceptions import DegenerateNullDistribution, InvalidSimCount, RefitFailure
from .models import Refittable

logger = logging.getLogger(__name__)

JITTER_SCALE = 1e-5

# Per-trial outcome codes.
_OK, _FAILED, _SKIPPED = 0, 1, 2


def _validate_nsim(nsim: object) -> int:
    """Return *nsim* as ``int`` or raise :class:`InvalidSimCount`."""
    if isinstance(nsim, bool) or not isinstance(nsim, numbers.Integral):
        raise InvalidSimCount(nsim)
    if nsim < 2:
        raise InvalidSimCount(nsim)
    return int(nsim)


def _root_seed_sequence(
    random_state: int | np.random.Generator | None,
) -> np.random.SeedSequence:
    if isinstance(random_state, np.random.Generator):
        return np.random.SeedSequence(int(random_state.integers(0, 2**63 - 1)))
    if random_state is None or isinstance(random_state, numbers.Integral):
        return np.random.SeedSequence(random_state)
    raise TypeError(
        "random_state must be an int, a numpy Generator, or None, "
        f"got {type(random_state).__name__}."
    )


def permute_response(data: pd.DataFrame, rng: np.random.Generator) -> pd.DataFrame:
    """Copy *data* with its first column shuffled (without replacement)."""
    permuted = data.copy()
    response = permuted.columns[0]
    permuted[response] = rng.permutation(permuted[response].to_numpy())
    return permuted


def jitter_null_distribution(
    null: np.ndarray,
    rng: np.random.Generator,
    *,
    scale: float = JITTER_SCALE,
    names: list[str] | None = None,
    strict: bool = False,
) -> tuple[np.ndarray, list[str]]:
    """Add tie-breaking Gaussian noise to each null-distribution column.

    The noise SD for column *k* is ``scale`` times the sample SD
    (``ddof=1``) of that column's finite values.  NaN sentinel rows stay
    NaN.

    Args:
        null: Null distribution ``(B, k)``.  Not modified.
        rng: Generator supplying the noise.
        scale: Noise SD relative to the column SD.
        names: Coefficient names for messages; defaults to indices.
        strict: Raise instead of skipping a zero-spread column.

    Returns:
        ``(jittered, degenerate)`` — the jittered copy and the names of
        columns left untouched because their spread was zero or
        undefined.

    Raises:
        DegenerateNullDistribution: In strict mode, for the first
            zero-spread column.
    """
    null = np.asarray(null, dtype=float)
    jittered = null.copy()
    degenerate: list[str] = []
    n_rows, n_cols = null.shape

    for k in range(n_cols):
        name = names[k] if names is not None else str(k)
        col = null[:, k]
        finite = col[np.isfinite(col)]
        sd = float(np.std(finite, ddof=1)) if finite.size >= 2 else float("nan")

        if not np.isfinite(sd) or sd == 0.0:
            if strict:
                raise DegenerateNullDistribution(name, sd)
            logger.debug("Skipping jitter for '%s' (sd=%r)", name, sd)
            degenerate.append(name)
            continue

        jittered[:, k] = col + rng.normal(0.0, scale * sd, size=n_rows)

    return jittered, degenerate


def empirical_p_values(null: np.ndarray, observed: np.ndarray) -> np.ndarray:
    """Two-sided permutation p-values, one per column of *null*.

    ``p_k = (1 + min(#above, #below)) / (1 + B_k / 2)`` where ``B_k``
    counts the finite entries of column *k*.  Columns without a single
    finite entry, and non-finite observed values, yield NaN.

    Args:
        null: Null distribution ``(B, k)``; NaN rows are ignored.
        observed: Observed coefficients ``(k,)``.

    Raises:
        ValueError: If the shapes disagree.
    """
    null = np.asarray(null, dtype=float)
    observed = np.asarray(observed, dtype=float)
    if null.ndim != 2 or observed.shape != (null.shape[1],):
        raise ValueError(
            f"Null distribution of shape {null.shape} does not match "
            f"{observed.shape[0] if observed.ndim else 0} observed coefficients."
        )

    # NaN compares False in both directions, so sentinel rows drop out
    # of both tail counts.
    above = np.sum(null > observed[np.newaxis, :], axis=0)
    below = np.sum(null < observed[np.newaxis, :], axis=0)
    n_valid = np.sum(np.isfinite(null), axis=0)

    p_values = (1.0 + np.minimum(above, below)) / (1.0 + n_valid / 2.0)
    p_values[(n_valid == 0) | ~np.isfinite(observed)] = np.nan
    return p_values


class PermutationTester:
    """Empirical p-values for every coefficient of a refittable model.

    Construction validates inputs and prepares the random streams;
    :meth:`run` performs the ``nsim`` refits.  Running twice yields the
    same result.

    Args:
        model: A fitted model satisfying :class:`~.models.Refittable`.
            It is never mutated.
        nsim: Number of permutations.  ``None`` uses the configured
            default (2000 unless ``SHEDDING_STATS_NSIM`` is set).
        random_state: Integer seed or ``numpy.random.Generator``.
            ``None`` draws fresh OS entropy (recorded on the result).
        strict: ``True`` aborts on the first refit failure or
            degenerate column; ``False`` records sentinels and warns.
            ``None`` follows :func:`~._config.get_error_policy`.
        n_jobs: joblib thread count for the refit loop (``-1`` for all
            cores).  Does not change the results.
        jitter: Apply tie-breaking jitter before counting.
        max_time: Optional deadline in seconds.  Trials not yet started
            when it passes are skipped.

    Raises:
        InvalidSimCount: If *nsim* is not an integer >= 2.
        TypeError: If *model* does not satisfy ``Refittable``.
        ValueError: If the model's data and coefficients are unusable.
    """

    def __init__(
        self,
        model: Refittable,
        nsim: int | None = None,
        *,
        random_state: int | np.random.Generator | None = None,
        strict: bool | None = None,
        n_jobs: int = 1,
        jitter: bool = True,
        max_time: float | None = None,
    ) -> None:
        self.nsim = _validate_nsim(get_default_nsim() if nsim is None else nsim)

        if not isinstance(model, Refittable):
            raise TypeError(
                "model must expose 'data', 'coefficients' and 'refit()', "
                f"got {type(model).__name__}."
            )
        data = model.data
        if not isinstance(data, pd.DataFrame) or data.shape[1] == 0:
            raise ValueError("model.data must be a non-empty pandas DataFrame.")
        if len(data) < 2:
            raise ValueError("At least two observations are needed to permute.")
        if max_time is not None and not max_time > 0:
            raise ValueError(f"max_time must be positive, got {max_time!r}.")

        self.model = model
        self.response = str(data.columns[0])
        self.predictors = [str(c) for c in data.columns[1:]]
        self.observed = pd.Series(model.coefficients, dtype=float).copy()
        self.strict = (get_error_policy() == "strict") if strict is None else bool(strict)
        self.n_jobs = n_jobs
        self.jitter = jitter
        self.max_time = max_time

        self._data = data
        self.seed_entropy = int(_root_seed_sequence(random_state).entropy)  # type: ignore[arg-type]

    # ---- Trials ----------------------------------------------------

    def _streams(self) -> tuple[list[np.random.SeedSequence], np.random.SeedSequence]:
        # Spawned from a fresh root each call so repeated run()s agree.
        root = np.random.SeedSequence(self.seed_entropy)
        children = root.spawn(self.nsim + 1)
        return children[:-1], children[-1]

    def _run_trial(
        self,
        i: int,
        seed: np.random.SeedSequence,
        deadline: float | None,
    ) -> tuple[int, int, np.ndarray | RefitFailure | None]:
        if deadline is not None and time.monotonic() > deadline:
            return i, _SKIPPED, None

        rng = np.random.default_rng(seed)
        permuted = permute_response(self._data, rng)
        try:
            refitted = self.model.refit(permuted)
        except RefitFailure as exc:
            logger.debug("Permutation trial %d failed: %s", i, exc)
            return i, _FAILED, exc

        coefs = np.asarray(refitted.coefficients, dtype=float)
        if coefs.shape != self.observed.shape:
            raise ValueError(
                f"Permutation trial {i}: refit returned {coefs.size} "
                f"coefficients, expected {self.observed.size}."
            )
        return i, _OK, coefs

    @staticmethod
    def _raise_failure(i: int, exc: RefitFailure) -> None:
        raise RefitFailure(str(exc), trial=i) from exc

    def null_distribution(self) -> tuple[np.ndarray, np.ndarray]:
        """Run the refits.

        Under the strict policy the lowest-numbered failing trial is
        reported, whatever ``n_jobs`` is.

        Returns:
            ``(null, status)`` — the raw ``(nsim, k)`` coefficient table
            (NaN rows for failed/skipped trials) and a per-trial status
            code array.

        Raises:
            RefitFailure: Strict policy only.
        """
        trial_seeds, _ = self._streams()
        deadline = (
            time.monotonic() + self.max_time if self.max_time is not None else None
        )
        null = np.full((self.nsim, self.observed.size), np.nan)
        status = np.full(self.nsim, _OK, dtype=np.int8)

        if self.n_jobs == 1:
            outcomes = []
            for i in range(self.nsim):
                outcome = self._run_trial(i, trial_seeds[i], deadline)
                if self.strict and outcome[1] == _FAILED:
                    self._raise_failure(i, outcome[2])
                outcomes.append(outcome)
        else:
            # Refits are statsmodels/LAPACK-bound and release the GIL.
            outcomes = Parallel(n_jobs=self.n_jobs, prefer="threads")(
                delayed(self._run_trial)(i, trial_seeds[i], deadline)
                for i in range(self.nsim)
            )
            if self.strict:
                for i, code, exc in outcomes:
                    if code == _FAILED:
                        self._raise_failure(i, exc)

        for i, code, coefs in outcomes:
            status[i] = code
            if code == _OK:
                null[i] = coefs
        return null, status

    # ---- Driver ----------------------------------------------------

    def run(self) -> PermutationTestResult:
        """Build the null distribution and compute the p-values."""
        names = self.observed.index.astype(str).tolist()
        logger.debug(
            "Permuting '%s' %d times (%d coefficients, n_jobs=%s)",
            self.response,
            self.nsim,
            len(names),
            self.n_jobs,
        )

        null, status = self.null_distribution()
        n_failed = int(np.sum(status == _FAILED))
        n_skipped = int(np.sum(status == _SKIPPED))

        if n_failed:
            warnings.warn(
                f"{n_failed} of {self.nsim} permuted refits failed to converge; "
                "they were recorded as NaN and excluded from the p-values.",
                UserWarning,
                stacklevel=2,
            )
        if n_skipped:
            warnings.warn(
                f"max_time={self.max_time}s reached: {n_skipped} of {self.nsim} "
                "permutations were skipped.",
                UserWarning,
                stacklevel=2,
            )

        degenerate: list[str] = []
        if self.jitter:
            _, jitter_seed = self._streams()
            null, degenerate = jitter_null_distribution(
                null,
                np.random.default_rng(jitter_seed),
                names=names,
                strict=self.strict,
            )
            if degenerate:
                warnings.warn(
                    "Null distribution has zero spread for "
                    f"{degenerate}; tie-breaking jitter was skipped.",
                    UserWarning,
                    stacklevel=2,
                )

        p_values = empirical_p_values(null, self.observed.to_numpy())

        return PermutationTestResult(
            response=self.response,
            predictors=list(self.predictors),
            observed=self.observed.copy(),
            null_distribution=pd.DataFrame(null, columns=self.observed.index),
            p_values=pd.Series(p_values, index=self.observed.index, name="p_value"),
            nsim=self.nsim,
            n_failed=n_failed,
            n_skipped=n_skipped,
            degenerate=degenerate,
            jitter=self.jitter,
            strict=self.strict,
            seed_entropy=self.seed_entropy,
        )


def permutation_test(
    model: Refittable,
    nsim: int | None = None,
    *,
    random_state: int | np.random.Generator | None = None,
    strict: bool | None = None,
    n_jobs: int = 1,
    jitter: bool = True,
    max_time: float | None = None,
) -> pd.Series:
    """Empirical two-sided p-value for every coefficient of *model*.

    Shorthand for ``PermutationTester(...).run().p_values``; see
    :class:`PermutationTester` for the arguments.

    Returns:
        ``pandas.Series`` of p-values indexed by coefficient name, in the
        model's coefficient order (intercept first).

    Example:
        >>> model = fit_glm(df, "shedding_days", ["age", "mmf"],
        ...                 family="negative_binomial")
        >>> permutation_test(model, nsim=2000, random_state=123)
    """
    tester = PermutationTester(
        model,
        nsim,
        random_state=random_state,
        strict=strict,
        n_jobs=n_jobs,
        jitter=jitter,
        max_time=max_time,
    )
    return tester.run().p_values


__all__ = [
    "PermutationTester",
    "empirical_p_values",
    "jitter_null_distribution",
    "permutation_test",
    "permute_response",
]
