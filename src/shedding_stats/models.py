"""Refittable regression models.

The permutation tester never branches on a concrete regression type.
It programs against the narrow :class:`Refittable` protocol:

* ``data`` — the exact frame the model was fitted on, response first;
* ``coefficients`` — the estimated coefficient vector, intercept first;
* ``refit(new_data)`` — the same model specification fitted again on a
  replacement frame, returning a new ``Refittable``.

:func:`fit_glm` produces :class:`GLMFit`, the concrete implementation
used by the shedding analysis.  It wraps a statsmodels ``GLM`` and
supports the families the report needs — Gaussian, binomial, Poisson
and negative binomial (NB2).  Each family is a frozen ``@dataclass``
registered by name, so ``fit_glm(..., family="poisson")`` and
``fit_glm(..., family=PoissonFamily())`` are equivalent.

Negative binomial dispersion
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
``MASS::glm.nb`` re-estimates the dispersion parameter on every call,
including every ``update()`` on permuted data.  ``NegativeBinomialFamily``
does the same when constructed without ``alpha``: each fit first runs
the discrete ``sm.NegativeBinomial`` MLE to obtain α̂, then fits the
GLM with α̂ fixed.  Supplying ``alpha`` pins the dispersion and skips
the MLE step.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning,
    PerfectSeparationError,
    PerfectSeparationWarning,
)

from ._compat import DataFrameLike, _ensure_pandas_df, _require_columns
from .exceptions import RefitFailure

logger = logging.getLogger(__name__)

INTERCEPT = "intercept"

# Fitted probabilities this close to 0 or 1 mean the outcome is
# (quasi-)separated and the coefficients are not identified.
SEPARATION_TOL = 1e-10

# ------------------------------------------------------------------ #
# Refittable protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class Refittable(Protocol):
    """Interface every model handed to the permutation tester must satisfy.

    Attributes:
        data: Training frame.  The response is the first column; every
            other column is a predictor variable.
        coefficients: Estimated coefficients, intercept first.  The
            index holds the coefficient names.
    """

    @property
    def data(self) -> pd.DataFrame: ...

    @property
    def coefficients(self) -> pd.Series: ...

    def refit(self, new_data: pd.DataFrame) -> Refittable:
        """Fit the same model specification on *new_data*.

        Raises:
            RefitFailure: If the fit does not converge.
        """
        ...


# ------------------------------------------------------------------ #
# GLM families
# ------------------------------------------------------------------ #


def _check_numeric(y: np.ndarray, family: str) -> None:
    if not np.issubdtype(y.dtype, np.number):
        msg = f"family='{family}' requires numeric response values."
        raise ValueError(msg)
    if np.any(np.isnan(y)):
        msg = f"family='{family}' does not accept NaN values in the response."
        raise ValueError(msg)


def _check_counts(y: np.ndarray, family: str) -> None:
    _check_numeric(y, family)
    if np.any(y < 0):
        msg = f"family='{family}' requires non-negative response values."
        raise ValueError(msg)
    # Floats that happen to be whole numbers (e.g. 3.0) are fine.
    if not np.allclose(y, np.round(y)):
        msg = f"family='{family}' requires integer-valued counts."
        raise ValueError(msg)


@dataclass(frozen=True)
class GaussianFamily:
    """Identity-link normal GLM (ordinary least squares)."""

    @property
    def name(self) -> str:
        return "gaussian"

    def validate_y(self, y: np.ndarray) -> None:
        _check_numeric(y, self.name)
        if np.ptp(y) == 0:
            msg = "family='gaussian' requires a non-constant response."
            raise ValueError(msg)

    def sm_family(self, y: np.ndarray, X: pd.DataFrame) -> sm.families.Family:  # noqa: ARG002
        return sm.families.Gaussian()


@dataclass(frozen=True)
class BinomialFamily:
    """Logit-link binomial GLM for 0/1 outcomes."""

    @property
    def name(self) -> str:
        return "binomial"

    def validate_y(self, y: np.ndarray) -> None:
        _check_numeric(y, self.name)
        if not np.all(np.isin(y, [0, 1])):
            msg = "family='binomial' requires a response coded 0/1."
            raise ValueError(msg)

    def sm_family(self, y: np.ndarray, X: pd.DataFrame) -> sm.families.Family:  # noqa: ARG002
        return sm.families.Binomial()


@dataclass(frozen=True)
class PoissonFamily:
    """Log-link Poisson GLM for counts."""

    @property
    def name(self) -> str:
        return "poisson"

    def validate_y(self, y: np.ndarray) -> None:
        _check_counts(y, self.name)

    def sm_family(self, y: np.ndarray, X: pd.DataFrame) -> sm.families.Family:  # noqa: ARG002
        return sm.families.Poisson()


@dataclass(frozen=True)
class NegativeBinomialFamily:
    """NB2 GLM for overdispersed counts: ``Var(Y) = μ + α·μ²``.

    Parameters
    ----------
    alpha : float or None
        Fixed dispersion.  ``None`` (default) re-estimates α by maximum
        likelihood on every fit.
    """

    alpha: float | None = None

    def __post_init__(self) -> None:
        if self.alpha is not None and not self.alpha > 0:
            msg = f"NegativeBinomialFamily alpha must be positive, got {self.alpha!r}."
            raise ValueError(msg)

    @property
    def name(self) -> str:
        return "negative_binomial"

    def validate_y(self, y: np.ndarray) -> None:
        _check_counts(y, self.name)

    def estimate_alpha(self, y: np.ndarray, X: pd.DataFrame) -> float:
        """Joint MLE of β and ln(α) via ``sm.NegativeBinomial``; return α̂."""
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            nb_model = sm.NegativeBinomial(y, np.asarray(X, dtype=float)).fit(
                disp=0, maxiter=200
            )
        if not nb_model.mle_retvals.get("converged", True):
            raise RefitFailure("negative binomial dispersion MLE did not converge")
        alpha_hat = float(np.exp(nb_model.lnalpha))
        if not np.isfinite(alpha_hat) or alpha_hat <= 0:
            raise RefitFailure(f"invalid dispersion estimate alpha={alpha_hat!r}")
        return alpha_hat

    def sm_family(self, y: np.ndarray, X: pd.DataFrame) -> sm.families.Family:
        alpha = self.alpha if self.alpha is not None else self.estimate_alpha(y, X)
        return sm.families.NegativeBinomial(alpha=alpha)


# ------------------------------------------------------------------ #
# Family registry
# ------------------------------------------------------------------ #

_FAMILIES: dict[str, type] = {}


def register_family(name: str, cls: type) -> None:
    """Register a GLM family class under *name*."""
    _FAMILIES[name] = cls


def resolve_family(family: str | Any, alpha: float | None = None) -> Any:
    """Map a family name (or pass through an instance).

    Args:
        family: A registered name such as ``"poisson"``, or a family
            instance.
        alpha: Fixed dispersion; only valid for the negative binomial
            family.

    Raises:
        ValueError: For unknown names or a misplaced *alpha*.
    """
    if not isinstance(family, str):
        if alpha is not None:
            msg = "Pass 'alpha' to NegativeBinomialFamily(...) directly."
            raise ValueError(msg)
        return family

    key = family.strip().lower()
    if key not in _FAMILIES:
        available = ", ".join(sorted(_FAMILIES))
        msg = f"Unknown family {family!r}.  Available families: {available}."
        raise ValueError(msg)
    cls = _FAMILIES[key]
    if cls is NegativeBinomialFamily:
        return cls(alpha=alpha)
    if alpha is not None:
        msg = f"'alpha' only applies to family='negative_binomial', not {family!r}."
        raise ValueError(msg)
    return cls()


register_family("gaussian", GaussianFamily)
register_family("linear", GaussianFamily)
register_family("binomial", BinomialFamily)
register_family("logistic", BinomialFamily)
register_family("poisson", PoissonFamily)
register_family("negative_binomial", NegativeBinomialFamily)

# ------------------------------------------------------------------ #
# Fitting
# ------------------------------------------------------------------ #


def _design_matrix(predictors: pd.DataFrame) -> pd.DataFrame:
    """Intercept column followed by predictors; categoricals become
    treatment dummies with the first level dropped."""
    if predictors.shape[1] == 0:
        design = pd.DataFrame(index=predictors.index)
    else:
        design = pd.get_dummies(predictors, drop_first=True, dtype=float)
    design = design.astype(float)
    design.insert(0, INTERCEPT, 1.0)
    return design


def _separated(mu: np.ndarray) -> bool:
    mu = np.asarray(mu, dtype=float)
    return bool(np.any((mu < SEPARATION_TOL) | (mu > 1.0 - SEPARATION_TOL)))


def _fit_sm_glm(family: Any, y: np.ndarray, X: pd.DataFrame) -> Any:
    """Fit a statsmodels GLM, converting every failure into ``RefitFailure``.

    Failures are read off the fitted result, never off emitted warnings:
    the warning registry is process-global and refits run on threads.
    """
    try:
        sm_family = family.sm_family(y, X)
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", category=PerfectSeparationWarning)
            warnings.filterwarnings("ignore", category=ConvergenceWarning)
            warnings.filterwarnings("ignore", category=RuntimeWarning)
            result = sm.GLM(y, X, family=sm_family).fit()
    except RefitFailure:
        raise
    except (np.linalg.LinAlgError, PerfectSeparationError, ValueError) as exc:
        raise RefitFailure(f"{family.name} GLM fit failed: {exc}") from exc

    if isinstance(family, BinomialFamily) and _separated(result.mu):
        raise RefitFailure(f"{family.name} GLM: perfect separation detected")
    if not getattr(result, "converged", True):
        raise RefitFailure(f"{family.name} GLM: IRLS did not converge")
    if not np.all(np.isfinite(np.asarray(result.params))):
        raise RefitFailure(f"{family.name} GLM: non-finite coefficient estimates")
    return result


@dataclass(frozen=True, eq=False)
class GLMFit:
    """A fitted generalised linear model that satisfies :class:`Refittable`.

    Build with :func:`fit_glm` rather than directly.
    """

    response: str
    predictors: tuple[str, ...]
    family: Any
    data: pd.DataFrame = field(repr=False)
    coefficients: pd.Series = field(repr=False)
    result: Any = field(repr=False)
    """Underlying statsmodels ``GLMResultsWrapper``."""

    def refit(self, new_data: pd.DataFrame) -> GLMFit:
        """Refit the same response, predictors and family on *new_data*."""
        return fit_glm(new_data, self.response, list(self.predictors), family=self.family)

    @property
    def family_name(self) -> str:
        return self.family.name

    @property
    def n_obs(self) -> int:
        return len(self.data)


def fit_glm(
    data: DataFrameLike,
    response: str,
    predictors: list[str],
    family: str | Any = "gaussian",
    alpha: float | None = None,
) -> GLMFit:
    """Fit a GLM of *response* on *predictors*.

    Rows with a missing value in any model column are dropped before
    fitting, and the retained frame (response first) becomes the
    model's ``data``.

    Args:
        data: Source frame (pandas, or Polars when installed).
        response: Response column name.
        predictors: Predictor column names.  Non-numeric columns are
            expanded into treatment dummies.
        family: Family name (``"gaussian"``, ``"binomial"``,
            ``"poisson"``, ``"negative_binomial"``) or instance.
        alpha: Fixed NB2 dispersion (negative binomial only).

    Returns:
        A :class:`GLMFit`.

    Raises:
        KeyError: If a column is missing.
        ValueError: If the response does not suit the family.
        RefitFailure: If the fit does not converge.
    """
    df = _ensure_pandas_df(data)
    if isinstance(predictors, str):
        predictors = [predictors]
    if response in predictors:
        msg = f"Response '{response}' cannot also be a predictor."
        raise ValueError(msg)
    cols = _require_columns(df, [response, *predictors])

    frame = df[cols].dropna()
    if len(frame) < len(df):
        logger.debug("Dropped %d rows with missing values", len(df) - len(frame))
    if len(frame) == 0:
        msg = "No complete observations left after dropping missing values."
        raise ValueError(msg)
    frame = frame.reset_index(drop=True)

    fam = resolve_family(family, alpha)
    y = frame[response].to_numpy()
    if y.dtype == bool:
        y = y.astype(int)
    fam.validate_y(y)
    y = y.astype(float)

    X = _design_matrix(frame[list(predictors)])
    result = _fit_sm_glm(fam, y, X)
    coefficients = pd.Series(np.asarray(result.params, dtype=float), index=X.columns)

    return GLMFit(
        response=response,
        predictors=tuple(predictors),
        family=fam,
        data=frame,
        coefficients=coefficients,
        result=result,
    )


__all__ = [
    "BinomialFamily",
    "GLMFit",
    "GaussianFamily",
    "NegativeBinomialFamily",
    "PoissonFamily",
    "Refittable",
    "fit_glm",
    "register_family",
    "resolve_family",
]
