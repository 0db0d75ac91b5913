"""shedding_stats — Statistical helpers for the SARS-CoV-2 shedding analysis
in kidney transplant recipients.

The centrepiece is a response-permutation test that turns any refittable
regression model (Gaussian, binomial, Poisson, negative-binomial GLM)
into empirical two-sided p-values for every coefficient.  Around it sit
the small helpers the analysis report relies on: load-or-compute result
caching, posterior probability of direction, free-text normalisation,
Excel serial-date conversion, and cluster bootstrap resampling.

Public API:
    .. autosummary::
        permutation_test
        PermutationTester
        PermutationTestResult
        empirical_p_values
        jitter_null_distribution
        fit_glm
        GLMFit
        Refittable
        GaussianFamily
        BinomialFamily
        PoissonFamily
        NegativeBinomialFamily
        register_family
        resolve_family
        print_results_table
        format_p_value
        run_cached
        p_direction
        clean
        excel_date
        cluster_bootstrap
        get_error_policy
        set_error_policy
        get_default_nsim
        get_cache_dir
        set_cache_dir
        InvalidSimCount
        RefitFailure
        DegenerateNullDistribution
"""

from ._config import (
    get_cache_dir,
    get_default_nsim,
    get_error_policy,
    set_cache_dir,
    set_error_policy,
)
from ._results import PermutationTestResult
from .bootstrap import cluster_bootstrap
from .cache import run_cached
from .dates import excel_date
from .display import format_p_value, print_results_table
from .exceptions import (
    DegenerateNullDistribution,
    InvalidSimCount,
    RefitFailure,
    ShedStatsError,
)
from .models import (
    BinomialFamily,
    GaussianFamily,
    GLMFit,
    NegativeBinomialFamily,
    PoissonFamily,
    Refittable,
    fit_glm,
    register_family,
    resolve_family,
)
from .permutation import (
    PermutationTester,
    empirical_p_values,
    jitter_null_distribution,
    permutation_test,
)
from .posterior import p_direction
from .text import clean

__all__ = [
    "permutation_test",
    "PermutationTester",
    "PermutationTestResult",
    "empirical_p_values",
    "jitter_null_distribution",
    "fit_glm",
    "GLMFit",
    "Refittable",
    "GaussianFamily",
    "BinomialFamily",
    "PoissonFamily",
    "NegativeBinomialFamily",
    "register_family",
    "resolve_family",
    "print_results_table",
    "format_p_value",
    "run_cached",
    "p_direction",
    "clean",
    "excel_date",
    "cluster_bootstrap",
    "get_error_policy",
    "set_error_policy",
    "get_default_nsim",
    "get_cache_dir",
    "set_cache_dir",
    "ShedStatsError",
    "InvalidSimCount",
    "RefitFailure",
    "DegenerateNullDistribution",
]

__version__ = "0.1.0"
