"""Formatted ASCII tables for permutation test results.

The layout mirrors the statsmodels summary style: a header panel with
run metadata, then one row per coefficient with its estimate and
empirical p-value, then a notes panel for anything the reader should
know before trusting the numbers (failed refits, skipped trials,
unjittered columns).
"""

from __future__ import annotations

import math
import textwrap
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._results import PermutationTestResult

WIDTH = 80


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def format_p_value(
    p: float,
    precision: int = 4,
    p_value_threshold_one: float = 0.05,
    p_value_threshold_two: float = 0.01,
) -> str:
    """Format *p* with a significance marker (``**``, ``*`` or ``ns``).

    Values too small for *precision* decimals switch to scientific
    notation; NaN renders as ``"N/A"``.
    """
    if p is None or math.isnan(p):
        return "N/A"
    val = f"{p:.2e}" if p < 10**-precision else f"{p:.{precision}f}"
    if p < p_value_threshold_two:
        return f"{val} (**)"
    if p < p_value_threshold_one:
        return f"{val} (*)"
    return f"{val} (ns)"


def print_results_table(
    result: PermutationTestResult,
    *,
    title: str = "Permutation Test for GLM Coefficients",
    p_value_threshold_one: float = 0.05,
    p_value_threshold_two: float = 0.01,
) -> None:
    """Print coefficients and empirical p-values as an ASCII table.

    Args:
        result: Object returned by :meth:`PermutationTester.run`.
        title: Title for the output table.
        p_value_threshold_one: Level for the ``*`` marker.
        p_value_threshold_two: Level for the ``**`` marker.
    """
    print("=" * WIDTH)
    for line in textwrap.wrap(title, width=WIDTH - 2):
        print(f"{line:^{WIDTH}}")
    print("=" * WIDTH)

    col1, col2 = 40, 38
    print(
        f"{'Dep. Variable:':<16}{_truncate(result.response, 22):<{col1 - 16}}"
        f"{'Permutations:':>{col2 - 11}} {result.nsim:>10}"
    )
    print(
        f"{'Predictors:':<16}{len(result.predictors):<{col1 - 16}}"
        f"{'Completed:':>{col2 - 11}} {result.n_completed:>10}"
    )
    print(
        f"{'Policy:':<16}{'strict' if result.strict else 'lenient':<{col1 - 16}}"
        f"{'Jitter:':>{col2 - 11}} {'yes' if result.jitter else 'no':>10}"
    )
    print("-" * WIDTH)

    fc = 30
    print(f"{'Coefficient':<{fc}}{'Coef':>14}  {'P (Emp, two-sided)':>34}")
    print("-" * WIDTH)
    for name, coef in result.observed.items():
        p_str = format_p_value(
            float(result.p_values[name]),
            p_value_threshold_one=p_value_threshold_one,
            p_value_threshold_two=p_value_threshold_two,
        )
        print(f"{_truncate(str(name), fc):<{fc}}{coef:>14.4f}  {p_str:>34}")

    notes: list[str] = []
    if result.n_failed:
        notes.append(
            f"{result.n_failed} permuted refit(s) failed and were excluded "
            "from the null distribution."
        )
    if result.n_skipped:
        notes.append(
            f"{result.n_skipped} permutation(s) skipped after the time limit."
        )
    if result.degenerate:
        notes.append(
            "Zero-spread null distribution (no jitter applied) for: "
            + ", ".join(result.degenerate)
            + "."
        )
    min_p = 1.0 / (1.0 + result.n_completed / 2.0)
    notes.append(f"Smallest attainable p-value with this run: {min_p:.2e}.")

    print("-" * WIDTH)
    print("Notes")
    for note in notes:
        print(textwrap.fill(note, width=WIDTH, initial_indent="  ", subsequent_indent="    "))
    print(
        f"  (**) p < {p_value_threshold_two}   (*) p < {p_value_threshold_one}"
        f"   (ns) p >= {p_value_threshold_one}"
    )
    print("=" * WIDTH)


__all__ = ["format_p_value", "print_results_table"]
