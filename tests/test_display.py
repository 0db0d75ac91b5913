"""Tests for the display module."""

import numpy as np
import pandas as pd
import pytest

from shedding_stats import PermutationTestResult, format_p_value, print_results_table
from shedding_stats.display import WIDTH, _truncate


def _result(**overrides):
    names = ["intercept", "age", "mmf_at_diagnosis"]
    fields = dict(
        response="shedding_days",
        predictors=["age", "mmf_at_diagnosis"],
        observed=pd.Series([2.1, 0.03, 0.45], index=names),
        null_distribution=pd.DataFrame(np.zeros((100, 3)), columns=names),
        p_values=pd.Series([0.5, 0.0099, 0.04], index=names, name="p_value"),
        nsim=100,
        n_failed=0,
        n_skipped=0,
        degenerate=[],
        jitter=True,
        strict=False,
        seed_entropy=123,
    )
    fields.update(overrides)
    return PermutationTestResult(**fields)


class TestTruncate:
    def test_short_name_unchanged(self):
        assert _truncate("abc", 10) == "abc"

    def test_exact_length_unchanged(self):
        assert _truncate("abcdefghij", 10) == "abcdefghij"

    def test_long_name_truncated(self):
        result = _truncate("abcdefghijk", 10)
        assert len(result) == 10
        assert result.endswith("...")


class TestFormatPValue:
    @pytest.mark.parametrize(
        ("p", "expected"),
        [
            (0.5, "0.5000 (ns)"),
            (0.03, "0.0300 (*)"),
            (0.005, "0.0050 (**)"),
            (0.00001, "1.00e-05 (**)"),
        ],
    )
    def test_markers(self, p, expected):
        assert format_p_value(p) == expected

    def test_nan(self):
        assert format_p_value(float("nan")) == "N/A"

    def test_custom_thresholds(self):
        assert format_p_value(0.08, p_value_threshold_one=0.1) == "0.0800 (*)"


class TestPrintResultsTable:
    def test_prints_coefficients(self, capsys):
        print_results_table(_result())
        out = capsys.readouterr().out
        assert "Permutation Test for GLM Coefficients" in out
        assert "shedding_days" in out
        assert "mmf_at_diagnosis" in out
        assert "0.0099 (**)" in out
        assert "0.0400 (*)" in out
        assert "0.5000 (ns)" in out

    def test_lines_fit_width(self, capsys):
        print_results_table(_result())
        out = capsys.readouterr().out
        assert all(len(line) <= WIDTH for line in out.splitlines())

    def test_notes_report_failures_and_skips(self, capsys):
        print_results_table(_result(n_failed=3, n_skipped=7, degenerate=["intercept"]))
        out = capsys.readouterr().out
        assert "3 permuted refit(s) failed" in out
        assert "7 permutation(s) skipped" in out
        assert "intercept" in out.split("Notes")[1]
        assert "90" in out  # completed trials

    def test_smallest_attainable_p(self, capsys):
        print_results_table(_result())
        out = capsys.readouterr().out
        assert f"{1 / 51:.2e}" in out

    def test_custom_title(self, capsys):
        print_results_table(_result(), title="Days of shedding")
        assert "Days of shedding" in capsys.readouterr().out

    def test_nan_p_value(self, capsys):
        p = pd.Series([np.nan, 0.2, 0.3], index=["intercept", "age", "mmf_at_diagnosis"])
        print_results_table(_result(p_values=p))
        assert "N/A" in capsys.readouterr().out
