"""Tests for Polars DataFrame input compatibility."""

import numpy as np
import pandas as pd
import pytest

from shedding_stats._compat import _ensure_pandas_df, _require_columns


class TestRequireColumns:
    def test_single_name_returned_as_list(self):
        df = pd.DataFrame({"a": [1], "b": [2]})
        assert _require_columns(df, "a") == ["a"]

    def test_list_preserved_in_order(self):
        df = pd.DataFrame({"a": [1], "b": [2]})
        assert _require_columns(df, ["b", "a"]) == ["b", "a"]

    def test_missing_columns_listed(self):
        df = pd.DataFrame({"a": [1]})
        with pytest.raises(KeyError, match=r"\['x', 'y'\]"):
            _require_columns(df, ["a", "x", "y"])


class TestEnsurePandasDf:
    """Tests for the _ensure_pandas_df converter."""

    def test_pandas_passthrough(self):
        df = pd.DataFrame({"a": [1, 2, 3]})
        result = _ensure_pandas_df(df)
        assert result is df  # exact same object, no copy

    def test_rejects_invalid_type(self):
        with pytest.raises(TypeError, match="must be a pandas"):
            _ensure_pandas_df([1, 2, 3])

    def test_error_includes_name(self):
        with pytest.raises(TypeError, match="'cohort'"):
            _ensure_pandas_df({"a": 1}, name="cohort")


class TestPolarsInputs:
    """Verify that public helpers accept Polars DataFrames."""

    @pytest.fixture(autouse=True)
    def _polars(self):
        self.pl = pytest.importorskip("polars")
        pytest.importorskip("pyarrow")

    def test_polars_converted(self):
        result = _ensure_pandas_df(self.pl.DataFrame({"a": [1, 2, 3]}))
        assert isinstance(result, pd.DataFrame)
        assert result["a"].tolist() == [1, 2, 3]

    def test_polars_lazyframe_collected_and_converted(self):
        lf = self.pl.DataFrame({"a": [1, 2, 3]}).lazy()
        result = _ensure_pandas_df(lf)
        assert isinstance(result, pd.DataFrame)
        assert result["a"].tolist() == [1, 2, 3]

    def test_fit_glm_matches_pandas(self):
        from shedding_stats import fit_glm

        rng = np.random.default_rng(42)
        n = 60
        x = rng.standard_normal(n)
        pdf = pd.DataFrame({"y": 1.0 + 2.0 * x + rng.standard_normal(n), "x": x})
        from_polars = fit_glm(self.pl.from_pandas(pdf), "y", ["x"])
        from_pandas = fit_glm(pdf, "y", ["x"])
        np.testing.assert_allclose(
            from_polars.coefficients.to_numpy(), from_pandas.coefficients.to_numpy()
        )

    def test_excel_date(self):
        from shedding_stats import excel_date

        out = excel_date(self.pl.DataFrame({"d": [44197.0]}), "d")
        assert out["d"].iloc[0] == pd.Timestamp("2021-01-01")

    def test_cluster_bootstrap(self):
        from shedding_stats import cluster_bootstrap

        df = self.pl.DataFrame({"pid": [1, 1, 2], "v": [0.1, 0.2, 0.3]})
        reps = cluster_bootstrap(df, "pid", 2, seed=0)
        assert len(reps) == 2
        assert all(isinstance(r, pd.DataFrame) for r in reps)
