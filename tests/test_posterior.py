"""Tests for the probability of direction."""

import numpy as np
import pandas as pd
import pytest

from shedding_stats import p_direction


class TestPDirection:
    def test_share_above(self):
        assert p_direction(np.array([-0.2, 0.4, 0.9, 1.3]), ">", 0) == 0.75

    def test_share_below(self):
        assert p_direction(np.array([-0.2, 0.4, 0.9, 1.3]), "<", 0) == 0.25

    def test_max_takes_dominant_side(self):
        draws = np.array([-3.0, -2.0, -1.0, 0.5])
        assert p_direction(draws) == 0.75

    def test_threshold_for_ratios(self):
        ratios = np.array([0.8, 1.2, 1.5, 2.0, 0.9])
        assert p_direction(ratios, ">", threshold=1.0) == pytest.approx(0.6)

    def test_draws_at_threshold_count_nowhere(self):
        draws = np.array([0.0, 0.0, 1.0, -1.0])
        assert p_direction(draws, ">") == 0.25
        assert p_direction(draws, "<") == 0.25
        assert p_direction(draws, "max") == 0.25

    def test_series_input(self):
        assert p_direction(pd.Series([1.0, 2.0, -1.0, 3.0])) == 0.75

    def test_dataframe_is_column_wise(self):
        draws = pd.DataFrame(
            {"b_age": [0.1, 0.2, 0.3, -0.1], "b_mmf": [-1.0, -2.0, -0.5, -0.1]}
        )
        result = p_direction(draws, ">")
        assert isinstance(result, pd.Series)
        assert list(result.index) == ["b_age", "b_mmf"]
        assert result["b_age"] == 0.75
        assert result["b_mmf"] == 0.0

    def test_max_bounds(self):
        draws = np.random.default_rng(0).standard_normal(1000)
        assert 0.5 <= p_direction(draws) <= 1.0

    def test_unknown_direction(self):
        with pytest.raises(ValueError, match="Unknown direction"):
            p_direction(np.array([1.0]), ">=")

    def test_empty_draws(self):
        with pytest.raises(ValueError, match="at least one"):
            p_direction(np.array([]))
