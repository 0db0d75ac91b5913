"""Tests for free-text normalisation."""

import numpy as np
import pandas as pd
import pytest

from shedding_stats import clean
from shedding_stats.text import transliterate_latin


class TestTransliterateLatin:
    def test_strips_diacritics(self):
        assert transliterate_latin("Mofétil à Zürich") == "Mofetil a Zurich"

    def test_letters_without_decomposition(self):
        assert transliterate_latin("Straße Øresund Łódź") == "Strasse Oresund Lodz"

    def test_non_latin_scripts_untouched(self):
        assert transliterate_latin("Ковид й Ωμέγα") == "Ковид й Ωμέγα"


class TestClean:
    def test_lowercases_and_strips_punctuation(self):
        assert clean("Mycophénolate-Mofétil + Tacrolimus!") == "mycophenolatemofetiltacrolimus"

    def test_removes_all_whitespace(self):
        assert clean("  CMV\tpositive \n") == "cmvpositive"

    def test_keeps_digits(self):
        assert clean("Day 14 (PCR+)") == "day14pcr"

    def test_symbols_removed(self):
        assert clean("IgG ≥ 5 mg/ml ©") == "igg5mgml"

    def test_empty_string(self):
        assert clean("") == ""

    def test_series_keeps_missing(self):
        s = pd.Series(["Prednisolone", None, "Béla-tacept", np.nan])
        result = clean(s)
        assert result.iloc[0] == "prednisolone"
        assert result.iloc[2] == "belatacept"
        assert result.isna().tolist() == [False, True, False, True]

    def test_series_index_preserved(self):
        s = pd.Series(["A b"], index=[17])
        assert clean(s).index.tolist() == [17]

    def test_rejects_other_types(self):
        with pytest.raises(TypeError, match="expects a str or Series"):
            clean(42)

    def test_other_scripts_kept(self):
        assert clean("Ковид-19") == "ковид19"
        assert clean("Ωμέγα test") == "ωμέγαtest"

    def test_underscores_removed(self):
        assert clean("pcr_day_7") == "pcrday7"
