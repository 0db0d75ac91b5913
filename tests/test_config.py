"""Tests for the runtime configuration layer."""

import os

import pytest

from shedding_stats._config import (
    get_cache_dir,
    get_default_nsim,
    get_error_policy,
    set_cache_dir,
    set_error_policy,
)


def _reset():
    import shedding_stats._config as _cfg

    _cfg._policy_override = None
    _cfg._cache_dir_override = None
    for var in (
        "SHEDDING_STATS_ERROR_POLICY",
        "SHEDDING_STATS_NSIM",
        "SHEDDING_STATS_CACHE_DIR",
    ):
        os.environ.pop(var, None)


class TestGetErrorPolicy:
    """Tests for get_error_policy() resolution order."""

    def setup_method(self):
        _reset()

    def teardown_method(self):
        _reset()

    def test_default_is_lenient(self):
        assert get_error_policy() == "lenient"

    def test_env_var_overrides_default(self):
        os.environ["SHEDDING_STATS_ERROR_POLICY"] = "strict"
        assert get_error_policy() == "strict"

    def test_env_var_case_insensitive(self):
        os.environ["SHEDDING_STATS_ERROR_POLICY"] = " Strict "
        assert get_error_policy() == "strict"

    def test_unrecognised_env_value_ignored(self):
        os.environ["SHEDDING_STATS_ERROR_POLICY"] = "paranoid"
        assert get_error_policy() == "lenient"

    def test_programmatic_override_wins_over_env(self):
        os.environ["SHEDDING_STATS_ERROR_POLICY"] = "strict"
        set_error_policy("lenient")
        assert get_error_policy() == "lenient"

    def test_auto_restores_env_resolution(self):
        os.environ["SHEDDING_STATS_ERROR_POLICY"] = "strict"
        set_error_policy("lenient")
        set_error_policy("auto")
        assert get_error_policy() == "strict"


class TestSetErrorPolicy:
    """Tests for set_error_policy() validation."""

    def setup_method(self):
        _reset()

    def teardown_method(self):
        _reset()

    def test_accepts_valid_names(self):
        for name in ("lenient", "strict", "auto"):
            set_error_policy(name)  # should not raise

    def test_case_insensitive(self):
        set_error_policy("STRICT")
        assert get_error_policy() == "strict"

    def test_rejects_invalid_name(self):
        with pytest.raises(ValueError, match="Unknown error policy"):
            set_error_policy("ignore")


class TestDefaultNsim:
    def setup_method(self):
        _reset()

    def teardown_method(self):
        _reset()

    def test_default(self):
        assert get_default_nsim() == 2000

    def test_env_var(self):
        os.environ["SHEDDING_STATS_NSIM"] = "500"
        assert get_default_nsim() == 500

    def test_blank_env_var_uses_default(self):
        os.environ["SHEDDING_STATS_NSIM"] = "  "
        assert get_default_nsim() == 2000

    def test_non_integer_env_var_rejected(self):
        os.environ["SHEDDING_STATS_NSIM"] = "lots"
        with pytest.raises(ValueError, match="SHEDDING_STATS_NSIM"):
            get_default_nsim()


class TestCacheDir:
    def setup_method(self):
        _reset()

    def teardown_method(self):
        _reset()

    def test_defaults_to_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_cache_dir() == tmp_path

    def test_env_var(self, tmp_path):
        os.environ["SHEDDING_STATS_CACHE_DIR"] = str(tmp_path / "cache")
        assert get_cache_dir() == tmp_path / "cache"

    def test_override_wins_over_env(self, tmp_path):
        os.environ["SHEDDING_STATS_CACHE_DIR"] = str(tmp_path / "env")
        set_cache_dir(tmp_path / "override")
        assert get_cache_dir() == tmp_path / "override"

    def test_none_restores_default(self, tmp_path):
        os.environ["SHEDDING_STATS_CACHE_DIR"] = str(tmp_path / "env")
        set_cache_dir(tmp_path / "override")
        set_cache_dir(None)
        assert get_cache_dir() == tmp_path / "env"


class TestPublicApi:
    def test_exports(self):
        """Config accessors should be importable from the package."""
        import shedding_stats

        for name in (
            "get_error_policy",
            "set_error_policy",
            "get_default_nsim",
            "get_cache_dir",
            "set_cache_dir",
        ):
            assert hasattr(shedding_stats, name)
