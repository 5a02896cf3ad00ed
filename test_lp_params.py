"""Tests for solver parameters and their engine settings."""

from frozendict import frozendict

from lp_params import DEFAULT_INFINITE, TUNING_NAMES, SimplexType, SolverParams


def test_defaults():
    params = SolverParams()
    assert params.infinite == DEFAULT_INFINITE
    assert params.simplex_type == SimplexType.DUAL_PRIMAL
    assert params.epsint == 1e-7
    assert params.timeout == 0.0
    assert params.query_abort is None
    assert not params.get_sensitivity


def test_native_settings_cover_every_tuning_name():
    """Test that native settings hold exactly the tuning values, unmodified."""
    params = SolverParams(epsint=1e-5, presolve=1, simplex_type=SimplexType.PRIMAL_PRIMAL)
    settings = params.native_settings()
    assert isinstance(settings, frozendict)
    assert tuple(settings) == TUNING_NAMES
    assert settings["epsint"] == 1e-5
    assert settings["presolve"] == 1
    assert settings["simplex_type"] == SimplexType.PRIMAL_PRIMAL
    assert "query_abort" not in settings
    assert "log_file" not in settings
