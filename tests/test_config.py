"""Tests for settings and rating options."""

import pytest
from pydantic import ValidationError

from core.settings import Settings
from pipelines.config import DEFAULT_QWI_WEIGHTS, DEFAULT_RPI_WEIGHTS, PipelineConfig, RatingOptions


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.solver_max_iterations == 100
        assert settings.solver_threshold == 0.05
        assert settings.field_size == 64
        assert settings.min_games == 1

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("MIN_GAMES", "5")
        monkeypatch.setenv("QWP_WEIGHTS", '{"q1": 5.0}')
        settings = Settings(_env_file=None)
        assert settings.min_games == 5
        assert settings.qwp_weights == {"q1": 5.0}

    @pytest.mark.parametrize(
        "field,value",
        [
            ("solver_damping", 0.0),
            ("solver_damping", 1.5),
            ("solver_max_iterations", 0),
            ("min_games", -1),
            ("log_level", "LOUD"),
            ("log_format", "xml"),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


class TestRatingOptions:
    def test_defaults_use_named_constants(self):
        options = RatingOptions()
        assert options.rpi_weights == DEFAULT_RPI_WEIGHTS
        assert options.qwi_weights == DEFAULT_QWI_WEIGHTS

    def test_from_settings_merges_partial_overrides(self):
        settings = Settings(_env_file=None, qwp_weights={"q1": 5.0}, min_games=3)
        options = RatingOptions.from_settings(settings)

        assert options.qwp_weights["q1"] == 5.0
        assert options.qwp_weights["q4"] == 0.5
        assert options.min_games == 3

    def test_non_league_games_rated_unless_disabled(self, monkeypatch):
        assert RatingOptions().include_non_league
        assert RatingOptions.from_settings(Settings(_env_file=None)).include_non_league

        monkeypatch.setenv("EFFICIENCY_INCLUDE_NON_LEAGUE", "false")
        assert not RatingOptions.from_settings(Settings(_env_file=None)).include_non_league

    def test_cli_min_games_wins(self):
        settings = Settings(_env_file=None, min_games=3)
        assert RatingOptions.from_settings(settings, min_games=7).min_games == 7

    def test_unknown_weight_key_rejected(self):
        with pytest.raises(ValueError):
            RatingOptions(rpi_weights={"wp": 0.5, "owp": 0.5})

    def test_damping_bounds(self):
        with pytest.raises(ValueError):
            RatingOptions(damping=0.0)


class TestPipelineConfig:
    def test_name_required(self):
        with pytest.raises(ValueError):
            PipelineConfig(name="", display_name="x", description="x", target_table="t")
