"""
test_config.py — Unit tests for AnalyticsConfig and load_config.

Tests cover:
  - Default thresholds and the attrition weight sum
  - AttritionWeights validation and normalized()
  - Field constraints and immutability
  - load_config: JSON file, environment variable, nested overrides
"""

import json
import math

import pytest
from pydantic import ValidationError

from people_analytics.config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG,
    AnalyticsConfig,
    AttritionWeights,
    load_config,
)


class TestDefaults:

    def test_default_weights_sum_to_exactly_one(self):
        assert AttritionWeights().total() == 1.0

    def test_default_weight_values(self):
        w = DEFAULT_CONFIG.attrition_weights
        assert (w.performance_rating, w.attendance_score, w.leave_frequency) == (0.25, 0.20, 0.15)
        assert (w.tenure, w.salary_growth, w.goal_completion) == (0.15, 0.15, 0.10)

    def test_documented_thresholds(self):
        cfg = AnalyticsConfig()
        assert cfg.lookback_days == 365
        assert cfg.attendance.window_days == 90
        assert cfg.attendance.frequent_late_rate == 20.0
        assert cfg.attendance.late_day_credit == 0.7
        assert cfg.leave.burnout_days_per_year == 25.0
        assert cfg.leave.burnout_medium_ratio == 0.7
        assert cfg.performance.low_performance_rating == 2.5
        assert cfg.dashboard.trend_periods == 6
        assert cfg.dashboard.voluntary_attrition_share == 0.8

    def test_config_is_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_CONFIG.lookback_days = 30


class TestAttritionWeights:

    def test_weights_not_summing_to_one_are_rejected(self):
        with pytest.raises(ValidationError) as exc:
            AttritionWeights(tenure=0.30)
        assert "sum to 1.0" in str(exc.value)

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            AttritionWeights(tenure=-0.1, goal_completion=0.35)

    def test_normalized_rescales_to_one(self):
        weights = AttritionWeights.normalized(tenure=0.30)
        assert math.isclose(weights.total(), 1.0, abs_tol=1e-9)
        # tenure doubled relative to salary growth (0.30 vs 0.15 before rescaling)
        assert math.isclose(weights.tenure / weights.salary_growth, 2.0, rel_tol=1e-9)

    def test_normalized_rejects_unknown_factor(self):
        with pytest.raises(ValueError):
            AttritionWeights.normalized(commute=0.5)

    def test_normalized_rejects_all_zero(self):
        with pytest.raises(ValueError):
            AttritionWeights.normalized(
                performance_rating=0, attendance_score=0, leave_frequency=0,
                tenure=0, salary_growth=0, goal_completion=0,
            )


class TestConstraints:

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            AnalyticsConfig.model_validate({"attendance": {"lateness": 3}})

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            AnalyticsConfig.model_validate({"leave": {"long_duration_days": -1}})

    def test_partial_section_keeps_other_defaults(self):
        cfg = AnalyticsConfig.model_validate({"attendance": {"window_days": 120}})
        assert cfg.attendance.window_days == 120
        assert cfg.attendance.frequent_late_high_rate == 40.0
        assert cfg.leave == DEFAULT_CONFIG.leave


class TestLoadConfig:

    def test_defaults_without_sources(self):
        assert load_config() == DEFAULT_CONFIG

    def test_json_file(self, tmp_path):
        path = tmp_path / "analytics.json"
        path.write_text(json.dumps({"lookback_days": 180, "leave": {"annual_allowance_days": 30}}))
        cfg = load_config(path)
        assert cfg.lookback_days == 180
        assert cfg.leave.annual_allowance_days == 30
        assert cfg.leave.burnout_days_per_year == 25.0

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"dashboard": {"section_timeout_seconds": 2.5}}))
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().dashboard.section_timeout_seconds == 2.5

    def test_overrides_merge_on_top_of_file(self, tmp_path):
        path = tmp_path / "analytics.json"
        path.write_text(json.dumps({"performance": {"trend_delta": 0.3, "ranking_size": 4}}))
        cfg = load_config(path, overrides={"performance": {"ranking_size": 2}})
        assert cfg.performance.trend_delta == 0.3
        assert cfg.performance.ranking_size == 2

    def test_invalid_weights_in_file_raise(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"attrition_weights": {"tenure": 0.5}}))
        with pytest.raises(ValidationError):
            load_config(path)
