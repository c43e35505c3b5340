"""
Analytics configuration — single source of truth for attrition weights,
attendance / leave / performance thresholds and dashboard fan-out limits.

Import from here in every engine rather than hardcoding values.  All
thresholds can be overridden without code changes: point
``PEOPLE_ANALYTICS_CONFIG`` at a JSON file (partial documents are fine, the
missing keys keep their defaults) or pass overrides to ``load_config()``.
"""
from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger("people-analytics-config")

CONFIG_ENV_VAR = "PEOPLE_ANALYTICS_CONFIG"

# Tolerance used when checking that the attrition weights sum to 1.0
WEIGHT_SUM_TOLERANCE: float = 1e-6


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ── Attrition weights ─────────────────────────────────────────────────────────

class AttritionWeights(_Section):
    """Weights of the six attrition risk factors. Must sum to 1.0."""

    performance_rating: float = Field(0.25, ge=0, le=1)
    attendance_score: float = Field(0.20, ge=0, le=1)
    leave_frequency: float = Field(0.15, ge=0, le=1)
    tenure: float = Field(0.15, ge=0, le=1)
    salary_growth: float = Field(0.15, ge=0, le=1)
    goal_completion: float = Field(0.10, ge=0, le=1)

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "AttritionWeights":
        total = self.total()
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(
                f"attrition weights must sum to 1.0 (got {total:.6f}); "
                "use AttritionWeights.normalized() to rescale"
            )
        return self

    def total(self) -> float:
        return math.fsum(self.model_dump().values())

    @classmethod
    def normalized(cls, **weights: float) -> "AttritionWeights":
        """
        Build weights from arbitrary non-negative values, rescaled to sum to 1.0.

        Unspecified factors keep their default weight before rescaling, so
        ``AttritionWeights.normalized(tenure=0.30)`` doubles the relative
        importance of tenure and shrinks every other factor proportionally.
        """
        merged = {name: f.default for name, f in cls.model_fields.items()}
        unknown = set(weights) - set(merged)
        if unknown:
            raise ValueError(f"Unknown attrition factor(s): {sorted(unknown)}")
        merged.update(weights)
        if any(v < 0 for v in merged.values()):
            raise ValueError("attrition weights must be non-negative")
        total = math.fsum(merged.values())
        if total <= 0:
            raise ValueError("at least one attrition weight must be positive")
        scaled = {k: v / total for k, v in merged.items()}
        # Push the rounding residue onto the largest weight so the sum is exact
        largest = max(scaled, key=scaled.get)
        scaled[largest] += 1.0 - math.fsum(scaled.values())
        return cls(**scaled)


# ── Attrition factor impact cut-offs ──────────────────────────────────────────

class AttritionImpactThresholds(_Section):
    """Cut-offs that classify each attrition factor as POSITIVE / NEGATIVE."""

    positive_rating: float = Field(4.0, ge=0, le=5)
    negative_rating: float = Field(2.0, ge=0, le=5)
    positive_attendance_rate: float = Field(95.0, ge=0, le=100)
    positive_max_late_rate: float = Field(5.0, ge=0, le=100)
    negative_attendance_rate: float = Field(80.0, ge=0, le=100)
    positive_salary_growth_pct: float = 10.0
    negative_salary_growth_pct: float = 0.0
    positive_goal_completion: float = Field(80.0, ge=0, le=100)
    negative_goal_completion: float = Field(40.0, ge=0, le=100)
    new_hire_months: float = Field(6.0, ge=0)
    settled_tenure_months: float = Field(12.0, ge=0)
    long_tenure_months: float = Field(60.0, ge=0)


# ── Attendance ────────────────────────────────────────────────────────────────

class AttendanceThresholds(_Section):
    # Clock-event classification thresholds consumed by the attendance
    # collaborator that assigns LATE / HALF_DAY statuses.
    late_threshold_minutes: int = Field(15, ge=0)
    early_departure_threshold_minutes: int = Field(30, ge=0)
    excessive_break_threshold_minutes: int = Field(90, ge=0)
    minimum_work_hours: float = Field(7.5, ge=0)

    # Anomaly detection
    window_days: int = Field(90, gt=0)
    frequent_late_rate: float = Field(20.0, ge=0, le=100)
    frequent_late_medium_rate: float = Field(20.0, ge=0, le=100)
    frequent_late_high_rate: float = Field(40.0, ge=0, le=100)
    absenteeism_rate: float = Field(10.0, ge=0, le=100)
    absenteeism_medium_rate: float = Field(15.0, ge=0, le=100)
    absenteeism_high_rate: float = Field(25.0, ge=0, le=100)
    irregular_hours_deviation: float = Field(2.0, ge=0)
    irregular_hours_share: float = Field(0.3, ge=0, le=1)
    irregular_hours_high_share: float = Field(0.5, ge=0, le=1)
    late_day_credit: float = Field(0.7, ge=0, le=1)
    high_risk_score: float = Field(70.0, ge=0, le=100)
    medium_risk_score: float = Field(85.0, ge=0, le=100)
    excellent_punctuality_rate: float = Field(5.0, ge=0, le=100)


# ── Leave ─────────────────────────────────────────────────────────────────────

class LeaveThresholds(_Section):
    excessive_frequency: float = Field(2.0, gt=0)          # leaves per month
    long_duration_days: float = Field(5.0, ge=0)
    burnout_days_per_year: float = Field(25.0, gt=0)
    burnout_medium_ratio: float = Field(0.7, ge=0, le=1)
    weekend_extension_share: float = Field(0.6, ge=0, le=1)
    annual_allowance_days: float = Field(25.0, gt=0)       # used for utilisation rates


# ── Performance ───────────────────────────────────────────────────────────────

class PerformanceThresholds(_Section):
    low_performance_rating: float = Field(2.5, ge=0, le=5)
    high_performance_rating: float = Field(4.0, ge=0, le=5)
    below_expectation_rating: float = Field(3.0, ge=0, le=5)
    goal_completion_threshold: float = Field(80.0, ge=0, le=100)
    low_goal_completion: float = Field(50.0, ge=0, le=100)
    trend_delta: float = Field(0.2, ge=0)
    team_trend_delta: float = Field(0.1, ge=0)
    review_history: int = Field(5, gt=1)
    ranking_size: int = Field(3, gt=0)


# ── Dashboard fan-out ─────────────────────────────────────────────────────────

class DashboardSettings(_Section):
    section_timeout_seconds: float = Field(10.0, gt=0)
    overall_timeout_seconds: float = Field(30.0, gt=0)
    trend_periods: int = Field(6, gt=1)
    performer_list_size: int = Field(5, gt=0)
    voluntary_attrition_share: float = Field(0.8, ge=0, le=1)


class AnalyticsConfig(_Section):
    """Complete, immutable configuration for the People Analytics Engine."""

    lookback_days: int = Field(365, gt=0)
    attrition_weights: AttritionWeights = AttritionWeights()
    attrition_impact: AttritionImpactThresholds = AttritionImpactThresholds()
    attendance: AttendanceThresholds = AttendanceThresholds()
    leave: LeaveThresholds = LeaveThresholds()
    performance: PerformanceThresholds = PerformanceThresholds()
    dashboard: DashboardSettings = DashboardSettings()


DEFAULT_CONFIG = AnalyticsConfig()


def _deep_merge(base: dict, overrides: dict) -> dict:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: Optional[str | os.PathLike] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> AnalyticsConfig:
    """
    Build an ``AnalyticsConfig``.

    Resolution order:
      1. ``path`` argument (JSON file), else
      2. the file named by ``PEOPLE_ANALYTICS_CONFIG`` (``.env`` honoured), else
      3. built-in defaults.
    ``overrides`` (nested dict) is merged on top of whichever source was used.

    Raises ``pydantic.ValidationError`` when the result is invalid, e.g. when
    the attrition weights do not sum to 1.0.
    """
    load_dotenv()
    data: dict[str, Any] = {}

    source = path or os.getenv(CONFIG_ENV_VAR)
    if source:
        config_path = Path(source)
        data = json.loads(config_path.read_text(encoding="utf-8"))
        logger.info(f"Analytics config loaded from {config_path}")

    if overrides:
        data = _deep_merge(data, overrides)

    return AnalyticsConfig.model_validate(data)
