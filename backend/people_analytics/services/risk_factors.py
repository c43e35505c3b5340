"""
Attrition risk factors — one pure function per factor.

Each function takes a narrow slice of an employee's history plus the analytics
configuration and returns a single ``RiskFactor`` with a 0–100 value (higher =
more risk).  None of them raise: empty or insufficient history resolves to a
neutral factor.  The salary factor is deliberately more pessimistic (60) than
the others (50) when history is missing.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from people_analytics.config import AnalyticsConfig
from people_analytics.models.records import (
    PRESENT_STATUSES,
    AttendanceRecord,
    AttendanceStatus,
    Goal,
    GoalStatus,
    LeaveRecord,
    PayrollRecord,
    PerformanceReview,
)
from people_analytics.models.results import Impact, RiskFactor
from people_analytics.services.common import clamp, pct, to_date

NEUTRAL_VALUE: float = 50.0
NEUTRAL_SALARY_VALUE: float = 60.0

# Tenure bands (risk value by months of service)
NEW_HIRE_RISK: float = 70.0
LONG_TENURE_RISK: float = 40.0
STABLE_TENURE_RISK: float = 20.0

DAYS_PER_MONTH: int = 30
MONTHS_PER_YEAR: int = 12

PERFORMANCE_RATING = "Performance Rating"
ATTENDANCE_SCORE = "Attendance Score"
LEAVE_FREQUENCY = "Leave Frequency"
TENURE = "Tenure"
SALARY_GROWTH = "Salary Growth"
GOAL_COMPLETION = "Goal Completion"


def _neutral(name: str, weight: float, description: str, value: float = NEUTRAL_VALUE) -> RiskFactor:
    return RiskFactor(
        factor=name,
        weight=weight,
        value=value,
        impact=Impact.NEUTRAL,
        description=description,
    )


def performance_factor(reviews: Sequence[PerformanceReview], config: AnalyticsConfig) -> RiskFactor:
    """Risk from the most recent review: ``(5 − rating) × 25``. ``reviews`` is newest first."""
    weight = config.attrition_weights.performance_rating
    if not reviews:
        return _neutral(PERFORMANCE_RATING, weight, "No performance reviews available")

    rating = float(reviews[0].overall_rating)
    cut = config.attrition_impact
    if rating >= cut.positive_rating:
        impact = Impact.POSITIVE
    elif rating <= cut.negative_rating:
        impact = Impact.NEGATIVE
    else:
        impact = Impact.NEUTRAL

    return RiskFactor(
        factor=PERFORMANCE_RATING,
        weight=weight,
        value=clamp((5 - rating) * 25),
        impact=impact,
        description=f"Latest performance rating: {rating:g}/5",
    )


def attendance_factor(attendance: Sequence[AttendanceRecord], config: AnalyticsConfig) -> RiskFactor:
    """
    Risk from presence and punctuality: ``100 − presentRate + 0.5 × lateRate``.

    Late days are not counted as present, so they are penalised twice: once
    through the lower present rate and once through the late-rate term.
    """
    weight = config.attrition_weights.attendance_score
    if not attendance:
        return _neutral(ATTENDANCE_SCORE, weight, "No attendance data available")

    total = len(attendance)
    present = sum(1 for a in attendance if a.status in PRESENT_STATUSES)
    late = sum(1 for a in attendance if a.status == AttendanceStatus.LATE)
    present_rate = pct(present, total)
    late_rate = pct(late, total)

    cut = config.attrition_impact
    if present_rate >= cut.positive_attendance_rate and late_rate <= cut.positive_max_late_rate:
        impact = Impact.POSITIVE
    elif present_rate <= cut.negative_attendance_rate:
        impact = Impact.NEGATIVE
    else:
        impact = Impact.NEUTRAL

    return RiskFactor(
        factor=ATTENDANCE_SCORE,
        weight=weight,
        value=clamp(max(0.0, 100 - present_rate) + late_rate * 0.5),
        impact=impact,
        description=f"Attendance: {present_rate:.1f}%, Late: {late_rate:.1f}%",
    )


def leave_factor(leaves: Sequence[LeaveRecord], config: AnalyticsConfig) -> RiskFactor:
    """Risk from leave frequency relative to the excessive-frequency threshold."""
    weight = config.attrition_weights.leave_frequency
    if not leaves:
        return _neutral(LEAVE_FREQUENCY, weight, "No leave history available")

    threshold = config.leave.excessive_frequency
    per_month = len(leaves) / MONTHS_PER_YEAR
    if per_month >= threshold:
        impact = Impact.NEGATIVE
    elif per_month <= threshold / 2:
        impact = Impact.POSITIVE
    else:
        impact = Impact.NEUTRAL

    return RiskFactor(
        factor=LEAVE_FREQUENCY,
        weight=weight,
        value=clamp(per_month / threshold * 50),
        impact=impact,
        description=f"{len(leaves)} leaves in last year ({per_month:.1f}/month)",
    )


def tenure_months(join_date: date, as_of: datetime) -> float:
    return (to_date(as_of) - join_date).days / DAYS_PER_MONTH


def tenure_factor(join_date: Optional[date], as_of: datetime, config: AnalyticsConfig) -> RiskFactor:
    """U-shaped tenure risk: very new and very long-serving employees are riskier."""
    weight = config.attrition_weights.tenure
    if join_date is None:
        return _neutral(TENURE, weight, "Joining date not recorded")

    cut = config.attrition_impact
    months = tenure_months(join_date, as_of)
    if months < cut.new_hire_months:
        value = NEW_HIRE_RISK
    elif months > cut.long_tenure_months:
        value = LONG_TENURE_RISK
    else:
        value = STABLE_TENURE_RISK

    settled = cut.settled_tenure_months <= months <= cut.long_tenure_months
    return RiskFactor(
        factor=TENURE,
        weight=weight,
        value=value,
        impact=Impact.POSITIVE if settled else Impact.NEGATIVE,
        description=f"{months / MONTHS_PER_YEAR:.1f} years with company",
    )


def salary_growth_factor(payroll: Sequence[PayrollRecord], config: AnalyticsConfig) -> RiskFactor:
    """Risk from salary growth between the oldest and newest payroll (newest first)."""
    weight = config.attrition_weights.salary_growth
    if len(payroll) < 2 or not payroll[-1].net_salary:
        return _neutral(
            SALARY_GROWTH,
            weight,
            "Insufficient salary history for analysis",
            value=NEUTRAL_SALARY_VALUE,
        )

    latest = float(payroll[0].net_salary)
    oldest = float(payroll[-1].net_salary)
    growth = (latest - oldest) / oldest * 100

    cut = config.attrition_impact
    if growth >= cut.positive_salary_growth_pct:
        impact = Impact.POSITIVE
    elif growth <= cut.negative_salary_growth_pct:
        impact = Impact.NEGATIVE
    else:
        impact = Impact.NEUTRAL

    return RiskFactor(
        factor=SALARY_GROWTH,
        weight=weight,
        value=clamp(50 - growth * 2),   # 25 % growth = 0 risk
        impact=impact,
        description=f"{growth:.1f}% salary growth over period",
    )


def goal_completion_factor(goals: Sequence[Goal], config: AnalyticsConfig) -> RiskFactor:
    weight = config.attrition_weights.goal_completion
    if not goals:
        return _neutral(GOAL_COMPLETION, weight, "No goals set")

    completed = sum(1 for g in goals if g.status == GoalStatus.COMPLETED)
    rate = pct(completed, len(goals))

    cut = config.attrition_impact
    if rate >= cut.positive_goal_completion:
        impact = Impact.POSITIVE
    elif rate <= cut.negative_goal_completion:
        impact = Impact.NEGATIVE
    else:
        impact = Impact.NEUTRAL

    return RiskFactor(
        factor=GOAL_COMPLETION,
        weight=weight,
        value=clamp(100 - rate),
        impact=impact,
        description=f"{rate:.1f}% goal completion rate",
    )
