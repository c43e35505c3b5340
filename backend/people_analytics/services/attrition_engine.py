"""
attrition_engine.py — Attrition Risk Scorer

Combines six weighted risk factors (performance, attendance, leave frequency,
tenure, salary growth, goal completion) into one 0–100 composite score per
employee, classifies it into LOW / MEDIUM / HIGH / CRITICAL and attaches
rule-based retention recommendations.

Scoring is a pure function of an ``EmployeeHistorySnapshot``, the
``AnalyticsConfig`` and a reference instant ``as_of``.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from people_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from people_analytics.models.records import EmployeeHistorySnapshot
from people_analytics.models.results import AttritionRiskScore, Impact, RiskFactor, RiskLevel
from people_analytics.services import risk_factors
from people_analytics.services.common import (
    clamp,
    newest_first,
    resolve_as_of,
    to_date,
    window_start,
    within,
)
from people_analytics.services.perf_monitor import timed

logger = logging.getLogger("people-analytics-attrition")

# Risk level lower bounds (inclusive)
CRITICAL_THRESHOLD: float = 80.0
HIGH_THRESHOLD: float = 60.0
MEDIUM_THRESHOLD: float = 40.0

# Fixed recommendation templates per NEGATIVE factor
FACTOR_RECOMMENDATIONS: Dict[str, Tuple[str, ...]] = {
    risk_factors.PERFORMANCE_RATING: (
        "Schedule performance improvement plan and regular check-ins",
        "Provide additional training and development opportunities",
    ),
    risk_factors.ATTENDANCE_SCORE: (
        "Discuss attendance concerns and potential underlying issues",
        "Consider flexible work arrangements if appropriate",
    ),
    risk_factors.LEAVE_FREQUENCY: (
        "Investigate potential burnout or work-life balance issues",
        "Review workload and consider redistribution",
    ),
    risk_factors.SALARY_GROWTH: (
        "Review compensation package and market benchmarking",
        "Discuss promotion opportunities and career path",
    ),
    risk_factors.GOAL_COMPLETION: (
        "Review goal setting process and ensure realistic targets",
        "Provide additional support and resources for goal achievement",
    ),
}

NEW_HIRE_RECOMMENDATIONS: Tuple[str, ...] = (
    "Implement comprehensive onboarding and mentorship program",
    "Schedule regular check-ins during probation period",
)
LONG_TENURE_RECOMMENDATIONS: Tuple[str, ...] = (
    "Discuss career advancement opportunities",
    "Consider role rotation or new challenges",
)
RETENTION_RECOMMENDATIONS: Tuple[str, ...] = (
    "Schedule retention conversation with the employee's manager",
    "Consider retention bonus or special recognition",
    "Conduct stay interview to understand concerns",
)


def classify_risk_level(score: float) -> RiskLevel:
    """<40 LOW, <60 MEDIUM, <80 HIGH, otherwise CRITICAL."""
    if score >= CRITICAL_THRESHOLD:
        return RiskLevel.CRITICAL
    if score >= HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class AttritionRiskScorer:
    """Weighted multi-factor attrition risk scoring. Stateless apart from its config."""

    def __init__(self, config: Optional[AnalyticsConfig] = None) -> None:
        self.config = config or DEFAULT_CONFIG

    # -----------------------------------------------------------------------
    # Single employee
    # -----------------------------------------------------------------------

    def compute_factors(
        self, snapshot: EmployeeHistorySnapshot, as_of: datetime
    ) -> List[RiskFactor]:
        """The six factors in fixed order, computed over the lookback window."""
        cfg = self.config
        start = window_start(as_of, cfg.lookback_days)
        end = to_date(as_of)

        attendance = within(snapshot.attendance, lambda a: a.date, start, end)
        leaves = within(snapshot.leaves, lambda lv: lv.created_at, start, end)
        reviews = newest_first(
            within(snapshot.reviews, lambda r: r.created_at, start, end),
            key=lambda r: r.created_at,
        )
        goals = within(snapshot.goals, lambda g: g.created_at, start, end)
        payroll = newest_first(
            within(snapshot.payroll, lambda p: p.created_at, start, end),
            key=lambda p: p.created_at,
        )

        return [
            risk_factors.performance_factor(reviews, cfg),
            risk_factors.attendance_factor(attendance, cfg),
            risk_factors.leave_factor(leaves, cfg),
            risk_factors.tenure_factor(snapshot.join_date, as_of, cfg),
            risk_factors.salary_growth_factor(payroll, cfg),
            risk_factors.goal_completion_factor(goals, cfg),
        ]

    def score_employee(
        self,
        snapshot: EmployeeHistorySnapshot,
        as_of: Optional[datetime] = None,
    ) -> AttritionRiskScore:
        as_of = resolve_as_of(as_of)
        factors = self.compute_factors(snapshot, as_of)

        score = clamp(sum(f.value * f.weight for f in factors))
        level = classify_risk_level(score)

        return AttritionRiskScore(
            employee_id=snapshot.employee_id,
            employee_name=snapshot.name,
            department=snapshot.department_name,
            risk_score=score,
            risk_level=level,
            factors=factors,
            recommendations=self._recommendations(factors, level, snapshot, as_of),
            last_updated=as_of,
        )

    # -----------------------------------------------------------------------
    # Batch
    # -----------------------------------------------------------------------

    @timed
    def score_batch(
        self,
        snapshots: Iterable[EmployeeHistorySnapshot],
        as_of: Optional[datetime] = None,
        risk_level: Optional[RiskLevel] = None,
        min_risk_score: Optional[float] = None,
        max_risk_score: Optional[float] = None,
    ) -> List[AttritionRiskScore]:
        """
        Score every snapshot, apply the optional filters and sort by
        descending risk score.

        Filters compose: a score must match ``risk_level`` (when given) AND lie
        within ``[min_risk_score, max_risk_score]`` (each bound optional,
        inclusive).  The sort is stable, so equal scores keep input order.
        """
        as_of = resolve_as_of(as_of)
        scores = [self.score_employee(s, as_of) for s in snapshots]

        selected = [
            s for s in scores
            if (risk_level is None or s.risk_level == RiskLevel(risk_level))
            and (min_risk_score is None or s.risk_score >= min_risk_score)
            and (max_risk_score is None or s.risk_score <= max_risk_score)
        ]
        selected.sort(key=lambda s: s.risk_score, reverse=True)

        logger.info(
            f"Attrition scoring: {len(scores)} employees scored, {len(selected)} selected"
        )
        return selected

    # -----------------------------------------------------------------------
    # Recommendations
    # -----------------------------------------------------------------------

    def _recommendations(
        self,
        factors: List[RiskFactor],
        level: RiskLevel,
        snapshot: EmployeeHistorySnapshot,
        as_of: datetime,
    ) -> List[str]:
        recommendations: List[str] = []

        for factor in factors:
            if factor.impact != Impact.NEGATIVE:
                continue
            if factor.factor == risk_factors.TENURE:
                months = risk_factors.tenure_months(snapshot.join_date, as_of)
                if months < self.config.attrition_impact.settled_tenure_months:
                    recommendations.extend(NEW_HIRE_RECOMMENDATIONS)
                else:
                    recommendations.extend(LONG_TENURE_RECOMMENDATIONS)
            else:
                recommendations.extend(FACTOR_RECOMMENDATIONS.get(factor.factor, ()))

        if level in (RiskLevel.HIGH, RiskLevel.CRITICAL):
            recommendations.extend(RETENTION_RECOMMENDATIONS)

        return recommendations
