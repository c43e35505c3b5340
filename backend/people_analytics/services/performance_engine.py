"""
performance_engine.py — Performance Insight Analyzer

Employee level: rating trend from the most recent reviews, goal completion
over the lookback window, rule-based strengths / improvement areas and
additive recommendation templates.

Team level: per-department average rating, mean rating delta, goal
completion, top / under performer rankings and review completion counts.
Employees without any review never enter a ranking and count as pending.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from people_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from people_analytics.models.records import (
    DepartmentRecord,
    EmployeeHistorySnapshot,
    Goal,
    GoalStatus,
    PerformanceReview,
)
from people_analytics.models.results import (
    EmployeePerformanceSummary,
    PerformanceInsight,
    TeamPerformanceInsight,
    Trend,
)
from people_analytics.services.common import (
    newest_first,
    pct,
    resolve_as_of,
    safe_div,
    to_date,
    window_start,
    within,
)
from people_analytics.services.perf_monitor import timed

logger = logging.getLogger("people-analytics-performance")

# Strength / improvement-area labels
HIGH_RATINGS = "Consistently high performance ratings"
LOW_RATING = "Performance rating below expectations"
ACHIEVEMENTS = "Strong track record of achievements"
HIGH_GOAL_COMPLETION = "Excellent goal completion rate"
LOW_GOAL_COMPLETION = "Low goal completion rate"
UNSTARTED_GOALS = "Many goals remain unstarted"
NO_RECENT_REVIEWS = "No recent performance reviews available"

DECLINING_RECOMMENDATIONS = (
    "Schedule immediate performance discussion",
    "Identify root causes of performance decline",
    "Develop performance improvement plan",
)
IMPROVING_RECOMMENDATIONS = (
    "Recognize and celebrate performance improvements",
    "Consider for stretch assignments or promotions",
)
LOW_RATING_RECOMMENDATIONS = (
    "Implement intensive coaching and support",
    "Set clear, achievable short-term goals",
)
HIGH_RATING_RECOMMENDATIONS = (
    "Consider for leadership development programs",
    "Explore mentoring opportunities for others",
)
LOW_COMPLETION_RECOMMENDATIONS = (
    "Review goal setting process and realistic targets",
    "Provide additional resources and support",
)
HIGH_COMPLETION_RECOMMENDATIONS = (
    "Set more challenging goals to drive growth",
)
OVERDUE_REVIEW_RECOMMENDATION = "Schedule overdue performance review"


def classify_trend(delta: float, cut_off: float) -> Trend:
    if delta > cut_off:
        return Trend.IMPROVING
    if delta < -cut_off:
        return Trend.DECLINING
    return Trend.STABLE


def goal_completion_rate(goals: Sequence[Goal]) -> float:
    completed = sum(1 for g in goals if g.status == GoalStatus.COMPLETED)
    return pct(completed, len(goals))


class PerformanceInsightAnalyzer:
    """Rating trends, strengths and gaps for employees and departments."""

    def __init__(self, config: Optional[AnalyticsConfig] = None) -> None:
        self.config = config or DEFAULT_CONFIG

    # -----------------------------------------------------------------------
    # History slicing
    # -----------------------------------------------------------------------

    def recent_reviews(
        self, snapshot: EmployeeHistorySnapshot, as_of: datetime
    ) -> List[PerformanceReview]:
        """Up to ``review_history`` reviews created on or before ``as_of``, newest first."""
        today = to_date(as_of)
        reviews = [r for r in snapshot.reviews if to_date(r.created_at) <= today]
        ordered = newest_first(reviews, key=lambda r: r.created_at)
        return ordered[: self.config.performance.review_history]

    def recent_goals(self, snapshot: EmployeeHistorySnapshot, as_of: datetime) -> List[Goal]:
        start = window_start(as_of, self.config.lookback_days)
        return within(snapshot.goals, lambda g: g.created_at, start, to_date(as_of))

    # -----------------------------------------------------------------------
    # Single employee
    # -----------------------------------------------------------------------

    def analyze_employee(
        self,
        snapshot: EmployeeHistorySnapshot,
        as_of: Optional[datetime] = None,
    ) -> PerformanceInsight:
        as_of = resolve_as_of(as_of)
        reviews = self.recent_reviews(snapshot, as_of)
        goals = self.recent_goals(snapshot, as_of)

        current = float(reviews[0].overall_rating) if reviews else 0.0
        previous = float(reviews[1].overall_rating) if len(reviews) > 1 else current
        change = current - previous
        trend = classify_trend(change, self.config.performance.trend_delta)
        completion = goal_completion_rate(goals)

        strengths, improvement_areas = self._performance_areas(reviews, goals)

        return PerformanceInsight(
            employee_id=snapshot.employee_id,
            employee_name=snapshot.name,
            department=snapshot.department_name,
            overall_trend=trend,
            current_rating=current,
            previous_rating=previous,
            rating_change=change,
            goal_completion_rate=completion,
            strengths=strengths,
            improvement_areas=improvement_areas,
            recommendations=self._recommendations(trend, current, completion, improvement_areas),
            last_review_date=reviews[0].created_at if reviews else as_of,
        )

    @timed
    def analyze_batch(
        self,
        snapshots: Iterable[EmployeeHistorySnapshot],
        as_of: Optional[datetime] = None,
        trend: Optional[Trend] = None,
        min_rating: Optional[float] = None,
        max_rating: Optional[float] = None,
    ) -> List[PerformanceInsight]:
        """Insights in input order; the optional filters compose with AND."""
        as_of = resolve_as_of(as_of)
        insights = [self.analyze_employee(s, as_of) for s in snapshots]
        selected = [
            i for i in insights
            if (trend is None or i.overall_trend == Trend(trend))
            and (min_rating is None or i.current_rating >= min_rating)
            and (max_rating is None or i.current_rating <= max_rating)
        ]
        logger.info(
            f"Performance insights: {len(insights)} employees analysed, {len(selected)} selected"
        )
        return selected

    def summarize(
        self, snapshot: EmployeeHistorySnapshot, as_of: datetime
    ) -> Optional[EmployeePerformanceSummary]:
        """Ranking entry for an employee; ``None`` when there is no review to rank on."""
        reviews = self.recent_reviews(snapshot, as_of)
        if not reviews:
            return None
        return EmployeePerformanceSummary(
            employee_id=snapshot.employee_id,
            employee_name=snapshot.name,
            current_rating=float(reviews[0].overall_rating),
            goal_completion_rate=goal_completion_rate(self.recent_goals(snapshot, as_of)),
            last_review_date=reviews[0].created_at,
        )

    # -----------------------------------------------------------------------
    # Team level
    # -----------------------------------------------------------------------

    def analyze_team(
        self,
        department: DepartmentRecord,
        snapshots: Sequence[EmployeeHistorySnapshot],
        as_of: Optional[datetime] = None,
    ) -> Optional[TeamPerformanceInsight]:
        """Department rollup over ``snapshots``; ``None`` for an empty department."""
        if not snapshots:
            return None
        as_of = resolve_as_of(as_of)
        cfg = self.config.performance

        reviewed: List[List[PerformanceReview]] = []
        deltas: List[float] = []
        all_goals: List[Goal] = []
        for snapshot in snapshots:
            reviews = self.recent_reviews(snapshot, as_of)
            all_goals.extend(self.recent_goals(snapshot, as_of))
            if reviews:
                reviewed.append(reviews)
            if len(reviews) >= 2:
                deltas.append(float(reviews[0].overall_rating) - float(reviews[1].overall_rating))

        average_rating = safe_div(sum(float(r[0].overall_rating) for r in reviewed), len(reviewed))
        rating_trend = (
            classify_trend(sum(deltas) / len(deltas), cfg.team_trend_delta)
            if deltas else Trend.STABLE
        )

        summaries = [s for s in (self.summarize(e, as_of) for e in snapshots) if s is not None]
        ranked = sorted(summaries, key=lambda s: s.current_rating, reverse=True)
        under = sorted(
            (s for s in summaries if s.current_rating < cfg.low_performance_rating),
            key=lambda s: s.current_rating,
        )

        return TeamPerformanceInsight(
            department_id=department.id,
            department_name=department.name,
            average_rating=average_rating,
            rating_trend=rating_trend,
            top_performers=ranked[: cfg.ranking_size],
            under_performers=under[: cfg.ranking_size],
            goal_completion_rate=goal_completion_rate(all_goals),
            total_employees=len(snapshots),
            reviews_completed=len(reviewed),
            pending_reviews=len(snapshots) - len(reviewed),
        )

    def analyze_teams(
        self,
        departments: Iterable[DepartmentRecord],
        snapshots: Iterable[EmployeeHistorySnapshot],
        as_of: Optional[datetime] = None,
    ) -> List[TeamPerformanceInsight]:
        """One insight per department that has at least one employee, in department order."""
        as_of = resolve_as_of(as_of)
        by_department: Dict[str, List[EmployeeHistorySnapshot]] = defaultdict(list)
        for snapshot in snapshots:
            by_department[snapshot.department_id].append(snapshot)

        insights = []
        for department in departments:
            insight = self.analyze_team(department, by_department.get(department.id, []), as_of)
            if insight is not None:
                insights.append(insight)

        logger.info(f"Team performance: {len(insights)} departments analysed")
        return insights

    # -----------------------------------------------------------------------
    # Rules
    # -----------------------------------------------------------------------

    def _performance_areas(
        self, reviews: Sequence[PerformanceReview], goals: Sequence[Goal]
    ):
        cfg = self.config.performance
        strengths: List[str] = []
        improvement_areas: List[str] = []

        if reviews:
            latest = reviews[0]
            rating = float(latest.overall_rating)
            if rating >= cfg.high_performance_rating:
                strengths.append(HIGH_RATINGS)
            if rating < cfg.below_expectation_rating:
                improvement_areas.append(LOW_RATING)
            if latest.achievements:
                strengths.append(ACHIEVEMENTS)

        if goals:
            rate = goal_completion_rate(goals)
            if rate >= cfg.goal_completion_threshold:
                strengths.append(HIGH_GOAL_COMPLETION)
            elif rate < cfg.low_goal_completion:
                improvement_areas.append(LOW_GOAL_COMPLETION)

        not_started = sum(1 for g in goals if g.status == GoalStatus.NOT_STARTED)
        if not_started > len(goals) - not_started:
            improvement_areas.append(UNSTARTED_GOALS)

        if not strengths and not reviews:
            improvement_areas.append(NO_RECENT_REVIEWS)

        return strengths, improvement_areas

    def _recommendations(
        self,
        trend: Trend,
        rating: float,
        completion: float,
        improvement_areas: Sequence[str],
    ) -> List[str]:
        cfg = self.config.performance
        recommendations: List[str] = []

        if trend == Trend.DECLINING:
            recommendations.extend(DECLINING_RECOMMENDATIONS)
        elif trend == Trend.IMPROVING:
            recommendations.extend(IMPROVING_RECOMMENDATIONS)

        if rating < cfg.below_expectation_rating:
            recommendations.extend(LOW_RATING_RECOMMENDATIONS)
        elif rating >= cfg.high_performance_rating:
            recommendations.extend(HIGH_RATING_RECOMMENDATIONS)

        if completion < cfg.low_goal_completion:
            recommendations.extend(LOW_COMPLETION_RECOMMENDATIONS)
        elif completion >= cfg.goal_completion_threshold:
            recommendations.extend(HIGH_COMPLETION_RECOMMENDATIONS)

        if NO_RECENT_REVIEWS in improvement_areas:
            recommendations.append(OVERDUE_REVIEW_RECOMMENDATION)

        return recommendations
