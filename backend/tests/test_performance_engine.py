"""
test_performance_engine.py — Unit tests for PerformanceInsightAnalyzer.

Tests cover:
  - Employee insight: trend, ratings, goal completion, strengths / gaps,
    recommendation templates, missing-review handling
  - analyze_batch filters
  - Team aggregation: averages, team trend, rankings, review counts
"""

import pytest

from factories import AS_OF, goals, review, snapshot
from people_analytics.models.records import DepartmentRecord
from people_analytics.models.results import Trend
from people_analytics.services.performance_engine import (
    ACHIEVEMENTS,
    DECLINING_RECOMMENDATIONS,
    HIGH_COMPLETION_RECOMMENDATIONS,
    HIGH_GOAL_COMPLETION,
    HIGH_RATING_RECOMMENDATIONS,
    HIGH_RATINGS,
    IMPROVING_RECOMMENDATIONS,
    LOW_GOAL_COMPLETION,
    LOW_RATING,
    NO_RECENT_REVIEWS,
    OVERDUE_REVIEW_RECOMMENDATION,
    UNSTARTED_GOALS,
    classify_trend,
)

ENGINEERING = DepartmentRecord(id="D-ENG", name="Engineering")
SALES = DepartmentRecord(id="D-SAL", name="Sales")


class TestClassifyTrend:

    @pytest.mark.parametrize("delta, trend", [
        (0.5, Trend.IMPROVING),
        (0.2, Trend.STABLE),
        (0.0, Trend.STABLE),
        (-0.2, Trend.STABLE),
        (-0.21, Trend.DECLINING),
    ])
    def test_cut_offs(self, delta, trend):
        assert classify_trend(delta, 0.2) == trend


class TestEmployeeInsight:

    def test_improving_high_performer(self, performance_analyzer):
        profile = snapshot(
            reviews=(review(4.0, 100), review(4.5, 10, achievements=["Shipped billing v2"])),
            goals=goals(completed=4, in_progress=1),
        )
        insight = performance_analyzer.analyze_employee(profile, AS_OF)
        assert insight.overall_trend == Trend.IMPROVING
        assert insight.current_rating == 4.5
        assert insight.previous_rating == 4.0
        assert insight.rating_change == pytest.approx(0.5)
        assert insight.goal_completion_rate == pytest.approx(80.0)
        assert insight.strengths == [HIGH_RATINGS, ACHIEVEMENTS, HIGH_GOAL_COMPLETION]
        assert insight.improvement_areas == []
        assert insight.recommendations == (
            list(IMPROVING_RECOMMENDATIONS)
            + list(HIGH_RATING_RECOMMENDATIONS)
            + list(HIGH_COMPLETION_RECOMMENDATIONS)
        )
        assert insight.last_review_date == profile.reviews[1].created_at

    def test_declining_low_performer(self, performance_analyzer):
        profile = snapshot(
            reviews=(review(2.5, 10), review(3.5, 100)),
            goals=goals(completed=1, in_progress=3),
        )
        insight = performance_analyzer.analyze_employee(profile, AS_OF)
        assert insight.overall_trend == Trend.DECLINING
        assert insight.rating_change == pytest.approx(-1.0)
        assert LOW_RATING in insight.improvement_areas
        assert LOW_GOAL_COMPLETION in insight.improvement_areas
        assert insight.recommendations[:3] == list(DECLINING_RECOMMENDATIONS)

    def test_single_review_is_stable(self, performance_analyzer):
        insight = performance_analyzer.analyze_employee(snapshot(reviews=(review(3.5, 10),)), AS_OF)
        assert insight.previous_rating == insight.current_rating == 3.5
        assert insight.overall_trend == Trend.STABLE

    def test_no_reviews(self, performance_analyzer):
        insight = performance_analyzer.analyze_employee(snapshot(), AS_OF)
        assert insight.current_rating == 0.0
        assert insight.overall_trend == Trend.STABLE
        assert insight.goal_completion_rate == 0.0
        assert NO_RECENT_REVIEWS in insight.improvement_areas
        assert insight.recommendations[-1] == OVERDUE_REVIEW_RECOMMENDATION
        assert insight.last_review_date == AS_OF

    def test_unstarted_goals_gap(self, performance_analyzer):
        profile = snapshot(reviews=(review(3.5, 10),), goals=goals(in_progress=1, not_started=3))
        insight = performance_analyzer.analyze_employee(profile, AS_OF)
        assert UNSTARTED_GOALS in insight.improvement_areas

    def test_future_reviews_are_ignored(self, performance_analyzer):
        profile = snapshot(reviews=(review(3.0, 10), review(5.0, -5)))
        assert performance_analyzer.analyze_employee(profile, AS_OF).current_rating == 3.0

    def test_only_five_most_recent_reviews_count(self, performance_analyzer):
        reviews = tuple(review(4.0, 10 * (i + 1)) for i in range(5)) + (review(1.0, 400),)
        assert len(performance_analyzer.recent_reviews(snapshot(reviews=reviews), AS_OF)) == 5

    def test_goals_outside_lookback_are_ignored(self, performance_analyzer):
        profile = snapshot(
            reviews=(review(3.5, 10),),
            goals=goals(completed=2, age_days=30) + goals(not_started=6, age_days=400),
        )
        assert performance_analyzer.analyze_employee(profile, AS_OF).goal_completion_rate == 100.0

    def test_idempotent(self, performance_analyzer):
        profile = snapshot(reviews=(review(2.5, 10), review(3.5, 100)), goals=goals(completed=1))
        first = performance_analyzer.analyze_employee(profile, AS_OF)
        assert first == performance_analyzer.analyze_employee(profile, AS_OF)


class TestAnalyzeBatch:

    @pytest.fixture
    def population(self):
        return [
            snapshot(employee_id="UP", reviews=(review(3.0, 100), review(4.5, 10))),
            snapshot(employee_id="DOWN", reviews=(review(4.0, 100), review(2.5, 10))),
            snapshot(employee_id="FLAT", reviews=(review(3.5, 10),)),
        ]

    def test_trend_filter(self, performance_analyzer, population):
        results = performance_analyzer.analyze_batch(population, AS_OF, trend=Trend.DECLINING)
        assert [r.employee_id for r in results] == ["DOWN"]

    def test_rating_range_filter(self, performance_analyzer, population):
        results = performance_analyzer.analyze_batch(population, AS_OF, min_rating=3.0, max_rating=4.0)
        assert [r.employee_id for r in results] == ["FLAT"]

    def test_input_order_preserved(self, performance_analyzer, population):
        assert [r.employee_id for r in performance_analyzer.analyze_batch(population, AS_OF)] == [
            "UP", "DOWN", "FLAT"
        ]


class TestTeamInsight:

    @pytest.fixture
    def team(self):
        """
        A: 4.5 ← 4.0 (+0.5); B: 2.0 ← 2.4 (−0.4); C and D never reviewed.
        Average of latest ratings 3.25; mean delta +0.05 → STABLE.
        """
        return [
            snapshot(employee_id="A", name="Aisha", reviews=(review(4.5, 10), review(4.0, 120)),
                     goals=goals(completed=2)),
            snapshot(employee_id="B", name="Bilal", reviews=(review(2.0, 12), review(2.4, 130)),
                     goals=goals(in_progress=2)),
            snapshot(employee_id="C", name="Carmen"),
            snapshot(employee_id="D", name="Dina"),
        ]

    def test_review_counts(self, performance_analyzer, team):
        insight = performance_analyzer.analyze_team(ENGINEERING, team, AS_OF)
        assert insight.total_employees == 4
        assert insight.reviews_completed == 2
        assert insight.pending_reviews == 2

    def test_unreviewed_employees_never_ranked(self, performance_analyzer, team):
        insight = performance_analyzer.analyze_team(ENGINEERING, team, AS_OF)
        ranked = {p.employee_id for p in insight.top_performers + insight.under_performers}
        assert ranked.isdisjoint({"C", "D"})

    def test_rankings(self, performance_analyzer, team):
        insight = performance_analyzer.analyze_team(ENGINEERING, team, AS_OF)
        assert [p.employee_id for p in insight.top_performers] == ["A", "B"]
        assert [p.employee_id for p in insight.under_performers] == ["B"]

    def test_averages_and_trend(self, performance_analyzer, team):
        insight = performance_analyzer.analyze_team(ENGINEERING, team, AS_OF)
        assert insight.average_rating == pytest.approx(3.25)
        assert insight.rating_trend == Trend.STABLE
        assert insight.goal_completion_rate == pytest.approx(50.0)
        assert (insight.department_id, insight.department_name) == ("D-ENG", "Engineering")

    def test_under_performers_lowest_first_and_capped(self, performance_analyzer):
        team = [snapshot(employee_id=f"U{i}", reviews=(review(rating, 10),))
                for i, rating in enumerate([2.4, 1.0, 2.0, 1.5])]
        insight = performance_analyzer.analyze_team(ENGINEERING, team, AS_OF)
        assert [p.current_rating for p in insight.under_performers] == [1.0, 1.5, 2.0]

    def test_empty_department(self, performance_analyzer):
        assert performance_analyzer.analyze_team(ENGINEERING, [], AS_OF) is None

    def test_analyze_teams_skips_empty_departments(self, performance_analyzer, team):
        insights = performance_analyzer.analyze_teams([ENGINEERING, SALES], team, AS_OF)
        assert [i.department_id for i in insights] == ["D-ENG"]
