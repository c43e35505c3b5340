"""
test_leave_engine.py — Unit tests for LeavePatternAnalyzer.

Tests cover:
  - Usage statistics and per-type breakdown
  - 12-bucket seasonal histogram
  - Burnout classification (including the 18-day MEDIUM case)
  - EXCESSIVE_FREQUENCY, LONG_DURATION and MONDAY_FRIDAY_PATTERN anomalies
  - Recommendation ordering and analyze_batch filters

AS_OF is Tuesday 2026-06-30; 2026-06-24 and 2026-06-10 are Wednesdays,
2026-06-15 and 2026-06-01 are Mondays.
"""

from datetime import date, datetime, timezone

import pytest

from factories import AS_OF, leave, snapshot, weekly_leaves
from people_analytics.models.results import LeaveAnomalyType, RiskLevel, Severity
from people_analytics.services.leave_engine import (
    ANOMALY_RECOMMENDATIONS,
    BURNOUT_RECOMMENDATIONS,
    FREQUENCY_RECOMMENDATIONS,
)


def three_long_leaves():
    """Three 6-day Wednesday-to-Wednesday leaves: 18 days in total."""
    return (
        leave(date(2026, 2, 4), 6, end_date=date(2026, 2, 11)),
        leave(date(2026, 3, 4), 6, end_date=date(2026, 3, 11)),
        leave(date(2026, 4, 1), 6, end_date=date(2026, 4, 8)),
    )


class TestUsageStatistics:

    def test_totals(self, leave_analyzer):
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=three_long_leaves()), AS_OF)
        assert analysis.total_leave_days == 18.0
        assert analysis.leave_frequency == pytest.approx(0.25)
        assert analysis.average_leave_duration == pytest.approx(6.0)

    def test_type_usage_in_first_seen_order(self, leave_analyzer):
        leaves = (
            leave(date(2026, 5, 6), 2, leave_type="Annual"),
            leave(date(2026, 5, 13), 1, leave_type="Sick"),
            leave(date(2026, 5, 20), 2, leave_type="Annual"),
        )
        usage = leave_analyzer.analyze_employee(snapshot(leaves=leaves), AS_OF).leave_types
        assert [u.leave_type for u in usage] == ["Annual", "Sick"]
        assert (usage[0].days_used, usage[0].frequency) == (4.0, 2)
        assert usage[0].percentage == pytest.approx(80.0)
        assert usage[1].percentage == pytest.approx(20.0)

    def test_leaves_outside_lookback_are_ignored(self, leave_analyzer):
        old = leave(
            date(2025, 3, 5), 10,
            created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
        )
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=(old,)), AS_OF)
        assert analysis.total_leave_days == 0.0

    def test_no_leaves(self, leave_analyzer):
        analysis = leave_analyzer.analyze_employee(snapshot(), AS_OF)
        assert analysis.total_leave_days == 0.0
        assert analysis.leave_frequency == 0.0
        assert analysis.average_leave_duration == 0.0
        assert analysis.leave_types == []
        assert analysis.anomalies == []
        assert analysis.burnout_risk == RiskLevel.LOW
        assert analysis.recommendations == []


class TestSeasonalPatterns:

    def test_twelve_buckets_by_start_month(self, leave_analyzer):
        patterns = leave_analyzer.analyze_employee(snapshot(leaves=three_long_leaves()), AS_OF).seasonal_patterns
        assert len(patterns) == 12
        assert [p.month for p in patterns] == list(range(1, 13))
        assert patterns[0].month_name == "January"
        march = patterns[2]
        assert (march.month_name, march.days, march.frequency, march.average_days) == ("March", 6.0, 1, 6.0)
        assert patterns[6].frequency == 0
        assert patterns[6].average_days == 0.0


class TestBurnout:

    def test_eighteen_days_is_medium(self, leave_analyzer):
        """18 ≥ 0.7 × 25 = 17.5 and < 25."""
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=three_long_leaves()), AS_OF)
        assert analysis.burnout_risk == RiskLevel.MEDIUM

    @pytest.mark.parametrize("days, level", [
        (17.4, RiskLevel.LOW),
        (17.5, RiskLevel.MEDIUM),
        (24.9, RiskLevel.MEDIUM),
        (25.0, RiskLevel.HIGH),
    ])
    def test_thresholds(self, leave_analyzer, days, level):
        assert leave_analyzer.classify_burnout(days) == level


class TestAnomalies:

    def test_long_duration_high_with_three_long_leaves(self, leave_analyzer):
        anomalies = leave_analyzer.analyze_employee(snapshot(leaves=three_long_leaves()), AS_OF).anomalies
        assert [a.type for a in anomalies] == [LeaveAnomalyType.LONG_DURATION]
        long_duration = anomalies[0]
        assert long_duration.severity == Severity.HIGH
        assert long_duration.date_range.start == date(2026, 2, 4)
        assert long_duration.date_range.end == date(2026, 4, 8)

    def test_long_duration_medium_with_two_long_leaves(self, leave_analyzer):
        anomalies = leave_analyzer.analyze_employee(
            snapshot(leaves=three_long_leaves()[:2]), AS_OF
        ).anomalies
        assert anomalies[0].severity == Severity.MEDIUM

    def test_excessive_frequency(self, leave_analyzer):
        """30 leaves a year = 2.5 / month: above 2, not above 3."""
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=weekly_leaves(30)), AS_OF)
        excessive = [a for a in analysis.anomalies if a.type == LeaveAnomalyType.EXCESSIVE_FREQUENCY]
        assert len(excessive) == 1
        assert excessive[0].severity == Severity.MEDIUM
        assert excessive[0].date_range.end == AS_OF.date()

    def test_excessive_frequency_high(self, leave_analyzer):
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=weekly_leaves(40)), AS_OF)
        excessive = [a for a in analysis.anomalies if a.type == LeaveAnomalyType.EXCESSIVE_FREQUENCY]
        assert excessive[0].severity == Severity.HIGH

    def test_monday_friday_pattern(self, leave_analyzer):
        leaves = (
            leave(date(2026, 6, 15), 1),                            # Monday
            leave(date(2026, 6, 1), 1),                             # Monday
            leave(date(2026, 6, 10), 3, end_date=date(2026, 6, 12)),  # Wed → Fri
        )
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=leaves), AS_OF)
        assert [a.type for a in analysis.anomalies] == [LeaveAnomalyType.MONDAY_FRIDAY_PATTERN]
        assert analysis.anomalies[0].severity == Severity.MEDIUM

    def test_midweek_leaves_do_not_trigger_pattern(self, leave_analyzer):
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=weekly_leaves(3)), AS_OF)
        assert analysis.anomalies == []


class TestRecommendations:

    def test_ordering_and_duplicates(self, leave_analyzer):
        """HIGH burnout templates, then frequency templates, then one per anomaly."""
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=weekly_leaves(30)), AS_OF)
        assert analysis.burnout_risk == RiskLevel.HIGH
        assert analysis.recommendations == (
            list(BURNOUT_RECOMMENDATIONS[RiskLevel.HIGH])
            + list(FREQUENCY_RECOMMENDATIONS)
            + [ANOMALY_RECOMMENDATIONS[LeaveAnomalyType.EXCESSIVE_FREQUENCY]]
        )

    def test_medium_burnout_and_long_duration(self, leave_analyzer):
        analysis = leave_analyzer.analyze_employee(snapshot(leaves=three_long_leaves()), AS_OF)
        assert analysis.recommendations == [
            BURNOUT_RECOMMENDATIONS[RiskLevel.MEDIUM][0],
            ANOMALY_RECOMMENDATIONS[LeaveAnomalyType.LONG_DURATION],
        ]

    def test_idempotent(self, leave_analyzer):
        profile = snapshot(leaves=three_long_leaves())
        assert leave_analyzer.analyze_employee(profile, AS_OF) == leave_analyzer.analyze_employee(profile, AS_OF)


class TestAnalyzeBatch:

    @pytest.fixture
    def population(self):
        return [
            snapshot(employee_id="LONG", leaves=three_long_leaves()),
            snapshot(employee_id="FREQ", leaves=weekly_leaves(30)),
            snapshot(employee_id="SICK", leaves=(leave(date(2026, 5, 6), 1, leave_type="Sick"),)),
        ]

    def test_burnout_filter(self, leave_analyzer, population):
        results = leave_analyzer.analyze_batch(population, AS_OF, burnout_risk=RiskLevel.HIGH)
        assert [r.employee_id for r in results] == ["FREQ"]

    def test_leave_type_filter(self, leave_analyzer, population):
        results = leave_analyzer.analyze_batch(population, AS_OF, leave_type="Sick")
        assert [r.employee_id for r in results] == ["SICK"]

    def test_anomaly_type_filter(self, leave_analyzer, population):
        results = leave_analyzer.analyze_batch(
            population, AS_OF, anomaly_type=LeaveAnomalyType.LONG_DURATION
        )
        assert [r.employee_id for r in results] == ["LONG"]
