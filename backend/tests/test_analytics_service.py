"""
test_analytics_service.py — Tests for AnalyticsService scope resolution,
filters, EntityNotFoundError and the per-employee summary.
"""

import asyncio

import pytest

from factories import AS_OF, critical_risk_employee, high_risk_employee, low_risk_employee
from people_analytics.exceptions import EntityNotFoundError
from people_analytics.models.results import (
    AttendanceAnomalyType,
    LeaveAnomalyType,
    RiskLevel,
    Trend,
)
from people_analytics.services.analytics_service import AnalyticsService
from people_analytics.services.history_provider import InMemoryHistoryProvider


@pytest.fixture
def service(sample_provider, tracker):
    return AnalyticsService(sample_provider, tracker=tracker)


@pytest.fixture
def risky_service(tracker):
    provider = InMemoryHistoryProvider([
        low_risk_employee("E-LOW"),
        high_risk_employee("E-HIGH"),
        critical_risk_employee("E-CRIT", department_id="D-OPS", department_name="Operations"),
    ])
    return AnalyticsService(provider, tracker=tracker)


class TestScopeErrors:

    def test_unknown_employee(self, service):
        with pytest.raises(EntityNotFoundError) as exc:
            asyncio.run(service.calculate_attrition_risk(employee_id="E404", as_of=AS_OF))
        assert exc.value.entity == "Employee"
        assert exc.value.entity_id == "E404"
        assert str(exc.value) == "Employee not found: E404"

    def test_unknown_department(self, service):
        with pytest.raises(EntityNotFoundError) as exc:
            asyncio.run(service.analyze_leave_patterns(department_id="D-XXX", as_of=AS_OF))
        assert exc.value.entity == "Department"

    def test_is_a_lookup_error(self, service):
        with pytest.raises(LookupError):
            asyncio.run(service.generate_dashboard(department_id="D-XXX", as_of=AS_OF))

    def test_inactive_employee_out_of_default_scope_is_empty(self, service):
        """E3 exists but is inactive: no error, just no results."""
        assert asyncio.run(service.calculate_attrition_risk(employee_id="E3", as_of=AS_OF)) == []

    def test_include_inactive(self, service):
        results = asyncio.run(
            service.calculate_attrition_risk(employee_id="E3", include_inactive=True, as_of=AS_OF)
        )
        assert [r.employee_id for r in results] == ["E3"]


class TestAnalyses:

    def test_attrition_filters(self, risky_service):
        results = asyncio.run(risky_service.calculate_attrition_risk(risk_level=RiskLevel.HIGH, as_of=AS_OF))
        assert [r.employee_id for r in results] == ["E-HIGH"]
        results = asyncio.run(risky_service.calculate_attrition_risk(min_risk_score=60, as_of=AS_OF))
        assert [r.employee_id for r in results] == ["E-CRIT", "E-HIGH"]

    def test_attrition_department_scope(self, risky_service):
        results = asyncio.run(risky_service.calculate_attrition_risk(department_id="D-OPS", as_of=AS_OF))
        assert [r.employee_id for r in results] == ["E-CRIT"]

    def test_performance_insights(self, service):
        results = asyncio.run(service.generate_performance_insights(trend=Trend.IMPROVING, as_of=AS_OF))
        assert [r.employee_id for r in results] == ["E4"]

    def test_team_performance_insights(self, service):
        insights = asyncio.run(service.generate_team_performance_insights(as_of=AS_OF))
        by_department = {i.department_id: i for i in insights}
        assert by_department["D-ENG"].total_employees == 2
        assert by_department["D-ENG"].pending_reviews == 1
        # E3 is inactive, so Sales holds only E4
        assert by_department["D-SAL"].total_employees == 1

    def test_leave_patterns(self, risky_service):
        results = asyncio.run(risky_service.analyze_leave_patterns(
            anomaly_type=LeaveAnomalyType.EXCESSIVE_FREQUENCY, as_of=AS_OF
        ))
        assert [r.employee_id for r in results] == ["E-CRIT"]

    def test_attendance_anomalies(self, service):
        results = asyncio.run(service.detect_attendance_anomalies(
            anomaly_type=AttendanceAnomalyType.FREQUENT_LATE, as_of=AS_OF
        ))
        assert [r.employee_id for r in results] == ["E2"]

    def test_dashboard_delegates(self, service):
        dashboard = asyncio.run(service.generate_dashboard(as_of=AS_OF))
        assert dashboard.overview.total_employees == 4
        assert dashboard.degraded_sections == []


class TestEmployeeSummary:

    def test_all_sections(self, service):
        summary = asyncio.run(service.employee_summary("E2", as_of=AS_OF))
        assert summary.employee_id == "E2"
        assert summary.attrition_risk.risk_level == RiskLevel.MEDIUM
        assert summary.performance_insight.current_rating == 0.0
        assert summary.leave_pattern.total_leave_days == 1.0
        assert summary.attendance_anomalies.risk_level == RiskLevel.HIGH
        assert summary.degraded_sections == []

    def test_inactive_employee_is_summarised(self, service):
        summary = asyncio.run(service.employee_summary("E3", as_of=AS_OF))
        assert summary.attrition_risk is not None

    def test_unknown_employee(self, service):
        with pytest.raises(EntityNotFoundError):
            asyncio.run(service.employee_summary("E404", as_of=AS_OF))

    def test_failing_section_degrades(self, service, monkeypatch, caplog):
        def broken(snapshot, as_of):
            raise ZeroDivisionError("bad leave data")

        monkeypatch.setattr(service.leave, "analyze_employee", broken)
        summary = asyncio.run(service.employee_summary("E1", as_of=AS_OF))
        assert summary.leave_pattern is None
        assert summary.degraded_sections == ["leave_pattern"]
        assert summary.attrition_risk is not None
        assert any("leave_pattern" in r.getMessage() for r in caplog.records)
