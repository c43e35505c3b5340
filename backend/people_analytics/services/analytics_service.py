"""
AnalyticsService: scope resolution and filtering in front of the analyzers.

Callers (an API layer, report jobs) hand in ids and filters; the service
fetches snapshots from the injected history provider, runs the pure engines
and applies the filters.  Explicitly requesting an employee or department
that does not exist raises ``EntityNotFoundError``; an empty scope otherwise
just produces empty results.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from people_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from people_analytics.exceptions import EntityNotFoundError
from people_analytics.models.records import AnalyticsScope
from people_analytics.models.results import (
    AttendanceAnomalyDetection,
    AttendanceAnomalyType,
    AttritionRiskScore,
    DashboardAnalytics,
    EmployeeAnalyticsSummary,
    LeaveAnomalyType,
    LeavePatternAnalysis,
    PerformanceInsight,
    Period,
    RiskLevel,
    Severity,
    TeamPerformanceInsight,
    Trend,
)
from people_analytics.services.attendance_engine import AttendanceAnomalyDetector
from people_analytics.services.attrition_engine import AttritionRiskScorer
from people_analytics.services.common import resolve_as_of
from people_analytics.services.dashboard_engine import DashboardAggregator
from people_analytics.services.history_provider import HistoryProvider
from people_analytics.services.leave_engine import LeavePatternAnalyzer
from people_analytics.services.perf_monitor import PerformanceTracker, timed_async
from people_analytics.services.performance_engine import PerformanceInsightAnalyzer

logger = logging.getLogger("people-analytics-service")


class AnalyticsService:
    def __init__(
        self,
        provider: HistoryProvider,
        config: Optional[AnalyticsConfig] = None,
        tracker: Optional[PerformanceTracker] = None,
    ) -> None:
        self.provider = provider
        self.config = config or DEFAULT_CONFIG
        self.attrition = AttritionRiskScorer(self.config)
        self.performance = PerformanceInsightAnalyzer(self.config)
        self.leave = LeavePatternAnalyzer(self.config)
        self.attendance = AttendanceAnomalyDetector(self.config)
        self.dashboard = DashboardAggregator(provider, self.config, tracker)

    async def _check_scope(
        self,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> None:
        if employee_id is not None and not await self.provider.employee_exists(employee_id):
            raise EntityNotFoundError("Employee", employee_id)
        if department_id is not None and await self.provider.get_department(department_id) is None:
            raise EntityNotFoundError("Department", department_id)

    async def _snapshots(
        self,
        department_id: Optional[str],
        employee_id: Optional[str],
        include_inactive: bool,
    ):
        await self._check_scope(department_id, employee_id)
        scope = AnalyticsScope(
            department_id=department_id,
            employee_id=employee_id,
            include_inactive=include_inactive,
        )
        return await self.provider.fetch_snapshots(scope)

    # -----------------------------------------------------------------------
    # Per-employee analyses
    # -----------------------------------------------------------------------

    @timed_async
    async def calculate_attrition_risk(
        self,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        risk_level: Optional[RiskLevel] = None,
        min_risk_score: Optional[float] = None,
        max_risk_score: Optional[float] = None,
        include_inactive: bool = False,
        as_of: Optional[datetime] = None,
    ) -> List[AttritionRiskScore]:
        snapshots = await self._snapshots(department_id, employee_id, include_inactive)
        return self.attrition.score_batch(
            snapshots,
            as_of,
            risk_level=risk_level,
            min_risk_score=min_risk_score,
            max_risk_score=max_risk_score,
        )

    @timed_async
    async def generate_performance_insights(
        self,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        trend: Optional[Trend] = None,
        min_rating: Optional[float] = None,
        max_rating: Optional[float] = None,
        include_inactive: bool = False,
        as_of: Optional[datetime] = None,
    ) -> List[PerformanceInsight]:
        snapshots = await self._snapshots(department_id, employee_id, include_inactive)
        return self.performance.analyze_batch(
            snapshots, as_of, trend=trend, min_rating=min_rating, max_rating=max_rating
        )

    @timed_async
    async def generate_team_performance_insights(
        self,
        department_id: Optional[str] = None,
        as_of: Optional[datetime] = None,
    ) -> List[TeamPerformanceInsight]:
        """Active employees only; departments without employees are skipped."""
        await self._check_scope(department_id=department_id)
        departments = await self.provider.list_departments(department_id)
        snapshots = await self.provider.fetch_snapshots(AnalyticsScope(department_id=department_id))
        return self.performance.analyze_teams(departments, snapshots, as_of)

    @timed_async
    async def analyze_leave_patterns(
        self,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        burnout_risk: Optional[RiskLevel] = None,
        leave_type: Optional[str] = None,
        anomaly_type: Optional[LeaveAnomalyType] = None,
        include_inactive: bool = False,
        as_of: Optional[datetime] = None,
    ) -> List[LeavePatternAnalysis]:
        snapshots = await self._snapshots(department_id, employee_id, include_inactive)
        return self.leave.analyze_batch(
            snapshots,
            as_of,
            burnout_risk=burnout_risk,
            leave_type=leave_type,
            anomaly_type=anomaly_type,
        )

    @timed_async
    async def detect_attendance_anomalies(
        self,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        anomaly_type: Optional[AttendanceAnomalyType] = None,
        severity: Optional[Severity] = None,
        min_score: Optional[float] = None,
        include_inactive: bool = False,
        as_of: Optional[datetime] = None,
    ) -> List[AttendanceAnomalyDetection]:
        snapshots = await self._snapshots(department_id, employee_id, include_inactive)
        return self.attendance.detect_batch(
            snapshots, as_of, anomaly_type=anomaly_type, severity=severity, min_score=min_score
        )

    # -----------------------------------------------------------------------
    # Composites
    # -----------------------------------------------------------------------

    async def generate_dashboard(
        self,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        period: Period | str = Period.MONTH,
        as_of: Optional[datetime] = None,
    ) -> DashboardAnalytics:
        await self._check_scope(department_id, employee_id)
        return await self.dashboard.generate(
            department_id=department_id,
            employee_id=employee_id,
            date_from=date_from,
            date_to=date_to,
            period=period,
            as_of=as_of,
        )

    @timed_async
    async def employee_summary(
        self,
        employee_id: str,
        as_of: Optional[datetime] = None,
    ) -> EmployeeAnalyticsSummary:
        """All four analyses for one employee, active or not."""
        as_of = resolve_as_of(as_of)
        snapshots = await self._snapshots(None, employee_id, include_inactive=True)
        if not snapshots:
            raise EntityNotFoundError("Employee", employee_id)
        snapshot = snapshots[0]

        degraded: List[str] = []

        def run(section: str, analysis: Callable):
            try:
                return analysis(snapshot, as_of)
            except Exception as exc:
                degraded.append(section)
                logger.warning(
                    f"Employee summary section '{section}' failed: {exc!r}",
                    extra={"section": section, "employee_id": employee_id},
                )
                return None

        return EmployeeAnalyticsSummary(
            employee_id=employee_id,
            attrition_risk=run("attrition_risk", self.attrition.score_employee),
            performance_insight=run("performance_insight", self.performance.analyze_employee),
            leave_pattern=run("leave_pattern", self.leave.analyze_employee),
            attendance_anomalies=run("attendance_anomalies", self.attendance.detect_employee),
            degraded_sections=degraded,
        )
