"""
dashboard_engine.py — Dashboard Aggregator

Fans out eight independent sections concurrently for one scope and window:

  overview      headcount, hires, departures, growth, tenure, department split
  attendance    rates, hours, per-department rollup, anomaly risk distribution
  leave         totals, utilisation, per-type / per-department usage, burnout split
  performance   approved-review rollup, rankings, trend distribution
  recruitment   candidate funnel from the recruitment collaborator
  attrition     departures, risk rollup, per-department attrition
  trends        period-over-period series ending at the window end
  alerts        one ATTRITION_RISK alert when anyone scores HIGH or CRITICAL

Each section fetches its own slice from the history provider and runs as its
own asyncio task under ``dashboard.section_timeout_seconds``; the fan-out as a
whole is bounded by ``dashboard.overall_timeout_seconds``.  A section that
raises, times out or is still running at the deadline is cancelled, logged,
counted in the performance tracker and returned as ``None`` with its name in
``DashboardAnalytics.degraded_sections``.  Results are recombined by position.
"""
from __future__ import annotations

import asyncio
import logging
import math
import time as _time
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from people_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from people_analytics.models.records import (
    PRESENT_STATUSES,
    AnalyticsScope,
    AttendanceRecord,
    AttendanceStatus,
    CandidateStatus,
    DepartmentRecord,
    EmployeeHistorySnapshot,
    InterviewStatus,
    LeaveRecord,
    LeaveStatus,
    PerformanceReview,
    ReviewStatus,
)
from people_analytics.models.results import (
    AlertType,
    AttendanceMetrics,
    AttritionMetrics,
    DashboardAnalytics,
    DepartmentAttendanceMetric,
    DepartmentAttritionMetric,
    DepartmentLeaveMetric,
    DepartmentMetric,
    EmployeePerformanceSummary,
    LeaveMetrics,
    LeaveTypeMetric,
    OverviewMetrics,
    PerformanceMetrics,
    Period,
    RatingDistribution,
    RecruitmentMetrics,
    RiskLevel,
    Severity,
    SourceMetric,
    SystemAlert,
    Trend,
    TrendAnalysis,
    TrendPoint,
)
from people_analytics.services.attendance_engine import AttendanceAnomalyDetector
from people_analytics.services.attrition_engine import AttritionRiskScorer
from people_analytics.services.common import clamp, pct, resolve_as_of, safe_div, to_date
from people_analytics.services.history_provider import HistoryProvider
from people_analytics.services.leave_engine import LeavePatternAnalyzer
from people_analytics.services.perf_monitor import PerformanceTracker, tracker as default_tracker
from people_analytics.services.performance_engine import (
    PerformanceInsightAnalyzer,
    goal_completion_rate,
)

logger = logging.getLogger("people-analytics-dashboard")

PERIOD_DAYS: Dict[Period, int] = {
    Period.WEEK: 7,
    Period.MONTH: 30,
    Period.QUARTER: 90,
    Period.YEAR: 365,
}

SECTIONS = (
    "overview",
    "attendance",
    "leave",
    "performance",
    "recruitment",
    "attrition",
    "trends",
    "alerts",
)

DAYS_PER_YEAR = 365
UNKNOWN_SOURCE = "Unknown"

ALERT_TITLE = "High Attrition Risk Detected"
ALERT_RECOMMENDATIONS = ("Schedule retention meetings", "Review compensation packages")
HIGH_RISK_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)


@dataclass(frozen=True)
class ReportWindow:
    """Resolved dashboard request: scope, inclusive date window and reference instant."""
    department_id: Optional[str]
    employee_id: Optional[str]
    period: Period
    start: date
    end: date
    reference: datetime

    def scope(self, include_inactive: bool = False) -> AnalyticsScope:
        return AnalyticsScope(
            department_id=self.department_id,
            employee_id=self.employee_id,
            include_inactive=include_inactive,
        )

    def contains(self, day: Optional[date]) -> bool:
        return day is not None and self.start <= day <= self.end


def resolve_window(
    period: Period | str = Period.MONTH,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    as_of: Optional[datetime] = None,
    department_id: Optional[str] = None,
    employee_id: Optional[str] = None,
) -> ReportWindow:
    """
    ``date_to`` defaults to the ``as_of`` date; ``date_from`` defaults to
    ``date_to`` minus the period length.  Raises ``ValueError`` for an unknown
    period or an inverted window.
    """
    as_of = resolve_as_of(as_of)
    period = Period(period)
    end = date_to or to_date(as_of)
    start = date_from or end - timedelta(days=PERIOD_DAYS[period])
    if start > end:
        raise ValueError(f"date_from {start} is after date_to {end}")

    if end == to_date(as_of):
        reference = as_of
    else:
        reference = datetime.combine(end, time(23, 59, 59), tzinfo=as_of.tzinfo or timezone.utc)

    return ReportWindow(department_id, employee_id, period, start, end, reference)


def _attendance_in(snapshots: Sequence[EmployeeHistorySnapshot], window: ReportWindow) -> List[AttendanceRecord]:
    return [a for s in snapshots for a in s.attendance if window.start <= a.date <= window.end]


def _attendance_rates(records: Sequence[AttendanceRecord]):
    """(attendance rate, on-time rate, average hours); no records means 100 / 100 / 0."""
    total = len(records)
    present = sum(1 for a in records if a.status in PRESENT_STATUSES)
    on_time = sum(1 for a in records if a.status == AttendanceStatus.PRESENT)
    hours = [float(a.total_hours) for a in records if a.total_hours]
    return (
        pct(present, total, default=100.0),
        pct(on_time, total, default=100.0),
        safe_div(sum(hours), len(hours)),
    )


def _leaves_starting_in(snapshot: EmployeeHistorySnapshot, start: date, end: date) -> List[LeaveRecord]:
    return [lv for lv in snapshot.leaves if start <= lv.start_date <= end]


def _approved_reviews_in(
    snapshots: Sequence[EmployeeHistorySnapshot], start: date, end: date
) -> List[PerformanceReview]:
    return [
        r for s in snapshots for r in s.reviews
        if r.status == ReviewStatus.APPROVED and start <= to_date(r.created_at) <= end
    ]


def _level_counts(counter: Counter) -> Dict[str, int]:
    """LOW / MEDIUM / HIGH counts, zero-filled."""
    return {level.value: counter.get(level, 0) for level in (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH)}


def _employed_on(snapshot: EmployeeHistorySnapshot, day: date) -> bool:
    if snapshot.join_date is not None and snapshot.join_date > day:
        return False
    return snapshot.termination_date is None or snapshot.termination_date > day


class DashboardAggregator:
    def __init__(
        self,
        provider: HistoryProvider,
        config: Optional[AnalyticsConfig] = None,
        tracker: Optional[PerformanceTracker] = None,
    ) -> None:
        self.provider = provider
        self.config = config or DEFAULT_CONFIG
        self.tracker = tracker or default_tracker
        self.attrition = AttritionRiskScorer(self.config)
        self.performance = PerformanceInsightAnalyzer(self.config)
        self.leave = LeavePatternAnalyzer(self.config)
        self.attendance = AttendanceAnomalyDetector(self.config)

    # -----------------------------------------------------------------------
    # Fan-out
    # -----------------------------------------------------------------------

    async def generate(
        self,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        period: Period | str = Period.MONTH,
        as_of: Optional[datetime] = None,
    ) -> DashboardAnalytics:
        window = resolve_window(period, date_from, date_to, as_of, department_id, employee_id)
        started = _time.perf_counter()

        builders: Dict[str, Callable[[ReportWindow], Awaitable[object]]] = {
            "overview": self.overview,
            "attendance": self.attendance_metrics,
            "leave": self.leave_metrics,
            "performance": self.performance_metrics,
            "recruitment": self.recruitment_metrics,
            "attrition": self.attrition_metrics,
            "trends": self.trends,
            "alerts": self.alerts,
        }
        tasks = [
            asyncio.create_task(self._run_section(name, builders[name], window), name=f"dashboard-{name}")
            for name in SECTIONS
        ]

        _, pending = await asyncio.wait(tasks, timeout=self.config.dashboard.overall_timeout_seconds)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results: Dict[str, object] = {}
        degraded: List[str] = []
        for name, task in zip(SECTIONS, tasks):
            if task.cancelled():
                reason = "cancelled at the overall deadline"
            elif task.exception() is not None:
                exc = task.exception()
                reason = "timed out" if isinstance(exc, asyncio.TimeoutError) else f"failed: {exc!r}"
            else:
                results[name] = task.result()
                continue
            results[name] = None
            degraded.append(name)
            self.tracker.record_section_error(name)
            logger.warning(f"Dashboard section '{name}' {reason}", extra={"section": name})

        duration_ms = round((_time.perf_counter() - started) * 1000, 2)
        self.tracker.record_dashboard_complete(duration_ms)
        logger.info(
            f"Dashboard generated in {duration_ms} ms ({len(degraded)} degraded sections)",
            extra={"duration_ms": duration_ms},
        )

        return DashboardAnalytics(
            period=window.period,
            date_from=window.start,
            date_to=window.end,
            overview=results["overview"],
            attendance=results["attendance"],
            leave=results["leave"],
            performance=results["performance"],
            recruitment=results["recruitment"],
            attrition=results["attrition"],
            trends=results["trends"],
            alerts=results["alerts"],
            degraded_sections=degraded,
        )

    async def _run_section(self, name: str, builder, window: ReportWindow):
        started = _time.perf_counter()
        result = await asyncio.wait_for(builder(window), timeout=self.config.dashboard.section_timeout_seconds)
        duration_ms = round((_time.perf_counter() - started) * 1000, 2)
        self.tracker.record_section_duration(name, duration_ms)
        logger.debug(
            f"Dashboard section '{name}' done in {duration_ms} ms",
            extra={"section": name, "duration_ms": duration_ms},
        )
        return result

    async def _departments(self, window: ReportWindow) -> List[DepartmentRecord]:
        return list(await self.provider.list_departments(window.department_id))

    # -----------------------------------------------------------------------
    # Sections
    # -----------------------------------------------------------------------

    async def overview(self, window: ReportWindow) -> OverviewMetrics:
        everyone = await self.provider.fetch_snapshots(window.scope(include_inactive=True))
        departments = await self._departments(window)
        active = [s for s in everyone if s.is_active]
        today = to_date(window.reference)

        new_hires = sum(1 for s in everyone if window.contains(s.join_date))
        departures = sum(1 for s in everyone if window.contains(s.termination_date))
        tenures = [(today - s.join_date).days / DAYS_PER_YEAR for s in active if s.join_date is not None]
        per_department = Counter(s.department_id for s in active)

        return OverviewMetrics(
            total_employees=len(everyone),
            active_employees=len(active),
            new_hires=new_hires,
            departures=departures,
            employee_growth_rate=clamp(pct(new_hires - departures, len(everyone)), -100.0, 100.0),
            average_tenure_years=safe_div(sum(tenures), len(tenures)),
            department_distribution=[
                DepartmentMetric(
                    department_id=d.id,
                    department_name=d.name,
                    employee_count=per_department.get(d.id, 0),
                    percentage=pct(per_department.get(d.id, 0), len(active)),
                )
                for d in departments
            ],
        )

    async def attendance_metrics(self, window: ReportWindow) -> AttendanceMetrics:
        cfg = self.config.attendance
        since = min(window.start, to_date(window.reference) - timedelta(days=cfg.window_days))
        snapshots = await self.provider.fetch_snapshots(window.scope(), since=since)
        departments = await self._departments(window)

        records = _attendance_in(snapshots, window)
        total = len(records)
        absent = sum(1 for a in records if a.status == AttendanceStatus.ABSENT)
        attendance_rate, on_time_rate, average_hours = _attendance_rates(records)
        hour_bearing = [a for a in records if a.total_hours]

        by_department: Dict[str, List[EmployeeHistorySnapshot]] = defaultdict(list)
        for s in snapshots:
            by_department[s.department_id].append(s)
        department_rows = []
        for d in departments:
            rate, on_time, hours = _attendance_rates(_attendance_in(by_department.get(d.id, []), window))
            department_rows.append(DepartmentAttendanceMetric(
                department_id=d.id,
                department_name=d.name,
                attendance_rate=rate,
                on_time_rate=on_time,
                average_hours=hours,
            ))

        risk = Counter(self.attendance.detect_employee(s, window.reference).risk_level for s in snapshots)

        return AttendanceMetrics(
            overall_attendance_rate=attendance_rate,
            on_time_rate=on_time_rate,
            absenteeism_rate=pct(absent, total),
            average_working_hours=average_hours,
            overtime_hours=sum(float(a.overtime_hours or 0) for a in hour_bearing),
            short_days=sum(1 for a in hour_bearing if float(a.total_hours) < cfg.minimum_work_hours),
            department_attendance=department_rows,
            risk_distribution=_level_counts(risk),
        )

    async def leave_metrics(self, window: ReportWindow) -> LeaveMetrics:
        allowance = self.config.leave.annual_allowance_days
        since = min(window.start, to_date(window.reference) - timedelta(days=self.config.lookback_days))
        snapshots = await self.provider.fetch_snapshots(window.scope(), since=since)
        departments = await self._departments(window)

        leaves = [lv for s in snapshots for lv in _leaves_starting_in(s, window.start, window.end)]
        total_days = sum(float(lv.days) for lv in leaves)

        type_days: Dict[str, float] = {}
        type_counts: Dict[str, int] = {}
        for lv in leaves:
            type_days[lv.leave_type] = type_days.get(lv.leave_type, 0.0) + float(lv.days)
            type_counts[lv.leave_type] = type_counts.get(lv.leave_type, 0) + 1

        department_rows = []
        for d in departments:
            members = [s for s in snapshots if s.department_id == d.id]
            days = sum(
                float(lv.days) for s in members for lv in _leaves_starting_in(s, window.start, window.end)
            )
            department_rows.append(DepartmentLeaveMetric(
                department_id=d.id,
                department_name=d.name,
                total_leave_days=days,
                average_days_per_employee=safe_div(days, len(members)),
                utilization_rate=clamp(pct(days, len(members) * allowance)),
            ))

        burnout = Counter(self.leave.analyze_employee(s, window.reference).burnout_risk for s in snapshots)

        return LeaveMetrics(
            total_leaves_taken=len(leaves),
            total_leave_days=total_days,
            average_leave_days=safe_div(total_days, len(leaves)),
            leave_utilization_rate=clamp(pct(total_days, len(snapshots) * allowance)),
            pending_leaves=sum(1 for lv in leaves if lv.status == LeaveStatus.PENDING),
            leave_type_distribution=[
                LeaveTypeMetric(
                    leave_type=name,
                    total_days=days,
                    frequency=type_counts[name],
                    percentage=pct(days, total_days),
                )
                for name, days in type_days.items()
            ],
            department_leave_usage=department_rows,
            burnout_distribution=_level_counts(burnout),
        )

    async def performance_metrics(self, window: ReportWindow) -> PerformanceMetrics:
        cfg = self.config.performance
        size = self.config.dashboard.performer_list_size
        snapshots = await self.provider.fetch_snapshots(window.scope())

        in_window = [
            (s, r) for s in snapshots for r in s.reviews
            if window.start <= to_date(r.created_at) <= window.end
        ]
        approved = [(s, r) for s, r in in_window if r.status == ReviewStatus.APPROVED]
        pending = sum(1 for _, r in in_window if r.status in (ReviewStatus.DRAFT, ReviewStatus.SUBMITTED))
        ratings = [float(r.overall_rating) for _, r in approved]

        floors = Counter(math.floor(value) for value in ratings)
        distribution = [
            RatingDistribution(rating=rating, count=count, percentage=pct(count, len(ratings)))
            for rating, count in sorted(floors.items())
        ]

        window_goals = [
            g for s in snapshots for g in s.goals if window.start <= to_date(g.created_at) <= window.end
        ]

        # Latest approved review per employee in the window
        latest: Dict[str, EmployeePerformanceSummary] = {}
        for s, r in sorted(approved, key=lambda pair: pair[1].created_at):
            goals = [g for g in s.goals if window.start <= to_date(g.created_at) <= window.end]
            latest[s.employee_id] = EmployeePerformanceSummary(
                employee_id=s.employee_id,
                employee_name=s.name,
                current_rating=float(r.overall_rating),
                goal_completion_rate=goal_completion_rate(goals),
                last_review_date=r.created_at,
            )
        summaries = list(latest.values())
        top = sorted(
            (p for p in summaries if p.current_rating >= cfg.high_performance_rating),
            key=lambda p: p.current_rating,
            reverse=True,
        )
        needs_improvement = sorted(
            (p for p in summaries if p.current_rating < cfg.below_expectation_rating),
            key=lambda p: p.current_rating,
        )

        trends = Counter(i.overall_trend for i in self.performance.analyze_batch(snapshots, window.reference))

        return PerformanceMetrics(
            average_rating=safe_div(sum(ratings), len(ratings)),
            rating_distribution=distribution,
            goal_completion_rate=goal_completion_rate(window_goals),
            reviews_completed=len(approved),
            pending_reviews=pending,
            top_performers=top[:size],
            improvement_needed=needs_improvement[:size],
            trend_distribution={t.value: trends.get(t, 0) for t in Trend},
        )

    async def recruitment_metrics(self, window: ReportWindow) -> RecruitmentMetrics:
        funnel = await self.provider.fetch_recruitment(window.start, window.end, window.department_id)
        candidates = funnel.candidates
        today = to_date(window.reference)

        hired = [c for c in candidates if c.status == CandidateStatus.HIRED]
        sources: Dict[str, List[int]] = {}
        for c in candidates:
            counts = sources.setdefault(c.source or UNKNOWN_SOURCE, [0, 0])
            counts[0] += 1
            counts[1] += 1 if c.status == CandidateStatus.HIRED else 0

        return RecruitmentMetrics(
            total_candidates=len(candidates),
            new_candidates=sum(1 for c in candidates if c.status == CandidateStatus.NEW),
            interviews_scheduled=sum(1 for i in funnel.interviews if i.status == InterviewStatus.SCHEDULED),
            interviews_completed=sum(1 for i in funnel.interviews if i.status == InterviewStatus.COMPLETED),
            offers_extended=sum(1 for c in candidates if c.status == CandidateStatus.SELECTED),
            hires=len(hired),
            conversion_rate=pct(len(hired), len(candidates)),
            time_to_hire_days=safe_div(sum((today - to_date(c.created_at)).days for c in hired), len(hired)),
            source_effectiveness=[
                SourceMetric(source=name, candidates=total, hires=hires, conversion_rate=pct(hires, total))
                for name, (total, hires) in sources.items()
            ],
        )

    async def attrition_metrics(self, window: ReportWindow) -> AttritionMetrics:
        since = to_date(window.reference) - timedelta(days=self.config.lookback_days)
        everyone = await self.provider.fetch_snapshots(window.scope(include_inactive=True), since=since)
        departments = await self._departments(window)

        active = [s for s in everyone if s.is_active]
        scores = self.attrition.score_batch(active, window.reference)
        departed = [s for s in everyone if window.contains(s.termination_date)]
        rate = clamp(pct(len(departed), len(scores)))
        voluntary_share = self.config.dashboard.voluntary_attrition_share

        department_of = {s.employee_id: s.department_id for s in active}
        department_rows = []
        for d in departments:
            d_scores = [sc for sc in scores if department_of[sc.employee_id] == d.id]
            d_departed = sum(1 for s in departed if s.department_id == d.id)
            department_rows.append(DepartmentAttritionMetric(
                department_id=d.id,
                department_name=d.name,
                attrition_rate=clamp(pct(d_departed, len(d_scores))),
                average_risk_score=safe_div(sum(sc.risk_score for sc in d_scores), len(d_scores)),
                high_risk_count=sum(1 for sc in d_scores if sc.risk_level in HIGH_RISK_LEVELS),
            ))

        return AttritionMetrics(
            attrition_rate=rate,
            voluntary_attrition=rate * voluntary_share,
            involuntary_attrition=rate * (1 - voluntary_share),
            average_attrition_risk=safe_div(sum(sc.risk_score for sc in scores), len(scores)),
            high_risk_employees=sum(1 for sc in scores if sc.risk_level in HIGH_RISK_LEVELS),
            department_attrition=department_rows,
        )

    async def trends(self, window: ReportWindow) -> TrendAnalysis:
        length = PERIOD_DAYS[window.period]
        count = self.config.dashboard.trend_periods
        periods = []
        for back in range(count - 1, -1, -1):
            end = window.end - timedelta(days=back * length)
            periods.append((end - timedelta(days=length - 1), end))

        everyone = await self.provider.fetch_snapshots(
            window.scope(include_inactive=True), since=periods[0][0]
        )

        headcount, attendance, leave_days, rating, departures = [], [], [], [], []
        for start, end in periods:
            employed = [s for s in everyone if _employed_on(s, end)]
            period_records = [a for s in employed for a in s.attendance if start <= a.date <= end]
            approved = _approved_reviews_in(everyone, start, end)
            headcount.append(len(employed))
            attendance.append(_attendance_rates(period_records)[0])
            leave_days.append(sum(float(lv.days) for s in everyone for lv in _leaves_starting_in(s, start, end)))
            rating.append(safe_div(sum(float(r.overall_rating) for r in approved), len(approved)))
            departures.append(sum(
                1 for s in everyone
                if s.termination_date is not None and start <= s.termination_date <= end
            ))

        labels = [start.isoformat() for start, _ in periods]
        return TrendAnalysis(
            employee_growth=self._series(labels, headcount),
            attendance_trend=self._series(labels, attendance),
            leave_trend=self._series(labels, leave_days),
            performance_trend=self._series(labels, rating),
            attrition_trend=self._series(labels, departures),
        )

    @staticmethod
    def _series(labels: Sequence[str], values: Sequence[float]) -> List[TrendPoint]:
        points = []
        previous: Optional[float] = None
        for label, value in zip(labels, values):
            change = 0.0 if previous is None else value - previous
            points.append(TrendPoint(
                period=label,
                value=float(value),
                change=change,
                change_percentage=pct(change, previous or 0),
            ))
            previous = value
        return points

    async def alerts(self, window: ReportWindow) -> List[SystemAlert]:
        since = to_date(window.reference) - timedelta(days=self.config.lookback_days)
        snapshots = await self.provider.fetch_snapshots(window.scope(), since=since)
        scores = self.attrition.score_batch(snapshots, window.reference)
        flagged = [sc for sc in scores if sc.risk_level in HIGH_RISK_LEVELS]
        if not flagged:
            return []

        critical = any(sc.risk_level == RiskLevel.CRITICAL for sc in flagged)
        return [SystemAlert(
            id=f"attrition-{int(window.reference.timestamp() * 1000)}",
            type=AlertType.ATTRITION_RISK,
            severity=Severity.CRITICAL if critical else Severity.HIGH,
            title=ALERT_TITLE,
            description=f"{len(flagged)} employees identified with high attrition risk",
            affected_employees=[sc.employee_id for sc in flagged],
            recommendations=list(ALERT_RECOMMENDATIONS),
            created_at=window.reference,
        )]
