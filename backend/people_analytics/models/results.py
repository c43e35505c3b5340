"""
Request-scoped result objects produced by the analytics engines.

Every result is a dataclass; ``to_dict()`` returns a JSON-ready structure
(ISO dates, floats instead of Decimals, enum values as strings) for the
presentation layer.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class Impact(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Trend(str, Enum):
    IMPROVING = "IMPROVING"
    DECLINING = "DECLINING"
    STABLE = "STABLE"


class Period(str, Enum):
    WEEK = "WEEK"
    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"


class LeaveAnomalyType(str, Enum):
    EXCESSIVE_FREQUENCY = "EXCESSIVE_FREQUENCY"
    LONG_DURATION = "LONG_DURATION"
    MONDAY_FRIDAY_PATTERN = "MONDAY_FRIDAY_PATTERN"


class AttendanceAnomalyType(str, Enum):
    FREQUENT_LATE = "FREQUENT_LATE"
    ABSENTEEISM = "ABSENTEEISM"
    IRREGULAR_HOURS = "IRREGULAR_HOURS"


class AlertType(str, Enum):
    ATTRITION_RISK = "ATTRITION_RISK"


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class DateRange(_Serializable):
    start: date
    end: date


# ── Attrition ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RiskFactor(_Serializable):
    factor: str
    weight: float
    value: float            # 0–100, higher = worse
    impact: Impact
    description: str


@dataclass(frozen=True)
class AttritionRiskScore(_Serializable):
    employee_id: str
    employee_name: str
    department: str
    risk_score: float
    risk_level: RiskLevel
    factors: List[RiskFactor]
    recommendations: List[str]
    last_updated: datetime


# ── Performance ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PerformanceInsight(_Serializable):
    employee_id: str
    employee_name: str
    department: str
    overall_trend: Trend
    current_rating: float
    previous_rating: float
    rating_change: float
    goal_completion_rate: float
    strengths: List[str]
    improvement_areas: List[str]
    recommendations: List[str]
    last_review_date: datetime


@dataclass(frozen=True)
class EmployeePerformanceSummary(_Serializable):
    employee_id: str
    employee_name: str
    current_rating: float
    goal_completion_rate: float
    last_review_date: datetime


@dataclass(frozen=True)
class TeamPerformanceInsight(_Serializable):
    department_id: str
    department_name: str
    average_rating: float
    rating_trend: Trend
    top_performers: List[EmployeePerformanceSummary]
    under_performers: List[EmployeePerformanceSummary]
    goal_completion_rate: float
    total_employees: int
    reviews_completed: int
    pending_reviews: int


# ── Leave ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LeaveTypeUsage(_Serializable):
    leave_type: str
    days_used: float
    frequency: int
    percentage: float


@dataclass(frozen=True)
class SeasonalLeavePattern(_Serializable):
    month: int
    month_name: str
    days: float
    frequency: int
    average_days: float


@dataclass(frozen=True)
class LeaveAnomaly(_Serializable):
    type: LeaveAnomalyType
    description: str
    severity: Severity
    date_range: DateRange


@dataclass(frozen=True)
class LeavePatternAnalysis(_Serializable):
    employee_id: str
    employee_name: str
    department: str
    total_leave_days: float
    leave_frequency: float      # leaves per month
    average_leave_duration: float
    leave_types: List[LeaveTypeUsage]
    seasonal_patterns: List[SeasonalLeavePattern]
    anomalies: List[LeaveAnomaly]
    burnout_risk: RiskLevel
    recommendations: List[str]


# ── Attendance ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AttendanceAnomaly(_Serializable):
    type: AttendanceAnomalyType
    description: str
    frequency: int
    severity: Severity
    date_range: DateRange
    impact: str


@dataclass(frozen=True)
class AttendancePattern(_Serializable):
    pattern: str
    frequency: int
    description: str
    is_positive: bool


@dataclass(frozen=True)
class AttendanceAnomalyDetection(_Serializable):
    employee_id: str
    employee_name: str
    department: str
    anomalies: List[AttendanceAnomaly]
    attendance_score: float     # 100 = perfect attendance
    late_rate: float
    absenteeism_rate: float
    patterns: List[AttendancePattern]
    recommendations: List[str]
    risk_level: RiskLevel


# ── Dashboard ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DepartmentMetric(_Serializable):
    department_id: str
    department_name: str
    employee_count: int
    percentage: float


@dataclass(frozen=True)
class OverviewMetrics(_Serializable):
    total_employees: int
    active_employees: int
    new_hires: int
    departures: int
    employee_growth_rate: float
    average_tenure_years: float
    department_distribution: List[DepartmentMetric]


@dataclass(frozen=True)
class DepartmentAttendanceMetric(_Serializable):
    department_id: str
    department_name: str
    attendance_rate: float
    on_time_rate: float
    average_hours: float


@dataclass(frozen=True)
class AttendanceMetrics(_Serializable):
    overall_attendance_rate: float
    on_time_rate: float
    absenteeism_rate: float
    average_working_hours: float
    overtime_hours: float
    short_days: int             # hour-bearing days below the minimum work hours
    department_attendance: List[DepartmentAttendanceMetric]
    risk_distribution: Dict[str, int]


@dataclass(frozen=True)
class LeaveTypeMetric(_Serializable):
    leave_type: str
    total_days: float
    frequency: int
    percentage: float


@dataclass(frozen=True)
class DepartmentLeaveMetric(_Serializable):
    department_id: str
    department_name: str
    total_leave_days: float
    average_days_per_employee: float
    utilization_rate: float


@dataclass(frozen=True)
class LeaveMetrics(_Serializable):
    total_leaves_taken: int
    total_leave_days: float
    average_leave_days: float
    leave_utilization_rate: float
    pending_leaves: int
    leave_type_distribution: List[LeaveTypeMetric]
    department_leave_usage: List[DepartmentLeaveMetric]
    burnout_distribution: Dict[str, int]


@dataclass(frozen=True)
class RatingDistribution(_Serializable):
    rating: int
    count: int
    percentage: float


@dataclass(frozen=True)
class PerformanceMetrics(_Serializable):
    average_rating: float
    rating_distribution: List[RatingDistribution]
    goal_completion_rate: float
    reviews_completed: int
    pending_reviews: int
    top_performers: List[EmployeePerformanceSummary]
    improvement_needed: List[EmployeePerformanceSummary]
    trend_distribution: Dict[str, int]


@dataclass(frozen=True)
class SourceMetric(_Serializable):
    source: str
    candidates: int
    hires: int
    conversion_rate: float


@dataclass(frozen=True)
class RecruitmentMetrics(_Serializable):
    total_candidates: int
    new_candidates: int
    interviews_scheduled: int
    interviews_completed: int
    offers_extended: int
    hires: int
    conversion_rate: float
    time_to_hire_days: float
    source_effectiveness: List[SourceMetric]


@dataclass(frozen=True)
class DepartmentAttritionMetric(_Serializable):
    department_id: str
    department_name: str
    attrition_rate: float
    average_risk_score: float
    high_risk_count: int


@dataclass(frozen=True)
class AttritionMetrics(_Serializable):
    attrition_rate: float
    voluntary_attrition: float
    involuntary_attrition: float
    average_attrition_risk: float
    high_risk_employees: int
    department_attrition: List[DepartmentAttritionMetric]


@dataclass(frozen=True)
class TrendPoint(_Serializable):
    period: str
    value: float
    change: float
    change_percentage: float


@dataclass(frozen=True)
class TrendAnalysis(_Serializable):
    employee_growth: List[TrendPoint]
    attendance_trend: List[TrendPoint]
    leave_trend: List[TrendPoint]
    performance_trend: List[TrendPoint]
    attrition_trend: List[TrendPoint]


@dataclass(frozen=True)
class SystemAlert(_Serializable):
    id: str
    type: AlertType
    severity: Severity
    title: str
    description: str
    affected_employees: List[str]
    recommendations: List[str]
    created_at: datetime
    is_read: bool = False


@dataclass(frozen=True)
class DashboardAnalytics(_Serializable):
    """
    Composite dashboard report.  A section is ``None`` when its computation
    failed or timed out; its name is then listed in ``degraded_sections``.
    """
    period: Period
    date_from: date
    date_to: date
    overview: Optional[OverviewMetrics]
    attendance: Optional[AttendanceMetrics]
    leave: Optional[LeaveMetrics]
    performance: Optional[PerformanceMetrics]
    recruitment: Optional[RecruitmentMetrics]
    attrition: Optional[AttritionMetrics]
    trends: Optional[TrendAnalysis]
    alerts: Optional[List[SystemAlert]]
    degraded_sections: List[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_sections)


@dataclass(frozen=True)
class EmployeeAnalyticsSummary(_Serializable):
    employee_id: str
    attrition_risk: Optional[AttritionRiskScore]
    performance_insight: Optional[PerformanceInsight]
    leave_pattern: Optional[LeavePatternAnalysis]
    attendance_anomalies: Optional[AttendanceAnomalyDetection]
    degraded_sections: List[str] = field(default_factory=list)
