"""
Read-only history records consumed by the analytics engines.

These are plain frozen dataclasses assembled by a history provider (in-memory
or SQL).  Engines never mutate them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"
    WORK_FROM_HOME = "WORK_FROM_HOME"


class LeaveStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class ReviewStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class GoalStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class CandidateStatus(str, Enum):
    NEW = "NEW"
    SCREENING = "SCREENING"
    INTERVIEWING = "INTERVIEWING"
    SELECTED = "SELECTED"
    HIRED = "HIRED"
    REJECTED = "REJECTED"


class InterviewStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Statuses that count as "at work" for attendance rates
PRESENT_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.WORK_FROM_HOME})


@dataclass(frozen=True)
class AttendanceRecord:
    date: date
    status: AttendanceStatus
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    total_hours: Optional[Decimal] = None
    overtime_hours: Optional[Decimal] = None


@dataclass(frozen=True)
class LeaveRecord:
    leave_type: str
    start_date: date
    end_date: date
    days: Decimal                   # business-day count
    status: LeaveStatus
    created_at: datetime


@dataclass(frozen=True)
class PerformanceReview:
    period: str                     # e.g. "2026-Q2"
    overall_rating: Decimal         # 0–5
    status: ReviewStatus
    created_at: datetime
    achievements: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Goal:
    status: GoalStatus
    created_at: datetime


@dataclass(frozen=True)
class PayrollRecord:
    net_salary: Decimal
    created_at: datetime


@dataclass(frozen=True)
class DepartmentRecord:
    id: str
    name: str


@dataclass(frozen=True)
class CandidateRecord:
    id: str
    status: CandidateStatus
    created_at: datetime
    source: Optional[str] = None


@dataclass(frozen=True)
class InterviewRecord:
    id: str
    status: InterviewStatus
    created_at: datetime


@dataclass(frozen=True)
class RecruitmentSnapshot:
    """Candidates and interviews created inside a reporting window."""
    candidates: Tuple[CandidateRecord, ...] = ()
    interviews: Tuple[InterviewRecord, ...] = ()


@dataclass(frozen=True)
class EmployeeHistorySnapshot:
    """Everything the engines know about one employee for one computation."""
    employee_id: str
    name: str
    department_id: str
    department_name: str
    join_date: Optional[date] = None
    is_active: bool = True
    termination_date: Optional[date] = None
    attendance: Tuple[AttendanceRecord, ...] = field(default_factory=tuple)
    leaves: Tuple[LeaveRecord, ...] = field(default_factory=tuple)
    reviews: Tuple[PerformanceReview, ...] = field(default_factory=tuple)
    goals: Tuple[Goal, ...] = field(default_factory=tuple)
    payroll: Tuple[PayrollRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AnalyticsScope:
    """Who a computation is about. Empty scope means the whole organisation."""
    department_id: Optional[str] = None
    employee_id: Optional[str] = None
    include_inactive: bool = False
