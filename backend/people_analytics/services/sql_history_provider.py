"""
SqlHistoryProvider: read-only HistoryProvider over the HR tables.

Issues plain ``select()`` queries through an ``async_sessionmaker`` and maps
ORM rows onto the immutable history records.  Collections are loaded with
``selectinload``; when ``since`` is given the loader criteria restrict each
collection to records dated on or after it.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import selectinload

from people_analytics.db import AsyncSessionLocal
from people_analytics.models import orm_models as orm
from people_analytics.models.records import (
    AnalyticsScope,
    AttendanceRecord,
    AttendanceStatus,
    CandidateRecord,
    CandidateStatus,
    DepartmentRecord,
    EmployeeHistorySnapshot,
    Goal,
    GoalStatus,
    InterviewRecord,
    InterviewStatus,
    LeaveRecord,
    LeaveStatus,
    PayrollRecord,
    PerformanceReview,
    RecruitmentSnapshot,
    ReviewStatus,
)

logger = logging.getLogger("people-analytics-sql-provider")


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _to_snapshot(employee: orm.Employee) -> EmployeeHistorySnapshot:
    return EmployeeHistorySnapshot(
        employee_id=employee.id,
        name=employee.full_name,
        department_id=employee.department_id,
        department_name=employee.department.name,
        join_date=employee.date_of_joining,
        is_active=bool(employee.is_active),
        termination_date=employee.termination_date,
        attendance=tuple(
            AttendanceRecord(
                date=a.attendance_date,
                status=AttendanceStatus(a.status),
                clock_in=a.clock_in,
                clock_out=a.clock_out,
                total_hours=Decimal(a.total_hours) if a.total_hours is not None else None,
                overtime_hours=Decimal(a.overtime_hours) if a.overtime_hours is not None else None,
            )
            for a in employee.attendances
        ),
        leaves=tuple(
            LeaveRecord(
                leave_type=lv.leave_type.name,
                start_date=lv.start_date,
                end_date=lv.end_date,
                days=Decimal(lv.days),
                status=LeaveStatus(lv.status),
                created_at=lv.created_at,
            )
            for lv in employee.leaves
        ),
        reviews=tuple(
            PerformanceReview(
                period=r.review_period,
                overall_rating=Decimal(r.overall_rating),
                status=ReviewStatus(r.status),
                created_at=r.created_at,
                achievements=tuple(str(item) for item in (r.achievements or [])),
            )
            for r in employee.performance_reviews
        ),
        goals=tuple(
            Goal(status=GoalStatus(g.status), created_at=g.created_at) for g in employee.goals
        ),
        payroll=tuple(
            PayrollRecord(net_salary=Decimal(p.net_salary), created_at=p.created_at)
            for p in employee.payrolls
        ),
    )


class SqlHistoryProvider:
    def __init__(self, session_factory: async_sessionmaker = AsyncSessionLocal) -> None:
        self._session_factory = session_factory

    async def list_departments(self, department_id: Optional[str] = None) -> List[DepartmentRecord]:
        query = select(orm.Department).order_by(orm.Department.name)
        if department_id is not None:
            query = query.where(orm.Department.id == department_id)
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [DepartmentRecord(id=d.id, name=d.name) for d in result.scalars().all()]

    async def get_department(self, department_id: str) -> Optional[DepartmentRecord]:
        async with self._session_factory() as session:
            department = await session.get(orm.Department, department_id)
            if department is None:
                return None
            return DepartmentRecord(id=department.id, name=department.name)

    async def employee_exists(self, employee_id: str) -> bool:
        async with self._session_factory() as session:
            return bool(await session.scalar(select(exists().where(orm.Employee.id == employee_id))))

    async def fetch_snapshots(
        self,
        scope: AnalyticsScope,
        since: Optional[date] = None,
    ) -> List[EmployeeHistorySnapshot]:
        E = orm.Employee
        attendances = E.attendances
        leaves = E.leaves
        reviews = E.performance_reviews
        goals = E.goals
        payrolls = E.payrolls
        if since is not None:
            cutoff = _start_of(since)
            attendances = attendances.and_(orm.Attendance.attendance_date >= since)
            leaves = leaves.and_(orm.Leave.created_at >= cutoff)
            reviews = reviews.and_(orm.PerformanceReview.created_at >= cutoff)
            goals = goals.and_(orm.Goal.created_at >= cutoff)
            payrolls = payrolls.and_(orm.Payroll.created_at >= cutoff)

        query = (
            select(E)
            .options(
                selectinload(E.department),
                selectinload(attendances),
                selectinload(leaves).selectinload(orm.Leave.leave_type),
                selectinload(reviews),
                selectinload(goals),
                selectinload(payrolls),
            )
            .order_by(E.last_name, E.first_name, E.id)
        )
        if scope.employee_id is not None:
            query = query.where(E.id == scope.employee_id)
        if scope.department_id is not None:
            query = query.where(E.department_id == scope.department_id)
        if not scope.include_inactive:
            query = query.where(E.is_active.is_(True))

        async with self._session_factory() as session:
            result = await session.execute(query)
            employees = result.scalars().all()
            snapshots = [_to_snapshot(e) for e in employees]

        logger.debug(f"Loaded {len(snapshots)} employee snapshots")
        return snapshots

    async def fetch_recruitment(
        self,
        start: date,
        end: date,
        department_id: Optional[str] = None,
    ) -> RecruitmentSnapshot:
        lower = _start_of(start)
        upper = _start_of(end + timedelta(days=1))

        candidates_q = select(orm.Candidate).where(
            orm.Candidate.created_at >= lower, orm.Candidate.created_at < upper
        )
        interviews_q = (
            select(orm.Interview)
            .join(orm.Candidate, orm.Interview.candidate_id == orm.Candidate.id)
            .where(orm.Interview.created_at >= lower, orm.Interview.created_at < upper)
        )
        if department_id is not None:
            candidates_q = candidates_q.where(orm.Candidate.department_id == department_id)
            interviews_q = interviews_q.where(orm.Candidate.department_id == department_id)

        async with self._session_factory() as session:
            candidates = (await session.execute(candidates_q)).scalars().all()
            interviews = (await session.execute(interviews_q)).scalars().all()

        return RecruitmentSnapshot(
            candidates=tuple(
                CandidateRecord(
                    id=c.id,
                    status=CandidateStatus(c.status),
                    created_at=c.created_at,
                    source=c.source,
                )
                for c in candidates
            ),
            interviews=tuple(
                InterviewRecord(id=i.id, status=InterviewStatus(i.status), created_at=i.created_at)
                for i in interviews
            ),
        )
