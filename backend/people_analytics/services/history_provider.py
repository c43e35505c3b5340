"""
History provider contract and the in-memory implementation.

Engines never query storage themselves: the service and the dashboard ask a
provider for snapshots and hand them to the pure analyzers.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional, Protocol, Sequence

from people_analytics.models.records import (
    AnalyticsScope,
    DepartmentRecord,
    EmployeeHistorySnapshot,
    RecruitmentSnapshot,
)
from people_analytics.services.common import to_date


class HistoryProvider(Protocol):
    async def list_departments(self, department_id: Optional[str] = None) -> Sequence[DepartmentRecord]:
        raise NotImplementedError

    async def get_department(self, department_id: str) -> Optional[DepartmentRecord]:
        raise NotImplementedError

    async def employee_exists(self, employee_id: str) -> bool:
        raise NotImplementedError

    async def fetch_snapshots(
        self,
        scope: AnalyticsScope,
        since: Optional[date] = None,
    ) -> Sequence[EmployeeHistorySnapshot]:
        """
        Snapshots of every employee in ``scope``.  With ``since`` the
        history collections only hold records dated on or after it.
        Inactive employees are included only when the scope asks for them.
        """
        raise NotImplementedError

    async def fetch_recruitment(
        self,
        start: date,
        end: date,
        department_id: Optional[str] = None,
    ) -> RecruitmentSnapshot:
        raise NotImplementedError


def in_scope(snapshot: EmployeeHistorySnapshot, scope: AnalyticsScope) -> bool:
    if scope.employee_id is not None and snapshot.employee_id != scope.employee_id:
        return False
    if scope.department_id is not None and snapshot.department_id != scope.department_id:
        return False
    return scope.include_inactive or snapshot.is_active


def trim_history(snapshot: EmployeeHistorySnapshot, since: date) -> EmployeeHistorySnapshot:
    """Copy of ``snapshot`` without records older than ``since``."""
    return replace(
        snapshot,
        attendance=tuple(a for a in snapshot.attendance if a.date >= since),
        leaves=tuple(lv for lv in snapshot.leaves if to_date(lv.created_at) >= since),
        reviews=tuple(r for r in snapshot.reviews if to_date(r.created_at) >= since),
        goals=tuple(g for g in snapshot.goals if to_date(g.created_at) >= since),
        payroll=tuple(p for p in snapshot.payroll if to_date(p.created_at) >= since),
    )


class InMemoryHistoryProvider:
    """Provider over pre-built snapshots; used by tests and embedding callers."""

    def __init__(
        self,
        snapshots: Iterable[EmployeeHistorySnapshot] = (),
        departments: Optional[Iterable[DepartmentRecord]] = None,
        recruitment: Optional[RecruitmentSnapshot] = None,
    ) -> None:
        self._snapshots: List[EmployeeHistorySnapshot] = list(snapshots)
        if departments is None:
            seen = {}
            for s in self._snapshots:
                seen.setdefault(s.department_id, DepartmentRecord(id=s.department_id, name=s.department_name))
            departments = seen.values()
        self._departments: List[DepartmentRecord] = list(departments)
        self._recruitment = recruitment or RecruitmentSnapshot()

    async def list_departments(self, department_id: Optional[str] = None) -> List[DepartmentRecord]:
        return [d for d in self._departments if department_id is None or d.id == department_id]

    async def get_department(self, department_id: str) -> Optional[DepartmentRecord]:
        return next((d for d in self._departments if d.id == department_id), None)

    async def employee_exists(self, employee_id: str) -> bool:
        return any(s.employee_id == employee_id for s in self._snapshots)

    async def fetch_snapshots(
        self,
        scope: AnalyticsScope,
        since: Optional[date] = None,
    ) -> List[EmployeeHistorySnapshot]:
        selected = [s for s in self._snapshots if in_scope(s, scope)]
        if since is not None:
            selected = [trim_history(s, since) for s in selected]
        return selected

    async def fetch_recruitment(
        self,
        start: date,
        end: date,
        department_id: Optional[str] = None,
    ) -> RecruitmentSnapshot:
        # Candidates are not tied to a department in this provider
        return RecruitmentSnapshot(
            candidates=tuple(
                c for c in self._recruitment.candidates if start <= to_date(c.created_at) <= end
            ),
            interviews=tuple(
                i for i in self._recruitment.interviews if start <= to_date(i.created_at) <= end
            ),
        )
