"""
conftest.py — Shared pytest fixtures for the People Analytics Engine test suite.

Engines are pure, so nearly every test is a plain unit test over in-memory
snapshots (see ``factories.py``).  Only ``test_sql_history_provider.py``
touches a database, a throwaway SQLite file driven through aiosqlite.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``people_analytics.*`` imports resolve regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any package imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def default_config():
    from people_analytics.config import AnalyticsConfig
    return AnalyticsConfig()


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch):
    """Keep a developer's PEOPLE_ANALYTICS_CONFIG out of the tests."""
    monkeypatch.delenv("PEOPLE_ANALYTICS_CONFIG", raising=False)


# ---------------------------------------------------------------------------
# Engines (stateless, safe to share)
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def scorer():
    from people_analytics.services.attrition_engine import AttritionRiskScorer
    return AttritionRiskScorer()


@pytest.fixture(scope="session")
def performance_analyzer():
    from people_analytics.services.performance_engine import PerformanceInsightAnalyzer
    return PerformanceInsightAnalyzer()


@pytest.fixture(scope="session")
def leave_analyzer():
    from people_analytics.services.leave_engine import LeavePatternAnalyzer
    return LeavePatternAnalyzer()


@pytest.fixture(scope="session")
def attendance_detector():
    from people_analytics.services.attendance_engine import AttendanceAnomalyDetector
    return AttendanceAnomalyDetector()


@pytest.fixture
def tracker():
    """A fresh PerformanceTracker so tests never see each other's metrics."""
    from people_analytics.services.perf_monitor import PerformanceTracker
    return PerformanceTracker()


# ---------------------------------------------------------------------------
# Shared sample organisation
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_org():
    """
    Four employees across Engineering and Sales, dated around AS_OF with a
    MONTH window of 2026-05-31 .. 2026-06-30:

      E1 Aisha   Engineering  joined 2024-01-15; 18 PRESENT + 2 WFH days at 8 h;
                              approved review 4.5 (06-10); 2-day Annual leave
      E2 Omar    Engineering  joined 2026-06-10 (new hire); 5 LATE + 5 PRESENT
                              at 7 h; 1-day Sick leave, PENDING
      E3 Lina    Sales        terminated 2026-06-05, inactive
      E4 Karim   Sales        joined 2022-05-01; approved review 2.0 (06-12),
                              DRAFT review 3.0 (06-20)
    """
    from datetime import date, datetime, timezone
    from factories import attendance, leave, snapshot
    from people_analytics.models.records import PerformanceReview, ReviewStatus
    from decimal import Decimal

    def at(day):
        return datetime.combine(day, datetime.min.time(), tzinfo=timezone.utc)

    e1 = snapshot(
        employee_id="E1",
        name="Aisha Rahman",
        join_date=date(2024, 1, 15),
        attendance=attendance(*(["PRESENT"] * 18 + ["WORK_FROM_HOME"] * 2), hours=8),
        leaves=(leave(date(2026, 6, 15), 2, leave_type="Annual", created_at=at(date(2026, 6, 1))),),
        reviews=(PerformanceReview("2026-Q2", Decimal("4.5"), ReviewStatus.APPROVED, at(date(2026, 6, 10))),),
    )
    e2 = snapshot(
        employee_id="E2",
        name="Omar Haddad",
        join_date=date(2026, 6, 10),
        attendance=attendance(*(["LATE"] * 5 + ["PRESENT"] * 5), hours=7),
        leaves=(
            leave(date(2026, 6, 22), 1, leave_type="Sick", status="PENDING", created_at=at(date(2026, 6, 21))),
        ),
    )
    e3 = snapshot(
        employee_id="E3",
        name="Lina Saleh",
        department_id="D-SAL",
        department_name="Sales",
        join_date=date(2020, 3, 1),
        is_active=False,
        termination_date=date(2026, 6, 5),
    )
    e4 = snapshot(
        employee_id="E4",
        name="Karim Nasser",
        department_id="D-SAL",
        department_name="Sales",
        join_date=date(2022, 5, 1),
        reviews=(
            PerformanceReview("2026-Q2", Decimal("2.0"), ReviewStatus.APPROVED, at(date(2026, 6, 12))),
            PerformanceReview("2026-Q2b", Decimal("3.0"), ReviewStatus.DRAFT, at(date(2026, 6, 20))),
        ),
    )
    return [e1, e2, e3, e4]


@pytest.fixture
def sample_recruitment():
    from datetime import date
    from factories import candidate, interview
    from people_analytics.models.records import RecruitmentSnapshot

    return RecruitmentSnapshot(
        candidates=(
            candidate("C1", "HIRED", date(2026, 6, 10), source="Referral"),
            candidate("C2", "NEW", date(2026, 6, 20), source="Job Board"),
            candidate("C3", "SELECTED", date(2026, 6, 5), source="Referral"),
            candidate("C4", "HIRED", date(2026, 1, 1), source="Referral"),
        ),
        interviews=(
            interview("I1", "SCHEDULED", date(2026, 6, 21)),
            interview("I2", "COMPLETED", date(2026, 6, 15)),
        ),
    )


@pytest.fixture
def sample_provider(sample_org, sample_recruitment):
    from people_analytics.services.history_provider import InMemoryHistoryProvider
    return InMemoryHistoryProvider(sample_org, recruitment=sample_recruitment)
