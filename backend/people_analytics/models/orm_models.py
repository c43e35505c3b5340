"""ORM models for the HR history tables read by the People Analytics Engine — SQLAlchemy 2.0"""
import uuid
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
from sqlalchemy import (
    JSON, String, Text, Boolean, Integer, Numeric, DateTime, Date,
    ForeignKey, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from people_analytics.db import Base


def gen_uuid():
    return str(uuid.uuid4())


# ── ORGANISATION ──────────────────────────────────────────────────────────────
class Department(Base):
    __tablename__ = "departments"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    employees: Mapped[list["Employee"]] = relationship("Employee", back_populates="department")


class Employee(Base):
    __tablename__ = "employees"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True)
    department_id: Mapped[str] = mapped_column(String(36), ForeignKey("departments.id"), nullable=False)
    date_of_joining: Mapped[Optional[date]] = mapped_column(Date)
    termination_date: Mapped[Optional[date]] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    department: Mapped["Department"] = relationship("Department", back_populates="employees")
    attendances: Mapped[list["Attendance"]] = relationship("Attendance", back_populates="employee")
    leaves: Mapped[list["Leave"]] = relationship("Leave", back_populates="employee")
    performance_reviews: Mapped[list["PerformanceReview"]] = relationship(
        "PerformanceReview", back_populates="employee"
    )
    goals: Mapped[list["Goal"]] = relationship("Goal", back_populates="employee")
    payrolls: Mapped[list["Payroll"]] = relationship("Payroll", back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# ── ATTENDANCE ────────────────────────────────────────────────────────────────
class Attendance(Base):
    __tablename__ = "attendances"
    __table_args__ = (Index("ix_attendance_employee_date", "employee_id", "date"),)
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("employees.id"), nullable=False)
    attendance_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # PRESENT | ABSENT | LATE | HALF_DAY | WORK_FROM_HOME
    clock_in: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    clock_out: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    total_hours: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2))
    overtime_hours: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2))
    employee: Mapped["Employee"] = relationship("Employee", back_populates="attendances")


# ── LEAVE ─────────────────────────────────────────────────────────────────────
class LeaveType(Base):
    __tablename__ = "leave_types"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    days_allowed: Mapped[Optional[int]] = mapped_column(Integer)


class Leave(Base):
    __tablename__ = "leaves"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("employees.id"), nullable=False)
    leave_type_id: Mapped[str] = mapped_column(String(36), ForeignKey("leave_types.id"), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days: Mapped[Decimal] = mapped_column(Numeric(5, 1), nullable=False)  # business days
    status: Mapped[str] = mapped_column(String(20), default="PENDING")
    reason: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    employee: Mapped["Employee"] = relationship("Employee", back_populates="leaves")
    leave_type: Mapped["LeaveType"] = relationship("LeaveType")


# ── PERFORMANCE ───────────────────────────────────────────────────────────────
class PerformanceReview(Base):
    __tablename__ = "performance_reviews"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("employees.id"), nullable=False)
    review_period: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g. "2026-Q2"
    overall_rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="DRAFT")
    achievements: Mapped[Optional[list]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    employee: Mapped["Employee"] = relationship("Employee", back_populates="performance_reviews")


class Goal(Base):
    __tablename__ = "goals"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("employees.id"), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(20), default="NOT_STARTED")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    employee: Mapped["Employee"] = relationship("Employee", back_populates="goals")


# ── PAYROLL ───────────────────────────────────────────────────────────────────
class Payroll(Base):
    __tablename__ = "payrolls"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    employee_id: Mapped[str] = mapped_column(String(36), ForeignKey("employees.id"), nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    employee: Mapped["Employee"] = relationship("Employee", back_populates="payrolls")


# ── RECRUITMENT ───────────────────────────────────────────────────────────────
class Candidate(Base):
    __tablename__ = "candidates"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    full_name: Mapped[Optional[str]] = mapped_column(String(255))
    department_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("departments.id"))
    source: Mapped[Optional[str]] = mapped_column(String(100))  # "Referral" | "Job Board" | ...
    status: Mapped[str] = mapped_column(String(20), default="NEW")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    interviews: Mapped[list["Interview"]] = relationship("Interview", back_populates="candidate")


class Interview(Base):
    __tablename__ = "interviews"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    candidate_id: Mapped[str] = mapped_column(String(36), ForeignKey("candidates.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="SCHEDULED")
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    candidate: Mapped["Candidate"] = relationship("Candidate", back_populates="interviews")
