"""
attendance_engine.py — Attendance Anomaly Detector

Rolling-window attendance score, late / absence rates, anomaly flags with
severity and an overall attendance risk level.  No records means a perfect
score of 100.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from people_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from people_analytics.models.records import (
    PRESENT_STATUSES,
    AttendanceRecord,
    AttendanceStatus,
    EmployeeHistorySnapshot,
)
from people_analytics.models.results import (
    AttendanceAnomaly,
    AttendanceAnomalyDetection,
    AttendanceAnomalyType,
    AttendancePattern,
    DateRange,
    RiskLevel,
    Severity,
)
from people_analytics.services.common import clamp, pct, resolve_as_of, to_date, window_start, within
from people_analytics.services.perf_monitor import timed

logger = logging.getLogger("people-analytics-attendance")

PERFECT_SCORE = 100.0

ANOMALY_IMPACT = {
    AttendanceAnomalyType.FREQUENT_LATE: "Affects team productivity and meeting schedules",
    AttendanceAnomalyType.ABSENTEEISM: "Disrupts workflow and increases workload on team members",
    AttendanceAnomalyType.IRREGULAR_HOURS: "May indicate work-life balance issues or workload problems",
}

ESCALATION_RECOMMENDATIONS = (
    "Immediate intervention required - schedule urgent meeting",
    "Develop attendance improvement plan with clear expectations",
)
MONITORING_RECOMMENDATION = "Monitor attendance closely and provide support"
ANOMALY_RECOMMENDATIONS = {
    AttendanceAnomalyType.FREQUENT_LATE: (
        "Discuss commute challenges and flexible start times",
        "Review morning routine and potential barriers",
    ),
    AttendanceAnomalyType.ABSENTEEISM: (
        "Investigate health or personal issues affecting attendance",
        "Consider employee assistance programs",
    ),
    AttendanceAnomalyType.IRREGULAR_HOURS: (
        "Review workload distribution and time management",
        "Discuss work-life balance and stress management",
    ),
}

EXCELLENT_PUNCTUALITY = "Excellent Punctuality"


def _ladder(rate: float, medium: float, high: float) -> Severity:
    if rate > high:
        return Severity.HIGH
    if rate > medium:
        return Severity.MEDIUM
    return Severity.LOW


class AttendanceAnomalyDetector:
    def __init__(self, config: Optional[AnalyticsConfig] = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def window(self, as_of: datetime) -> DateRange:
        return DateRange(
            start=window_start(as_of, self.config.attendance.window_days),
            end=to_date(as_of),
        )

    def detect_employee(
        self,
        snapshot: EmployeeHistorySnapshot,
        as_of: Optional[datetime] = None,
    ) -> AttendanceAnomalyDetection:
        as_of = resolve_as_of(as_of)
        cfg = self.config.attendance
        window = self.window(as_of)
        records = within(snapshot.attendance, lambda a: a.date, window.start, window.end)

        total = len(records)
        present = sum(1 for a in records if a.status in PRESENT_STATUSES)
        late = sum(1 for a in records if a.status == AttendanceStatus.LATE)
        absent = sum(1 for a in records if a.status == AttendanceStatus.ABSENT)

        score = (
            clamp((present + late * cfg.late_day_credit) / total * 100) if total else PERFECT_SCORE
        )
        late_rate = pct(late, total)
        absenteeism_rate = pct(absent, total)

        anomalies: List[AttendanceAnomaly] = []
        if late_rate > cfg.frequent_late_rate:
            anomalies.append(AttendanceAnomaly(
                type=AttendanceAnomalyType.FREQUENT_LATE,
                description=f"Late arrival rate: {late_rate:.1f}%",
                frequency=late,
                severity=_ladder(late_rate, cfg.frequent_late_medium_rate, cfg.frequent_late_high_rate),
                date_range=window,
                impact=ANOMALY_IMPACT[AttendanceAnomalyType.FREQUENT_LATE],
            ))
        if absenteeism_rate > cfg.absenteeism_rate:
            anomalies.append(AttendanceAnomaly(
                type=AttendanceAnomalyType.ABSENTEEISM,
                description=f"High absenteeism rate: {absenteeism_rate:.1f}%",
                frequency=absent,
                severity=_ladder(absenteeism_rate, cfg.absenteeism_medium_rate, cfg.absenteeism_high_rate),
                date_range=window,
                impact=ANOMALY_IMPACT[AttendanceAnomalyType.ABSENTEEISM],
            ))
        irregular = self._irregular_hours(records, window)
        if irregular is not None:
            anomalies.append(irregular)

        patterns: List[AttendancePattern] = []
        if (
            total
            and late_rate < cfg.excellent_punctuality_rate
            and absenteeism_rate < cfg.excellent_punctuality_rate
        ):
            patterns.append(AttendancePattern(
                pattern=EXCELLENT_PUNCTUALITY,
                frequency=present,
                description="Consistently on time with minimal absences",
                is_positive=True,
            ))

        return AttendanceAnomalyDetection(
            employee_id=snapshot.employee_id,
            employee_name=snapshot.name,
            department=snapshot.department_name,
            anomalies=anomalies,
            attendance_score=score,
            late_rate=late_rate,
            absenteeism_rate=absenteeism_rate,
            patterns=patterns,
            recommendations=self._recommendations(anomalies, score),
            risk_level=self.classify_risk(anomalies, score),
        )

    @timed
    def detect_batch(
        self,
        snapshots: Iterable[EmployeeHistorySnapshot],
        as_of: Optional[datetime] = None,
        anomaly_type: Optional[AttendanceAnomalyType] = None,
        severity: Optional[Severity] = None,
        min_score: Optional[float] = None,
    ) -> List[AttendanceAnomalyDetection]:
        """
        Detections in input order.  ``anomaly_type`` and ``severity`` keep
        employees with at least one matching anomaly; ``min_score`` keeps
        attendance scores at or above it.
        """
        as_of = resolve_as_of(as_of)
        detections = [self.detect_employee(s, as_of) for s in snapshots]
        selected = [
            d for d in detections
            if (
                anomaly_type is None
                or any(a.type == AttendanceAnomalyType(anomaly_type) for a in d.anomalies)
            )
            and (severity is None or any(a.severity == Severity(severity) for a in d.anomalies))
            and (min_score is None or d.attendance_score >= min_score)
        ]
        logger.info(
            f"Attendance anomalies: {len(detections)} employees checked, {len(selected)} selected"
        )
        return selected

    def classify_risk(self, anomalies: Sequence[AttendanceAnomaly], score: float) -> RiskLevel:
        cfg = self.config.attendance
        if any(a.severity == Severity.HIGH for a in anomalies) or score < cfg.high_risk_score:
            return RiskLevel.HIGH
        if len(anomalies) > 1 or score < cfg.medium_risk_score:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def _irregular_hours(
        self, records: Sequence[AttendanceRecord], window: DateRange
    ) -> Optional[AttendanceAnomaly]:
        """Days deviating from the employee's own mean hours by more than the limit."""
        cfg = self.config.attendance
        hours = [float(a.total_hours) for a in records if a.total_hours]
        if not hours:
            return None

        mean = sum(hours) / len(hours)
        irregular = sum(1 for h in hours if abs(h - mean) > cfg.irregular_hours_deviation)
        if irregular <= len(hours) * cfg.irregular_hours_share:
            return None

        return AttendanceAnomaly(
            type=AttendanceAnomalyType.IRREGULAR_HOURS,
            description=f"Irregular working hours in {irregular} days",
            frequency=irregular,
            severity=(
                Severity.HIGH
                if irregular > len(hours) * cfg.irregular_hours_high_share
                else Severity.MEDIUM
            ),
            date_range=window,
            impact=ANOMALY_IMPACT[AttendanceAnomalyType.IRREGULAR_HOURS],
        )

    def _recommendations(self, anomalies: Sequence[AttendanceAnomaly], score: float) -> List[str]:
        cfg = self.config.attendance
        recommendations: List[str] = []
        if score < cfg.high_risk_score:
            recommendations.extend(ESCALATION_RECOMMENDATIONS)
        elif score < cfg.medium_risk_score:
            recommendations.append(MONITORING_RECOMMENDATION)
        for anomaly in anomalies:
            recommendations.extend(ANOMALY_RECOMMENDATIONS[anomaly.type])
        return recommendations
