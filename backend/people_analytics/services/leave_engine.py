"""
leave_engine.py — Leave Pattern Analyzer

Usage statistics, a month-of-year histogram, anomaly flags and a burnout
classification from one year of leave records per employee.

Anomalies are evaluated independently, any subset may fire:
  EXCESSIVE_FREQUENCY  leaves per month above the configured threshold
  LONG_DURATION        one or more leaves longer than the long-duration limit
  MONDAY_FRIDAY_PATTERN  most leaves start on a Monday or end on a Friday
"""
from __future__ import annotations

import calendar
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from people_analytics.config import DEFAULT_CONFIG, AnalyticsConfig
from people_analytics.models.records import EmployeeHistorySnapshot, LeaveRecord
from people_analytics.models.results import (
    DateRange,
    LeaveAnomaly,
    LeaveAnomalyType,
    LeavePatternAnalysis,
    LeaveTypeUsage,
    RiskLevel,
    SeasonalLeavePattern,
    Severity,
)
from people_analytics.services.common import (
    pct,
    resolve_as_of,
    safe_div,
    to_date,
    window_start,
    within,
)
from people_analytics.services.perf_monitor import timed

logger = logging.getLogger("people-analytics-leave")

MONTHS_PER_YEAR = 12
HIGH_FREQUENCY_FACTOR = 1.5
HIGH_LONG_LEAVE_COUNT = 2

MONDAY = 0
FRIDAY = 4

BURNOUT_RECOMMENDATIONS = {
    RiskLevel.HIGH: (
        "Immediate wellness check and workload review required",
        "Consider temporary workload reduction",
    ),
    RiskLevel.MEDIUM: (
        "Monitor workload and stress levels closely",
    ),
}
FREQUENCY_RECOMMENDATIONS = (
    "Investigate underlying causes of frequent leave requests",
    "Consider flexible work arrangements",
)
ANOMALY_RECOMMENDATIONS = {
    LeaveAnomalyType.MONDAY_FRIDAY_PATTERN: "Discuss work-life balance and weekend extension patterns",
    LeaveAnomalyType.LONG_DURATION: "Review reasons for extended leave periods",
    LeaveAnomalyType.EXCESSIVE_FREQUENCY: "Implement leave counseling and support",
}


class LeavePatternAnalyzer:
    """Leave usage, seasonality, anomalies and burnout risk per employee."""

    def __init__(self, config: Optional[AnalyticsConfig] = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def analyze_employee(
        self,
        snapshot: EmployeeHistorySnapshot,
        as_of: Optional[datetime] = None,
    ) -> LeavePatternAnalysis:
        as_of = resolve_as_of(as_of)
        window = DateRange(start=window_start(as_of, self.config.lookback_days), end=to_date(as_of))
        leaves = within(snapshot.leaves, lambda lv: lv.created_at, window.start, window.end)

        total_days = sum(float(lv.days) for lv in leaves)
        frequency = len(leaves) / MONTHS_PER_YEAR
        anomalies = self.detect_anomalies(leaves, frequency, window)
        burnout = self.classify_burnout(total_days)

        return LeavePatternAnalysis(
            employee_id=snapshot.employee_id,
            employee_name=snapshot.name,
            department=snapshot.department_name,
            total_leave_days=total_days,
            leave_frequency=frequency,
            average_leave_duration=safe_div(total_days, len(leaves)),
            leave_types=self.type_usage(leaves, total_days),
            seasonal_patterns=self.seasonal_patterns(leaves),
            anomalies=anomalies,
            burnout_risk=burnout,
            recommendations=self._recommendations(frequency, anomalies, burnout),
        )

    @timed
    def analyze_batch(
        self,
        snapshots: Iterable[EmployeeHistorySnapshot],
        as_of: Optional[datetime] = None,
        burnout_risk: Optional[RiskLevel] = None,
        leave_type: Optional[str] = None,
        anomaly_type: Optional[LeaveAnomalyType] = None,
    ) -> List[LeavePatternAnalysis]:
        """
        Analyses in input order.  ``leave_type`` keeps employees who used that
        type in the window; ``anomaly_type`` keeps employees flagged with it.
        Filters compose with AND.
        """
        as_of = resolve_as_of(as_of)
        analyses = [self.analyze_employee(s, as_of) for s in snapshots]
        selected = [
            a for a in analyses
            if (burnout_risk is None or a.burnout_risk == RiskLevel(burnout_risk))
            and (leave_type is None or any(u.leave_type == leave_type for u in a.leave_types))
            and (
                anomaly_type is None
                or any(x.type == LeaveAnomalyType(anomaly_type) for x in a.anomalies)
            )
        ]
        logger.info(
            f"Leave patterns: {len(analyses)} employees analysed, {len(selected)} selected"
        )
        return selected

    # -----------------------------------------------------------------------
    # Statistics
    # -----------------------------------------------------------------------

    @staticmethod
    def type_usage(leaves: Sequence[LeaveRecord], total_days: float) -> List[LeaveTypeUsage]:
        days: Dict[str, float] = {}
        counts: Dict[str, int] = {}
        for leave in leaves:
            days[leave.leave_type] = days.get(leave.leave_type, 0.0) + float(leave.days)
            counts[leave.leave_type] = counts.get(leave.leave_type, 0) + 1

        return [
            LeaveTypeUsage(
                leave_type=name,
                days_used=used,
                frequency=counts[name],
                percentage=pct(used, total_days),
            )
            for name, used in days.items()
        ]

    @staticmethod
    def seasonal_patterns(leaves: Sequence[LeaveRecord]) -> List[SeasonalLeavePattern]:
        """Twelve buckets keyed by the start month, whatever the year."""
        days = [0.0] * MONTHS_PER_YEAR
        counts = [0] * MONTHS_PER_YEAR
        for leave in leaves:
            index = leave.start_date.month - 1
            days[index] += float(leave.days)
            counts[index] += 1

        return [
            SeasonalLeavePattern(
                month=index + 1,
                month_name=calendar.month_name[index + 1],
                days=days[index],
                frequency=counts[index],
                average_days=safe_div(days[index], counts[index]),
            )
            for index in range(MONTHS_PER_YEAR)
        ]

    def classify_burnout(self, total_days: float) -> RiskLevel:
        cfg = self.config.leave
        if total_days >= cfg.burnout_days_per_year:
            return RiskLevel.HIGH
        if total_days >= cfg.burnout_days_per_year * cfg.burnout_medium_ratio:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    # -----------------------------------------------------------------------
    # Anomalies
    # -----------------------------------------------------------------------

    def detect_anomalies(
        self,
        leaves: Sequence[LeaveRecord],
        frequency: float,
        window: DateRange,
    ) -> List[LeaveAnomaly]:
        cfg = self.config.leave
        anomalies: List[LeaveAnomaly] = []

        if frequency > cfg.excessive_frequency:
            anomalies.append(LeaveAnomaly(
                type=LeaveAnomalyType.EXCESSIVE_FREQUENCY,
                description=f"Taking leaves too frequently ({frequency:.1f} per month)",
                severity=(
                    Severity.HIGH
                    if frequency > cfg.excessive_frequency * HIGH_FREQUENCY_FACTOR
                    else Severity.MEDIUM
                ),
                date_range=window,
            ))

        long_leaves = [lv for lv in leaves if float(lv.days) > cfg.long_duration_days]
        if long_leaves:
            anomalies.append(LeaveAnomaly(
                type=LeaveAnomalyType.LONG_DURATION,
                description=f"{len(long_leaves)} leaves longer than {cfg.long_duration_days:g} days",
                severity=Severity.HIGH if len(long_leaves) > HIGH_LONG_LEAVE_COUNT else Severity.MEDIUM,
                date_range=DateRange(
                    start=min(lv.start_date for lv in long_leaves),
                    end=max(lv.end_date for lv in long_leaves),
                ),
            ))

        bridging = [
            lv for lv in leaves
            if lv.start_date.weekday() == MONDAY or lv.end_date.weekday() == FRIDAY
        ]
        if leaves and len(bridging) > len(leaves) * cfg.weekend_extension_share:
            anomalies.append(LeaveAnomaly(
                type=LeaveAnomalyType.MONDAY_FRIDAY_PATTERN,
                description="Frequent Monday/Friday leaves suggesting weekend extension pattern",
                severity=Severity.MEDIUM,
                date_range=window,
            ))

        return anomalies

    def _recommendations(
        self,
        frequency: float,
        anomalies: Sequence[LeaveAnomaly],
        burnout: RiskLevel,
    ) -> List[str]:
        # Duplicates between the frequency and anomaly templates are kept
        recommendations: List[str] = list(BURNOUT_RECOMMENDATIONS.get(burnout, ()))
        if frequency > self.config.leave.excessive_frequency:
            recommendations.extend(FREQUENCY_RECOMMENDATIONS)
        for anomaly in anomalies:
            recommendations.append(ANOMALY_RECOMMENDATIONS[anomaly.type])
        return recommendations
