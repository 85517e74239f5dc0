"""
Appointment statistics for the analytics dashboard.

Every figure is recomputed from the appointment subset passed in; nothing
is cached or maintained incrementally, so a status change shows up on the
next query. The calculator never raises on odd input: unknown services
get a placeholder label and empty subsets produce zeroes.
"""

import logging
from collections import Counter
from typing import Iterable, Mapping, Optional

from booking_core.config import AnalyticsConfig, settings
from booking_core.schemas.analytics_schema import (
    DateRange,
    ServiceStat,
    StatisticsFilter,
    StatisticsSnapshot,
    StatusBreakdownItem,
    TimeSeriesPoint,
)
from booking_core.schemas.appointment_schema import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)


def filter_appointments(
    appointments: Iterable[Appointment],
    date_range: DateRange,
    filters: Optional[StatisticsFilter] = None,
) -> list[Appointment]:
    """Keep appointments inside the range that match every given filter."""
    filters = filters or StatisticsFilter()
    kept = []
    for appt in appointments:
        if not date_range.contains(appt.date):
            continue
        if filters.status is not None and appt.status != filters.status:
            continue
        if filters.staff_id is not None and appt.staff_id != filters.staff_id:
            continue
        if filters.service_id is not None and appt.service_id != filters.service_id:
            continue
        kept.append(appt)
    return kept


def completion_rate(status_counts: Mapping[AppointmentStatus, int], total: int) -> float:
    """
    Completed share of appointments that reached a decision, as a percentage.

    Pending and Cancelled appointments are left out of the denominator.
    """
    decided = (
        total
        - status_counts.get(AppointmentStatus.CANCELLED, 0)
        - status_counts.get(AppointmentStatus.PENDING, 0)
    )
    if decided <= 0:
        return 0.0
    return status_counts.get(AppointmentStatus.COMPLETED, 0) / decided * 100


class StatisticsCalculator:
    """Calculates statistics snapshots and chart series from appointments."""

    def __init__(self, config: AnalyticsConfig = settings.analytics) -> None:
        self._config = config

    def aggregate(
        self,
        appointments: Iterable[Appointment],
        date_range: DateRange,
        filters: Optional[StatisticsFilter] = None,
        service_names: Optional[Mapping[str, str]] = None,
    ) -> StatisticsSnapshot:
        """Calculate all figures for the appointments inside ``date_range``."""
        selected = filter_appointments(appointments, date_range, filters)
        service_names = service_names or {}

        total = len(selected)
        revenue = sum(a.price for a in selected)

        counts = Counter(a.status for a in selected)
        status_counts = {status: counts.get(status, 0) for status in AppointmentStatus}

        return StatisticsSnapshot(
            date_range_label=date_range.label,
            total_appointments=total,
            total_revenue=revenue,
            average_value=revenue / total if total else 0.0,
            completion_rate=completion_rate(status_counts, total),
            status_counts=status_counts,
            top_services=self._top_services(selected, service_names),
        )

    def _top_services(
        self,
        appointments: list[Appointment],
        service_names: Mapping[str, str],
    ) -> list[ServiceStat]:
        groups: dict[str, ServiceStat] = {}
        for appt in appointments:
            stat = groups.get(appt.service_id)
            if stat is None:
                name = service_names.get(appt.service_id) or self._config.unknown_service_label
                stat = groups[appt.service_id] = ServiceStat(id=appt.service_id, name=name)
            stat.count += 1
            stat.revenue += appt.price

        # sorted() is stable, so ties keep first-seen order
        ranked = sorted(groups.values(), key=lambda s: s.count, reverse=True)
        return ranked[: self._config.top_services_limit]

    def time_series(
        self,
        appointments: Iterable[Appointment],
        date_range: DateRange,
        filters: Optional[StatisticsFilter] = None,
    ) -> list[TimeSeriesPoint]:
        """Revenue and appointment count per date, oldest first."""
        per_day: dict[str, list[int]] = {}
        for appt in filter_appointments(appointments, date_range, filters):
            bucket = per_day.setdefault(appt.date.isoformat(), [0, 0])
            bucket[0] += appt.price
            bucket[1] += 1
        return [
            TimeSeriesPoint(date=day, revenue=revenue, count=count)
            for day, (revenue, count) in sorted(per_day.items())
        ]

    def status_breakdown(self, snapshot: StatisticsSnapshot) -> list[StatusBreakdownItem]:
        """Non-empty status slices for the appointments-by-status chart."""
        return [
            StatusBreakdownItem(name=status.value, value=snapshot.status_counts.get(status, 0))
            for status in AppointmentStatus
            if snapshot.status_counts.get(status, 0) > 0
        ]

    def format_report(self, snapshot: StatisticsSnapshot) -> str:
        """Format a snapshot into a human-readable report."""
        lines = [
            "=" * 60,
            f"APPOINTMENT STATISTICS  {snapshot.date_range_label}",
            "=" * 60,
            "",
            "TOTALS",
            f"  Appointments:           {snapshot.total_appointments}",
            f"  Revenue:                {_money(snapshot.total_revenue)}",
            f"  Average value:          {_money(round(snapshot.average_value))}",
            f"  Completion rate:        {snapshot.completion_rate:.0f}%",
            "",
            "BY STATUS",
        ]
        for status in AppointmentStatus:
            lines.append(f"  {status.value + ':':<24}{snapshot.status_counts.get(status, 0)}")

        lines += ["", "TOP SERVICES"]
        if not snapshot.top_services:
            lines.append("  (none)")
        for rank, stat in enumerate(snapshot.top_services, start=1):
            lines.append(
                f"  {rank}. {stat.name:<28} {stat.count:>4} booked  {_money(stat.revenue):>12}"
            )
        lines.append("=" * 60)
        return "\n".join(lines)


def _money(minor_units: int) -> str:
    return f"{minor_units / 100:,.2f}"


_default_calculator = StatisticsCalculator()


def get_statistics(
    appointments: Iterable[Appointment],
    date_range: DateRange,
    filters: Optional[StatisticsFilter] = None,
    service_names: Optional[Mapping[str, str]] = None,
) -> StatisticsSnapshot:
    """Snapshot of ``appointments`` inside ``date_range`` using the configured limits."""
    return _default_calculator.aggregate(appointments, date_range, filters, service_names)


def get_time_series(
    appointments: Iterable[Appointment],
    date_range: DateRange,
) -> list[TimeSeriesPoint]:
    """Per-date revenue and count series using the configured limits."""
    return _default_calculator.time_series(appointments, date_range)
