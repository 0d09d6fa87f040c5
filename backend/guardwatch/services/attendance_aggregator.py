"""
Attendance pass: per-post coverage and shift-level punctuality metrics.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from guardwatch.core.config import settings
from guardwatch.schemas.records import AttendanceRecord
from guardwatch.schemas.stats import LocationStat
from guardwatch.services.rates import percentage

logger = logging.getLogger(__name__)

_count_re = re.compile(r"\s*\+?(\d+)")


@dataclass(frozen=True)
class AttendanceAggregate:
    locations: dict[str, LocationStat]
    total_shifts: int
    on_time: int
    late_check_ins: int
    on_time_rate: int
    missed_scans: int
    # Missed scans per service number, for the guard view
    missed_by_guard: dict[str, int]

    @property
    def early_checkouts(self) -> int:
        return self.late_check_ins


def parse_miss_count(text: str | None) -> int:
    """Leading non-negative integer of a miss-count cell; 0 when there is none."""
    if not text:
        return 0
    match = _count_re.match(text)
    return int(match.group(1)) if match else 0


def aggregate_attendance(
    records: Iterable[AttendanceRecord],
    *,
    on_time_label: str | None = None,
) -> AttendanceAggregate:
    """
    Count shifts, punctuality and missed scans; roll shifts up per post.

    Rows with an empty post name are ignored entirely. Any late-hours value
    other than ``on_time_label`` (empty included) counts as late.
    """
    if on_time_label is None:
        on_time_label = settings.ON_TIME_ATTENDANCE_LABEL

    locations: dict[str, LocationStat] = {}
    missed_by_guard: dict[str, int] = {}
    total_shifts = 0
    on_time = 0
    late = 0
    missed = 0

    for record in records:
        post = record.post_name
        if not post:
            continue

        total_shifts += 1
        punctual = record.late_hours == on_time_label
        if punctual:
            on_time += 1
        else:
            late += 1

        misses = parse_miss_count(record.no_of_miss)
        missed += misses
        if record.service_number:
            missed_by_guard[record.service_number] = (
                missed_by_guard.get(record.service_number, 0) + misses
            )

        location = locations.get(post)
        if location is None:
            location = LocationStat(name=post)
            locations[post] = location
        location.total_scans += 1
        if not punctual:
            location.accuracy_issues += 1

    for location in locations.values():
        location.coverage_rate = percentage(
            location.total_scans - location.accuracy_issues, location.total_scans
        )

    logger.debug(
        "Attendance pass: shifts=%d, on_time=%d, late=%d, missed=%d, posts=%d",
        total_shifts, on_time, late, missed, len(locations),
    )

    return AttendanceAggregate(
        locations=locations,
        total_shifts=total_shifts,
        on_time=on_time,
        late_check_ins=late,
        on_time_rate=percentage(on_time, total_shifts),
        missed_scans=missed,
        missed_by_guard=missed_by_guard,
    )
