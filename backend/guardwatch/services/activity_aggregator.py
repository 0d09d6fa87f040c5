"""
Activity pass: hourly histogram, per-guard statistics and location-accuracy
metrics over a date-filtered activity log.

A single pass over the rows; nothing is carried between calls.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from guardwatch.core.config import settings
from guardwatch.schemas.records import ActivityRecord
from guardwatch.schemas.stats import ActivityBucket, GuardStat
from guardwatch.services.rates import round_half_up
from guardwatch.services.record_filter import parse_timestamp

logger = logging.getLogger(__name__)

_digits_re = re.compile(r"\d+")


@dataclass(frozen=True)
class ActivityAggregate:
    buckets: list[ActivityBucket]
    guards: dict[str, GuardStat]
    total_guards: int
    location_errors: int
    avg_location_accuracy: int
    avg_reading_accuracy: int


def parse_accuracy(text: str | None) -> int | None:
    """First run of digits in a free-text accuracy cell (``"75m"`` → 75)."""
    if not text:
        return None
    match = _digits_re.search(text)
    if match is None:
        return None
    return int(match.group(0))


def empty_buckets() -> list[ActivityBucket]:
    return [ActivityBucket(hour=h) for h in range(24)]


def aggregate_activity(
    records: Iterable[ActivityRecord],
    *,
    threshold: int | None = None,
    on_time_label: str | None = None,
) -> ActivityAggregate:
    """
    Build the hourly buckets and guard map from activity rows.

    Rows with an unparseable timestamp are skipped entirely. A guard's
    on-time flag is taken from the first row seen for that guard, and its
    ``location_accuracy`` keeps only the latest reading above ``threshold``.
    """
    if threshold is None:
        threshold = settings.LOCATION_ISSUE_THRESHOLD_M
    if on_time_label is None:
        on_time_label = settings.ON_TIME_ACTIVITY_LABEL

    buckets = empty_buckets()
    guards: dict[str, GuardStat] = {}
    latest: dict[str, datetime] = {}

    reading_sum = 0
    reading_count = 0
    issue_sum = 0
    issue_count = 0
    skipped = 0

    for record in records:
        when = parse_timestamp(record.date_time)
        if when is None:
            skipped += 1
            continue

        bucket = buckets[when.hour]
        bucket.count += 1

        sn = record.service_number
        guard: GuardStat | None = None
        if sn:
            guard = guards.get(sn)
            if guard is None:
                guard = GuardStat(
                    id=sn,
                    name=record.user_name,
                    post=record.post_name,
                    on_time=record.time_accuracy == on_time_label,
                    last_activity=record.date_time,
                )
                guards[sn] = guard
                latest[sn] = when
            guard.activities += 1
            if when > latest[sn]:
                latest[sn] = when
                guard.last_activity = record.date_time

        accuracy = parse_accuracy(record.location_accuracy)
        if accuracy is None:
            continue
        reading_sum += accuracy
        reading_count += 1

        if accuracy > threshold:
            issue_sum += accuracy
            issue_count += 1
            bucket.location_issues += 1
            if guard is not None:
                guard.location_issues += 1
                guard.location_accuracy = accuracy

    for guard in guards.values():
        guard.status = "warning" if guard.location_issues > 0 or not guard.on_time else "normal"

    if skipped:
        logger.debug("Activity pass: skipped %d rows without a usable timestamp", skipped)
    logger.debug(
        "Activity pass: guards=%d, readings=%d, issues=%d",
        len(guards), reading_count, issue_count,
    )

    return ActivityAggregate(
        buckets=buckets,
        guards=guards,
        total_guards=len(guards),
        location_errors=issue_count,
        avg_location_accuracy=round_half_up(issue_sum / issue_count) if issue_count else 0,
        avg_reading_accuracy=round_half_up(reading_sum / reading_count) if reading_count else 0,
    )
