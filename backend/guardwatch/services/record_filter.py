"""
Date parsing and inclusive date-range filtering of raw export rows.

Rows whose date field is empty or unparseable are dropped silently: they are
neither reported nor counted anywhere downstream.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Callable, Iterable, TypeVar

import pandas as pd

from guardwatch.core.config import settings
from guardwatch.schemas.records import ActivityRecord, AttendanceRecord
from guardwatch.schemas.stats import DateRange

logger = logging.getLogger(__name__)

R = TypeVar("R")


def to_local_naive(value: datetime) -> datetime:
    """Express an aware datetime as local wall-clock time; naive passes through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_timestamp(value: str | None, dayfirst: bool | None = None) -> datetime | None:
    """
    Parse a timestamp cell the way the exports write them
    (``2024-01-15 14:30``, ``01/15/2024 2:30 PM``, ISO with offset, ...).

    Returns None for empty or unparseable text.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if dayfirst is None:
        dayfirst = settings.DATE_DAYFIRST
    return _parse_text(text, dayfirst)


@lru_cache(maxsize=65536)
def _parse_text(text: str, dayfirst: bool) -> datetime | None:
    # The same cell is parsed by the filter, the aggregator and the drill-down
    try:
        ts = pd.to_datetime(text, dayfirst=dayfirst)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return to_local_naive(ts.to_pydatetime())


def filter_by_date(
    records: Iterable[R],
    get_date: Callable[[R], str],
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[R]:
    """
    Keep records whose date falls within [start, end], preserving order.

    Either bound may be None (unbounded). Both bounds are inclusive.
    """
    lo = to_local_naive(start) if start is not None else None
    hi = to_local_naive(end) if end is not None else None

    kept: list[R] = []
    dropped = 0
    for record in records:
        parsed = parse_timestamp(get_date(record))
        if parsed is None:
            dropped += 1
            continue
        if lo is not None and parsed < lo:
            continue
        if hi is not None and parsed > hi:
            continue
        kept.append(record)

    if dropped:
        logger.debug("Dropped %d rows with empty or unparseable dates", dropped)
    return kept


def filter_activity(
    records: Iterable[ActivityRecord], date_range: DateRange | None = None
) -> list[ActivityRecord]:
    date_range = date_range or DateRange()
    return filter_by_date(records, lambda r: r.date_time, date_range.start, date_range.end)


def filter_attendance(
    records: Iterable[AttendanceRecord], date_range: DateRange | None = None
) -> list[AttendanceRecord]:
    date_range = date_range or DateRange()
    return filter_by_date(records, lambda r: r.login_date, date_range.start, date_range.end)
