"""
Dashboard state and the aggregation entry point.

``aggregate`` is a pure function of the raw rows and the date range. The
``Dashboard`` object owns the raw rows, the active range and the latest
snapshot, recomputes the whole snapshot on every input change and tells
subscribers about it. Readers only ever see a fully built snapshot.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Literal, Sequence

import httpx

from guardwatch.schemas.records import ActivityRecord, AttendanceRecord
from guardwatch.schemas.stats import (
    DashboardSnapshot,
    DateRange,
    GuardStat,
    LocationRecords,
    LocationStat,
    Metrics,
)
from guardwatch.services.activity_aggregator import aggregate_activity
from guardwatch.services.attendance_aggregator import aggregate_attendance
from guardwatch.services.dataset_loader import DatasetLoadError, load_datasets
from guardwatch.services.record_filter import filter_activity, filter_attendance, parse_timestamp

logger = logging.getLogger(__name__)

Subscriber = Callable[["Dashboard"], None]


def aggregate(
    raw_activity: Iterable[ActivityRecord],
    raw_attendance: Iterable[AttendanceRecord],
    date_range: DateRange | None = None,
) -> DashboardSnapshot:
    """Filter both datasets by ``date_range`` and build one consolidated snapshot."""
    date_range = date_range or DateRange()

    activity = aggregate_activity(filter_activity(raw_activity, date_range))
    attendance = aggregate_attendance(filter_attendance(raw_attendance, date_range))

    guards = [
        guard.model_copy(update={"missed_scans": attendance.missed_by_guard.get(sn, 0)})
        for sn, guard in activity.guards.items()
    ]

    metrics = Metrics(
        total_guards=activity.total_guards,
        location_errors=activity.location_errors,
        avg_location_accuracy=activity.avg_location_accuracy,
        avg_reading_accuracy=activity.avg_reading_accuracy,
        total_shifts=attendance.total_shifts,
        on_time_rate=attendance.on_time_rate,
        late_check_ins=attendance.late_check_ins,
        early_checkouts=attendance.early_checkouts,
        missed_scans=attendance.missed_scans,
    )

    return DashboardSnapshot(
        metrics=metrics,
        activity=activity.buckets,
        guards=guards,
        locations=list(attendance.locations.values()),
        date_range=date_range,
    )


def records_in_hour(records: Iterable[ActivityRecord], hour: int) -> list[ActivityRecord]:
    result = []
    for record in records:
        when = parse_timestamp(record.date_time)
        if when is not None and when.hour == hour:
            result.append(record)
    return result


def search_guards(guards: Sequence[GuardStat], term: str | None) -> list[GuardStat]:
    """Case-insensitive substring match on guard name or post."""
    if not term:
        return list(guards)
    needle = term.lower()
    return [g for g in guards if needle in g.name.lower() or needle in g.post.lower()]


def search_locations(locations: Sequence[LocationStat], term: str | None) -> list[LocationStat]:
    if not term:
        return list(locations)
    needle = term.lower()
    return [loc for loc in locations if needle in loc.name.lower()]


class Dashboard:
    def __init__(self) -> None:
        self._activity: tuple[ActivityRecord, ...] = ()
        self._attendance: tuple[AttendanceRecord, ...] = ()
        self._date_range = DateRange()
        self._snapshot: DashboardSnapshot | None = None
        self._loaded = False
        self._error: str | None = None
        self._subscribers: list[Subscriber] = []

    # -- state -------------------------------------------------------------

    @property
    def status(self) -> Literal["loading", "ready", "error"]:
        if self._error is not None:
            return "error"
        return "ready" if self._loaded else "loading"

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def snapshot(self) -> DashboardSnapshot | None:
        return self._snapshot

    @property
    def date_range(self) -> DateRange:
        return self._date_range

    # -- inputs ------------------------------------------------------------

    def load(
        self,
        activity: Iterable[ActivityRecord],
        attendance: Iterable[AttendanceRecord],
    ) -> None:
        self._activity = tuple(activity)
        self._attendance = tuple(attendance)
        self._loaded = True
        self._error = None
        logger.info(
            "Dashboard loaded: activity=%d rows, attendance=%d rows",
            len(self._activity), len(self._attendance),
        )
        self._recompute()

    def fail(self, message: str) -> None:
        """Enter the blocking error state; no partial data stays visible."""
        self._activity = ()
        self._attendance = ()
        self._snapshot = None
        self._loaded = False
        self._error = message
        logger.error("Dashboard data unavailable: %s", message)
        self._notify()

    def set_start(self, start: datetime | None) -> None:
        self.set_date_range(start, self._date_range.end)

    def set_end(self, end: datetime | None) -> None:
        self.set_date_range(self._date_range.start, end)

    def set_date_range(self, start: datetime | None, end: datetime | None) -> None:
        self._date_range = DateRange(start=start, end=end)
        self._recompute()

    # -- subscriptions -----------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback(dashboard)`` after every change; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self)

    def _recompute(self) -> None:
        if not self._loaded:
            return
        snapshot = aggregate(self._activity, self._attendance, self._date_range)
        self._snapshot = snapshot
        logger.info(
            "Snapshot rebuilt: guards=%d, locations=%d, shifts=%d (range %s .. %s)",
            len(snapshot.guards), len(snapshot.locations), snapshot.metrics.total_shifts,
            self._date_range.start, self._date_range.end,
        )
        self._notify()

    # -- drill-down --------------------------------------------------------

    def activity_in_hour(self, hour: int) -> list[ActivityRecord]:
        filtered = filter_activity(self._activity, self._date_range)
        return records_in_hour(filtered, hour)

    def location_records(self, name: str) -> LocationRecords:
        activity = filter_activity(self._activity, self._date_range)
        attendance = filter_attendance(self._attendance, self._date_range)
        return LocationRecords(
            name=name,
            activity=[r for r in activity if r.post_name == name],
            attendance=[r for r in attendance if r.post_name == name],
        )


async def refresh(
    target: Dashboard,
    activity_source: str | None = None,
    attendance_source: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> Dashboard:
    """(Re)load both datasets into ``target``; a load failure puts it in the error state."""
    try:
        activity, attendance = await load_datasets(activity_source, attendance_source, client)
    except DatasetLoadError as exc:
        target.fail(str(exc))
        return target
    target.load(activity, attendance)
    return target


dashboard = Dashboard()


def get_dashboard() -> Dashboard:
    return dashboard
