from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from guardwatch.schemas.records import ActivityRecord, AttendanceRecord


class ActivityBucket(BaseModel):
    hour: int = Field(ge=0, le=23)
    count: int = 0
    location_issues: int = 0


class GuardStat(BaseModel):
    id: str
    name: str
    post: str
    activities: int = 0
    # Last reading above the issue threshold, overwritten on each new one
    location_accuracy: int = 0
    location_issues: int = 0
    on_time: bool
    missed_scans: int = 0
    last_activity: str
    status: Literal["normal", "warning"] = "normal"


class LocationStat(BaseModel):
    name: str
    total_scans: int = 0
    accuracy_issues: int = 0
    # Not populated by the attendance pass; kept for the dashboard schema
    avg_accuracy: int = 0
    coverage_rate: int = 0


class Metrics(BaseModel):
    total_guards: int = 0
    on_time_rate: int = 0
    late_check_ins: int = 0
    # Alias of late_check_ins: the exports carry no checkout time to compare
    early_checkouts: int = 0
    location_errors: int = 0
    avg_location_accuracy: int = 0
    avg_reading_accuracy: int = 0
    total_shifts: int = 0
    missed_scans: int = 0


class DateRange(BaseModel):
    start: datetime | None = None
    end: datetime | None = None


class DashboardSnapshot(BaseModel):
    metrics: Metrics
    activity: list[ActivityBucket]
    guards: list[GuardStat]
    locations: list[LocationStat]
    date_range: DateRange


class LocationRecords(BaseModel):
    name: str
    activity: list[ActivityRecord]
    attendance: list[AttendanceRecord]
