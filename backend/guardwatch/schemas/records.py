"""
Raw rows of the two exported datasets.

Field aliases are the exact header names of the exports; columns may come in
any order but must keep these names.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ExportRow(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def as_text(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @classmethod
    def columns(cls) -> tuple[str, ...]:
        return tuple(f.alias or name for name, f in cls.model_fields.items())


class ActivityRecord(_ExportRow):
    service_number: str = Field(default="", alias="Service Number")
    user_name: str = Field(default="", alias="User Name")
    date_time: str = Field(default="", alias="Date/Time")
    activity: str = Field(default="", alias="Activity")
    post_name: str = Field(default="", alias="Post Name")
    location_accuracy: str = Field(default="", alias="Location Accuracy")
    time_accuracy: str = Field(default="", alias="Time Accuracy")


class AttendanceRecord(_ExportRow):
    login_date: str = Field(default="", alias="Login Date")
    post_name: str = Field(default="", alias="Post Name")
    shift_time: str = Field(default="", alias="Shift Time")
    full_name: str = Field(default="", alias="Full Name")
    service_number: str = Field(default="", alias="Service Number")
    late_hours: str = Field(default="", alias="Late Hours")
    excess_hours: str = Field(default="", alias="Excess Hours")
    no_of_miss: str = Field(default="", alias="No of Miss")


ACTIVITY_COLUMNS: tuple[str, ...] = ActivityRecord.columns()
ATTENDANCE_COLUMNS: tuple[str, ...] = AttendanceRecord.columns()
