"""
conftest.py: shared fixtures.

Strategy:
- Rows are built in memory from plain dicts keyed by the export headers, so
  tests read like the CSV files they stand for.
- Timestamps carry no offset, so hours are the same on every host timezone.
- HTTP tests run against the FastAPI app through ASGITransport with the
  dashboard dependency overridden by a freshly loaded Dashboard.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from guardwatch.main import app
from guardwatch.schemas.records import (
    ACTIVITY_COLUMNS,
    ATTENDANCE_COLUMNS,
    ActivityRecord,
    AttendanceRecord,
)
from guardwatch.services.dashboard import Dashboard, get_dashboard


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------


def activity(
    when: str,
    sn: str = "",
    name: str = "",
    post: str = "Gate-1",
    accuracy: str = "",
    time_accuracy: str = "On Time",
    label: str = "Patrol",
) -> ActivityRecord:
    return ActivityRecord.model_validate(
        {
            "Service Number": sn,
            "User Name": name,
            "Date/Time": when,
            "Activity": label,
            "Post Name": post,
            "Location Accuracy": accuracy,
            "Time Accuracy": time_accuracy,
        }
    )


def attendance(
    login: str,
    post: str = "Gate-1",
    late: str = "On-time",
    miss: str = "0",
    sn: str = "",
    name: str = "",
) -> AttendanceRecord:
    return AttendanceRecord.model_validate(
        {
            "Login Date": login,
            "Post Name": post,
            "Shift Time": "08:00-20:00",
            "Full Name": name,
            "Service Number": sn,
            "Late Hours": late,
            "Excess Hours": "0",
            "No of Miss": miss,
        }
    )


def to_csv(rows: list[dict[str, str]], columns: tuple[str, ...]) -> str:
    lines = [",".join(columns)]
    for row in rows:
        lines.append(",".join(row.get(c, "") for c in columns))
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Sample datasets
# ---------------------------------------------------------------------------


@pytest.fixture
def activity_rows() -> list[ActivityRecord]:
    """
    Three guards over two days:
      G-100: 3 rows, one reading over threshold, on time
      G-200: 2 rows, late on first sight
      G-300: 1 row, clean
    Plus one anonymous row and one row with a broken timestamp.
    """
    return [
        activity("2024-01-15 08:10:00", "G-100", "Alice Moyo", "Gate-1", "12m"),
        activity("2024-01-15 14:30:00", "G-100", "Alice Moyo", "Gate-1", "75m"),
        activity("2024-01-16 09:00:00", "G-100", "Alice Moyo", "Gate-1", "20 m"),
        activity("2024-01-15 08:45:00", "G-200", "Brian Dube", "Warehouse", "30m", time_accuracy="Late"),
        activity("2024-01-16 22:15:00", "G-200", "Brian Dube", "Warehouse", "n/a", time_accuracy="On Time"),
        activity("2024-01-16 14:05:00", "G-300", "Chipo Ncube", "Lobby", "8m"),
        activity("2024-01-15 14:50:00", "", "", "Gate-1", "60m"),
        activity("not a date", "G-400", "Ghost", "Gate-1", "90m"),
    ]


@pytest.fixture
def attendance_rows() -> list[AttendanceRecord]:
    return [
        attendance("2024-01-15", "Gate-1", "On-time", "0", "G-100"),
        attendance("2024-01-16", "Gate-1", "00:15", "2", "G-100"),
        attendance("2024-01-15", "Warehouse", "On-time", "1", "G-200"),
        attendance("2024-01-16", "Warehouse", "On-time", "", "G-200"),
        attendance("2024-01-16", "Lobby", "01:05", "abc", "G-300"),
        attendance("2024-01-16", "", "Late", "5", "G-300"),
        attendance("", "Gate-1", "On-time", "9", "G-100"),
    ]


@pytest.fixture
def board(activity_rows, attendance_rows) -> Dashboard:
    b = Dashboard()
    b.load(activity_rows, attendance_rows)
    return b


@pytest.fixture
def csv_files(tmp_path: Path) -> tuple[Path, Path]:
    """Activity and attendance CSV exports written to tmp_path."""
    activity_csv = tmp_path / "Activity-Report.csv"
    activity_csv.write_text(
        to_csv(
            [
                {
                    "Service Number": "G-100",
                    "User Name": "Alice Moyo",
                    "Date/Time": "2024-01-15 14:30:00",
                    "Activity": "Patrol",
                    "Post Name": "Gate-1",
                    "Location Accuracy": "75m",
                    "Time Accuracy": "On Time",
                },
                {
                    "Service Number": "G-200",
                    "User Name": "Brian Dube",
                    "Date/Time": "2024-01-15 08:45:00",
                    "Activity": "Check-in",
                    "Post Name": "Warehouse",
                    "Location Accuracy": "30m",
                    "Time Accuracy": "Late",
                },
            ],
            ACTIVITY_COLUMNS,
        ),
        encoding="utf-8",
    )
    attendance_csv = tmp_path / "Post-basis-attendance.csv"
    attendance_csv.write_text(
        to_csv(
            [
                {
                    "Login Date": "2024-01-15",
                    "Post Name": "Gate-1",
                    "Shift Time": "08:00-20:00",
                    "Full Name": "Alice Moyo",
                    "Service Number": "G-100",
                    "Late Hours": "On-time",
                    "Excess Hours": "0",
                    "No of Miss": "1",
                },
                {
                    "Login Date": "2024-01-15",
                    "Post Name": "Gate-1",
                    "Shift Time": "08:00-20:00",
                    "Full Name": "Brian Dube",
                    "Service Number": "G-200",
                    "Late Hours": "Late",
                    "Excess Hours": "0",
                    "No of Miss": "0",
                },
            ],
            ATTENDANCE_COLUMNS,
        ),
        encoding="utf-8",
    )
    return activity_csv, attendance_csv


# ---------------------------------------------------------------------------
# HTTP client fixture
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(board: Dashboard) -> AsyncClient:
    """HTTPX async client bound to the app, serving the ``board`` fixture."""
    app.dependency_overrides[get_dashboard] = lambda: board
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
