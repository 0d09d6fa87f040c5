"""
Loader for the two exported datasets.

Supported sources:
  - local .csv files (comma-delimited, header row)
  - local .xlsx workbooks (first sheet, header row)
  - http(s) URLs serving either of the above

Required headers:
  Activity:   Service Number, User Name, Date/Time, Activity, Post Name,
              Location Accuracy, Time Accuracy
  Attendance: Login Date, Post Name, Shift Time, Full Name, Service Number,
              Late Hours, Excess Hours, No of Miss
"""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path, PurePosixPath
from typing import TypeVar

import httpx
import pandas as pd
from pydantic import ValidationError

from guardwatch.core.config import settings
from guardwatch.schemas.records import (
    ACTIVITY_COLUMNS,
    ATTENDANCE_COLUMNS,
    ActivityRecord,
    AttendanceRecord,
)

logger = logging.getLogger(__name__)

_EXCEL_SUFFIXES: frozenset[str] = frozenset({".xlsx", ".xlsm"})

M = TypeVar("M", ActivityRecord, AttendanceRecord)


class DatasetLoadError(Exception):
    """A dataset could not be retrieved or parsed; no partial data is exposed."""

    def __init__(self, dataset: str, message: str) -> None:
        super().__init__(f"{dataset}: {message}")
        self.dataset = dataset
        self.message = message


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _source_suffix(source: str) -> str:
    if _is_url(source):
        return PurePosixPath(httpx.URL(source).path).suffix.lower()
    return Path(source).suffix.lower()


async def fetch_source(
    source: str,
    dataset: str,
    client: httpx.AsyncClient | None = None,
) -> bytes:
    """Read the raw bytes of a dataset from a path or URL."""
    if _is_url(source):
        try:
            if client is None:
                async with httpx.AsyncClient(timeout=settings.LOAD_TIMEOUT_SEC) as own:
                    resp = await own.get(source)
            else:
                resp = await client.get(source)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise DatasetLoadError(dataset, f"failed to fetch {source}: {exc}") from exc
        return resp.content

    path = Path(source)
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise DatasetLoadError(dataset, f"failed to read {path}: {exc}") from exc


def _read_table(content: bytes, suffix: str, dataset: str) -> pd.DataFrame:
    try:
        if suffix in _EXCEL_SUFFIXES:
            df = pd.read_excel(io.BytesIO(content), engine="openpyxl", dtype=str)
        else:
            df = pd.read_csv(
                io.BytesIO(content),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
    except Exception as exc:
        raise DatasetLoadError(dataset, f"unreadable table: {exc}") from exc
    return df


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Strip stray whitespace around header names; names are otherwise exact."""
    return df.rename(columns={c: str(c).strip() for c in df.columns})


def _clean_cell(value: object) -> str:
    """Empty Excel cells arrive as NaN; everything else is kept as text."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).strip()


def parse_table(
    content: bytes,
    model: type[M],
    columns: tuple[str, ...],
    dataset: str,
    suffix: str = ".csv",
) -> list[M]:
    """Parse one dataset into immutable row models."""
    df = _normalize_columns(_read_table(content, suffix, dataset))

    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise DatasetLoadError(dataset, f"missing required columns: {', '.join(missing)}")

    records: list[M] = []
    skipped_empty = 0
    skipped_invalid = 0

    # Header is line 1; data rows start on line 2
    for i, row in enumerate(df[list(columns)].to_dict(orient="records"), start=2):
        values = {col: _clean_cell(row[col]) for col in columns}
        if not any(values.values()):
            skipped_empty += 1
            continue
        try:
            records.append(model.model_validate(values))
        except ValidationError as exc:
            skipped_invalid += 1
            logger.warning("%s line %d skipped: %s", dataset, i, exc.errors()[0]["msg"])

    logger.info(
        "Parsed %s: rows=%d, skipped_empty=%d, skipped_invalid=%d",
        dataset, len(records), skipped_empty, skipped_invalid,
    )
    return records


def parse_activity(content: bytes, suffix: str = ".csv") -> list[ActivityRecord]:
    return parse_table(content, ActivityRecord, ACTIVITY_COLUMNS, "activity", suffix)


def parse_attendance(content: bytes, suffix: str = ".csv") -> list[AttendanceRecord]:
    return parse_table(content, AttendanceRecord, ATTENDANCE_COLUMNS, "attendance", suffix)


async def load_datasets(
    activity_source: str | None = None,
    attendance_source: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> tuple[list[ActivityRecord], list[AttendanceRecord]]:
    """
    Load both datasets. Either both load completely or DatasetLoadError is raised.
    """
    activity_source = activity_source or settings.ACTIVITY_SOURCE
    attendance_source = attendance_source or settings.ATTENDANCE_SOURCE

    logger.info("Loading datasets: activity=%s, attendance=%s", activity_source, attendance_source)
    activity_raw, attendance_raw = await asyncio.gather(
        fetch_source(activity_source, "activity", client),
        fetch_source(attendance_source, "attendance", client),
    )

    activity = parse_activity(activity_raw, _source_suffix(activity_source))
    attendance = parse_attendance(attendance_raw, _source_suffix(attendance_source))
    return activity, attendance
