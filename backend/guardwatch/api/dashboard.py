"""
Dashboard API routes.

Every data endpoint answers 503 while the datasets are loading or failed to
load; the error text is passed through so the client can show it.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from guardwatch.schemas.records import ActivityRecord
from guardwatch.schemas.stats import (
    ActivityBucket,
    DashboardSnapshot,
    DateRange,
    GuardStat,
    LocationRecords,
    LocationStat,
    Metrics,
)
from guardwatch.services.dashboard import (
    Dashboard,
    get_dashboard,
    refresh,
    search_guards,
    search_locations,
)
from guardwatch.services.record_filter import to_local_naive

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_snapshot(board: Dashboard) -> DashboardSnapshot:
    if board.status == "error":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Dashboard data failed to load: {board.error}",
        )
    if board.snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard data not loaded yet",
        )
    return board.snapshot


@router.get(
    "/",
    response_model=DashboardSnapshot,
    summary="Full dashboard snapshot",
)
async def get_snapshot(board: Dashboard = Depends(get_dashboard)) -> DashboardSnapshot:
    return _require_snapshot(board)


@router.get("/metrics", response_model=Metrics, summary="Summary metrics")
async def get_metrics(board: Dashboard = Depends(get_dashboard)) -> Metrics:
    return _require_snapshot(board).metrics


@router.get(
    "/activity",
    response_model=list[ActivityBucket],
    summary="Hourly activity histogram (24 buckets)",
)
async def get_activity(board: Dashboard = Depends(get_dashboard)) -> list[ActivityBucket]:
    return _require_snapshot(board).activity


@router.get(
    "/activity/{hour}/records",
    response_model=list[ActivityRecord],
    summary="Activity rows behind one hour bucket",
)
async def get_activity_records(
    hour: int = Path(..., ge=0, le=23),
    board: Dashboard = Depends(get_dashboard),
) -> list[ActivityRecord]:
    _require_snapshot(board)
    return board.activity_in_hour(hour)


@router.get("/guards", response_model=list[GuardStat], summary="Per-guard statistics")
async def get_guards(
    search: str | None = Query(default=None, description="Substring of guard name or post"),
    board: Dashboard = Depends(get_dashboard),
) -> list[GuardStat]:
    return search_guards(_require_snapshot(board).guards, search)


@router.get("/locations", response_model=list[LocationStat], summary="Per-post coverage")
async def get_locations(
    search: str | None = Query(default=None, description="Substring of post name"),
    board: Dashboard = Depends(get_dashboard),
) -> list[LocationStat]:
    return search_locations(_require_snapshot(board).locations, search)


@router.get(
    "/locations/{name}/records",
    response_model=LocationRecords,
    summary="Activity and attendance rows for one post",
)
async def get_location_records(
    name: str,
    board: Dashboard = Depends(get_dashboard),
) -> LocationRecords:
    _require_snapshot(board)
    return board.location_records(name)


@router.get("/range", response_model=DateRange, summary="Active date range")
async def get_range(board: Dashboard = Depends(get_dashboard)) -> DateRange:
    return board.date_range


@router.put(
    "/range",
    response_model=DashboardSnapshot,
    summary="Set the date range and return the recomputed snapshot",
)
async def put_range(
    body: DateRange,
    board: Dashboard = Depends(get_dashboard),
) -> DashboardSnapshot:
    if (
        body.start is not None
        and body.end is not None
        and to_local_naive(body.start) > to_local_naive(body.end)
    ):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="start must not be after end",
        )
    board.set_date_range(body.start, body.end)
    logger.info("Date range set: %s .. %s", body.start, body.end)
    return _require_snapshot(board)


@router.post(
    "/reload",
    response_model=DashboardSnapshot,
    summary="Reload both datasets from the configured sources",
)
async def reload_datasets(board: Dashboard = Depends(get_dashboard)) -> DashboardSnapshot:
    await refresh(board)
    return _require_snapshot(board)
