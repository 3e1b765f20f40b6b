import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_cache, get_calendar, get_roster_service
from app.exceptions import CalendarUnavailable, UpstreamError
from app.models import RosterSnapshot
from app.schemas.data import CacheStatsResponse, SnapshotResponse
from app.services.cache_service import RequestCache
from app.services.calendar_service import FixedStartCalendar
from app.services.roster_service import RosterService
from app.utils import sanitize_error_message

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def get_cache_stats(cache: RequestCache = Depends(get_cache)):
    """Request cache counters."""
    stats = cache.stats()
    return CacheStatsResponse(**stats.to_dict(), ttl_seconds=cache.ttl_seconds)


@router.post("/cache/clear")
async def clear_cache(cache: RequestCache = Depends(get_cache)):
    """Drop every cached upstream result, forcing recomputation."""
    cache.clear()
    return {"status": "success", "message": "Cache cleared"}


@router.get("/rosters/snapshots")
async def list_roster_snapshots(db: AsyncSession = Depends(get_db)):
    """Stored snapshot dates with the number of teams captured on each."""
    result = await db.execute(
        select(RosterSnapshot.snapshot_date, func.count(RosterSnapshot.id))
        .group_by(RosterSnapshot.snapshot_date)
        .order_by(RosterSnapshot.snapshot_date.desc())
    )
    return {
        "snapshots": [
            {"date": snapshot_date, "teams": teams}
            for snapshot_date, teams in result.all()
        ]
    }


@router.post("/rosters/snapshot", response_model=SnapshotResponse)
async def snapshot_rosters(rosters: RosterService = Depends(get_roster_service)):
    """Capture today's lineups for every team."""
    try:
        written = await rosters.snapshot_today()
    except UpstreamError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Snapshot failed: {sanitize_error_message(e)}",
        )
    return SnapshotResponse(status="success", teams_written=written)


@router.post("/rosters/backfill")
async def backfill_rosters(
    week: int = Query(..., ge=1),
    rosters: RosterService = Depends(get_roster_service),
    calendar: FixedStartCalendar = Depends(get_calendar),
):
    """Store snapshots for the past days of a week that have none."""
    try:
        week_meta = calendar.get_week(week)
    except CalendarUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    filled = await rosters.backfill_week(week_meta)
    return {"status": "success", "week": week, "dates_filled": [d.isoformat() for d in filled]}
