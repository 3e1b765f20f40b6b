import logging
from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_weekly_stats
from app.exceptions import UpstreamError
from app.schemas.match import (
    DailyMatchResponse,
    PlayerMatchResponse,
    RosterEntryResponse,
    StatPlayerResponse,
)
from app.schemas.stats import stat_line_response
from app.services.player_matcher import PlayerMatch
from app.services.weekly_stats_service import WeeklyStatsService
from app.utils import parse_iso_date, sanitize_error_message

logger = logging.getLogger(__name__)
router = APIRouter()


def match_response(match: PlayerMatch) -> PlayerMatchResponse:
    player = None
    if match.player is not None:
        player = StatPlayerResponse(
            player_id=match.player.player_id,
            full_name=match.player.full_name,
            team_code=match.player.team_code,
            team_name=match.player.team_name,
            position_code=match.player.position_code,
            stats=stat_line_response(match.player.stat.line) if match.player.stat else None,
        )
    return PlayerMatchResponse(
        entry=RosterEntryResponse.model_validate(match.entry),
        player=player,
        confidence=match.confidence,
        reason=match.reason,
        warnings=list(match.warnings),
    )


@router.get("/{team_id}", response_model=DailyMatchResponse)
async def get_daily_matches(
    team_id: int,
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    weekly: WeeklyStatsService = Depends(get_weekly_stats),
):
    """Resolve a team's starters against one day's stat records."""
    try:
        day = parse_iso_date(date) or date_type.today()
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date: {date}")

    try:
        report = await weekly.get_daily_matches(team_id, day)
    except UpstreamError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Upstream unavailable: {sanitize_error_message(e)}",
        )

    return DailyMatchResponse(
        team_id=report.team_id,
        date=report.date,
        matches=[match_response(m) for m in report.matches],
        totals=stat_line_response(report.totals),
        warnings=list(report.warnings),
    )
