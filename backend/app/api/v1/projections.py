import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.dependencies import get_projection_service
from app.exceptions import CalendarUnavailable, UpstreamError
from app.schemas.match import RosterEntryResponse
from app.schemas.projection import (
    LineupProjectionResponse,
    PlayerProjectionResponse,
    TeamProjectionResponse,
)
from app.schemas.stats import stat_line_response
from app.services.projection_service import PlayerProjection, ProjectionService
from app.services.records import RosterEntry
from app.utils import sanitize_error_message, validate_search_query

logger = logging.getLogger(__name__)
router = APIRouter()


def player_projection_response(projection: PlayerProjection) -> PlayerProjectionResponse:
    return PlayerProjectionResponse(
        entry=RosterEntryResponse.model_validate(projection.entry),
        target_week=projection.target_week,
        projected=stat_line_response(projection.line),
        observed=stat_line_response(projection.observed),
        stats_player_id=projection.stats_player_id,
        resolved_by=projection.resolved_by,
        games_observed=projection.games_observed,
        games_projected=projection.games_projected,
        data_source=projection.data_source,
        warnings=list(projection.warnings),
    )


@router.get("/teams/{team_id}", response_model=TeamProjectionResponse)
async def project_team(
    team_id: int,
    week: int = Query(..., ge=1, description="Target matchup week"),
    prior_weeks: Optional[List[int]] = Query(None, description="Weeks to summarize; defaults to the 4 before target"),
    projections: ProjectionService = Depends(get_projection_service),
):
    """Median of a team's recent weekly totals."""
    projection = await projections.project_team(team_id, week, prior_weeks)
    return TeamProjectionResponse(
        team_id=projection.team_id,
        target_week=projection.target_week,
        projected=stat_line_response(
            projection.line, avg=projection.avg, era=projection.era, whip=projection.whip
        ),
        weeks_used=list(projection.weeks_used),
        data_source=projection.data_source,
        warnings=list(projection.warnings),
    )


@router.get("/teams/{team_id}/lineup", response_model=LineupProjectionResponse)
async def project_lineup(
    team_id: int,
    week: int = Query(..., ge=1, description="Target matchup week"),
    projections: ProjectionService = Depends(get_projection_service),
):
    """Sum of per-player projections for the target week's starting lineup."""
    try:
        lineup = await projections.project_lineup(team_id, week)
    except CalendarUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Upstream unavailable: {sanitize_error_message(e)}",
        )

    return LineupProjectionResponse(
        team_id=lineup.team_id,
        target_week=lineup.target_week,
        projected=stat_line_response(lineup.totals),
        players=[player_projection_response(p) for p in lineup.players],
        warnings=list(lineup.warnings),
    )


@router.get("/players/{player_id}", response_model=PlayerProjectionResponse)
async def project_player(
    player_id: int,
    week: int = Query(..., ge=1, description="Target matchup week"),
    name: str = Query(..., description="Player name as shown on the fantasy platform"),
    pro_team: str = Query("", description="Team code, improves matching"),
    position: str = Query("", description="Roster position, improves matching"),
    projections: ProjectionService = Depends(get_projection_service),
):
    """Project a single player's week from their recent games."""
    try:
        full_name = validate_search_query(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    entry = RosterEntry(
        platform_player_id=player_id,
        full_name=full_name,
        pro_team=pro_team,
        position=position,
    )
    try:
        projection = await projections.project_player(entry, week)
    except CalendarUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    return player_projection_response(projection)
