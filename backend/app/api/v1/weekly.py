import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_weekly_stats
from app.exceptions import CalendarUnavailable, UpstreamError
from app.schemas.stats import stat_line_response
from app.schemas.weekly import (
    CategoryResultResponse,
    LeagueWeekResponse,
    MatchupResponse,
    StandingResponse,
    WeeklyTeamStatResponse,
    WeekMatchupsResponse,
)
from app.services.weekly_stats_service import MatchupResult, WeeklyStatsService, WeeklyTeamStat
from app.utils import sanitize_error_message

logger = logging.getLogger(__name__)
router = APIRouter()


def weekly_response(stat: WeeklyTeamStat) -> WeeklyTeamStatResponse:
    return WeeklyTeamStatResponse(
        team_id=stat.team_id,
        week_id=stat.week_id,
        totals=stat_line_response(stat.totals),
        contributing_matches=stat.contributing_matches,
        days_processed=stat.days_processed,
        days_expected=stat.days_expected,
        warnings=list(stat.warnings),
    )


def matchup_response(result: MatchupResult) -> MatchupResponse:
    return MatchupResponse(
        matchup_id=result.matchup.matchup_id,
        home=weekly_response(result.home),
        away=weekly_response(result.away) if result.away is not None else None,
        categories=[
            CategoryResultResponse(
                category=c.category,
                home=round(c.home, 3),
                away=round(c.away, 3),
                winner=c.winner,
            )
            for c in result.categories
        ],
        home_wins=result.home_wins,
        away_wins=result.away_wins,
        ties=result.ties,
    )


def upstream_unavailable(e: UpstreamError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail=f"Upstream unavailable: {sanitize_error_message(e)}",
    )


async def league_week_response(weekly: WeeklyStatsService, week_id: int) -> LeagueWeekResponse:
    try:
        week = weekly.calendar.get_week(week_id)
        stats: List[WeeklyTeamStat] = await weekly.get_league_week(week_id)
    except CalendarUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamError as e:
        raise upstream_unavailable(e)

    return LeagueWeekResponse(
        week_id=week_id,
        label=week.label,
        teams=[weekly_response(stat) for stat in stats],
    )


@router.get("/current", response_model=LeagueWeekResponse)
async def get_current_week(weekly: WeeklyStatsService = Depends(get_weekly_stats)):
    """Weekly totals for the week containing today."""
    return await league_week_response(weekly, weekly.current_week_id())


@router.get("/standings", response_model=List[StandingResponse])
async def get_standings(weekly: WeeklyStatsService = Depends(get_weekly_stats)):
    """League standings by win percentage."""
    try:
        teams = await weekly.rosters.get_teams()
    except UpstreamError as e:
        raise upstream_unavailable(e)

    ordered = sorted(teams, key=lambda t: (t.win_percentage, t.wins), reverse=True)
    return [
        StandingResponse(
            rank=rank,
            team_id=team.team_id,
            name=team.name,
            abbrev=team.abbrev,
            owner=team.owner,
            wins=team.wins,
            losses=team.losses,
            ties=team.ties,
            win_percentage=round(team.win_percentage, 3),
            record=team.record,
        )
        for rank, team in enumerate(ordered, start=1)
    ]


@router.get("/{week_id}", response_model=LeagueWeekResponse)
async def get_league_week(
    week_id: int,
    weekly: WeeklyStatsService = Depends(get_weekly_stats),
):
    """Weekly totals for every team in the league."""
    return await league_week_response(weekly, week_id)


@router.get("/{week_id}/matchups", response_model=WeekMatchupsResponse)
async def get_week_matchups(
    week_id: int,
    weekly: WeeklyStatsService = Depends(get_weekly_stats),
):
    """Head-to-head matchups with the winner of each category."""
    try:
        week = weekly.calendar.get_week(week_id)
        results = await weekly.get_week_matchups(week_id)
    except CalendarUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamError as e:
        raise upstream_unavailable(e)

    return WeekMatchupsResponse(
        week_id=week_id,
        label=week.label,
        matchups=[matchup_response(result) for result in results],
    )


@router.get("/{week_id}/teams/{team_id}", response_model=WeeklyTeamStatResponse)
async def get_team_week(
    week_id: int,
    team_id: int,
    weekly: WeeklyStatsService = Depends(get_weekly_stats),
):
    """One team's weekly totals. Unreachable days are reported as warnings."""
    try:
        stat = await weekly.get_team_week(team_id, week_id)
    except CalendarUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    return weekly_response(stat)
