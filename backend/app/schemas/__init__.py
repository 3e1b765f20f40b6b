from app.schemas.stats import StatLineResponse, stat_line_response
from app.schemas.weekly import (
    WeeklyTeamStatResponse,
    LeagueWeekResponse,
    CategoryResultResponse,
    MatchupResponse,
    WeekMatchupsResponse,
    StandingResponse,
)
from app.schemas.match import (
    RosterEntryResponse,
    StatPlayerResponse,
    PlayerMatchResponse,
    DailyMatchResponse,
)
from app.schemas.projection import (
    TeamProjectionResponse,
    PlayerProjectionResponse,
    LineupProjectionResponse,
)
from app.schemas.data import CacheStatsResponse, SnapshotResponse

__all__ = [
    "StatLineResponse",
    "stat_line_response",
    "WeeklyTeamStatResponse",
    "LeagueWeekResponse",
    "CategoryResultResponse",
    "MatchupResponse",
    "WeekMatchupsResponse",
    "StandingResponse",
    "RosterEntryResponse",
    "StatPlayerResponse",
    "PlayerMatchResponse",
    "DailyMatchResponse",
    "TeamProjectionResponse",
    "PlayerProjectionResponse",
    "LineupProjectionResponse",
    "CacheStatsResponse",
    "SnapshotResponse",
]
