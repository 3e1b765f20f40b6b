# Services module
from app.services.cache_service import RequestCache, make_cache_key
from app.services.espn_service import ESPNService
from app.services.mlb_stats_client import MLBStatsClient
from app.services.daily_stats_service import DailyStatService
from app.services.player_matcher import PlayerMatcher, PlayerMatch
from app.services.calendar_service import FixedStartCalendar
from app.services.roster_service import RosterService
from app.services.weekly_stats_service import WeeklyStatsService, WeeklyTeamStat
from app.services.projection_service import ProjectionService

__all__ = [
    "RequestCache",
    "make_cache_key",
    "ESPNService",
    "MLBStatsClient",
    "DailyStatService",
    "PlayerMatcher",
    "PlayerMatch",
    "FixedStartCalendar",
    "RosterService",
    "WeeklyStatsService",
    "WeeklyTeamStat",
    "ProjectionService",
]
