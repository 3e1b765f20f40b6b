"""
FastAPI Dependency Injection Container

Provides singleton instances of services to avoid recreating them on every request.
Services are lazy-initialized on first access and share one request cache.
"""
from typing import Optional

from app.services.cache_service import RequestCache
from app.services.calendar_service import FixedStartCalendar
from app.services.daily_stats_service import DailyStatService
from app.services.espn_service import ESPNService
from app.services.mlb_stats_client import MLBStatsClient
from app.services.player_matcher import PlayerMatcher
from app.services.projection_service import ProjectionService
from app.services.roster_service import RosterService
from app.services.weekly_stats_service import WeeklyStatsService


class ServiceContainer:
    """
    Container for singleton service instances.
    Services are lazily initialized on first access.
    """

    _cache: Optional[RequestCache] = None
    _calendar: Optional[FixedStartCalendar] = None
    _espn: Optional[ESPNService] = None
    _stats_client: Optional[MLBStatsClient] = None
    _daily_stats: Optional[DailyStatService] = None
    _roster_service: Optional[RosterService] = None
    _weekly_stats: Optional[WeeklyStatsService] = None
    _projection_service: Optional[ProjectionService] = None

    @classmethod
    def get_cache(cls) -> RequestCache:
        """Get or create the process-wide RequestCache."""
        if cls._cache is None:
            cls._cache = RequestCache()
        return cls._cache

    @classmethod
    def get_calendar(cls) -> FixedStartCalendar:
        if cls._calendar is None:
            cls._calendar = FixedStartCalendar()
        return cls._calendar

    @classmethod
    def get_espn_service(cls) -> ESPNService:
        if cls._espn is None:
            cls._espn = ESPNService()
        return cls._espn

    @classmethod
    def get_stats_client(cls) -> MLBStatsClient:
        if cls._stats_client is None:
            cls._stats_client = MLBStatsClient()
        return cls._stats_client

    @classmethod
    def get_daily_stats(cls) -> DailyStatService:
        if cls._daily_stats is None:
            cls._daily_stats = DailyStatService(cls.get_stats_client(), cls.get_cache())
        return cls._daily_stats

    @classmethod
    def get_roster_service(cls) -> RosterService:
        if cls._roster_service is None:
            cls._roster_service = RosterService(
                cls.get_espn_service(), cls.get_cache(), calendar=cls.get_calendar()
            )
        return cls._roster_service

    @classmethod
    def get_weekly_stats(cls) -> WeeklyStatsService:
        """Get or create the WeeklyStatsService singleton."""
        if cls._weekly_stats is None:
            cls._weekly_stats = WeeklyStatsService(
                calendar=cls.get_calendar(),
                rosters=cls.get_roster_service(),
                daily_stats=cls.get_daily_stats(),
                matcher=PlayerMatcher(),
                cache=cls.get_cache(),
            )
        return cls._weekly_stats

    @classmethod
    def get_projection_service(cls) -> ProjectionService:
        """Get or create the ProjectionService singleton."""
        if cls._projection_service is None:
            cls._projection_service = ProjectionService(
                calendar=cls.get_calendar(),
                weekly=cls.get_weekly_stats(),
                daily_stats=cls.get_daily_stats(),
                matcher=PlayerMatcher(),
                stats_client=cls.get_stats_client(),
                rosters=cls.get_roster_service(),
            )
        return cls._projection_service

    @classmethod
    async def aclose(cls) -> None:
        """Close HTTP clients held by the upstream services."""
        if cls._espn is not None:
            await cls._espn.close()
        if cls._stats_client is not None:
            await cls._stats_client.close()

    @classmethod
    def reset(cls) -> None:
        """Reset all singleton instances. Useful for testing."""
        cls._cache = None
        cls._calendar = None
        cls._espn = None
        cls._stats_client = None
        cls._daily_stats = None
        cls._roster_service = None
        cls._weekly_stats = None
        cls._projection_service = None


# FastAPI dependency functions
def get_cache() -> RequestCache:
    return ServiceContainer.get_cache()


def get_calendar() -> FixedStartCalendar:
    return ServiceContainer.get_calendar()


def get_roster_service() -> RosterService:
    return ServiceContainer.get_roster_service()


def get_weekly_stats() -> WeeklyStatsService:
    """
    FastAPI dependency for WeeklyStatsService.

    Usage:
        @router.get("/{week_id}")
        async def get_week(weekly: WeeklyStatsService = Depends(get_weekly_stats)):
            ...
    """
    return ServiceContainer.get_weekly_stats()


def get_projection_service() -> ProjectionService:
    """
    FastAPI dependency for ProjectionService.

    Usage:
        @router.get("/teams/{team_id}")
        async def project(projections: ProjectionService = Depends(get_projection_service)):
            ...
    """
    return ServiceContainer.get_projection_service()
