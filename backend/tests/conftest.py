"""
Pytest fixtures for Fantasy Baseball League Tracker tests.

Upstream sources are replaced by in-memory fakes; services under test are
the real ones wired together the same way the service container does it.
"""
import itertools
from datetime import date
from typing import Dict, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401
from app.database import Base
from app.exceptions import TransportError
from app.services.cache_service import RequestCache
from app.services.calendar_service import FixedStartCalendar
from app.services.daily_stats_service import DailyStatService
from app.services.espn_service import FantasyTeam, Matchup
from app.services.player_matcher import PlayerMatcher
from app.services.records import (
    Appearance,
    DailyPlayerStat,
    RosterEntry,
    ScoringDay,
    StatLine,
    StatPlayer,
)
from app.services.weekly_stats_service import WeeklyStatsService

SEASON_START = date(2025, 3, 31)   # Monday of week 1
OPENING_DAY = date(2025, 3, 27)    # scoring period 1
TODAY = date(2025, 6, 30)          # far enough out that early weeks are complete

_player_ids = itertools.count(600000)


class FakeStatsClient:
    """Stats provider stand-in keyed by date; records every call it receives."""

    def __init__(self):
        self.stat_groups: Dict[Tuple[date, str], List[Appearance]] = {}
        self.schedules: Dict[date, List[int]] = {}
        self.boxscores: Dict[int, List[Appearance]] = {}
        self.people: Dict[str, List[dict]] = {}
        self.failing_groups: set = set()
        self.failing_boxscores: set = set()
        self.calls: List[tuple] = []

    def add_appearance(self, day: date, appearance: Appearance, group: str = "hitting"):
        self.stat_groups.setdefault((day, group), []).append(appearance)
        # Mirror into a box score so both sources describe the same day
        game_pk = appearance.game_pk or 1
        self.schedules.setdefault(day, [])
        if game_pk not in self.schedules[day]:
            self.schedules[day].append(game_pk)
        self.boxscores.setdefault(game_pk, []).append(appearance)

    async def get_stat_group(self, day: date, group: str) -> List[Appearance]:
        self.calls.append(("stat_group", day, group))
        if day in self.failing_groups:
            raise TransportError(f"stats feed down for {day}")
        return list(self.stat_groups.get((day, group), []))

    async def get_game_pks(self, day: date) -> List[int]:
        self.calls.append(("schedule", day))
        return list(self.schedules.get(day, []))

    async def get_boxscore(self, game_pk: int) -> List[Appearance]:
        self.calls.append(("boxscore", game_pk))
        if game_pk in self.failing_boxscores:
            raise TransportError(f"boxscore {game_pk} unavailable")
        return list(self.boxscores.get(game_pk, []))

    async def search_people(self, name: str) -> List[dict]:
        self.calls.append(("search", name))
        return list(self.people.get(name, []))

    async def close(self):
        pass


class FakeRosters:
    """Roster provider stand-in: one lineup per team, optionally per date."""

    def __init__(self, teams: Optional[List[FantasyTeam]] = None):
        self.teams = teams or [FantasyTeam(team_id=1, name="Team One")]
        self.lineups: Dict[int, List[RosterEntry]] = {}
        self.by_date: Dict[Tuple[int, date], List[RosterEntry]] = {}
        self.failing_dates: set = set()
        self.requested: List[ScoringDay] = []
        self.matchups: Dict[int, List[Matchup]] = {}

    def set_lineup(self, team_id: int, entries: List[RosterEntry], day: Optional[date] = None):
        if day is None:
            self.lineups[team_id] = list(entries)
        else:
            self.by_date[(team_id, day)] = list(entries)

    async def get_roster(self, team_id: int, day: ScoringDay) -> List[RosterEntry]:
        self.requested.append(day)
        if day.date in self.failing_dates:
            raise TransportError(f"ESPN unavailable for {day.date}")
        if (team_id, day.date) in self.by_date:
            return list(self.by_date[(team_id, day.date)])
        return list(self.lineups.get(team_id, []))

    async def get_teams(self) -> List[FantasyTeam]:
        return list(self.teams)

    async def get_matchups(self, week_id: int) -> List[Matchup]:
        return list(self.matchups.get(week_id, []))


def make_entry(
    full_name: str,
    pro_team: str = "",
    position: str = "",
    lineup_slot_id: int = 5,
    status: str = "ACTIVE",
    platform_player_id: Optional[int] = None,
) -> RosterEntry:
    return RosterEntry(
        platform_player_id=platform_player_id or next(_player_ids),
        full_name=full_name,
        pro_team=pro_team,
        position=position,
        lineup_slot_id=lineup_slot_id,
        status=status,
    )


def make_player(
    full_name: str,
    team_code: str = "",
    position_code: str = "",
    player_id: Optional[int] = None,
    line: Optional[StatLine] = None,
    day: date = TODAY,
    team_name: str = "",
) -> StatPlayer:
    player_id = player_id or next(_player_ids)
    stat = DailyPlayerStat(player_id=player_id, date=day, line=line or StatLine(), appearances=1)
    return StatPlayer(
        player_id=player_id,
        full_name=full_name,
        team_code=team_code,
        team_name=team_name,
        position_code=position_code,
        stat=stat,
    )


def make_appearance(
    player_id: int,
    full_name: str,
    line: StatLine,
    game_pk: Optional[int] = 1,
    team_code: str = "",
    position_code: str = "",
) -> Appearance:
    return Appearance(
        player_id=player_id,
        full_name=full_name,
        line=line,
        game_pk=game_pk,
        team_code=team_code,
        position_code=position_code,
    )


@pytest.fixture
def entry_factory():
    """Factory fixture for roster entries."""
    return make_entry


@pytest.fixture
def player_factory():
    """Factory fixture for stat-provider players carrying one day's line."""
    return make_player


@pytest.fixture
def appearance_factory():
    return make_appearance


@pytest.fixture
def cache():
    return RequestCache(ttl_seconds=60)


@pytest.fixture
def calendar():
    return FixedStartCalendar(season_start=SEASON_START, opening_day=OPENING_DAY)


@pytest.fixture
def stats_client():
    return FakeStatsClient()


@pytest.fixture
def rosters():
    return FakeRosters()


@pytest.fixture
def daily_stats(stats_client, cache):
    return DailyStatService(stats_client, cache, today=lambda: TODAY)


@pytest.fixture
def weekly(calendar, rosters, daily_stats, cache):
    return WeeklyStatsService(
        calendar=calendar,
        rosters=rosters,
        daily_stats=daily_stats,
        matcher=PlayerMatcher(),
        cache=cache,
        today=lambda: TODAY,
    )


@pytest.fixture
async def session_factory(tmp_path):
    """
    Async session factory backed by a fresh temp-file SQLite DB.
    Function-scoped: each test gets a completely clean slate.
    """
    db_path = str(tmp_path / "test_snapshots.db")

    # ── sync setup ────────────────────────────────────────────────────────
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    # ── async sessions ────────────────────────────────────────────────────
    async_engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    factory = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    await async_engine.dispose()
