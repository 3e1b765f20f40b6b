"""
Integration tests for RosterService snapshot storage and source selection.

Backed by a temp-file SQLite database per test (see session_factory).
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import func, select

from app.exceptions import StrategiesExhausted, TransportError
from app.models import RosterSnapshot
from app.services.espn_service import FantasyTeam, Matchup
from app.services.roster_service import RosterService, content_hash, serialize_entries

from conftest import make_entry

TODAY = date(2025, 4, 10)
YESTERDAY = TODAY - timedelta(days=1)


class FakeESPN:
    league_id = 24414

    def __init__(self):
        self.lineups = {1: (make_entry("Aaron Judge", pro_team="NYY", platform_player_id=33039),)}
        self.calls = []
        self.down = False

    async def get_all_rosters(self, scoring_period_id):
        self.calls.append(scoring_period_id)
        if self.down:
            raise TransportError("ESPN unreachable")
        return dict(self.lineups)

    async def get_teams(self):
        return [FantasyTeam(team_id=1, name="Sluggers")]

    async def get_matchups(self, matchup_period_id):
        self.calls.append(("matchups", matchup_period_id))
        return [Matchup(1, matchup_period_id, home_team_id=1, away_team_id=2)]


@pytest.fixture
def espn():
    return FakeESPN()


@pytest.fixture
def roster_service(espn, cache, calendar, session_factory):
    return RosterService(
        espn,
        cache,
        calendar=calendar,
        session_factory=session_factory,
        today=lambda: TODAY,
        retention_days=7,
    )


async def _snapshot_count(session_factory) -> int:
    async with session_factory() as db:
        result = await db.execute(select(func.count(RosterSnapshot.id)))
        return result.scalar()


class TestSnapshotStorage:
    async def test_store_and_read_back(self, roster_service, calendar, espn):
        day = calendar.scoring_day(YESTERDAY)
        written = await roster_service.store_snapshot(day, espn.lineups)
        assert written == 1

        espn.down = True
        roster = await roster_service.get_roster(1, day)
        assert [e.full_name for e in roster] == ["Aaron Judge"]
        assert roster[0] == espn.lineups[1][0]

    async def test_unchanged_lineup_not_rewritten(self, roster_service, calendar, espn):
        day = calendar.scoring_day(YESTERDAY)
        assert await roster_service.store_snapshot(day, espn.lineups) == 1
        assert await roster_service.store_snapshot(day, espn.lineups) == 0

    async def test_changed_lineup_updates_row(self, roster_service, calendar, espn, session_factory):
        day = calendar.scoring_day(YESTERDAY)
        await roster_service.store_snapshot(day, espn.lineups)
        changed = {1: espn.lineups[1] + (make_entry("Juan Soto", platform_player_id=39832),)}

        assert await roster_service.store_snapshot(day, changed) == 1
        assert await _snapshot_count(session_factory) == 1

    async def test_prune_drops_old_snapshots(self, roster_service, calendar, espn, session_factory):
        await roster_service.store_snapshot(calendar.scoring_day(TODAY - timedelta(days=30)), espn.lineups)
        await roster_service.store_snapshot(calendar.scoring_day(YESTERDAY), espn.lineups)

        assert await roster_service.prune_snapshots() == 1
        assert await _snapshot_count(session_factory) == 1

    def test_content_hash_is_stable(self):
        rows = serialize_entries((make_entry("Aaron Judge", platform_player_id=1),))
        assert content_hash(rows) == content_hash(list(rows))
        assert len(content_hash(rows)) == 64


class TestSourceSelection:
    async def test_past_day_from_platform_is_written_back(
        self, roster_service, calendar, espn, session_factory
    ):
        day = calendar.scoring_day(YESTERDAY)
        await roster_service.get_roster(1, day)

        assert espn.calls == [day.scoring_period_id]
        assert await _snapshot_count(session_factory) == 1

    async def test_past_day_prefers_snapshot(self, roster_service, calendar, espn):
        day = calendar.scoring_day(YESTERDAY)
        await roster_service.store_snapshot(day, espn.lineups)

        await roster_service.get_roster(1, day)
        assert espn.calls == []

    async def test_today_asks_platform_first(self, roster_service, calendar, espn, session_factory):
        day = calendar.scoring_day(TODAY)
        await roster_service.store_snapshot(day, {1: ()})

        roster = await roster_service.get_roster(1, day)
        assert espn.calls == [day.scoring_period_id]
        assert [e.full_name for e in roster] == ["Aaron Judge"]

    async def test_today_falls_back_to_snapshot(self, roster_service, calendar, espn):
        day = calendar.scoring_day(TODAY)
        await roster_service.store_snapshot(day, espn.lineups)
        espn.down = True

        roster = await roster_service.get_roster(1, day)
        assert [e.full_name for e in roster] == ["Aaron Judge"]

    async def test_no_source_raises(self, roster_service, calendar, espn):
        espn.down = True
        with pytest.raises(StrategiesExhausted):
            await roster_service.get_roster(1, calendar.scoring_day(YESTERDAY))

    async def test_old_day_not_written_back(self, roster_service, calendar, session_factory):
        await roster_service.get_roster(1, calendar.scoring_day(TODAY - timedelta(days=30)))
        assert await _snapshot_count(session_factory) == 0

    async def test_missing_team_gives_empty_roster(self, roster_service, calendar):
        assert await roster_service.get_roster(99, calendar.scoring_day(YESTERDAY)) == []


class TestScheduledJobs:
    async def test_snapshot_today(self, roster_service, espn, cache, session_factory):
        assert await roster_service.snapshot_today() == 1
        assert await _snapshot_count(session_factory) == 1

    async def test_backfill_fills_missing_past_days(self, roster_service, calendar, espn):
        # Week 2 runs Apr 7 - Apr 13; today is Apr 10
        week = calendar.get_week(2)
        await roster_service.store_snapshot(week.days[0], espn.lineups)

        filled = await roster_service.backfill_week(week)
        assert filled == [date(2025, 4, 8), date(2025, 4, 9)]

    async def test_backfill_skips_unreachable_days(self, roster_service, calendar, espn):
        espn.down = True
        assert await roster_service.backfill_week(calendar.get_week(2)) == []

    async def test_teams_cached(self, roster_service):
        first = await roster_service.get_teams()
        second = await roster_service.get_teams()
        assert first == second == [FantasyTeam(team_id=1, name="Sluggers")]

    async def test_matchups_cached_per_week(self, roster_service, espn):
        first = await roster_service.get_matchups(3)
        await roster_service.get_matchups(3)
        await roster_service.get_matchups(4)
        assert first == [Matchup(1, 3, home_team_id=1, away_team_id=2)]
        assert espn.calls == [("matchups", 3), ("matchups", 4)]
