"""
Daily Roster Provider.

Lineups for a past scoring day are read from stored snapshots when we have
them and from the ESPN league endpoint otherwise. Platform results for recent
past days are written back as snapshots, so a week's report keeps working when
ESPN is slow or down.
"""

import hashlib
import json
import logging
from dataclasses import asdict
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import settings
from app.database import async_session
from app.exceptions import UpstreamError
from app.models.roster import RosterSnapshot
from app.services.cache_service import RequestCache, make_cache_key
from app.services.calendar_service import FixedStartCalendar
from app.services.espn_service import ESPNService, FantasyTeam, Matchup
from app.services.records import RosterEntry, ScoringDay, WeekMeta
from app.services.strategies import Strategy, StrategyFailed, run_strategies

logger = logging.getLogger(__name__)

LeagueRosters = Dict[int, Tuple[RosterEntry, ...]]


class RosterProvider(Protocol):
    async def get_roster(self, team_id: int, day: ScoringDay) -> List[RosterEntry]:
        ...

    async def get_teams(self) -> List[FantasyTeam]:
        ...

    async def get_matchups(self, week_id: int) -> List[Matchup]:
        ...


def serialize_entries(entries: Tuple[RosterEntry, ...]) -> List[dict]:
    return [
        {**asdict(entry), "eligible_slot_ids": list(entry.eligible_slot_ids)}
        for entry in entries
    ]


def deserialize_entries(rows: List[dict]) -> Tuple[RosterEntry, ...]:
    return tuple(
        RosterEntry(**{**row, "eligible_slot_ids": tuple(row.get("eligible_slot_ids") or ())})
        for row in rows
    )


def content_hash(rows: List[dict]) -> str:
    return hashlib.sha256(json.dumps(rows, sort_keys=True).encode("utf-8")).hexdigest()


class RosterService:
    """Per-day league rosters backed by the request cache and the snapshot table."""

    def __init__(
        self,
        espn: ESPNService,
        cache: RequestCache,
        calendar: Optional[FixedStartCalendar] = None,
        session_factory: async_sessionmaker = async_session,
        today: Callable[[], date] = date.today,
        retention_days: Optional[int] = None,
    ):
        self.espn = espn
        self.cache = cache
        self.calendar = calendar or FixedStartCalendar()
        self.session_factory = session_factory
        self._today = today
        self.retention_days = (
            retention_days if retention_days is not None else settings.roster_snapshot_retention_days
        )

    async def get_roster(self, team_id: int, day: ScoringDay) -> List[RosterEntry]:
        """Ordered roster entries for one team on one scoring day."""
        rosters = await self.get_league_rosters(day)
        if team_id not in rosters:
            logger.warning(f"Team {team_id} not found in league rosters for {day.date}")
        return list(rosters.get(team_id, ()))

    async def get_teams(self) -> List[FantasyTeam]:
        key = make_cache_key("teams", league=self.espn.league_id)
        return await self.cache.fetch_or_compute(key, self.espn.get_teams)

    async def get_matchups(self, week_id: int) -> List[Matchup]:
        """Pairings for a week; league matchup periods are numbered like calendar weeks."""
        key = make_cache_key("matchups", league=self.espn.league_id, week=week_id)
        return await self.cache.fetch_or_compute(key, lambda: self.espn.get_matchups(week_id))

    async def get_league_rosters(self, day: ScoringDay) -> LeagueRosters:
        key = make_cache_key("rosters", period=day.scoring_period_id)
        return await self.cache.fetch_or_compute(
            key,
            lambda: self._load_rosters(day),
            permanent=day.date < self._today(),
        )

    async def _load_rosters(self, day: ScoringDay) -> LeagueRosters:
        is_past = day.date < self._today()
        snapshot = Strategy("snapshot", lambda: self._from_snapshots(day))
        platform = Strategy("platform", lambda: self._from_platform(day))
        # Today's lineup can still change, so the platform is asked first
        strategies = [snapshot, platform] if is_past else [platform, snapshot]

        outcome = await run_strategies(f"rosters for {day.date}", strategies)
        if outcome.strategy == "platform" and is_past and self._within_retention(day.date):
            try:
                await self.store_snapshot(day, outcome.value)
            except SQLAlchemyError as e:
                logger.warning(f"Could not store roster snapshot for {day.date}: {e}")
        return outcome.value

    async def _from_snapshots(self, day: ScoringDay) -> LeagueRosters:
        async with self.session_factory() as db:
            result = await db.execute(
                select(RosterSnapshot).where(RosterSnapshot.snapshot_date == day.date)
            )
            rows = result.scalars().all()
        if not rows:
            raise StrategyFailed(f"no stored snapshot for {day.date}")
        return {row.team_id: deserialize_entries(row.entries) for row in rows}

    async def _from_platform(self, day: ScoringDay) -> LeagueRosters:
        return await self.espn.get_all_rosters(day.scoring_period_id)

    def _within_retention(self, day: date) -> bool:
        return day >= self._today() - timedelta(days=self.retention_days)

    async def store_snapshot(self, day: ScoringDay, rosters: LeagueRosters) -> int:
        """
        Persist one day's rosters. Teams whose lineup hash is unchanged are
        skipped. Returns the number of team rows written.
        """
        written = 0
        async with self.session_factory() as db:
            for team_id, entries in rosters.items():
                rows = serialize_entries(entries)
                digest = content_hash(rows)
                result = await db.execute(
                    select(RosterSnapshot).where(
                        RosterSnapshot.snapshot_date == day.date,
                        RosterSnapshot.team_id == team_id,
                    )
                )
                existing = result.scalar_one_or_none()
                if existing is not None and existing.content_hash == digest:
                    continue
                if existing is None:
                    db.add(RosterSnapshot(
                        snapshot_date=day.date,
                        team_id=team_id,
                        scoring_period_id=day.scoring_period_id,
                        content_hash=digest,
                        entries=rows,
                    ))
                else:
                    existing.scoring_period_id = day.scoring_period_id
                    existing.content_hash = digest
                    existing.entries = rows
                written += 1
            await db.commit()

        if written:
            logger.info(f"Stored roster snapshot for {day.date} ({written} teams changed)")
        else:
            logger.info(f"Roster snapshot unchanged for {day.date}")
        return written

    async def prune_snapshots(self) -> int:
        """Delete snapshots older than the retention window."""
        cutoff = self._today() - timedelta(days=self.retention_days)
        async with self.session_factory() as db:
            result = await db.execute(
                delete(RosterSnapshot).where(RosterSnapshot.snapshot_date < cutoff)
            )
            await db.commit()
        if result.rowcount:
            logger.info(f"Pruned {result.rowcount} roster snapshots older than {cutoff}")
        return result.rowcount or 0

    async def snapshot_today(self) -> int:
        """Fetch today's live lineups, store them and prune old snapshots."""
        day = self.calendar.scoring_day(self._today())
        rosters = await self.espn.get_all_rosters(day.scoring_period_id)
        written = await self.store_snapshot(day, rosters)
        # Drop any cached copy so readers see the new lineup
        self.cache.invalidate(make_cache_key("rosters", period=day.scoring_period_id))
        await self.prune_snapshots()
        return written

    async def backfill_week(self, week: WeekMeta) -> List[date]:
        """Store snapshots for the week's past days that have none. Returns the dates filled."""
        today = self._today()
        async with self.session_factory() as db:
            result = await db.execute(
                select(RosterSnapshot.snapshot_date).where(
                    RosterSnapshot.snapshot_date.in_(week.dates)
                )
            )
            stored = set(result.scalars().all())

        filled = []
        for day in week.days:
            if day.date >= today or day.date in stored:
                continue
            try:
                rosters = await self._from_platform(day)
            except UpstreamError as e:
                logger.warning(f"Back-fill failed for {day.date}: {e}")
                continue
            await self.store_snapshot(day, rosters)
            filled.append(day.date)
        return filled
