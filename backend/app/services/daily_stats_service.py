"""
Daily Stat Aggregator.

Reduces one calendar day of stats-provider data into a single record per
player. Two sources can feed a day:
- bulk-stat-groups: the per-date hitting and pitching game feeds
- boxscores: the day's schedule, then every game's box score
Both produce Appearance records that go through the same reducer.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from app.services.cache_service import RequestCache, make_cache_key
from app.services.mlb_stats_client import MLBStatsClient, STAT_GROUPS
from app.services.records import Appearance, DailyPlayerStat, StatLine, StatPlayer
from app.services.strategies import Strategy, run_strategies

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DaySheet:
    """Everything known about one date: per-player stats plus match candidates."""
    date: date
    stats: Dict[int, DailyPlayerStat]
    players: Tuple[StatPlayer, ...]
    source: str = ""


@dataclass
class PlayerHistory:
    player_id: int
    records: List[DailyPlayerStat] = field(default_factory=list)
    unavailable_dates: List[date] = field(default_factory=list)

    @property
    def games(self) -> int:
        return sum(record.appearances for record in self.records)

    @property
    def line(self) -> StatLine:
        return sum((record.line for record in self.records), StatLine())


def reduce_appearances(day: date, appearances: Iterable[Appearance], source: str = "") -> DaySheet:
    """
    Sum appearances per player.

    Double-headers (two appearances on one date) add up component-wise; rates
    are derived from the summed components on the resulting StatLine.
    """
    lines: Dict[int, StatLine] = {}
    games: Dict[int, set] = {}
    unkeyed: Dict[int, int] = {}
    identity: Dict[int, Appearance] = {}

    for appearance in appearances:
        pid = appearance.player_id
        lines[pid] = lines.get(pid, StatLine()) + appearance.line
        if appearance.game_pk is not None:
            games.setdefault(pid, set()).add(appearance.game_pk)
        else:
            unkeyed[pid] = unkeyed.get(pid, 0) + 1

        known = identity.get(pid)
        if known is None:
            identity[pid] = appearance
        elif (not known.team_code and appearance.team_code) or (
            not known.position_code and appearance.position_code
        ):
            identity[pid] = replace(
                known,
                team_code=known.team_code or appearance.team_code,
                team_name=known.team_name or appearance.team_name,
                position_code=known.position_code or appearance.position_code,
            )

    stats: Dict[int, DailyPlayerStat] = {}
    players: List[StatPlayer] = []
    for pid in sorted(lines):
        stat = DailyPlayerStat(
            player_id=pid,
            date=day,
            line=lines[pid],
            appearances=len(games.get(pid, ())) + unkeyed.get(pid, 0),
        )
        stats[pid] = stat
        ident = identity[pid]
        players.append(StatPlayer(
            player_id=pid,
            full_name=ident.full_name,
            team_code=ident.team_code,
            team_name=ident.team_name,
            position_code=ident.position_code,
            stat=stat,
        ))

    return DaySheet(date=day, stats=stats, players=tuple(players), source=source)


class DailyStatService:
    """Cached per-date stat sheets."""

    def __init__(
        self,
        stats_client: MLBStatsClient,
        cache: RequestCache,
        today: Callable[[], date] = date.today,
    ):
        self.stats_client = stats_client
        self.cache = cache
        self._today = today

    async def get_day_sheet(self, day: date) -> DaySheet:
        """
        Load and reduce one date, cached.

        Past dates are cached without expiry; today and later use the cache TTL.

        Raises:
            StrategiesExhausted: neither source could produce the day
        """
        key = make_cache_key("day-sheet", date=day.isoformat())
        return await self.cache.fetch_or_compute(
            key,
            lambda: self._load_day(day),
            permanent=day < self._today(),
        )

    async def get_daily_stats(self, day: date) -> Dict[int, DailyPlayerStat]:
        """Map of stats-provider player id -> that day's stats."""
        sheet = await self.get_day_sheet(day)
        return sheet.stats

    async def get_players_for_date(self, day: date) -> List[StatPlayer]:
        """Match candidates for a date, each carrying that day's stats."""
        sheet = await self.get_day_sheet(day)
        return list(sheet.players)

    async def get_player_stats(self, player_id: int, dates: Sequence[date]) -> PlayerHistory:
        """
        One player's daily records over several dates.

        Dates whose sheet cannot be loaded are listed in unavailable_dates;
        dates the player did not appear on are simply absent.
        """
        results = await asyncio.gather(
            *(self.get_day_sheet(day) for day in dates),
            return_exceptions=True,
        )
        history = PlayerHistory(player_id=player_id)
        for day, result in zip(dates, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Stats for {day} unavailable: {result}")
                history.unavailable_dates.append(day)
                continue
            stat = result.stats.get(player_id)
            if stat is not None and stat.appearances:
                history.records.append(stat)
        return history

    async def _load_day(self, day: date) -> DaySheet:
        outcome = await run_strategies(
            f"stats for {day}",
            [
                Strategy("bulk-stat-groups", lambda: self._from_stat_groups(day)),
                Strategy("boxscores", lambda: self._from_boxscores(day)),
            ],
        )
        sheet = reduce_appearances(day, outcome.value, source=outcome.strategy)
        logger.info(f"Stats for {day}: {len(sheet.stats)} players via {outcome.strategy}")
        return sheet

    async def _from_stat_groups(self, day: date) -> List[Appearance]:
        groups = await asyncio.gather(
            *(self.stats_client.get_stat_group(day, group) for group in STAT_GROUPS)
        )
        return [appearance for group in groups for appearance in group]

    async def _from_boxscores(self, day: date) -> List[Appearance]:
        game_pks = await self.stats_client.get_game_pks(day)
        boxscores = await asyncio.gather(
            *(self.stats_client.get_boxscore(game_pk) for game_pk in game_pks)
        )
        return [appearance for boxscore in boxscores for appearance in boxscore]
