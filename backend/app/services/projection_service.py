"""
Historical Projection Engine.

Team level: the median of each category over the prior weeks' totals.
Player level: the player's summed daily lines over the prior weeks, with
counting stats scaled up to a full week of games. Rates are never scaled;
they come from the summed components.
"""

import asyncio
import logging
import statistics
from dataclasses import dataclass, field, fields
from datetime import date
from typing import List, Optional, Sequence, Tuple

from app.config import settings
from app.exceptions import CalendarUnavailable, StrategiesExhausted, UpstreamError
from app.services.calendar_service import CalendarProvider
from app.services.daily_stats_service import DailyStatService
from app.services.mlb_stats_client import MLBStatsClient
from app.services.player_matcher import PlayerMatcher
from app.services.records import RosterEntry, StatLine
from app.services.roster_service import RosterProvider
from app.services.strategies import Strategy, StrategyFailed, run_strategies
from app.services.weekly_stats_service import WeeklyStatsService, WeeklyTeamStat

logger = logging.getLogger(__name__)

RECENT_WEEKS = "recent_weeks"
NO_DATA = "no_data"
UNRESOLVED = "unresolved"


def default_prior_weeks(target_week: int, lookback: Optional[int] = None) -> List[int]:
    """Up to `lookback` weeks immediately before target_week, skipping week ids below 1."""
    lookback = lookback if lookback is not None else settings.projection_lookback_weeks
    return [week for week in range(target_week - lookback, target_week) if week > 0]


def median_line(lines: Sequence[StatLine]) -> StatLine:
    """Per-component median; an empty input gives an all-zero line."""
    if not lines:
        return StatLine()
    return StatLine(**{
        f.name: statistics.median(getattr(line, f.name) for line in lines)
        for f in fields(StatLine)
    })


@dataclass(frozen=True)
class TeamProjection:
    team_id: int
    target_week: int
    line: StatLine
    avg: float = 0.0
    era: float = 0.0
    whip: float = 0.0
    weeks_used: Tuple[int, ...] = ()
    data_source: str = NO_DATA
    warnings: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PlayerProjection:
    entry: RosterEntry
    target_week: int
    line: StatLine
    observed: StatLine
    stats_player_id: Optional[int] = None
    resolved_by: str = ""
    games_observed: int = 0
    games_projected: int = 0
    data_source: str = NO_DATA
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def avg(self) -> float:
        return self.observed.avg

    @property
    def era(self) -> float:
        return self.observed.era

    @property
    def whip(self) -> float:
        return self.observed.whip


@dataclass(frozen=True)
class LineupProjection:
    team_id: int
    target_week: int
    totals: StatLine
    players: Tuple[PlayerProjection, ...] = ()
    warnings: Tuple[str, ...] = field(default_factory=tuple)


class ProjectionService:
    def __init__(
        self,
        calendar: CalendarProvider,
        weekly: WeeklyStatsService,
        daily_stats: DailyStatService,
        matcher: PlayerMatcher,
        stats_client: MLBStatsClient,
        rosters: RosterProvider,
        games_per_week: Optional[int] = None,
        match_floor: Optional[float] = None,
    ):
        self.calendar = calendar
        self.weekly = weekly
        self.daily_stats = daily_stats
        self.matcher = matcher
        self.stats_client = stats_client
        self.rosters = rosters
        self.games_per_week = games_per_week or settings.projected_games_per_week
        self.match_floor = match_floor if match_floor is not None else settings.daily_display_floor

    async def project_team(
        self,
        team_id: int,
        target_week: int,
        prior_weeks: Optional[Sequence[int]] = None,
    ) -> TeamProjection:
        """
        Median weekly line over prior weeks that returned data.

        No usable week is a valid outcome and yields an all-zero projection.
        """
        weeks = list(prior_weeks) if prior_weeks is not None else default_prior_weeks(target_week)
        results = await asyncio.gather(
            *(self.weekly.get_team_week(team_id, week) for week in weeks),
            return_exceptions=True,
        )

        usable: List[WeeklyTeamStat] = []
        warnings = []
        for week, result in zip(weeks, results):
            if isinstance(result, (UpstreamError, CalendarUnavailable)):
                warnings.append(f"week {week}: unavailable ({result})")
                continue
            if isinstance(result, BaseException):
                raise result
            if result.contributing_matches == 0:
                warnings.append(f"week {week}: no matched players")
                continue
            usable.append(result)

        if not usable:
            logger.info(f"Team {team_id} week {target_week}: no prior data, projecting zero")
            return TeamProjection(
                team_id=team_id,
                target_week=target_week,
                line=StatLine(),
                warnings=tuple(warnings),
            )

        return TeamProjection(
            team_id=team_id,
            target_week=target_week,
            line=median_line([w.totals for w in usable]),
            avg=statistics.median(w.avg for w in usable),
            era=statistics.median(w.era for w in usable),
            whip=statistics.median(w.whip for w in usable),
            weeks_used=tuple(w.week_id for w in usable),
            data_source=RECENT_WEEKS,
            warnings=tuple(warnings),
        )

    async def project_player(
        self,
        entry: RosterEntry,
        target_week: int,
        prior_weeks: Optional[Sequence[int]] = None,
    ) -> PlayerProjection:
        """
        Project one player's week from their recent daily lines.

        Raises:
            CalendarUnavailable: target_week is not in the calendar
        """
        week = self.calendar.get_week(target_week)
        warnings: List[str] = []

        try:
            outcome = await run_strategies(
                f"stats id for {entry.full_name}",
                [
                    Strategy("same-day-match", lambda: self._match_on(entry, week.first_day.date)),
                    Strategy("people-search", lambda: self._search_id(entry)),
                ],
            )
        except StrategiesExhausted as e:
            logger.warning(f"Could not resolve {entry.full_name}: {e}")
            return PlayerProjection(
                entry=entry,
                target_week=target_week,
                line=StatLine(),
                observed=StatLine(),
                data_source=UNRESOLVED,
                warnings=(f"{entry.full_name}: no stats id found",),
            )
        stats_id = outcome.value
        warnings.extend(f"{entry.full_name}: {name} failed ({e})" for name, e in outcome.failures)

        dates: List[date] = []
        weeks = list(prior_weeks) if prior_weeks is not None else default_prior_weeks(target_week)
        for prior in weeks:
            try:
                dates.extend(self.calendar.get_week(prior).dates)
            except CalendarUnavailable as e:
                warnings.append(str(e))

        history = await self.daily_stats.get_player_stats(stats_id, dates)
        warnings.extend(f"{day}: stats unavailable" for day in history.unavailable_dates)

        observed = history.line
        games = history.games
        scale = self.games_per_week / max(games, 1)

        return PlayerProjection(
            entry=entry,
            target_week=target_week,
            line=observed.scaled(scale),
            observed=observed,
            stats_player_id=stats_id,
            resolved_by=outcome.strategy,
            games_observed=games,
            games_projected=self.games_per_week,
            data_source=RECENT_WEEKS if games else NO_DATA,
            warnings=tuple(warnings),
        )

    async def project_lineup(self, team_id: int, target_week: int) -> LineupProjection:
        """Project every starter on the target week's opening lineup and sum the components."""
        week = self.calendar.get_week(target_week)
        roster = await self.rosters.get_roster(team_id, week.first_day)
        starters = [entry for entry in roster if entry.is_starter]

        projections = await asyncio.gather(
            *(self.project_player(entry, target_week) for entry in starters)
        )
        totals = sum((p.line for p in projections), StatLine())
        warnings = tuple(w for p in projections for w in p.warnings)
        return LineupProjection(
            team_id=team_id,
            target_week=target_week,
            totals=totals,
            players=tuple(projections),
            warnings=warnings,
        )

    async def _match_on(self, entry: RosterEntry, day: date) -> int:
        players = await self.daily_stats.get_players_for_date(day)
        match = self.matcher.match_players([entry], players)[0]
        if match.player is None or match.confidence < self.match_floor:
            raise StrategyFailed(f"no confident match on {day}")
        return match.player.player_id

    async def _search_id(self, entry: RosterEntry) -> int:
        people = await self.stats_client.search_people(entry.full_name)
        if not people:
            raise StrategyFailed(f"no search results for {entry.full_name}")
        return people[0]["id"]
