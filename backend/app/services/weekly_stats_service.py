"""
Weekly Stat Aggregation Engine.

Combines seven days of (roster, stat sheet) pairs into one team-week line:
1. Fetch the day's roster and drop bench/IL/inactive entries
2. Resolve starters against that day's stat records
3. Drop matches below the weekly acceptance floor
4. Sum the matched players' components

AVG, ERA and WHIP are read off the summed components, never averaged across
days. Days are fetched concurrently; summation is order independent because
every component is an integer count.

A week with an unreachable day is returned with a warning but never cached,
so the next request retries the missing day.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from app.config import settings
from app.exceptions import UpstreamError
from app.services.cache_service import RequestCache, make_cache_key
from app.services.calendar_service import CalendarProvider
from app.services.daily_stats_service import DailyStatService
from app.services.espn_service import Matchup
from app.services.player_matcher import PlayerMatch, PlayerMatcher
from app.services.records import ScoringDay, StatLine, WeekMeta
from app.services.roster_service import RosterProvider

logger = logging.getLogger(__name__)

HOME = "home"
AWAY = "away"
TIE = "tie"

# (category, lower is better) in display order
CATEGORIES = (
    ("runs", False),
    ("home_runs", False),
    ("rbi", False),
    ("stolen_bases", False),
    ("avg", False),
    ("hits", False),
    ("strikeouts", False),
    ("wins", False),
    ("saves", False),
    ("era", True),
    ("whip", True),
    ("quality_starts", False),
)


@dataclass(frozen=True)
class WeeklyTeamStat:
    team_id: int
    week_id: int
    totals: StatLine
    contributing_matches: int = 0
    days_processed: int = 0
    days_expected: int = 0
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def complete(self) -> bool:
        """Every eligible day was fetched."""
        return self.days_processed >= self.days_expected

    @property
    def avg(self) -> float:
        return self.totals.avg

    @property
    def era(self) -> float:
        return self.totals.era

    @property
    def whip(self) -> float:
        return self.totals.whip


@dataclass(frozen=True)
class CategoryResult:
    category: str
    home: float
    away: float
    winner: str


@dataclass(frozen=True)
class MatchupResult:
    """Category-by-category comparison of a head-to-head pairing."""
    matchup: Matchup
    home: WeeklyTeamStat
    away: Optional[WeeklyTeamStat]
    categories: Tuple[CategoryResult, ...] = ()

    def _count(self, side: str) -> int:
        return sum(1 for c in self.categories if c.winner == side)

    @property
    def home_wins(self) -> int:
        return self._count(HOME)

    @property
    def away_wins(self) -> int:
        return self._count(AWAY)

    @property
    def ties(self) -> int:
        return self._count(TIE)


def compare_categories(home: StatLine, away: StatLine) -> Tuple[CategoryResult, ...]:
    """
    Winner of each scoring category. Lower ERA and WHIP win, but only a side
    that recorded an out can take a pitching-rate category.
    """
    results = []
    for category, lower_is_better in CATEGORIES:
        home_value = getattr(home, category)
        away_value = getattr(away, category)
        if lower_is_better:
            home_ok = home.outs > 0
            away_ok = away.outs > 0
            if home_ok and (not away_ok or home_value < away_value):
                winner = HOME
            elif away_ok and (not home_ok or away_value < home_value):
                winner = AWAY
            else:
                winner = TIE
        elif home_value > away_value:
            winner = HOME
        elif away_value > home_value:
            winner = AWAY
        else:
            winner = TIE
        results.append(CategoryResult(category, home_value, away_value, winner))
    return tuple(results)


@dataclass(frozen=True)
class DayContribution:
    date: date
    line: StatLine
    contributing_matches: int = 0
    processed: bool = True
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DailyMatchReport:
    """Single-day resolution of a team's starters, for display."""
    team_id: int
    date: date
    matches: Tuple[PlayerMatch, ...]
    warnings: Tuple[str, ...] = ()

    @property
    def totals(self) -> StatLine:
        return sum(
            (m.player.stat.line for m in self.matches if m.player is not None and m.player.stat),
            StatLine(),
        )


class WeeklyStatsService:
    def __init__(
        self,
        calendar: CalendarProvider,
        rosters: RosterProvider,
        daily_stats: DailyStatService,
        matcher: PlayerMatcher,
        cache: RequestCache,
        today: Callable[[], date] = date.today,
        match_floor: Optional[float] = None,
        safe_confidence: Optional[float] = None,
        display_floor: Optional[float] = None,
    ):
        self.calendar = calendar
        self.rosters = rosters
        self.daily_stats = daily_stats
        self.matcher = matcher
        self.cache = cache
        self._today = today
        self.match_floor = match_floor if match_floor is not None else settings.weekly_match_floor
        self.safe_confidence = (
            safe_confidence if safe_confidence is not None else settings.weekly_safe_confidence
        )
        self.display_floor = display_floor if display_floor is not None else settings.daily_display_floor

    async def get_team_week(self, team_id: int, week_id: int) -> WeeklyTeamStat:
        """
        One team's totals for one matchup week.

        Raises:
            CalendarUnavailable: the calendar has no such week
        """
        week = self.calendar.get_week(week_id)
        key = make_cache_key("weekly", team=team_id, week=week_id)
        return await self.cache.fetch_or_compute(
            key,
            lambda: self._aggregate(team_id, week),
            store_if=lambda stat: stat.complete,
        )

    async def get_league_week(self, week_id: int) -> List[WeeklyTeamStat]:
        """Weekly totals for every team in the league, in league order."""
        self.calendar.get_week(week_id)
        teams = await self.rosters.get_teams()
        return list(await asyncio.gather(
            *(self.get_team_week(team.team_id, week_id) for team in teams)
        ))

    def current_week_id(self) -> int:
        return self.calendar.week_for_date(self._today())

    async def get_week_matchups(self, week_id: int) -> List[MatchupResult]:
        """
        Pair each scheduled matchup's weekly totals and score every category.

        Raises:
            CalendarUnavailable: the calendar has no such week
        """
        self.calendar.get_week(week_id)
        matchups = await self.rosters.get_matchups(week_id)

        team_ids: List[int] = []
        for matchup in matchups:
            for team_id in (matchup.home_team_id, matchup.away_team_id):
                if team_id is not None and team_id not in team_ids:
                    team_ids.append(team_id)
        weeks = await asyncio.gather(*(self.get_team_week(t, week_id) for t in team_ids))
        by_team: Dict[int, WeeklyTeamStat] = dict(zip(team_ids, weeks))

        results = []
        for matchup in matchups:
            home = by_team[matchup.home_team_id]
            if matchup.away_team_id is None:
                results.append(MatchupResult(matchup=matchup, home=home, away=None))
                continue
            away = by_team[matchup.away_team_id]
            results.append(MatchupResult(
                matchup=matchup,
                home=home,
                away=away,
                categories=compare_categories(home.totals, away.totals),
            ))
        logger.info(f"Week {week_id}: scored {len(results)} matchups")
        return results

    async def _aggregate(self, team_id: int, week: WeekMeta) -> WeeklyTeamStat:
        today = self._today()
        days = [day for day in week.days if day.date <= today]
        contributions = await asyncio.gather(*(self._day_contribution(team_id, day) for day in days))
        return self.combine(team_id, week.week_id, contributions)

    @staticmethod
    def combine(team_id: int, week_id: int, contributions: List[DayContribution]) -> WeeklyTeamStat:
        """Fold per-day contributions into the week; input order does not affect totals."""
        totals = sum((c.line for c in contributions), StatLine())
        ordered = sorted(contributions, key=lambda c: c.date)
        stat = WeeklyTeamStat(
            team_id=team_id,
            week_id=week_id,
            totals=totals,
            contributing_matches=sum(c.contributing_matches for c in contributions),
            days_processed=sum(1 for c in contributions if c.processed),
            days_expected=len(contributions),
            warnings=tuple(w for c in ordered for w in c.warnings),
        )
        logger.info(
            f"Team {team_id} week {week_id}: {stat.contributing_matches} player-days "
            f"over {stat.days_processed} days, {len(stat.warnings)} warnings"
        )
        return stat

    async def _day_contribution(self, team_id: int, day: ScoringDay) -> DayContribution:
        try:
            roster, players = await asyncio.gather(
                self.rosters.get_roster(team_id, day),
                self.daily_stats.get_players_for_date(day.date),
            )
        except UpstreamError as e:
            logger.warning(f"Team {team_id}: {day.date} unavailable, counting zero ({e})")
            return DayContribution(
                date=day.date,
                line=StatLine(),
                processed=False,
                warnings=(f"{day.date}: data unavailable, day counted as zero",),
            )

        starters = [entry for entry in roster if entry.is_starter]
        matches = self.matcher.match_players(starters, players)

        line = StatLine()
        accepted = 0
        warnings = []
        for match in matches:
            name = match.entry.full_name
            if match.player is None:
                warnings.append(f"{day.date}: {name} not found in stats")
                continue
            if match.confidence < self.match_floor:
                warnings.append(
                    f"{day.date}: {name} dropped, match confidence {match.confidence:.2f}"
                )
                continue
            if match.confidence < self.safe_confidence:
                warnings.append(
                    f"{day.date}: {name} -> {match.player.full_name} low confidence "
                    f"({match.confidence:.2f})"
                )
            if match.player.stat is not None:
                line = line + match.player.stat.line
            accepted += 1

        return DayContribution(
            date=day.date,
            line=line,
            contributing_matches=accepted,
            warnings=tuple(warnings),
        )

    async def get_daily_matches(self, team_id: int, day: date) -> DailyMatchReport:
        """
        Resolve a team's starters for one date.

        Matches below the display floor are reported as unmatched with a warning.
        """
        scoring_day = self.calendar.scoring_day(day)
        roster, players = await asyncio.gather(
            self.rosters.get_roster(team_id, scoring_day),
            self.daily_stats.get_players_for_date(day),
        )
        starters = [entry for entry in roster if entry.is_starter]

        shown = []
        warnings = []
        for match in self.matcher.match_players(starters, players):
            if match.player is not None and match.confidence < self.display_floor:
                note = (
                    f"{match.entry.full_name}: best candidate {match.player.full_name} "
                    f"below display threshold ({match.confidence:.2f})"
                )
                warnings.append(note)
                match = PlayerMatch(
                    entry=match.entry,
                    player=None,
                    confidence=0.0,
                    reason="below display threshold",
                    warnings=match.warnings + (note,),
                )
            shown.append(match)

        return DailyMatchReport(
            team_id=team_id,
            date=day,
            matches=tuple(shown),
            warnings=tuple(warnings),
        )
