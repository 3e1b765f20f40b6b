"""
Normalized records shared by the aggregation services.

Raw platform and stats-provider payloads are converted into these types at the
client boundary; everything downstream works on them only.
"""

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Optional, Tuple

from app.config import settings


def safe_ratio(numerator: float, denominator: float) -> float:
    """Return numerator / denominator, or 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return numerator / denominator


def parse_innings(value) -> int:
    """
    Convert an innings-pitched value to outs.

    The stats provider reports innings in baseball notation, where the
    fractional digit counts outs: "5.2" is five and two-thirds innings.
    """
    if value is None or value == "":
        return 0
    text = str(value).strip()
    whole, _, fraction = text.partition(".")
    outs = int(whole or 0) * 3
    if fraction:
        partial = int(fraction[0])
        if partial > 2:
            raise ValueError(f"Invalid innings value: {value!r}")
        outs += partial
    return outs


@dataclass(frozen=True)
class StatLine:
    """
    Counting components for a player or team over any span.

    Innings are kept as integer outs so that summing lines is exact and
    independent of order. Rate stats are always derived from components.
    """
    # Batting
    runs: float = 0
    home_runs: float = 0
    rbi: float = 0
    stolen_bases: float = 0
    hits: float = 0
    at_bats: float = 0
    # Pitching
    strikeouts: float = 0
    wins: float = 0
    saves: float = 0
    quality_starts: float = 0
    outs: float = 0
    earned_runs: float = 0
    hits_allowed: float = 0
    walks: float = 0

    def __add__(self, other: "StatLine") -> "StatLine":
        if not isinstance(other, StatLine):
            return NotImplemented
        return StatLine(**{
            f.name: getattr(self, f.name) + getattr(other, f.name)
            for f in fields(self)
        })

    def __radd__(self, other):
        # Allows sum(lines) with the default start value of 0
        if other == 0:
            return self
        return NotImplemented

    def scaled(self, factor: float) -> "StatLine":
        """Multiply every component by factor. Rates are unchanged by scaling."""
        return StatLine(**{f.name: getattr(self, f.name) * factor for f in fields(self)})

    @property
    def innings(self) -> float:
        return self.outs / 3

    @property
    def avg(self) -> float:
        return safe_ratio(self.hits, self.at_bats)

    @property
    def era(self) -> float:
        # ER * 9 / IP == ER * 27 / outs
        return safe_ratio(self.earned_runs * 27, self.outs)

    @property
    def whip(self) -> float:
        return safe_ratio((self.hits_allowed + self.walks) * 3, self.outs)


ZERO_LINE = StatLine()


@dataclass(frozen=True)
class RosterEntry:
    """A player's lineup assignment on a fantasy team for one scoring day."""
    platform_player_id: int
    full_name: str
    pro_team: str = ""
    position: str = ""
    lineup_slot_id: int = 0
    status: str = "ACTIVE"
    eligible_slot_ids: Tuple[int, ...] = ()

    @property
    def is_starter(self) -> bool:
        return (
            self.lineup_slot_id not in settings.inactive_slot_ids
            and self.status in settings.active_statuses
        )


@dataclass(frozen=True)
class DailyPlayerStat:
    player_id: int
    date: date
    line: StatLine = ZERO_LINE
    appearances: int = 0

    @property
    def avg(self) -> float:
        return self.line.avg

    @property
    def era(self) -> float:
        return self.line.era

    @property
    def whip(self) -> float:
        return self.line.whip


@dataclass(frozen=True)
class StatPlayer:
    """A stats-provider player record for a single date: identity plus that day's line."""
    player_id: int
    full_name: str
    team_code: str = ""
    team_name: str = ""
    position_code: str = ""
    stat: Optional[DailyPlayerStat] = None


@dataclass(frozen=True)
class ScoringDay:
    date: date
    scoring_period_id: int


@dataclass(frozen=True)
class WeekMeta:
    week_id: int
    days: Tuple[ScoringDay, ...] = field(default_factory=tuple)
    label: str = ""

    @property
    def dates(self) -> Tuple[date, ...]:
        return tuple(day.date for day in self.days)

    @property
    def first_day(self) -> Optional[ScoringDay]:
        return self.days[0] if self.days else None


@dataclass(frozen=True)
class Appearance:
    """One player's line from one game (or one stat group of one game)."""
    player_id: int
    full_name: str
    line: StatLine
    game_pk: Optional[int] = None
    team_code: str = ""
    team_name: str = ""
    position_code: str = ""
