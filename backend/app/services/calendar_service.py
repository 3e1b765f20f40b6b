"""
League calendar adapter.

Maps a matchup week id to its seven scoring days. Building the real league
calendar (irregular first week, All-Star break) is owned by the platform; the
shipped adapter assumes Monday-to-Sunday weeks from a fixed season start.
"""

from datetime import date, timedelta
from typing import Optional, Protocol

from app.config import settings
from app.exceptions import CalendarUnavailable
from app.services.records import ScoringDay, WeekMeta

DAYS_PER_WEEK = 7


class CalendarProvider(Protocol):
    def get_week(self, week_id: int) -> WeekMeta:
        ...

    def week_for_date(self, day: date) -> int:
        ...

    def scoring_day(self, day: date) -> ScoringDay:
        ...


class FixedStartCalendar:
    """Week N covers season_start + 7*(N-1) through the following Sunday."""

    def __init__(
        self,
        season_start: Optional[date] = None,
        opening_day: Optional[date] = None,
        max_week: Optional[int] = None,
    ):
        self.season_start = season_start or settings.season_start_date
        # Scoring period 1 is opening day, which can precede week 1
        self.opening_day = opening_day or settings.opening_day
        self.max_week = max_week

    def scoring_period_for(self, day: date) -> int:
        return (day - self.opening_day).days + 1

    def scoring_day(self, day: date) -> ScoringDay:
        return ScoringDay(date=day, scoring_period_id=self.scoring_period_for(day))

    def get_week(self, week_id: int) -> WeekMeta:
        if week_id < 1 or (self.max_week is not None and week_id > self.max_week):
            raise CalendarUnavailable(week_id)

        start = self.season_start + timedelta(days=DAYS_PER_WEEK * (week_id - 1))
        days = tuple(
            self.scoring_day(start + timedelta(days=offset)) for offset in range(DAYS_PER_WEEK)
        )
        return WeekMeta(
            week_id=week_id,
            days=days,
            label=f"Week {week_id} ({days[0].date:%b %d} - {days[-1].date:%b %d})",
        )

    def week_for_date(self, day: date) -> int:
        """Week id containing a date; dates before week 1 map to week 1."""
        return max(1, (day - self.season_start).days // DAYS_PER_WEEK + 1)
