"""Tests for ordered fallback chains and the league calendar."""

from datetime import date

import pytest

from app.exceptions import CalendarUnavailable, StrategiesExhausted, TransportError
from app.services.calendar_service import FixedStartCalendar
from app.services.strategies import Strategy, StrategyFailed, run_strategies


def _returning(value):
    async def run():
        return value
    return run


def _raising(exc):
    async def run():
        raise exc
    return run


class TestRunStrategies:
    async def test_first_success_wins(self):
        outcome = await run_strategies("thing", [
            Strategy("primary", _returning(1)),
            Strategy("secondary", _returning(2)),
        ])
        assert outcome.value == 1
        assert outcome.strategy == "primary"
        assert outcome.failures == []

    async def test_failures_recorded_on_fallback(self):
        outcome = await run_strategies("thing", [
            Strategy("primary", _raising(TransportError("down"))),
            Strategy("secondary", _returning(2)),
        ])
        assert outcome.value == 2
        assert [name for name, _ in outcome.failures] == ["primary"]

    async def test_all_failing_raises_with_every_failure(self):
        with pytest.raises(StrategiesExhausted) as excinfo:
            await run_strategies("rosters", [
                Strategy("snapshot", _raising(StrategyFailed("none stored"))),
                Strategy("platform", _raising(TransportError("timeout"))),
            ])
        assert [name for name, _ in excinfo.value.failures] == ["snapshot", "platform"]
        assert "none stored" in str(excinfo.value)


class TestFixedStartCalendar:
    @pytest.fixture
    def cal(self):
        return FixedStartCalendar(
            season_start=date(2025, 3, 31), opening_day=date(2025, 3, 27), max_week=25
        )

    def test_week_has_seven_consecutive_days(self, cal):
        week = cal.get_week(2)
        assert week.dates[0] == date(2025, 4, 7)
        assert week.dates[-1] == date(2025, 4, 13)
        assert len(week.days) == 7

    def test_scoring_period_counts_from_opening_day(self, cal):
        assert cal.scoring_day(date(2025, 3, 27)).scoring_period_id == 1
        assert cal.get_week(1).first_day.scoring_period_id == 5

    def test_week_for_date(self, cal):
        assert cal.week_for_date(date(2025, 4, 9)) == 2
        assert cal.week_for_date(date(2025, 3, 28)) == 1

    @pytest.mark.parametrize("week_id", [0, -1, 26])
    def test_out_of_range_week(self, cal, week_id):
        with pytest.raises(CalendarUnavailable):
            cal.get_week(week_id)
