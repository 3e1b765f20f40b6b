"""
Tests for the daily stat aggregator: per-player reduction, double-headers,
source fallback and caching of finished days.
"""

from datetime import date, timedelta

import pytest

from app.exceptions import StrategiesExhausted
from app.services.daily_stats_service import DailyStatService, reduce_appearances
from app.services.mlb_stats_client import parse_boxscore, parse_stat_group, pitching_line
from app.services.records import StatLine

from conftest import TODAY

GAME_DAY = date(2025, 4, 2)


class TestReduceAppearances:
    def test_double_header_sums_components(self, appearance_factory):
        """AB=3,H=1 then AB=2,H=1 on the same date: AVG 2/5 = .400."""
        sheet = reduce_appearances(GAME_DAY, [
            appearance_factory(11, "Juan Soto", StatLine(hits=1, at_bats=3), game_pk=100),
            appearance_factory(11, "Juan Soto", StatLine(hits=1, at_bats=2), game_pk=101),
        ])
        stat = sheet.stats[11]
        assert stat.line.hits == 2
        assert stat.line.at_bats == 5
        assert stat.avg == pytest.approx(0.400)
        assert stat.appearances == 2

    def test_batting_and_pitching_groups_in_one_game_count_once(self, appearance_factory):
        sheet = reduce_appearances(GAME_DAY, [
            appearance_factory(17, "Shohei Ohtani", StatLine(hits=2, at_bats=4), game_pk=200),
            appearance_factory(17, "Shohei Ohtani", StatLine(outs=18, earned_runs=1), game_pk=200),
        ])
        stat = sheet.stats[17]
        assert stat.appearances == 1
        assert stat.line.outs == 18
        assert stat.line.hits == 2

    def test_identity_filled_from_later_records(self, appearance_factory):
        sheet = reduce_appearances(GAME_DAY, [
            appearance_factory(5, "Cal Raleigh", StatLine(at_bats=4), team_code=""),
            appearance_factory(5, "Cal Raleigh", StatLine(at_bats=0), team_code="SEA", position_code="C"),
        ])
        player = sheet.players[0]
        assert player.team_code == "SEA"
        assert player.position_code == "C"
        assert player.stat is sheet.stats[5]

    def test_empty_day(self):
        sheet = reduce_appearances(GAME_DAY, [])
        assert sheet.stats == {}
        assert sheet.players == ()


class TestParsers:
    def test_quality_start_flag(self):
        assert pitching_line({"inningsPitched": "6.0", "earnedRuns": 3}).quality_starts == 1
        assert pitching_line({"inningsPitched": "5.2", "earnedRuns": 0}).quality_starts == 0
        assert pitching_line({"inningsPitched": "7.0", "earnedRuns": 4}).quality_starts == 0

    def test_stat_group_split(self):
        payload = {"stats": [{"splits": [{
            "player": {"id": 660271, "fullName": "Shohei Ohtani"},
            "team": {"abbreviation": "LAD", "name": "Los Angeles Dodgers"},
            "game": {"gamePk": 778899},
            "position": {"abbreviation": "DH"},
            "stat": {"hits": 2, "atBats": 4, "homeRuns": 1, "runs": 1, "rbi": 3},
        }]}]}
        [appearance] = parse_stat_group(payload, "hitting")
        assert appearance.player_id == 660271
        assert appearance.game_pk == 778899
        assert appearance.team_code == "LAD"
        assert appearance.line.home_runs == 1
        assert appearance.line.at_bats == 4

    def test_boxscore_skips_players_without_stats(self):
        payload = {"teams": {
            "home": {
                "team": {"abbreviation": "NYY", "name": "New York Yankees"},
                "players": {
                    "ID1": {
                        "person": {"id": 1, "fullName": "Aaron Judge"},
                        "position": {"abbreviation": "RF"},
                        "stats": {"batting": {"hits": 1, "atBats": 4}, "pitching": {}},
                    },
                    "ID2": {
                        "person": {"id": 2, "fullName": "Bench Bat"},
                        "stats": {"batting": {}, "pitching": {}},
                    },
                },
            },
            "away": {
                "team": {"abbreviation": "BOS", "name": "Boston Red Sox"},
                "players": {
                    "ID3": {
                        "person": {"id": 3, "fullName": "Garrett Crochet"},
                        "position": {"abbreviation": "P"},
                        "stats": {"pitching": {
                            "inningsPitched": "6.1", "earnedRuns": 2, "strikeOuts": 9,
                            "hits": 4, "baseOnBalls": 1,
                        }},
                    },
                },
            },
        }}
        appearances = parse_boxscore(payload, game_pk=555)
        assert [a.player_id for a in appearances] == [1, 3]
        pitcher = appearances[1]
        assert pitcher.line.outs == 19
        assert pitcher.line.walks == 1
        assert pitcher.line.quality_starts == 1
        assert pitcher.team_code == "BOS"
        assert pitcher.game_pk == 555


class TestDailyStatService:
    async def test_bulk_feed_is_primary(self, daily_stats, stats_client, appearance_factory):
        stats_client.add_appearance(GAME_DAY, appearance_factory(1, "A", StatLine(hits=1, at_bats=4)))
        sheet = await daily_stats.get_day_sheet(GAME_DAY)
        assert sheet.source == "bulk-stat-groups"
        assert not any(call[0] == "boxscore" for call in stats_client.calls)

    async def test_falls_back_to_boxscores(self, daily_stats, stats_client, appearance_factory):
        stats_client.add_appearance(GAME_DAY, appearance_factory(1, "A", StatLine(hits=1, at_bats=4)))
        stats_client.failing_groups.add(GAME_DAY)

        sheet = await daily_stats.get_day_sheet(GAME_DAY)
        assert sheet.source == "boxscores"
        assert sheet.stats[1].line.hits == 1

    async def test_both_sources_give_same_shape(self, stats_client, cache, appearance_factory):
        """Whichever source answers, the reduced day is identical."""
        stats_client.add_appearance(
            GAME_DAY, appearance_factory(1, "A", StatLine(hits=2, at_bats=3), game_pk=9, team_code="NYM")
        )
        bulk = await DailyStatService(stats_client, cache, today=lambda: TODAY).get_day_sheet(GAME_DAY)
        cache.clear()
        stats_client.failing_groups.add(GAME_DAY)
        boxes = await DailyStatService(stats_client, cache, today=lambda: TODAY).get_day_sheet(GAME_DAY)

        assert bulk.stats == boxes.stats
        assert bulk.players == boxes.players

    async def test_every_source_failing_raises(self, daily_stats, stats_client, appearance_factory):
        stats_client.add_appearance(GAME_DAY, appearance_factory(1, "A", StatLine(), game_pk=7))
        stats_client.failing_groups.add(GAME_DAY)
        stats_client.failing_boxscores.add(7)

        with pytest.raises(StrategiesExhausted):
            await daily_stats.get_day_sheet(GAME_DAY)

    async def test_past_day_cached_permanently(self, daily_stats, stats_client, cache):
        await daily_stats.get_day_sheet(GAME_DAY)
        await daily_stats.get_day_sheet(GAME_DAY)
        assert sum(1 for call in stats_client.calls if call[0] == "stat_group") == 2
        assert cache.stats().hits == 1

    async def test_player_history_skips_unavailable_days(
        self, daily_stats, stats_client, appearance_factory
    ):
        day2 = GAME_DAY + timedelta(days=1)
        day3 = GAME_DAY + timedelta(days=2)
        stats_client.add_appearance(
            GAME_DAY, appearance_factory(8, "Pete Alonso", StatLine(hits=1, at_bats=4), game_pk=1)
        )
        stats_client.add_appearance(
            day3, appearance_factory(8, "Pete Alonso", StatLine(hits=2, at_bats=4), game_pk=3)
        )
        stats_client.failing_groups.add(day2)
        stats_client.failing_boxscores.add(2)
        stats_client.schedules[day2] = [2]

        history = await daily_stats.get_player_stats(8, [GAME_DAY, day2, day3])
        assert history.games == 2
        assert history.line.hits == 3
        assert history.unavailable_dates == [day2]
