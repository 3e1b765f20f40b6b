"""
MLB Stats API client.

Converts the per-date bulk stat feeds, schedules and box scores into
Appearance records. Nothing outside this module reads raw stats payloads.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from app.config import settings
from app.exceptions import UpstreamFormatError
from app.services.records import Appearance, StatLine, parse_innings
from app.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

STAT_GROUPS = ("hitting", "pitching")

# Quality start: at least six innings, at most three earned runs
QS_MIN_OUTS = 18
QS_MAX_EARNED_RUNS = 3


def _count(stat: Dict[str, Any], key: str) -> int:
    value = stat.get(key)
    if value in (None, "", "-.--"):
        return 0
    return int(float(value))


def batting_line(stat: Optional[Dict[str, Any]]) -> StatLine:
    stat = stat or {}
    return StatLine(
        runs=_count(stat, "runs"),
        home_runs=_count(stat, "homeRuns"),
        rbi=_count(stat, "rbi"),
        stolen_bases=_count(stat, "stolenBases"),
        hits=_count(stat, "hits"),
        at_bats=_count(stat, "atBats"),
    )


def pitching_line(stat: Optional[Dict[str, Any]]) -> StatLine:
    """Pitching components for one appearance, with the quality start flag applied."""
    stat = stat or {}
    outs = parse_innings(stat.get("inningsPitched"))
    earned_runs = _count(stat, "earnedRuns")
    quality_start = 1 if outs >= QS_MIN_OUTS and earned_runs <= QS_MAX_EARNED_RUNS else 0
    return StatLine(
        strikeouts=_count(stat, "strikeOuts"),
        wins=_count(stat, "wins"),
        saves=_count(stat, "saves"),
        quality_starts=quality_start,
        outs=outs,
        earned_runs=earned_runs,
        hits_allowed=_count(stat, "hits"),
        walks=_count(stat, "baseOnBalls"),
    )


def parse_stat_group(payload: Dict[str, Any], group: str) -> List[Appearance]:
    """Parse one `stats?stats=game` response into appearances."""
    if not isinstance(payload, dict):
        raise UpstreamFormatError(f"Unexpected {group} feed type: {type(payload).__name__}")

    stats = payload.get("stats") or []
    splits = stats[0].get("splits", []) if stats else []
    to_line = batting_line if group == "hitting" else pitching_line

    appearances = []
    try:
        for split in splits:
            player = split.get("player") or {}
            player_id = player.get("id")
            if not player_id:
                continue
            team = split.get("team") or {}
            appearances.append(Appearance(
                player_id=int(player_id),
                full_name=player.get("fullName") or "Unknown",
                line=to_line(split.get("stat")),
                game_pk=(split.get("game") or {}).get("gamePk"),
                team_code=team.get("abbreviation") or "",
                team_name=team.get("name") or "",
                position_code=(split.get("position") or {}).get("abbreviation") or "",
            ))
    except (ValueError, TypeError, AttributeError) as e:
        raise UpstreamFormatError(f"Malformed {group} split: {e}") from e
    return appearances


def parse_schedule(payload: Dict[str, Any]) -> List[int]:
    """Extract game ids from a schedule response."""
    game_pks = []
    for day in payload.get("dates") or []:
        for game in day.get("games") or []:
            if game.get("gamePk"):
                game_pks.append(int(game["gamePk"]))
    return game_pks


def parse_boxscore(payload: Dict[str, Any], game_pk: Optional[int] = None) -> List[Appearance]:
    """
    Parse a box score into appearances, one per player who recorded any stats.

    Each appearance combines the player's batting and pitching for the game.
    """
    if not isinstance(payload, dict):
        raise UpstreamFormatError(f"Unexpected boxscore type: {type(payload).__name__}")

    appearances = []
    teams = payload.get("teams") or {}
    try:
        for side in ("home", "away"):
            team_data = teams.get(side) or {}
            team = team_data.get("team") or {}
            for entry in (team_data.get("players") or {}).values():
                person = entry.get("person") or {}
                if not person.get("id"):
                    continue
                stats = entry.get("stats") or {}
                batting = stats.get("batting") or {}
                pitching = stats.get("pitching") or {}
                if not batting and not pitching:
                    continue
                appearances.append(Appearance(
                    player_id=int(person["id"]),
                    full_name=person.get("fullName") or "Unknown",
                    line=batting_line(batting) + pitching_line(pitching),
                    game_pk=game_pk,
                    team_code=team.get("abbreviation") or "",
                    team_name=team.get("name") or "",
                    position_code=(entry.get("position") or {}).get("abbreviation") or "",
                ))
    except (ValueError, TypeError, AttributeError) as e:
        raise UpstreamFormatError(f"Malformed boxscore {game_pk}: {e}") from e
    return appearances


class MLBStatsClient:
    """Stats provider endpoints used by the daily aggregator and projections."""

    def __init__(self, upstream: Optional[UpstreamClient] = None):
        self.upstream = upstream or UpstreamClient(settings.mlb_base_url)

    async def close(self) -> None:
        await self.upstream.close()

    async def get_stat_group(self, day: date, group: str) -> List[Appearance]:
        """Bulk per-date game stats for one stat group ("hitting" or "pitching")."""
        payload = await self.upstream.get_json(
            "stats",
            params={"stats": "game", "sportId": 1, "date": day.isoformat(), "group": group},
        )
        appearances = parse_stat_group(payload, group)
        logger.debug(f"{group} feed for {day}: {len(appearances)} splits")
        return appearances

    async def get_game_pks(self, day: date) -> List[int]:
        payload = await self.upstream.get_json(
            "schedule",
            params={"sportId": 1, "date": day.isoformat(), "gameTypes": "R"},
        )
        if not isinstance(payload, dict):
            raise UpstreamFormatError("Unexpected schedule payload")
        return parse_schedule(payload)

    async def get_boxscore(self, game_pk: int) -> List[Appearance]:
        payload = await self.upstream.get_json(f"game/{game_pk}/boxscore")
        return parse_boxscore(payload, game_pk)

    async def search_people(self, name: str) -> List[Dict[str, Any]]:
        """Name search; returns [{"id", "full_name"}] in provider order."""
        payload = await self.upstream.get_json(
            "people/search",
            params={"names": name, "sportId": 1},
        )
        if not isinstance(payload, dict):
            raise UpstreamFormatError("Unexpected people search payload")
        return [
            {"id": int(person["id"]), "full_name": person.get("fullName", "")}
            for person in payload.get("people") or []
            if person.get("id")
        ]
