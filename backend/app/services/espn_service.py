import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from app.config import settings
from app.exceptions import UpstreamFormatError
from app.services.records import RosterEntry
from app.services.upstream import UpstreamClient

logger = logging.getLogger(__name__)

# Views requested for league snapshots: teams, rosters, matchups and settings
LEAGUE_VIEWS = ["mTeam", "mRoster", "mMatchup", "mSettings"]

# ESPN defaultPositionId -> position
ESPN_POSITIONS = {
    1: "P", 2: "C", 3: "1B", 4: "2B", 5: "3B", 6: "SS", 7: "LF", 8: "CF",
    9: "RF", 10: "DH", 11: "RP", 12: "UTIL", 13: "SP", 14: "P", 15: "P",
}

# ESPN proTeamId -> team code
ESPN_PRO_TEAMS = {
    0: "FA", 1: "BAL", 2: "BOS", 3: "LAA", 4: "CHW", 5: "CLE", 6: "DET",
    7: "KC", 8: "MIL", 9: "MIN", 10: "NYY", 11: "OAK", 12: "SEA", 13: "TEX",
    14: "TOR", 15: "ATL", 16: "CHC", 17: "CIN", 18: "HOU", 19: "LAD",
    20: "WSH", 21: "NYM", 22: "PHI", 23: "PIT", 24: "STL", 25: "SD",
    26: "SF", 27: "COL", 28: "MIA", 29: "AZ", 30: "TB",
}


@dataclass(frozen=True)
class FantasyTeam:
    team_id: int
    name: str
    abbrev: str = ""
    owner: str = ""
    wins: int = 0
    losses: int = 0
    ties: int = 0

    @property
    def win_percentage(self) -> float:
        return self.wins / max(self.wins + self.losses, 1)

    @property
    def record(self) -> str:
        record = f"{self.wins}-{self.losses}"
        return f"{record}-{self.ties}" if self.ties else record


@dataclass(frozen=True)
class Matchup:
    """One head-to-head pairing; away_team_id is None on a bye."""
    matchup_id: int
    matchup_period_id: int
    home_team_id: int
    away_team_id: Optional[int] = None


@dataclass
class LeagueSnapshot:
    """One scoring period's view of the league: teams, rosters and the schedule."""
    league_id: int
    name: str
    scoring_period_id: Optional[int]
    teams: List[FantasyTeam] = field(default_factory=list)
    rosters: Dict[int, Tuple[RosterEntry, ...]] = field(default_factory=dict)
    matchups: List[Matchup] = field(default_factory=list)


def parse_roster_entry(entry: Dict[str, Any]) -> Optional[RosterEntry]:
    player = (entry.get("playerPoolEntry") or {}).get("player") or {}
    if not player.get("id"):
        return None
    return RosterEntry(
        platform_player_id=int(player["id"]),
        full_name=player.get("fullName") or "Unknown Player",
        pro_team=ESPN_PRO_TEAMS.get(player.get("proTeamId"), ""),
        position=ESPN_POSITIONS.get(player.get("defaultPositionId"), ""),
        lineup_slot_id=int(entry.get("lineupSlotId", 0)),
        status=player.get("injuryStatus") or "ACTIVE",
        eligible_slot_ids=tuple(player.get("eligibleSlots") or ()),
    )


def parse_matchup(item: Dict[str, Any]) -> Matchup:
    away = item.get("away") or {}
    return Matchup(
        matchup_id=int(item["id"]),
        matchup_period_id=int(item["matchupPeriodId"]),
        home_team_id=int(item["home"]["teamId"]),
        away_team_id=int(away["teamId"]) if away.get("teamId") is not None else None,
    )


def parse_league(payload: Dict[str, Any], league_id: int) -> LeagueSnapshot:
    """Normalize a league response into teams and per-team roster entries."""
    if not isinstance(payload, dict):
        raise UpstreamFormatError(f"Unexpected league payload type: {type(payload).__name__}")

    members = {}
    for member in payload.get("members") or []:
        full_name = f"{member.get('firstName', '')} {member.get('lastName', '')}".strip()
        members[member.get("id")] = full_name or member.get("displayName") or "Unknown Owner"

    status = payload.get("status") or {}
    snapshot = LeagueSnapshot(
        league_id=league_id,
        name=(payload.get("settings") or {}).get("name") or f"League {league_id}",
        scoring_period_id=payload.get("scoringPeriodId") or status.get("scoringPeriodId"),
    )

    try:
        for team in payload.get("teams") or []:
            team_id = int(team["id"])
            owners = team.get("owners") or []
            overall = (team.get("record") or {}).get("overall") or {}
            snapshot.teams.append(FantasyTeam(
                team_id=team_id,
                name=team.get("name") or team.get("abbrev") or f"Team {team_id}",
                abbrev=team.get("abbrev") or "",
                owner=members.get(owners[0], "Unknown Owner") if owners else "Unknown Owner",
                wins=int(overall.get("wins", 0)),
                losses=int(overall.get("losses", 0)),
                ties=int(overall.get("ties", 0)),
            ))
            entries = (team.get("roster") or {}).get("entries") or []
            parsed = (parse_roster_entry(entry) for entry in entries)
            snapshot.rosters[team_id] = tuple(e for e in parsed if e is not None)

        snapshot.matchups = [parse_matchup(item) for item in payload.get("schedule") or []]
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise UpstreamFormatError(f"Malformed league payload: {e}") from e

    return snapshot


class ESPNService:
    """
    ESPN Fantasy Baseball league API integration.

    One request per scoring period returns every team's lineup for that day.
    """

    def __init__(
        self,
        league_id: int = None,
        year: int = None,
        espn_s2: Optional[str] = None,
        swid: Optional[str] = None,
        upstream: Optional[UpstreamClient] = None,
    ):
        self.league_id = league_id or settings.league_id
        self.year = year or settings.season
        # Use passed credentials, fall back to environment variables
        self.espn_s2 = espn_s2 or settings.espn_s2
        self.swid = swid or settings.swid

        if upstream is None:
            cookies = {}
            if self.espn_s2:
                cookies["espn_s2"] = self.espn_s2
            if self.swid:
                cookies["SWID"] = self.swid
            upstream = UpstreamClient(
                settings.espn_base_url,
                timeout=settings.http_timeout_espn,
                headers={"Accept": "application/json"},
                cookies=cookies,
            )
        self.upstream = upstream

    async def close(self) -> None:
        await self.upstream.close()

    @property
    def league_path(self) -> str:
        return f"seasons/{self.year}/segments/0/leagues/{self.league_id}"

    async def get_league_snapshot(self, scoring_period_id: Optional[int] = None) -> LeagueSnapshot:
        """Fetch teams and rosters, for a given scoring period or the current one."""
        params: List[Tuple[str, Any]] = [("view", view) for view in LEAGUE_VIEWS]
        if scoring_period_id is not None:
            params.insert(0, ("scoringPeriodId", scoring_period_id))

        payload = await self.upstream.get_json(self.league_path, params=params)
        snapshot = parse_league(payload, self.league_id)
        logger.info(
            f"ESPN league {self.league_id}: {len(snapshot.teams)} teams "
            f"(scoring period {scoring_period_id or snapshot.scoring_period_id})"
        )
        return snapshot

    async def get_teams(self) -> List[FantasyTeam]:
        """Fetch all teams in the league."""
        snapshot = await self.get_league_snapshot()
        return snapshot.teams

    async def get_all_rosters(self, scoring_period_id: int) -> Dict[int, Tuple[RosterEntry, ...]]:
        """Every team's roster entries for one scoring period."""
        snapshot = await self.get_league_snapshot(scoring_period_id)
        return snapshot.rosters

    async def get_matchups(self, matchup_period_id: int) -> List[Matchup]:
        """Head-to-head pairings for one matchup period, in schedule order."""
        snapshot = await self.get_league_snapshot()
        return [m for m in snapshot.matchups if m.matchup_period_id == matchup_period_id]
