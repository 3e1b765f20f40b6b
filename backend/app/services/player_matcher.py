"""
Player identity resolution between the fantasy platform and the stats provider.

The two sources share no key, so roster entries are matched to a day's stat
records by normalized name, corroborated by team and position. Every match
carries a confidence in [0, 1]; callers pick their own acceptance threshold.
"""

import logging
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from app.services.records import RosterEntry, StatPlayer
from app.utils import normalize_name

logger = logging.getLogger(__name__)


# Alternate abbreviations -> canonical code
TEAM_ALIASES = {
    "SFG": "SF",
    "WSN": "WSH",
    "WAS": "WSH",
    "TBR": "TB",
    "KCR": "KC",
    "CHW": "CWS",
    "SDP": "SD",
    "AZ": "ARI",
    "ATH": "OAK",
}

# Used when a stat record carries a team name but no abbreviation
TEAM_NICKNAMES = {
    "Angels": "LAA", "Astros": "HOU", "Athletics": "OAK", "Blue Jays": "TOR",
    "Braves": "ATL", "Brewers": "MIL", "Cardinals": "STL", "Cubs": "CHC",
    "Diamondbacks": "ARI", "Dodgers": "LAD", "Giants": "SF", "Guardians": "CLE",
    "Mariners": "SEA", "Marlins": "MIA", "Mets": "NYM", "Nationals": "WSH",
    "Orioles": "BAL", "Padres": "SD", "Phillies": "PHI", "Pirates": "PIT",
    "Rangers": "TEX", "Rays": "TB", "Red Sox": "BOS", "Reds": "CIN",
    "Rockies": "COL", "Royals": "KC", "Tigers": "DET", "Twins": "MIN",
    "White Sox": "CWS", "Yankees": "NYY",
}

# Roster position -> stat-provider position codes it accepts
POSITION_COMPATIBILITY = {
    "C": ("C",),
    "1B": ("1B",),
    "2B": ("2B",),
    "3B": ("3B",),
    "SS": ("SS",),
    "OF": ("LF", "CF", "RF", "OF"),
    "LF": ("LF", "OF"),
    "CF": ("CF", "OF"),
    "RF": ("RF", "OF"),
    "DH": ("DH",),
    "SP": ("P", "SP"),
    "RP": ("P", "RP"),
    "P": ("P", "SP", "RP"),
}

UNKNOWN_TEAM_CODES = frozenset({"", "UNK", "FA"})

# Exact-name scoring
EXACT_NAME_CONFIDENCE = 0.9
EXACT_TEAM_BONUS = 0.1
EXACT_TEAM_PENALTY = 0.2
# Fuzzy search runs only when the exact pass is below this
FUZZY_TRIGGER = 0.8

# Fuzzy scoring
FUZZY_NAME_WEIGHT = 0.7
FUZZY_TEAM_BONUS = 0.2
FUZZY_TEAM_PENALTY = 0.1
FUZZY_POSITION_BONUS = 0.1
FUZZY_MATCH_FLOOR = 0.5
FUZZY_CANDIDATE_LIMIT = 5
FUZZY_SCORE_CUTOFF = 60

NO_MATCH_REASON = "no match"


def normalize_team(code: Optional[str]) -> str:
    """Canonical team code for an abbreviation ("SFG" -> "SF")."""
    if not code:
        return ""
    code = code.strip().upper()
    return TEAM_ALIASES.get(code, code)


def team_from_name(team_name: Optional[str]) -> str:
    """Team code from a full team name ("San Francisco Giants" -> "SF"), or ""."""
    if not team_name:
        return ""
    for nickname, code in TEAM_NICKNAMES.items():
        if nickname in team_name:
            return code
    return ""


def candidate_team(player: StatPlayer) -> str:
    return normalize_team(player.team_code) or team_from_name(player.team_name)


def is_known_team(code: str) -> bool:
    return code not in UNKNOWN_TEAM_CODES


def positions_compatible(roster_position: str, stat_position: str) -> bool:
    """A missing position on either side counts as compatible."""
    if not roster_position or not stat_position:
        return True
    roster_position = roster_position.upper()
    accepted = POSITION_COMPATIBILITY.get(roster_position, (roster_position,))
    return stat_position.upper() in accepted


def name_similarity(left: str, right: str) -> float:
    """Independent similarity of two normalized names, in [0, 1]."""
    if not left or not right:
        return 0.0
    return SequenceMatcher(None, left, right).ratio()


def clamp_confidence(value: float) -> float:
    return round(min(max(value, 0.0), 1.0), 4)


@dataclass(frozen=True)
class PlayerMatch:
    """Resolution result for one roster entry."""
    entry: RosterEntry
    player: Optional[StatPlayer]
    confidence: float
    reason: str
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def matched(self) -> bool:
        return self.player is not None


@dataclass
class _Candidate:
    player: StatPlayer
    name: str
    team: str


class PlayerMatcher:
    """
    Matches a day's roster entries to that day's stat-provider records.

    Entries are processed in roster order and a claimed record leaves the
    pool, so no two entries in one call share a record.
    """

    def match_players(
        self,
        entries: Sequence[RosterEntry],
        players: Sequence[StatPlayer],
    ) -> List[PlayerMatch]:
        pool: Dict[int, _Candidate] = {}
        for index, player in enumerate(players):
            pool[index] = _Candidate(
                player=player,
                name=normalize_name(player.full_name),
                team=candidate_team(player),
            )

        matches = []
        for entry in entries:
            match, claimed = self._match_entry(entry, pool)
            if claimed is not None:
                del pool[claimed]
            matches.append(match)

        matched = [m for m in matches if m.matched]
        high = sum(1 for m in matched if m.confidence >= FUZZY_TRIGGER)
        logger.info(
            f"Matched {len(matched)}/{len(matches)} roster entries "
            f"against {len(players)} records ({high} high confidence)"
        )
        return matches

    def _match_entry(
        self, entry: RosterEntry, pool: Dict[int, _Candidate]
    ) -> Tuple[PlayerMatch, Optional[int]]:
        target = normalize_name(entry.full_name)
        entry_team = normalize_team(entry.pro_team)

        best = PlayerMatch(entry=entry, player=None, confidence=0.0, reason=NO_MATCH_REASON)
        best_index: Optional[int] = None

        # 1. Exact normalized name
        for index, candidate in pool.items():
            if not target or candidate.name != target:
                continue
            confidence = EXACT_NAME_CONFIDENCE
            reason = "exact name"
            warnings = []

            if self._teams_match(entry_team, candidate.team):
                confidence += EXACT_TEAM_BONUS
                reason += " + team"
            elif self._teams_conflict(entry_team, candidate.team):
                confidence -= EXACT_TEAM_PENALTY
                warnings.append(f"team mismatch: roster {entry_team} vs stats {candidate.team}")

            if not positions_compatible(entry.position, candidate.player.position_code):
                warnings.append(
                    f"position mismatch: roster {entry.position} vs stats {candidate.player.position_code}"
                )

            confidence = clamp_confidence(confidence)
            if confidence > best.confidence:
                best = PlayerMatch(entry, candidate.player, confidence, reason, tuple(warnings))
                best_index = index

        # 2. Fuzzy name over what is left
        if best.confidence < FUZZY_TRIGGER and target and pool:
            for index, score in self._fuzzy_candidates(target, pool):
                candidate = pool[index]
                similarity = max(score / 100.0, name_similarity(target, candidate.name))
                confidence = similarity * FUZZY_NAME_WEIGHT
                reason = f"fuzzy name ({similarity * 100:.1f}%)"
                warnings = []

                if self._teams_match(entry_team, candidate.team):
                    confidence += FUZZY_TEAM_BONUS
                    reason += " + team"
                elif self._teams_conflict(entry_team, candidate.team):
                    confidence -= FUZZY_TEAM_PENALTY
                    warnings.append(f"team mismatch: roster {entry_team} vs stats {candidate.team}")

                if positions_compatible(entry.position, candidate.player.position_code):
                    confidence += FUZZY_POSITION_BONUS
                else:
                    warnings.append(
                        f"position mismatch: roster {entry.position} vs stats {candidate.player.position_code}"
                    )

                confidence = clamp_confidence(confidence)
                if confidence > best.confidence and confidence > FUZZY_MATCH_FLOOR:
                    best = PlayerMatch(entry, candidate.player, confidence, reason, tuple(warnings))
                    best_index = index

        if best.player is None:
            logger.debug(f"No match for {entry.full_name} ({entry_team or 'no team'})")
        elif best.warnings:
            logger.debug(f"{entry.full_name} -> {best.player.full_name}: {'; '.join(best.warnings)}")
        return best, best_index

    @staticmethod
    def _fuzzy_candidates(target: str, pool: Dict[int, _Candidate]) -> List[Tuple[int, float]]:
        """Top candidates by token-sort ratio, best first: [(pool index, score 0-100)]."""
        choices = {index: candidate.name for index, candidate in pool.items()}
        results = process.extract(
            target,
            choices,
            scorer=fuzz.token_sort_ratio,
            limit=FUZZY_CANDIDATE_LIMIT,
            score_cutoff=FUZZY_SCORE_CUTOFF,
        )
        return [(index, score) for _, score, index in results]

    @staticmethod
    def _teams_match(left: str, right: str) -> bool:
        return is_known_team(left) and left == right

    @staticmethod
    def _teams_conflict(left: str, right: str) -> bool:
        return is_known_team(left) and is_known_team(right) and left != right
