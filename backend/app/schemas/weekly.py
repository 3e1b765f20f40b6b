from typing import List, Optional
from pydantic import BaseModel

from app.schemas.stats import StatLineResponse


class WeeklyTeamStatResponse(BaseModel):
    team_id: int
    week_id: int
    totals: StatLineResponse
    contributing_matches: int = 0
    days_processed: int = 0
    days_expected: int = 0
    warnings: List[str] = []


class LeagueWeekResponse(BaseModel):
    week_id: int
    label: str
    teams: List[WeeklyTeamStatResponse] = []


class CategoryResultResponse(BaseModel):
    category: str
    home: float
    away: float
    winner: str


class MatchupResponse(BaseModel):
    matchup_id: int
    home: WeeklyTeamStatResponse
    away: Optional[WeeklyTeamStatResponse] = None
    categories: List[CategoryResultResponse] = []
    home_wins: int = 0
    away_wins: int = 0
    ties: int = 0


class WeekMatchupsResponse(BaseModel):
    week_id: int
    label: str
    matchups: List[MatchupResponse] = []


class StandingResponse(BaseModel):
    rank: int
    team_id: int
    name: str
    abbrev: str = ""
    owner: str = ""
    wins: int = 0
    losses: int = 0
    ties: int = 0
    win_percentage: float = 0.0
    record: str = "0-0"
