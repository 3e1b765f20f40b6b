from typing import List, Optional
from pydantic import BaseModel

from app.schemas.match import RosterEntryResponse
from app.schemas.stats import StatLineResponse


class TeamProjectionResponse(BaseModel):
    team_id: int
    target_week: int
    projected: StatLineResponse
    weeks_used: List[int] = []
    data_source: str
    warnings: List[str] = []


class PlayerProjectionResponse(BaseModel):
    entry: RosterEntryResponse
    target_week: int
    projected: StatLineResponse
    observed: StatLineResponse
    stats_player_id: Optional[int] = None
    resolved_by: str = ""
    games_observed: int = 0
    games_projected: int = 0
    data_source: str
    warnings: List[str] = []


class LineupProjectionResponse(BaseModel):
    team_id: int
    target_week: int
    projected: StatLineResponse
    players: List[PlayerProjectionResponse] = []
    warnings: List[str] = []
