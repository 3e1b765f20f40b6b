from datetime import date
from typing import List, Optional
from pydantic import BaseModel

from app.schemas.stats import StatLineResponse


class RosterEntryResponse(BaseModel):
    platform_player_id: int
    full_name: str
    pro_team: str = ""
    position: str = ""
    lineup_slot_id: int = 0
    status: str = "ACTIVE"

    class Config:
        from_attributes = True


class StatPlayerResponse(BaseModel):
    player_id: int
    full_name: str
    team_code: str = ""
    team_name: str = ""
    position_code: str = ""
    stats: Optional[StatLineResponse] = None


class PlayerMatchResponse(BaseModel):
    entry: RosterEntryResponse
    player: Optional[StatPlayerResponse] = None
    confidence: float
    reason: str
    warnings: List[str] = []


class DailyMatchResponse(BaseModel):
    team_id: int
    date: date
    matches: List[PlayerMatchResponse] = []
    totals: StatLineResponse
    warnings: List[str] = []
