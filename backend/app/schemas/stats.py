from typing import Optional
from pydantic import BaseModel

from app.services.records import StatLine


class StatLineResponse(BaseModel):
    # Batting
    runs: float = 0
    home_runs: float = 0
    rbi: float = 0
    stolen_bases: float = 0
    hits: float = 0
    at_bats: float = 0
    avg: float = 0.0
    # Pitching
    strikeouts: float = 0
    wins: float = 0
    saves: float = 0
    quality_starts: float = 0
    outs: float = 0
    innings: float = 0.0
    earned_runs: float = 0
    hits_allowed: float = 0
    walks: float = 0
    era: float = 0.0
    whip: float = 0.0

    class Config:
        from_attributes = True


def stat_line_response(
    line: StatLine,
    avg: Optional[float] = None,
    era: Optional[float] = None,
    whip: Optional[float] = None,
) -> StatLineResponse:
    """
    Build the API view of a line. Rates default to the line's own derived
    values; callers with separately computed rates (median projections) pass them in.
    """
    response = StatLineResponse.model_validate(line)
    return response.model_copy(update={
        "innings": round(line.innings, 2),
        "avg": round(line.avg if avg is None else avg, 3),
        "era": round(line.era if era is None else era, 2),
        "whip": round(line.whip if whip is None else whip, 2),
    })
