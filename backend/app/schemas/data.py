from pydantic import BaseModel


class CacheStatsResponse(BaseModel):
    total_requests: int = 0
    hits: int = 0
    misses: int = 0
    deduplicated: int = 0
    errors: int = 0
    active: int = 0
    pending: int = 0
    entries: int = 0
    ttl_seconds: float

    class Config:
        from_attributes = True


class SnapshotResponse(BaseModel):
    status: str
    teams_written: int
