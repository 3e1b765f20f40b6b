from datetime import date
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App settings
    app_name: str = "Fantasy Baseball League Tracker"
    debug: bool = False
    log_level: str = "INFO"

    # Database (roster snapshots)
    database_url: str = "sqlite+aiosqlite:///./league_tracker.db"

    # ESPN credentials (for private leagues)
    espn_s2: Optional[str] = None
    swid: Optional[str] = None

    # League settings
    league_id: int = 24414
    season: int = 2025
    # First Monday of matchup week 1 and the date of scoring period 1
    season_start_date: date = date(2025, 3, 31)
    opening_day: date = date(2025, 3, 27)

    # Upstream endpoints
    espn_base_url: str = "https://lm-api-reads.fantasy.espn.com/apis/v3/games/flb"
    mlb_base_url: str = "https://statsapi.mlb.com/api/v1"

    # HTTP timeouts (seconds)
    http_timeout_default: float = 30.0
    http_timeout_espn: float = 60.0

    # Upstream request policy
    max_concurrent_requests: int = 10
    upstream_retry_attempts: int = 1  # transport failures only

    # Request cache
    cache_ttl_seconds: int = 12 * 60 * 60

    # Lineup slots that never count toward weekly totals (BE, IL)
    inactive_slot_ids: list[int] = [16, 17]
    active_statuses: list[str] = ["ACTIVE"]

    # Match confidence thresholds
    weekly_match_floor: float = 0.5
    weekly_safe_confidence: float = 0.7
    daily_display_floor: float = 0.5

    # Projections
    projection_lookback_weeks: int = 4
    projected_games_per_week: int = 7

    # Roster snapshots
    roster_snapshot_retention_days: int = 7
    roster_snapshot_interval_minutes: int = 360

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
