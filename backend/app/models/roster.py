from datetime import date, datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, Date, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class RosterSnapshot(Base):
    """A fantasy team's lineup as it stood on one scoring day."""
    __tablename__ = "roster_snapshots"
    __table_args__ = (
        UniqueConstraint("snapshot_date", "team_id", name="uq_roster_snapshot_day_team"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    snapshot_date: Mapped[date] = mapped_column(Date, index=True)
    team_id: Mapped[int] = mapped_column(Integer, index=True)
    scoring_period_id: Mapped[int] = mapped_column(Integer)

    # sha256 of the serialized entries; unchanged lineups are not rewritten
    content_hash: Mapped[str] = mapped_column(String(64))
    entries: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
