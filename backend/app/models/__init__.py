from app.models.roster import RosterSnapshot

__all__ = [
    "RosterSnapshot",
]
