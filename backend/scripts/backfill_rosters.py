#!/usr/bin/env python3
"""
Back-fill roster snapshots for the past days of one or more matchup weeks.

Usage:
    python scripts/backfill_rosters.py 12 13
"""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.database import init_db
from app.dependencies import ServiceContainer
from app.exceptions import CalendarUnavailable


async def backfill(weeks):
    await init_db()
    calendar = ServiceContainer.get_calendar()
    rosters = ServiceContainer.get_roster_service()

    try:
        for week_id in weeks:
            try:
                week = calendar.get_week(week_id)
            except CalendarUnavailable as e:
                print(f"Skipping: {e}")
                continue
            filled = await rosters.backfill_week(week)
            print(f"{week.label}: filled {len(filled)} days")
    finally:
        await ServiceContainer.aclose()

    print("Back-fill complete!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("weeks", nargs="+", type=int, help="Matchup week ids")
    args = parser.parse_args()
    asyncio.run(backfill(args.weeks))
