import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import init_db
from app.api.v1.router import api_router
from app.dependencies import ServiceContainer
from app.exceptions import UpstreamError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    rosters = ServiceContainer.get_roster_service()

    # --- Scheduled roster snapshots ---
    async def _scheduled_snapshot():
        try:
            await rosters.snapshot_today()
        except UpstreamError as e:
            logger.error(f"Scheduled roster snapshot failed: {e}")

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _scheduled_snapshot, 'interval', minutes=settings.roster_snapshot_interval_minutes
    )
    scheduler.start()
    logger.info(
        "Scheduler started: roster snapshot every %d min",
        settings.roster_snapshot_interval_minutes,
    )

    yield

    scheduler.shutdown(wait=False)
    # Shutdown - cleanup HTTP clients
    await ServiceContainer.aclose()


app = FastAPI(
    title=settings.app_name,
    description="Fantasy baseball league tracker: weekly stats reconciled from ESPN rosters and MLB box scores",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}
