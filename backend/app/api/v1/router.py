from fastapi import APIRouter

from app.api.v1 import weekly, matches, projections, data

api_router = APIRouter()

api_router.include_router(weekly.router, prefix="/weekly", tags=["weekly"])
api_router.include_router(matches.router, prefix="/matches", tags=["matches"])
api_router.include_router(projections.router, prefix="/projections", tags=["projections"])
api_router.include_router(data.router, prefix="/data", tags=["data"])
