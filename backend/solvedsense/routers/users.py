"""
User profile endpoint backed by solved.ac.
"""

from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from solvedsense.dependencies.engine import get_analytics_engine
from solvedsense.routers.analytics import HANDLE, upstream_http_error
from solvedsense.services.analytics_engine import AnalyticsEngine
from solvedsense.services.solvedac_client import UpstreamError

router = APIRouter(prefix="/api/users", tags=["users"])


class UserProfileResponse(BaseModel):
    handle: str
    tier: int
    tier_name: str
    rating: int
    solved_count: int
    max_streak: int
    activity: Dict


@router.get("/{handle}", response_model=UserProfileResponse)
async def get_user(
    handle: str = HANDLE,
    engine: AnalyticsEngine = Depends(get_analytics_engine),
):
    try:
        return await engine.profile(handle)
    except UpstreamError as e:
        raise upstream_http_error(e)
