"""
Analytics API Router

Per-handle analytics over solved.ac data: full report, weakness, progress,
difficulty, adaptive recommendations, tier prediction and the stored
learning pattern.
"""

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel

from solvedsense.dependencies.engine import get_analytics_engine
from solvedsense.schemas.analytics import AnalysisContext, RecommendationSet
from solvedsense.services.analytics_engine import AnalyticsEngine
from solvedsense.services.solvedac_client import (
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])

HANDLE = Path(..., min_length=1, max_length=40, pattern=r"^[A-Za-z0-9_]+$")


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class RecommendationResponse(RecommendationSet):
    handle: str


class TierPredictionResponse(BaseModel):
    handle: str
    current_tier: str
    next_tier: str
    current_progress: float
    estimated_time: str
    confidence: Literal["High", "Medium", "Low"]
    blockers: List[str]
    recommendations: List[str]


class PatternResponse(BaseModel):
    handle: str
    state: Literal["uninitialized", "tracking"]
    pattern: Optional[Dict[str, Any]] = None


# =============================================================================
# ERROR MAPPING
# =============================================================================

def upstream_http_error(e: UpstreamError) -> HTTPException:
    """Translate a solved.ac failure into the HTTP error the caller sees."""
    if isinstance(e, UpstreamNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, UpstreamRateLimitedError):
        return HTTPException(
            status_code=429,
            detail={"error": "Upstream rate limit exceeded", "retry_after": e.retry_after},
            headers={"Retry-After": str(e.retry_after)},
        )
    if isinstance(e, UpstreamUnavailableError):
        return HTTPException(status_code=503, detail="solved.ac is temporarily unavailable")
    logger.error("Unexpected solved.ac response: %s", e)
    return HTTPException(status_code=502, detail="Bad response from solved.ac")


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

def analysis_context(
    urgency: Optional[Literal["high", "medium", "low"]] = Query(None),
    focus: Optional[Literal["weakness", "tier_up", "general"]] = Query(None),
    mood: Optional[Literal["motivated", "frustrated", "neutral"]] = Query(None),
    time_available_minutes: Optional[int] = Query(None, ge=0, le=1440),
    streak: Optional[int] = Query(None, ge=0),
) -> AnalysisContext:
    """
    Optional query hints shared by the report and recommendation endpoints.

    urgency and focus tune the adaptive weights; mood, time budget and
    streak drive the final adjustments and the personalized message.
    """
    return AnalysisContext(
        urgency=urgency,
        focus=focus,
        mood=mood,
        time_available_minutes=time_available_minutes,
        streak=streak,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/{handle}")
async def get_report(
    handle: str = HANDLE,
    context: AnalysisContext = Depends(analysis_context),
    engine: AnalyticsEngine = Depends(get_analytics_engine),
) -> Dict[str, Any]:
    """Every analysis for the handle from a single solved.ac fetch."""
    try:
        return await engine.report(handle, context)
    except UpstreamError as e:
        raise upstream_http_error(e)


@router.get("/{handle}/weakness")
async def get_weakness(
    handle: str = HANDLE,
    engine: AnalyticsEngine = Depends(get_analytics_engine),
) -> Dict[str, Any]:
    try:
        return await engine.weakness(handle)
    except UpstreamError as e:
        raise upstream_http_error(e)


@router.get("/{handle}/progress")
async def get_progress(
    handle: str = HANDLE,
    engine: AnalyticsEngine = Depends(get_analytics_engine),
) -> Dict[str, Any]:
    try:
        return await engine.progress(handle)
    except UpstreamError as e:
        raise upstream_http_error(e)


@router.get("/{handle}/difficulty")
async def get_difficulty(
    handle: str = HANDLE,
    engine: AnalyticsEngine = Depends(get_analytics_engine),
) -> Dict[str, Any]:
    try:
        return await engine.difficulty(handle)
    except UpstreamError as e:
        raise upstream_http_error(e)


@router.get("/{handle}/recommendations", response_model=RecommendationResponse)
async def get_recommendations(
    handle: str = HANDLE,
    context: AnalysisContext = Depends(analysis_context),
    engine: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Adaptive recommendations for today, this week and this month."""
    try:
        return await engine.recommendations(handle, context)
    except UpstreamError as e:
        raise upstream_http_error(e)


@router.get("/{handle}/tier-prediction", response_model=TierPredictionResponse)
async def get_tier_prediction(
    handle: str = HANDLE,
    engine: AnalyticsEngine = Depends(get_analytics_engine),
):
    try:
        return await engine.tier_prediction(handle)
    except UpstreamError as e:
        raise upstream_http_error(e)


@router.get("/{handle}/patterns", response_model=PatternResponse)
async def get_learning_pattern(
    handle: str = HANDLE,
    engine: AnalyticsEngine = Depends(get_analytics_engine),
):
    """Stored learning pattern; never calls solved.ac."""
    return await engine.learning_pattern(handle)
