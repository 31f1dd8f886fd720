"""API routes for the Buzzwin engagement service"""
import logging
from datetime import datetime
from typing import Optional
import psycopg
from fastapi import APIRouter, Depends, Query, Request, status

from buzzwin.api.models import (
    CreateUserRequest, CreateUserResponse,
    AwardKarmaRequest, KarmaResponse, KarmaHistoryResponse, KarmaTransaction,
    LevelResponse, RitualStatsResponse,
    CompleteRitualRequest, CompleteRitualResponse,
    RitualListResponse, LeaderboardResponse,
    HealthCheckResponse, ErrorResponse
)
from buzzwin.api.auth import verify_api_key
from buzzwin.api.middleware import limiter
from buzzwin.db import queries
from buzzwin.db.connection import db
from buzzwin.exceptions import ValidationError, wrap_external_exception
from buzzwin.gamification import award_karma, get_user_karma, get_karma_history, get_level_info
from buzzwin.services.ritual_service import RitualService

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def get_ritual_service(request: Request) -> RitualService:
    """RitualService from the application's service container"""
    return request.app.state.container.ritual_service


@router.post(
    "/api/v1/users",
    response_model=CreateUserResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES
)
@limiter.limit("20/minute")
async def create_user_endpoint(
    request: Request,
    payload: CreateUserRequest,
    api_key: str = Depends(verify_api_key)
):
    """Create a user with zero karma; idempotent (Rate limit: 20/minute)"""
    if not payload.user_id:
        raise ValidationError("User ID is required", field="userId", value=payload.user_id)

    try:
        created = await queries.create_user(payload.user_id, payload.username, payload.name)
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="create_user", user_id=payload.user_id)

    return CreateUserResponse(user_id=payload.user_id, created=created)


@router.post("/api/v1/karma/award", response_model=KarmaResponse, responses=ERROR_RESPONSES)
@limiter.limit("60/minute")
async def award_karma_endpoint(
    request: Request,
    payload: AwardKarmaRequest,
    api_key: str = Depends(verify_api_key)
):
    """Award karma for an action (Rate limit: 60/minute)"""
    if not payload.action:
        raise ValidationError("Karma action is required", field="action", value=payload.action)

    state = await award_karma(payload.user_id, payload.action)

    return KarmaResponse(
        karma_points=state.karma_points,
        karma_breakdown=state.karma_breakdown
    )


@router.get("/api/v1/karma/{user_id}", response_model=KarmaResponse, responses=ERROR_RESPONSES)
@limiter.limit("30/minute")
async def get_karma_endpoint(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Get user karma and breakdown (Rate limit: 30/minute)"""
    state = await get_user_karma(user_id)

    return KarmaResponse(
        karma_points=state.karma_points,
        karma_breakdown=state.karma_breakdown
    )


@router.get(
    "/api/v1/karma/{user_id}/history",
    response_model=KarmaHistoryResponse,
    responses=ERROR_RESPONSES
)
@limiter.limit("30/minute")
async def get_karma_history_endpoint(
    request: Request,
    user_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    api_key: str = Depends(verify_api_key)
):
    """Get recent karma awards (Rate limit: 30/minute)"""
    rows = await get_karma_history(user_id, limit=limit)

    return KarmaHistoryResponse(
        user_id=user_id,
        transactions=[KarmaTransaction(**row) for row in rows]
    )


@router.get("/api/v1/users/{user_id}/level", response_model=LevelResponse, responses=ERROR_RESPONSES)
@limiter.limit("30/minute")
async def get_level_endpoint(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key)
):
    """Get user level and progress (Rate limit: 30/minute)"""
    state = await get_user_karma(user_id)
    return LevelResponse(**get_level_info(state.karma_points))


@router.get("/api/v1/users/{user_id}/ritual-stats", response_model=RitualStatsResponse)
@limiter.limit("30/minute")
async def get_ritual_stats_endpoint(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    ritual_service: RitualService = Depends(get_ritual_service)
):
    """
    Get ritual streaks and stats (Rate limit: 30/minute)

    Always 200: stats fall back to zeros if they cannot be calculated.
    """
    stats = await ritual_service.get_ritual_stats(user_id)
    return RitualStatsResponse(stats=stats)


@router.post(
    "/api/v1/rituals/complete",
    response_model=CompleteRitualResponse,
    responses=ERROR_RESPONSES
)
@limiter.limit("30/minute")
async def complete_ritual_endpoint(
    request: Request,
    payload: CompleteRitualRequest,
    api_key: str = Depends(verify_api_key),
    ritual_service: RitualService = Depends(get_ritual_service)
):
    """Complete a ritual for today (Rate limit: 30/minute)"""
    result = await ritual_service.complete_ritual(
        user_id=payload.user_id,
        ritual_id=payload.ritual_id,
        completed_quietly=payload.completed_quietly,
        shared_as_moment_id=payload.shared_as_moment_id
    )

    return CompleteRitualResponse(
        completion=result["completion"],
        updated_streak=result["updated_streak"]
    )


@router.get("/api/v1/rituals", response_model=RitualListResponse, responses=ERROR_RESPONSES)
@limiter.limit("60/minute")
async def list_rituals_endpoint(
    request: Request,
    q: str = "",
    sort: str = "",
    api_key: str = Depends(verify_api_key),
    ritual_service: RitualService = Depends(get_ritual_service)
):
    """Search and sort the ritual catalogue (Rate limit: 60/minute)"""
    rituals = await ritual_service.list_rituals(q, sort)
    return RitualListResponse(rituals=rituals)


@router.get("/api/v1/leaderboard", response_model=LeaderboardResponse, responses=ERROR_RESPONSES)
@limiter.limit("30/minute")
async def leaderboard_endpoint(
    request: Request,
    limit: int = Query(default=10, ge=1),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    api_key: str = Depends(verify_api_key),
    ritual_service: RitualService = Depends(get_ritual_service)
):
    """Karma leaderboard (Rate limit: 30/minute)"""
    result = await ritual_service.get_leaderboard(limit=limit, user_id=user_id)
    return LeaderboardResponse(entries=result["entries"], user_rank=result["user_rank"])


@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(request: Request):
    """Health check endpoint (Rate limit: 60/minute for monitoring systems)"""
    try:
        async with db.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                await cur.fetchone()

        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"

    return HealthCheckResponse(
        status="healthy" if db_status == "connected" else "degraded",
        database=db_status,
        timestamp=datetime.now()
    )
