"""API routes for the MindShift progression engine"""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request, status

from mindshift.api.models import (
    UserSyncRequest, UserResponse,
    SettingsUpdateRequest, UsernameUpdateRequest, SubscriptionUpdateRequest,
    ProgressResponse,
    AffirmationCreateRequest, AffirmationUpdateRequest,
    AllowanceResponse, AffirmationDeleteResponse,
    PracticeRequest,
    StatsResponse, TodayProgressResponse, HistoryResponse,
    BadgeListResponse, BadgeAwardRequest, BadgeAwardResponse,
    LeaderboardResponse, RankResponse,
    HealthCheckResponse
)
from mindshift.api.auth import verify_api_key
from mindshift.api.middleware import limiter
from mindshift.config import PRACTICE_RATE_LIMIT
from mindshift.models.affirmation import Affirmation
from mindshift.models.practice import PracticeResult
from mindshift.services.container import ServiceContainer, get_container

logger = logging.getLogger(__name__)

router = APIRouter()


def get_services() -> ServiceContainer:
    """Service container dependency"""
    return get_container()


# ==========================================
# Practice
# ==========================================

@router.post("/api/v1/users/{user_id}/practice", response_model=PracticeResult)
@limiter.limit(PRACTICE_RATE_LIMIT)
async def submit_practice(
    request: Request,
    user_id: str,
    body: PracticeRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """
    Record a completed practice session

    Returns XP earned, level and tier changes, streak update, new badges and
    the celebration to show. Storage failures return 503 with
    `retryable: true`; nothing was written and the client may resubmit.
    """
    return await services.practice_service.submit_practice(
        user_id=user_id,
        affirmation_id=body.affirmation_id,
        repetitions=body.repetitions,
        duration_seconds=body.duration_seconds,
    )


# ==========================================
# Users
# ==========================================

@router.post("/api/v1/users", response_model=UserResponse)
@limiter.limit("20/minute")
async def sync_user(
    request: Request,
    body: UserSyncRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Create a user at first sign-in, or refresh profile fields (Rate limit: 20/minute)"""
    return await services.user_service.sync_user(
        user_id=body.user_id,
        email=body.email,
        name=body.name,
        image_url=body.image_url,
    )


@router.get("/api/v1/users/{user_id}", response_model=UserResponse)
@limiter.limit("60/minute")
async def get_user(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Get a user's progression record"""
    return await services.user_service.get_user(user_id)


@router.get("/api/v1/users/{user_id}/progress", response_model=ProgressResponse)
@limiter.limit("60/minute")
async def get_progress(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Level, tier and streak summary"""
    return await services.user_service.get_progress(user_id)


@router.patch("/api/v1/users/{user_id}/settings", response_model=UserResponse)
@limiter.limit("20/minute")
async def update_settings(
    request: Request,
    user_id: str,
    body: SettingsUpdateRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Update daily goal, reminders and anonymous mode"""
    return await services.user_service.update_settings(
        user_id,
        daily_practice_goal=body.daily_practice_goal,
        reminder_enabled=body.reminder_enabled,
        reminder_time=body.reminder_time,
        anonymous_mode=body.anonymous_mode,
    )


@router.put("/api/v1/users/{user_id}/username", response_model=UserResponse)
@limiter.limit("20/minute")
async def update_username(
    request: Request,
    user_id: str,
    body: UsernameUpdateRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Set (pro and elite plans) or clear the public username"""
    return await services.user_service.update_username(user_id, body.username)


@router.put("/api/v1/users/{user_id}/subscription", response_model=UserResponse)
@limiter.limit("20/minute")
async def update_subscription(
    request: Request,
    user_id: str,
    body: SubscriptionUpdateRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Apply a subscription change from the billing path"""
    return await services.user_service.update_subscription(
        user_id,
        tier=body.tier,
        status=body.status,
        customer_id=body.customer_id,
        subscription_id=body.subscription_id,
        ends_at=body.ends_at,
    )


# ==========================================
# Affirmations
# ==========================================

@router.post(
    "/api/v1/users/{user_id}/affirmations",
    response_model=Affirmation,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit("20/minute")
async def create_affirmation(
    request: Request,
    user_id: str,
    body: AffirmationCreateRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Save a new affirmation (free plan: limited count)"""
    return await services.affirmation_service.create_affirmation(user_id, **body.model_dump())


@router.get("/api/v1/users/{user_id}/affirmations", response_model=List[Affirmation])
@limiter.limit("60/minute")
async def list_affirmations(
    request: Request,
    user_id: str,
    archived: Optional[bool] = Query(default=False, description="Archived (true) or active (false)"),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """List affirmations, newest first"""
    return await services.affirmation_service.list_affirmations(user_id, archived=archived, limit=limit)


@router.get("/api/v1/users/{user_id}/affirmations/allowance", response_model=AllowanceResponse)
@limiter.limit("60/minute")
async def get_allowance(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Remaining affirmation creations for the user's plan"""
    return await services.affirmation_service.get_creation_allowance(user_id)


@router.get("/api/v1/users/{user_id}/affirmations/{affirmation_id}", response_model=Affirmation)
@limiter.limit("60/minute")
async def get_affirmation(
    request: Request,
    user_id: str,
    affirmation_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Get one affirmation"""
    return await services.affirmation_service.get_affirmation(user_id, affirmation_id)


@router.patch("/api/v1/users/{user_id}/affirmations/{affirmation_id}", response_model=Affirmation)
@limiter.limit("20/minute")
async def update_affirmation(
    request: Request,
    user_id: str,
    affirmation_id: str,
    body: AffirmationUpdateRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Edit the affirmation text"""
    return await services.affirmation_service.update_affirmation_text(
        user_id, affirmation_id, body.affirmation_text
    )


@router.post("/api/v1/users/{user_id}/affirmations/{affirmation_id}/archive", response_model=Affirmation)
@limiter.limit("20/minute")
async def archive_affirmation(
    request: Request,
    user_id: str,
    affirmation_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Archive an affirmation"""
    return await services.affirmation_service.archive_affirmation(user_id, affirmation_id)


@router.post("/api/v1/users/{user_id}/affirmations/{affirmation_id}/restore", response_model=Affirmation)
@limiter.limit("20/minute")
async def restore_affirmation(
    request: Request,
    user_id: str,
    affirmation_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Restore an archived affirmation"""
    return await services.affirmation_service.restore_affirmation(user_id, affirmation_id)


@router.delete(
    "/api/v1/users/{user_id}/affirmations/{affirmation_id}",
    response_model=AffirmationDeleteResponse
)
@limiter.limit("20/minute")
async def delete_affirmation(
    request: Request,
    user_id: str,
    affirmation_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Permanently delete an affirmation and its practice history"""
    return await services.affirmation_service.delete_affirmation(user_id, affirmation_id)


# ==========================================
# Stats & badges
# ==========================================

@router.get("/api/v1/users/{user_id}/stats", response_model=StatsResponse)
@limiter.limit("60/minute")
async def get_stats(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Lifetime statistics"""
    return await services.stats_service.get_user_stats(user_id)


@router.get("/api/v1/users/{user_id}/today", response_model=TodayProgressResponse)
@limiter.limit("60/minute")
async def get_today(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Progress toward today's practice goal"""
    return await services.stats_service.get_today_progress(user_id)


@router.get("/api/v1/users/{user_id}/history", response_model=HistoryResponse)
@limiter.limit("30/minute")
async def get_history(
    request: Request,
    user_id: str,
    days: int = Query(default=365, ge=1, le=730),
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Per-day practice counts for the heatmap"""
    history = await services.stats_service.get_practice_history(user_id, days=days)
    return HistoryResponse(user_id=user_id, days=history)


@router.get("/api/v1/users/{user_id}/badges", response_model=BadgeListResponse)
@limiter.limit("60/minute")
async def get_badges(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """All badges with earned flags and progress"""
    badges = await services.stats_service.get_badges(user_id)
    return BadgeListResponse(
        user_id=user_id,
        earned_count=sum(1 for badge in badges if badge["earned"]),
        badges=badges,
    )


@router.post("/api/v1/users/{user_id}/badges", response_model=BadgeAwardResponse)
@limiter.limit("20/minute")
async def award_badge(
    request: Request,
    user_id: str,
    body: BadgeAwardRequest,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Manually award a badge; awarded is false if the user already has it"""
    awarded = await services.stats_service.award_badge(user_id, body.badge_type)
    return BadgeAwardResponse(badge_type=body.badge_type, awarded=awarded)


@router.get("/api/v1/users/{user_id}/rank", response_model=RankResponse)
@limiter.limit("30/minute")
async def get_rank(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """The user's position on the all-time leaderboard"""
    return await services.stats_service.get_rank_info(user_id)


@router.get("/api/v1/leaderboard", response_model=LeaderboardResponse)
@limiter.limit("30/minute")
async def get_leaderboard(
    request: Request,
    limit: int = Query(default=50, ge=1, le=100),
    user_id: Optional[str] = Query(default=None, description="Marks this user's row"),
    api_key: str = Depends(verify_api_key),
    services: ServiceContainer = Depends(get_services)
):
    """Top users by total XP"""
    entries = await services.stats_service.get_leaderboard(limit=limit, current_user_id=user_id)
    return LeaderboardResponse(entries=entries)


# ==========================================
# System
# ==========================================

@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(
    request: Request,
    services: ServiceContainer = Depends(get_services)
):
    """Health check endpoint (no auth required)"""
    status_str = "healthy"
    try:
        await services.store.ping()
    except Exception as e:
        logger.error(f"Storage health check failed: {e}")
        status_str = "unhealthy"

    return HealthCheckResponse(
        status=status_str,
        storage=services.store.__class__.__name__,
        timestamp=datetime.now(timezone.utc)
    )
