"""
AI job recommendation endpoints.

Recommendations are stored as recommendation ratings, so a fresh batch
is reused for 24 hours unless the caller asks to regenerate.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from sqlalchemy.orm import Session

from jobboard.api.deps import get_admin_gate, get_current_user, require_admin
from jobboard.api.v1.ratings import RatingResponse, rating_payload
from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.db.base import utcnow
from jobboard.db.session import get_db
from jobboard.models.enums import ProfileSetupStatus, RatingReason
from jobboard.services.exceptions import NotFoundError
from jobboard.services.recommendation_analytics import RecommendationAnalyticsService
from jobboard.services.recommendations import RecommendationService, generate_recommendations

logger = logging.getLogger("recommendations")

router = APIRouter()


class RecommendationFeedback(BaseModel):
    job_id: int
    rating: Optional[int] = Field(default=None, ge=1, le=10)
    feedback: Optional[str] = None
    reason: Optional[RatingReason] = None
    is_helpful: Optional[bool] = None


class AnalyticsAction(BaseModel):
    action: str
    user_id: Optional[int] = None


def _ensure_self(user_id: int, current_user: AuthenticatedUser) -> None:
    if user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


# ============== Analytics (admin) ==============


@router.get("/analytics")
def recommendation_analytics(
    period: str = Query("7d", pattern="^(7d|30d|90d)$"),
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Recommendation quality and engagement over the last 7, 30 or 90 days."""
    return {
        "success": True,
        "data": RecommendationAnalyticsService(db).summary(period, user_id),
    }


@router.post("/analytics")
def recommendation_maintenance(
    payload: AnalyticsAction,
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    """
    Maintenance actions.

    - `regenerate_all`: drop recommendations older than 24h for completed profiles
    - `cleanup_old`: delete recommendations older than 30 days
    - `refresh_user`: delete every recommendation of `user_id`
    """
    service = RecommendationAnalyticsService(db)
    logger.info("Admin %s ran recommendation action %s", admin.id, payload.action)

    if payload.action == "regenerate_all":
        processed = service.clear_stale()
        return {
            "success": True,
            "message": f"Triggered regeneration for {processed} users",
            "data": {"processed_users": processed},
        }

    if payload.action == "cleanup_old":
        deleted = service.cleanup_old()
        return {
            "success": True,
            "message": f"Cleaned up {deleted} old recommendations",
            "data": {"deleted_count": deleted},
        }

    if payload.action == "refresh_user":
        if payload.user_id is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User ID required for refresh action",
            )
        deleted = service.clear_user(payload.user_id)
        return {
            "success": True,
            "message": f"Cleared {deleted} recommendations for user",
            "data": {"deleted_count": deleted},
        }

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")


# ============== Recommendations ==============


@router.get("/{user_id}")
def get_recommendations(
    user_id: int,
    regenerate: bool = False,
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    """
    Get job recommendations for a user with a completed profile.

    Cached recommendations from the last 24 hours are returned as-is;
    `regenerate=true` scores the current open jobs again.
    """
    if user_id != current_user.id and not gate.is_admin(current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    service = RecommendationService(db)
    try:
        profile = service.get_completed_profile(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if profile.status != ProfileSetupStatus.COMPLETED.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile must be completed to get recommendations",
        )

    if not regenerate:
        cached = service.recent(user_id, limit)
        if cached:
            return {
                "success": True,
                "data": {
                    "recommendations": [RatingResponse.from_rating(r) for r in cached],
                    "cached": True,
                },
            }

    jobs = service.candidate_jobs(user_id)
    if not jobs:
        return {
            "success": True,
            "data": {"recommendations": [], "cached": False},
            "message": "No available jobs found for recommendations",
        }

    result = generate_recommendations(profile, jobs, limit)
    saved = service.save(user_id, result["recommendations"])
    factors = {rec["job_id"]: rec.get("match_factors", {}) for rec in result["recommendations"]}
    logger.info(
        "Generated %d recommendations for user %s (%s)",
        len(saved),
        user_id,
        result["analysis"].get("source"),
    )

    return {
        "success": True,
        "data": {
            "recommendations": [
                {
                    **RatingResponse.from_rating(rating).model_dump(),
                    "match_factors": factors.get(rating.job_id, {}),
                }
                for rating in saved
            ],
            "analysis": result["analysis"],
            "cached": False,
            "generated_at": utcnow(),
        },
    }


@router.post("/{user_id}")
def submit_recommendation_feedback(
    user_id: int,
    payload: RecommendationFeedback,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    _ensure_self(user_id, current_user)

    data = rating_payload(payload)
    job_id = data.pop("job_id")
    try:
        rating = RecommendationService(db).update_feedback(user_id, job_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return {
        "success": True,
        "data": RatingResponse.from_rating(rating),
        "message": "Feedback recorded",
    }


@router.delete("/{user_id}")
def delete_recommendations(
    user_id: int,
    job_id: Optional[int] = Query(None, alias="jobId"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Delete one recommendation (`jobId`) or all of them."""
    _ensure_self(user_id, current_user)

    try:
        deleted = RecommendationService(db).delete(user_id, job_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return {"success": True, "deleted": deleted, "message": "Recommendations deleted"}
