"""
Recommendation rating endpoints.

Users rate recommended jobs (1-10) and say whether the recommendation
helped. Other users' ratings are visible to admins only.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from jobboard.api.deps import get_admin_gate, get_current_user
from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.db.session import get_db
from jobboard.models import RecommendationRating
from jobboard.models.enums import RatingReason
from jobboard.services.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from jobboard.services.ratings import RecommendationRatingService

router = APIRouter()


# ============== Pydantic Schemas ==============


class RatingCreate(BaseModel):
    job_id: int
    rating: int = Field(ge=1, le=10)
    feedback: Optional[str] = None
    reason: Optional[RatingReason] = None
    recommended_by: Optional[str] = None
    match_score: Optional[float] = Field(default=None, ge=0, le=100)
    is_helpful: Optional[bool] = None


class RatingUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=10)
    feedback: Optional[str] = None
    reason: Optional[RatingReason] = None
    recommended_by: Optional[str] = None
    match_score: Optional[float] = Field(default=None, ge=0, le=100)
    is_helpful: Optional[bool] = None


class RatedJob(BaseModel):
    id: int
    title: str
    slug: str
    location: str
    work_type: str
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    company_id: int
    company_name: Optional[str] = None


class RatingResponse(BaseModel):
    id: int
    user_id: int
    job_id: int
    rating: int
    feedback: Optional[str] = None
    reason: Optional[str] = None
    recommended_by: Optional[str] = None
    match_score: Optional[float] = None
    is_helpful: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    job: Optional[RatedJob] = None

    @classmethod
    def from_rating(cls, rating: RecommendationRating) -> "RatingResponse":
        job = rating.job
        return cls(
            id=rating.id,
            user_id=rating.user_id,
            job_id=rating.job_id,
            rating=rating.rating,
            feedback=rating.feedback,
            reason=rating.reason,
            recommended_by=rating.recommended_by,
            match_score=rating.match_score,
            is_helpful=rating.is_helpful,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
            job=RatedJob(
                id=job.id,
                title=job.title,
                slug=job.slug,
                location=job.location,
                work_type=job.work_type,
                salary_min=job.salary_min,
                salary_max=job.salary_max,
                company_id=job.company_id,
                company_name=job.company.name if job.company else None,
            )
            if job
            else None,
        )


def rating_payload(data: BaseModel) -> dict:
    payload = data.model_dump(exclude_unset=True)
    if "rating" in payload and payload["rating"] is None:
        del payload["rating"]
    if payload.get("reason") is not None:
        payload["reason"] = payload["reason"].value
    return payload


def _ensure_self_or_admin(user_id: int, current_user: AuthenticatedUser, gate: AdminGate) -> None:
    if user_id != current_user.id and not gate.is_admin(current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


# ============== API Endpoints ==============


@router.get("")
def list_ratings(
    user_id: Optional[int] = None,
    job_id: Optional[int] = None,
    rating: Optional[int] = Query(None, ge=1, le=10),
    reason: Optional[RatingReason] = None,
    recommended_by: Optional[str] = None,
    is_helpful: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("created_at", pattern="^(created_at|rating|match_score)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    """List ratings; non-admins only see their own."""
    if user_id is None:
        if not gate.is_admin(current_user.id):
            user_id = current_user.id
    else:
        _ensure_self_or_admin(user_id, current_user, gate)

    result = RecommendationRatingService(db).list(
        user_id=user_id,
        job_id=job_id,
        rating=rating,
        reason=reason.value if reason else None,
        recommended_by=recommended_by,
        is_helpful=is_helpful,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {
        "success": True,
        "data": [RatingResponse.from_rating(r) for r in result["data"]],
        "pagination": result["pagination"],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_rating(
    payload: RatingCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    try:
        rating = RecommendationRatingService(db).create(current_user.id, rating_payload(payload))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return {
        "success": True,
        "data": RatingResponse.from_rating(rating),
        "message": "Recommendation rating created successfully",
    }


@router.get("/user/{user_id}/job/{job_id}")
def get_rating_for_user_and_job(
    user_id: int,
    job_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    _ensure_self_or_admin(user_id, current_user, gate)
    rating = RecommendationRatingService(db).get_by_user_and_job(user_id, job_id)
    if not rating:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Recommendation rating not found"
        )
    return {"success": True, "data": RatingResponse.from_rating(rating)}


@router.get("/user/{user_id}/stats")
def get_user_rating_stats(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    _ensure_self_or_admin(user_id, current_user, gate)
    return {"success": True, "data": RecommendationRatingService(db).user_stats(user_id)}


@router.get("/job/{job_id}/stats")
def get_job_rating_stats(
    job_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return {"success": True, "data": RecommendationRatingService(db).job_stats(job_id)}


@router.get("/{rating_id}")
def get_rating(
    rating_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    rating = RecommendationRatingService(db).get(rating_id)
    if not rating:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Recommendation rating not found"
        )
    _ensure_self_or_admin(rating.user_id, current_user, gate)
    return {"success": True, "data": RatingResponse.from_rating(rating)}


@router.put("/{rating_id}")
def update_rating(
    rating_id: int,
    payload: RatingUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    try:
        rating = RecommendationRatingService(db).update(
            rating_id, current_user.id, rating_payload(payload)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    return {
        "success": True,
        "data": RatingResponse.from_rating(rating),
        "message": "Recommendation rating updated successfully",
    }


@router.delete("/{rating_id}")
def delete_rating(
    rating_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    try:
        RecommendationRatingService(db).delete(rating_id, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    return {"success": True, "message": "Recommendation rating deleted successfully"}
