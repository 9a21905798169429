"""
Admin API endpoints.

Platform statistics, user management and profile setup oversight. Every
route checks the stored role through the admin gate; a user may also read
and edit their own record under /users/{id}.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from jobboard.api.deps import get_admin_gate, get_current_user, require_admin
from jobboard.api.v1.users import ProfileSetupResponse
from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.core.session_store import SessionStore
from jobboard.db.base import utcnow
from jobboard.db.session import get_db
from jobboard.models import Company, Job, JobApplication, User, UserProfile
from jobboard.models.enums import JobStatus, ProfileSetupStatus, UserRole
from jobboard.services.profile_setup import ProfileSetupService

router = APIRouter()

USER_SORT_FIELDS = {
    "created_at": User.created_at,
    "updated_at": User.updated_at,
    "name": User.name,
    "email": User.email,
}


# ============== Pydantic Schemas ==============


class AdminUserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    role: UserRole = UserRole.JOB_SEEKER
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    role: Optional[UserRole] = None
    status: Optional[str] = None
    is_profile_complete: Optional[bool] = None


class AdminUserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image: Optional[str] = None
    role: str
    status: Optional[str] = None
    is_profile_complete: bool = False
    company_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============== Helper Functions ==============


def _previous_month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """[first day of last month, first day of this month)."""
    this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    last_month = (this_month - timedelta(days=1)).replace(day=1)
    return last_month, this_month


def _growth_rate(current: float, previous: int) -> float:
    if previous <= 0:
        return 0
    return round((current - previous) / previous * 100, 2)


def _count_by(db: Session, column, *filters) -> dict[str, int]:
    rows = db.query(column, func.count()).filter(*filters).group_by(column).all()
    return {value: count for value, count in rows if value is not None}


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id, User.deleted_at.is_(None)).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# ============== API Endpoints ==============


@router.get("/stats")
def get_platform_stats(
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    """Platform totals, recent growth, distributions and top performers."""
    now = utcnow()
    month_ago = now - timedelta(days=30)
    week_ago = now - timedelta(days=7)
    last_month_start, last_month_end = _previous_month_bounds(now)

    active_users = User.deleted_at.is_(None)
    active_job = (Job.is_active.is_(True), Job.status == JobStatus.PUBLISHED.value)

    new_users = db.query(User).filter(active_users, User.created_at >= month_ago).count()
    new_applications = db.query(JobApplication).filter(JobApplication.applied_at >= week_ago).count()
    users_last_month = (
        db.query(User)
        .filter(active_users, User.created_at >= last_month_start, User.created_at < last_month_end)
        .count()
    )
    applications_last_month = (
        db.query(JobApplication)
        .filter(
            JobApplication.applied_at >= last_month_start,
            JobApplication.applied_at < last_month_end,
        )
        .count()
    )

    top_companies = (
        db.query(Company, func.count(Job.id).label("active_jobs"))
        .outerjoin(Job, and_(Job.company_id == Company.id, *active_job))
        .group_by(Company.id)
        .order_by(func.count(Job.id).desc(), Company.id)
        .limit(5)
        .all()
    )
    popular_jobs = (
        db.query(Job)
        .order_by(Job.application_count.desc(), Job.id)
        .limit(5)
        .all()
    )

    return {
        "success": True,
        "data": {
            "overview": {
                "total_users": db.query(User).filter(active_users).count(),
                "total_companies": db.query(Company).count(),
                "total_jobs": db.query(Job).count(),
                "total_applications": db.query(JobApplication).count(),
                "active_jobs": db.query(Job).filter(*active_job).count(),
                "new_users_this_month": new_users,
                "new_applications_this_week": new_applications,
                "user_growth_rate": _growth_rate(new_users, users_last_month),
                # weekly volume projected to a month
                "application_growth_rate": _growth_rate(new_applications * 4, applications_last_month),
            },
            "distributions": {
                "users_by_role": _count_by(db, User.role, active_users),
                "jobs_by_status": _count_by(db, Job.status),
                "applications_by_status": _count_by(db, JobApplication.status),
                "profile_completion_stats": _count_by(db, UserProfile.status),
            },
            "top_performers": {
                "companies": [
                    {
                        "id": company.id,
                        "name": company.name,
                        "industry": company.industry,
                        "active_jobs": count,
                    }
                    for company, count in top_companies
                ],
                "popular_jobs": [
                    {
                        "id": job.id,
                        "title": job.title,
                        "company_name": job.company.name if job.company else None,
                        "application_count": job.application_count or 0,
                        "view_count": job.view_count or 0,
                    }
                    for job in popular_jobs
                ],
            },
        },
    }


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    sort_by: str = Query("created_at", pattern="^(created_at|updated_at|name|email)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    query = db.query(User).filter(User.deleted_at.is_(None))
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                User.name.ilike(pattern),
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        )
    if role:
        query = query.filter(User.role == role.value)
    if status_filter:
        query = query.filter(User.status == status_filter)

    column = USER_SORT_FIELDS[sort_by]
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), User.id)

    total = query.count()
    users = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = math.ceil(total / limit)

    return {
        "success": True,
        "data": [AdminUserResponse.model_validate(u) for u in users],
        "pagination": {
            "page": page,
            "limit": limit,
            "total_count": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminUserCreate,
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    """Create an account without a password; the user sets one via reset."""
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")

    user = User(
        name=payload.name,
        email=email,
        role=payload.role.value,
        first_name=payload.first_name,
        last_name=payload.last_name,
        agree_to_terms=True,
        agree_to_privacy=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return {
        "success": True,
        "data": AdminUserResponse.model_validate(user),
        "message": "User created successfully",
    }


@router.get("/users/{user_id}")
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    if user_id != current_user.id and not gate.is_admin(current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    user = _get_user_or_404(db, user_id)
    return {"success": True, "data": AdminUserResponse.model_validate(user)}


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    """
    Update a user.

    Anyone may edit their own names; role, status, profile completion and
    email are applied only when the caller is an admin.
    """
    is_admin = gate.is_admin(current_user.id)
    if user_id != current_user.id and not is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    user = _get_user_or_404(db, user_id)
    data = payload.model_dump(exclude_unset=True)

    for field in ("name", "first_name", "last_name"):
        if data.get(field) is not None:
            setattr(user, field, data[field])

    if is_admin:
        if data.get("role") is not None:
            user.role = data["role"].value
        if data.get("status") is not None:
            user.status = data["status"]
        if data.get("is_profile_complete") is not None:
            user.is_profile_complete = data["is_profile_complete"]
        if data.get("email") is not None:
            email = data["email"].strip().lower()
            taken = db.query(User).filter(User.email == email, User.id != user_id).first()
            if taken:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists"
                )
            user.email = email

    db.commit()
    db.refresh(user)
    return {
        "success": True,
        "data": AdminUserResponse.model_validate(user),
        "message": "User updated successfully",
    }


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    """Soft delete: stamp `deleted_at`, free the email and end every session."""
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete your own account"
        )

    user = _get_user_or_404(db, user_id)
    now = utcnow()
    user.deleted_at = now
    user.email = f"deleted_{int(now.timestamp() * 1000)}_{user.email}"
    db.commit()

    SessionStore(db).delete_for_user(user_id)
    return {"success": True, "message": "User deleted successfully"}


@router.get("/profile-setups")
def list_profile_setups(
    status_filter: Optional[ProfileSetupStatus] = Query(None, alias="status"),
    include_completed: bool = True,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    result = ProfileSetupService(db).get_all(
        status=status_filter.value if status_filter else None,
        include_completed=include_completed,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": [ProfileSetupResponse.model_validate(p) for p in result["profiles"]],
        "pagination": {
            "page": result["page"],
            "limit": result["limit"],
            "total": result["total"],
            "total_pages": math.ceil(result["total"] / limit),
        },
    }


@router.get("/profile-setups/stats")
def get_profile_setup_stats(
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    return {"success": True, "data": ProfileSetupService(db).get_stats()}
