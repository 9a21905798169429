"""
User profile endpoints.

Read-only views of profile setups together with their owner: a paginated
listing for admins and a lookup by user id for the owner or an admin.
"""

import math
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from jobboard.api.deps import get_admin_gate, get_current_user, require_admin
from jobboard.api.v1.users import ProfileSetupResponse
from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.db.session import get_db
from jobboard.models.enums import ProfileSetupStatus
from jobboard.services.profile_setup import ProfileSetupService

router = APIRouter()


# ============== Schemas ==============


class ProfileOwner(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    image: Optional[str] = None
    role: str
    is_profile_complete: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileWithOwner(ProfileSetupResponse):
    user: Optional[ProfileOwner] = None


# ============== Routes ==============


@router.get("")
def list_profiles(
    status_filter: Optional[ProfileSetupStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: AuthenticatedUser = Depends(require_admin),
):
    result = ProfileSetupService(db).get_all(
        status=status_filter.value if status_filter else None,
        search=search,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": {
            "profiles": [ProfileWithOwner.model_validate(p) for p in result["profiles"]],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": result["total"],
                "total_pages": math.ceil(result["total"] / limit),
            },
        },
    }


@router.get("/{user_id}")
def get_profile(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    """Profile setup of one user, readable by that user or an admin."""
    if user_id != current_user.id and not gate.is_admin(current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    profile = ProfileSetupService(db).get_by_user_id(user_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    return {"success": True, "data": ProfileWithOwner.model_validate(profile)}
