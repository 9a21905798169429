"""
Current-user API endpoints.

Account profile, the six-step profile setup and document uploads.
"""

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import Session

from jobboard.api.deps import get_admin_gate, get_current_user
from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.core.session_store import UserDirectory
from jobboard.db.session import get_db
from jobboard.models import UserProfile
from jobboard.models.enums import ProfileSetupStatus
from jobboard.services import uploads
from jobboard.services.exceptions import ConflictError, NotFoundError
from jobboard.services.profile_setup import (
    CertificationEntry,
    EducationEntry,
    ExperienceEntry,
    ProfileSetupService,
)

router = APIRouter()


# ============== Pydantic Schemas ==============


class ProfileSetupData(BaseModel):
    """Writable profile setup fields; everything optional."""

    status: Optional[ProfileSetupStatus] = None
    current_step: Optional[int] = Field(default=None, ge=1, le=6)
    completed_steps: Optional[list[int]] = None

    full_name: Optional[str] = None
    preferred_name: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    disability_types: Optional[list[str]] = None
    support_needs: Optional[str] = None
    assistive_tech: Optional[list[str]] = None
    accommodations: Optional[str] = None

    soft_skills: Optional[list[str]] = None
    hard_skills: Optional[list[str]] = None
    industries: Optional[list[str]] = None
    work_arrangement: Optional[str] = None

    education: Optional[list[EducationEntry]] = None
    experience: Optional[list[ExperienceEntry]] = None

    resume_url: Optional[str] = None
    certification_urls: Optional[list[str]] = None
    certifications: Optional[list[CertificationEntry]] = None

    custom_summary: Optional[str] = None
    additional_info: Optional[str] = None


class ProfileSetupResponse(BaseModel):
    id: int
    user_id: int
    status: str
    current_step: int
    completed_steps: list[int] = []

    full_name: Optional[str] = None
    preferred_name: Optional[str] = None
    location: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    disability_types: list[str] = []
    support_needs: Optional[str] = None
    assistive_tech: list[str] = []
    accommodations: Optional[str] = None
    soft_skills: list[str] = []
    hard_skills: list[str] = []
    industries: list[str] = []
    work_arrangement: Optional[str] = None
    education: list[dict] = []
    experience: list[dict] = []
    resume_url: Optional[str] = None
    certification_urls: list[str] = []
    certifications: list[dict] = []
    custom_summary: Optional[str] = None
    additional_info: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserWithProfile(BaseModel):
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
    profile: Optional[ProfileSetupResponse] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    profile: Optional[ProfileSetupData] = None


def profile_payload(data: ProfileSetupData) -> dict[str, Any]:
    """Fields the caller actually sent, with enums flattened to values."""
    payload = data.model_dump(exclude_unset=True)
    if data.status is not None:
        payload["status"] = data.status.value
    return payload


# ============== Account profile ==============


@router.get("/profile")
def get_profile(
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Get the signed-in user with their profile (no password hash)."""
    user = UserDirectory(db).find_by_id(current_user.id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"user": UserWithProfile.model_validate(user)}


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Update name fields, upsert profile data and mark the profile complete."""
    user = UserDirectory(db).find_by_id(current_user.id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    for field in ("first_name", "last_name", "name", "image"):
        value = getattr(payload, field)
        if value is not None:
            setattr(user, field, value)
    user.is_profile_complete = True

    if payload.profile is not None:
        if user.profile is None:
            user.profile = UserProfile()
        for field, value in profile_payload(payload.profile).items():
            if value is not None:
                setattr(user.profile, field, value)

    db.commit()
    db.refresh(user)

    return {"user": UserWithProfile.model_validate(user), "message": "Profile updated successfully"}


# ============== Profile setup ==============


@router.get("/profile-setup")
def get_profile_setup(
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    """Get a profile setup; another user's setup requires admin access."""
    target_id = user_id or current_user.id
    if target_id != current_user.id and not gate.is_admin(current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    profile = ProfileSetupService(db).get_by_user_id(target_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile setup not found")
    return {"data": ProfileSetupResponse.model_validate(profile)}


@router.post("/profile-setup", status_code=status.HTTP_201_CREATED)
def create_profile_setup(
    payload: ProfileSetupData,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    try:
        profile = ProfileSetupService(db).create(current_user.id, profile_payload(payload))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return {
        "data": ProfileSetupResponse.model_validate(profile),
        "message": "Profile setup created successfully",
    }


@router.put("/profile-setup")
def update_profile_setup(
    payload: ProfileSetupData,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    try:
        profile = ProfileSetupService(db).update(current_user.id, profile_payload(payload))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return {
        "data": ProfileSetupResponse.model_validate(profile),
        "message": "Profile setup updated successfully",
    }


@router.post("/profile-setup/steps/{step}")
def complete_profile_step(
    step: int,
    step_data: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Submit one step of the profile setup.

    The step's data is validated, merged into the profile, the step is marked
    completed and `current_step` advances. All six steps complete the setup.
    """
    try:
        profile = ProfileSetupService(db).update_step(current_user.id, step, step_data)
    except ValidationError as e:
        raise RequestValidationError(e.errors())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return {
        "data": ProfileSetupResponse.model_validate(profile),
        "message": f"Step {step} saved successfully",
    }


@router.delete("/profile-setup")
def delete_profile_setup(
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    try:
        ProfileSetupService(db).delete(current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Profile setup deleted successfully"}


# ============== Uploads ==============


@router.post("/upload")
async def upload_document(
    file: UploadFile = File(...),
    type: str = Form(...),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Upload a resume or certification.

    Accepts: PDF, DOC, DOCX (resume); also JPG, PNG (certification)
    """
    error = uploads.validate_upload(type, file.content_type, file.size or 0)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    content = await uploads.read_limited(file, uploads.max_upload_bytes())
    if content is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=uploads.size_error())

    file_name = uploads.store_upload(current_user.id, type, file.filename or "file", content)
    return {
        "success": True,
        "url": file_name,
        "file_name": file_name,
        "message": "File uploaded successfully",
    }


@router.delete("/upload")
def delete_document(
    file_name: Optional[str] = Query(None, alias="fileName"),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    if not file_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File name is required")

    if not uploads.owns_file(current_user.id, file_name):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    if not uploads.delete_upload(file_name):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    return {"success": True, "message": "File deleted successfully"}
