"""
Profile Setup Service.

Six-step onboarding for job seekers: basic info, disability profile,
skills & preferences, education & experience, documents, preview.
Each step is validated on its own before it is merged into the profile.
"""

import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from jobboard.db.base import utcnow
from jobboard.models import User, UserProfile
from jobboard.models.enums import ProfileSetupStatus
from jobboard.services.exceptions import ConflictError, NotFoundError

logger = logging.getLogger("profile_setup")

TOTAL_STEPS = 6

# Fields a caller may write through create/update
PROFILE_FIELDS = (
    "full_name",
    "preferred_name",
    "location",
    "email",
    "phone",
    "disability_types",
    "support_needs",
    "assistive_tech",
    "accommodations",
    "soft_skills",
    "hard_skills",
    "industries",
    "work_arrangement",
    "education",
    "experience",
    "resume_url",
    "certification_urls",
    "certifications",
    "custom_summary",
    "additional_info",
)

PROGRESS_FIELDS = ("status", "current_step", "completed_steps")


# ============== Step Schemas ==============


class EducationEntry(BaseModel):
    degree: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[str] = None
    description: Optional[str] = None


class ExperienceEntry(BaseModel):
    title: Optional[str] = None
    company: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None


class CertificationEntry(BaseModel):
    name: str
    issuer: Optional[str] = None
    date: Optional[str] = None
    url: Optional[str] = None


class BasicInfoStep(BaseModel):
    full_name: str = Field(min_length=2)
    preferred_name: Optional[str] = None
    location: str = Field(min_length=2)
    email: str
    phone: str = Field(min_length=10)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not re.match(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$", v):
            raise ValueError("Please enter a valid email address")
        return v


class DisabilityProfileStep(BaseModel):
    disability_types: list[str] = Field(min_length=1)
    support_needs: Optional[str] = None
    assistive_tech: Optional[list[str]] = None
    accommodations: Optional[str] = None


class SkillsStep(BaseModel):
    soft_skills: list[str] = Field(min_length=1)
    hard_skills: list[str] = Field(min_length=1)
    industries: list[str] = Field(min_length=1)
    work_arrangement: str = Field(min_length=1)


class EducationExperienceStep(BaseModel):
    education: Optional[list[EducationEntry]] = None
    experience: Optional[list[ExperienceEntry]] = None


class DocumentsStep(BaseModel):
    resume_url: Optional[str] = None
    certification_urls: Optional[list[str]] = None
    certifications: Optional[list[CertificationEntry]] = None


class PreviewStep(BaseModel):
    custom_summary: Optional[str] = None
    additional_info: Optional[str] = None


STEP_SCHEMAS = {
    1: BasicInfoStep,
    2: DisabilityProfileStep,
    3: SkillsStep,
    4: EducationExperienceStep,
    5: DocumentsStep,
    6: PreviewStep,
}


def validate_step(step: int, data: dict) -> dict:
    """
    Validate the data submitted for one step.

    Returns only the fields the step defines (unset optional fields are
    dropped). Raises ValueError for an unknown step and pydantic's
    ValidationError for bad data.
    """
    schema = STEP_SCHEMAS.get(step)
    if schema is None:
        raise ValueError(f"Invalid step: {step}")
    return schema.model_validate(data).model_dump(exclude_unset=True)


# ============== Service ==============


class ProfileSetupService:
    """CRUD and step progression for UserProfile rows."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_user_id(self, user_id: int) -> Optional[UserProfile]:
        return self.db.query(UserProfile).filter(UserProfile.user_id == user_id).first()

    def create(self, user_id: int, data: dict[str, Any]) -> UserProfile:
        """
        Start a profile setup for a user.

        Args:
            user_id: Owner of the setup
            data: Optional status, current_step, completed_steps and profile fields

        Returns:
            The new profile setup

        Raises:
            ConflictError: The user already has one
            NotFoundError: Unknown user
        """
        if self.get_by_user_id(user_id):
            raise ConflictError("Profile setup already exists for this user")

        if not self.db.query(User).filter(User.id == user_id).first():
            raise NotFoundError("User not found")

        profile = UserProfile(
            user_id=user_id,
            status=data.get("status") or ProfileSetupStatus.NOT_STARTED.value,
            current_step=data.get("current_step") or 1,
            completed_steps=data.get("completed_steps") or [],
        )
        self._assign(profile, data)

        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def update(self, user_id: int, data: dict[str, Any]) -> UserProfile:
        profile = self.get_by_user_id(user_id)
        if not profile:
            raise NotFoundError("Profile setup not found")

        for field in PROGRESS_FIELDS:
            if field in data and data[field] is not None:
                setattr(profile, field, data[field])
        self._assign(profile, data)

        if data.get("status") == ProfileSetupStatus.COMPLETED.value:
            profile.completed_at = utcnow()

        self.db.commit()
        self.db.refresh(profile)
        return profile

    def update_step(self, user_id: int, step: int, step_data: dict[str, Any]) -> UserProfile:
        """Validate and merge one step, then advance progress."""
        validated = validate_step(step, step_data)

        profile = self.get_by_user_id(user_id)
        if not profile:
            raise NotFoundError("Profile setup not found")

        completed_steps = list(profile.completed_steps or [])
        if step not in completed_steps:
            completed_steps.append(step)
            completed_steps.sort()

        if len(completed_steps) >= TOTAL_STEPS:
            status = ProfileSetupStatus.COMPLETED.value
        else:
            status = ProfileSetupStatus.IN_PROGRESS.value

        update_data = dict(validated)
        update_data.update(
            current_step=min(max(step + 1, profile.current_step or 1), TOTAL_STEPS),
            completed_steps=completed_steps,
            status=status,
        )

        logger.info("User %s completed profile step %s (%s)", user_id, step, status)
        return self.update(user_id, update_data)

    def delete(self, user_id: int) -> None:
        profile = self.get_by_user_id(user_id)
        if not profile:
            raise NotFoundError("Profile setup not found")
        self.db.delete(profile)
        self.db.commit()

    def get_all(
        self,
        status: Optional[str] = None,
        include_completed: bool = True,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> dict:
        """
        Page through profile setups, most recently updated first.

        Args:
            status: Only setups in this status
            include_completed: False hides COMPLETED setups
            page: 1-based page number
            limit: Page size
            search: Case-insensitive match on full name, email or location

        Returns:
            Dict with the page of profiles, total, page and limit
        """
        query = self.db.query(UserProfile)
        if status:
            query = query.filter(UserProfile.status == status)
        if search:
            term = f"%{search}%"
            query = query.filter(
                or_(
                    UserProfile.full_name.ilike(term),
                    UserProfile.email.ilike(term),
                    UserProfile.location.ilike(term),
                )
            )
        if not include_completed:
            query = query.filter(UserProfile.status != ProfileSetupStatus.COMPLETED.value)

        total = query.count()
        profiles = (
            query.order_by(UserProfile.updated_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"profiles": profiles, "total": total, "page": page, "limit": limit}

    def get_stats(self) -> dict:
        rows = (
            self.db.query(UserProfile.status, func.count(UserProfile.id))
            .group_by(UserProfile.status)
            .all()
        )
        by_status = {status: count for status, count in rows}
        return {"total": sum(by_status.values()), "by_status": by_status}

    def _assign(self, profile: UserProfile, data: dict[str, Any]) -> None:
        for field in PROFILE_FIELDS:
            if field in data and data[field] is not None:
                setattr(profile, field, data[field])
