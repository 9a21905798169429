"""
Job API endpoints.

Public search and detail; creating, updating and deleting a job requires
an employer of the owning company or an admin.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from jobboard.api.deps import get_admin_gate, get_current_user
from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.db.session import get_db
from jobboard.models.enums import AccommodationType, ExperienceLevel, JobStatus, WorkType
from jobboard.services.exceptions import InvalidDataError, NotFoundError, PermissionDeniedError
from jobboard.services.jobs import SORTABLE_FIELDS, JobService

router = APIRouter()


# ============== Pydantic Schemas ==============


class JobBase(BaseModel):
    responsibilities: Optional[list[str]] = None
    requirements: Optional[list[str]] = None
    preferred_skills: Optional[list[str]] = None
    benefits: Optional[list[str]] = None
    application_process: Optional[list[str]] = None
    is_remote: Optional[bool] = None
    is_hybrid: Optional[bool] = None
    salary_min: Optional[int] = Field(default=None, gt=0)
    salary_max: Optional[int] = Field(default=None, gt=0)
    salary_currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    accommodations: Optional[list[AccommodationType]] = None
    accommodation_details: Optional[str] = None
    application_deadline: Optional[datetime] = None
    is_featured: Optional[bool] = None
    meta_title: Optional[str] = Field(default=None, max_length=255)
    meta_description: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def check_salary_range(self):
        if self.salary_min and self.salary_max and self.salary_min > self.salary_max:
            raise ValueError("Minimum salary must be less than or equal to maximum salary")
        return self


class JobCreate(JobBase):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    company_id: int
    location: str = Field(min_length=1, max_length=255)
    work_type: WorkType
    experience: ExperienceLevel
    status: JobStatus = JobStatus.DRAFT
    is_active: bool = False


class JobUpdate(JobBase):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    company_id: Optional[int] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    work_type: Optional[WorkType] = None
    experience: Optional[ExperienceLevel] = None
    status: Optional[JobStatus] = None
    is_active: Optional[bool] = None


class CompanySummary(BaseModel):
    id: int
    name: str
    logo: Optional[str] = None
    size: Optional[str] = None
    industry: Optional[str] = None
    location: Optional[str] = None

    class Config:
        from_attributes = True


class JobResponse(BaseModel):
    id: int
    title: str
    slug: str
    description: str
    responsibilities: list[str] = []
    requirements: list[str] = []
    preferred_skills: list[str] = []
    benefits: list[str] = []
    application_process: list[str] = []
    company_id: int
    company: Optional[CompanySummary] = None
    location: str
    work_type: str
    is_remote: bool = False
    is_hybrid: bool = False
    experience: str
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    salary_currency: Optional[str] = None
    accommodations: list[str] = []
    accommodation_details: Optional[str] = None
    application_deadline: Optional[datetime] = None
    status: str
    is_active: bool = False
    is_featured: bool = False
    view_count: int = 0
    application_count: int = 0
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============== Helper Functions ==============


def job_payload(data: BaseModel) -> dict[str, Any]:
    """Fields the caller sent, enums flattened and datetimes stored as naive UTC."""
    payload = data.model_dump(exclude_unset=True)
    for key, value in payload.items():
        if isinstance(value, Enum):
            payload[key] = value.value
        elif isinstance(value, list):
            payload[key] = [v.value if isinstance(v, Enum) else v for v in value]
        elif isinstance(value, datetime) and value.tzinfo is not None:
            payload[key] = value.astimezone(timezone.utc).replace(tzinfo=None)
    return payload


def raise_for_service_error(e: Exception):
    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, PermissionDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, InvalidDataError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    raise e


# ============== API Endpoints ==============


@router.get("")
def list_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    work_type: Optional[list[WorkType]] = Query(None),
    experience: Optional[list[ExperienceLevel]] = Query(None),
    accommodations: Optional[list[AccommodationType]] = Query(None),
    location: Optional[str] = None,
    company_id: Optional[int] = None,
    salary_min: Optional[int] = None,
    salary_max: Optional[int] = None,
    is_remote: Optional[bool] = None,
    is_active: bool = True,
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    """
    Search jobs.

    Only published jobs are listed; `is_active` defaults to true. Salary
    filters match jobs whose range overlaps the requested one.
    """
    if sort_by not in SORTABLE_FIELDS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid sort field")

    result = JobService(db).list_jobs(
        page=page,
        limit=limit,
        search=search,
        work_types=[w.value for w in work_type] if work_type else None,
        experience=[e.value for e in experience] if experience else None,
        accommodations=[a.value for a in accommodations] if accommodations else None,
        location=location,
        company_id=company_id,
        salary_min=salary_min,
        salary_max=salary_max,
        is_remote=is_remote,
        is_active=is_active,
        sort_by=sort_by,
        sort_order=sort_order,
    )

    return {
        "success": True,
        "data": [JobResponse.model_validate(job) for job in result["jobs"]],
        "pagination": result["pagination"],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    try:
        job = JobService(db).create_job(
            current_user.id, gate.is_admin(current_user.id), job_payload(payload)
        )
    except (NotFoundError, PermissionDeniedError) as e:
        raise_for_service_error(e)

    return {
        "success": True,
        "data": JobResponse.model_validate(job),
        "message": "Job created successfully",
    }


@router.get("/{job_id}")
def get_job(job_id: int, db: Session = Depends(get_db)):
    """Get job details; every read counts as a view."""
    try:
        job = JobService(db).get_job(job_id)
    except NotFoundError as e:
        raise_for_service_error(e)

    return {"success": True, "data": JobResponse.model_validate(job)}


@router.put("/{job_id}")
def update_job(
    job_id: int,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    try:
        job = JobService(db).update_job(
            job_id, current_user.id, gate.is_admin(current_user.id), job_payload(payload)
        )
    except (NotFoundError, PermissionDeniedError, InvalidDataError) as e:
        raise_for_service_error(e)

    return {
        "success": True,
        "data": JobResponse.model_validate(job),
        "message": "Job updated successfully",
    }


@router.delete("/{job_id}")
def delete_job(
    job_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    try:
        JobService(db).delete_job(job_id, current_user.id, gate.is_admin(current_user.id))
    except (NotFoundError, PermissionDeniedError) as e:
        raise_for_service_error(e)

    return {"success": True, "message": "Job deleted successfully"}
