"""
Company API endpoints.

Public listing and detail; create, update and delete require a signed-in
user. Changes to an existing company are limited to its employers and admins.
"""

import math
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from jobboard.api.deps import get_admin_gate, get_current_user
from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.core.session_store import UserDirectory
from jobboard.db.session import get_db
from jobboard.models import Company, Job, User
from jobboard.models.enums import CompanySize, JobStatus, UserRole
from jobboard.services import uploads
from jobboard.services.jobs import JobService

router = APIRouter()


# ============== Pydantic Schemas ==============


class CompanyBase(BaseModel):
    description: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    size: Optional[CompanySize] = None
    industry: Optional[str] = None
    location: Optional[str] = None
    culture: Optional[str] = None
    values: Optional[list[str]] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_url: Optional[str] = None


class CompanyCreate(CompanyBase):
    name: str = Field(min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Company name is required")
        return v.strip()


class CompanyUpdate(CompanyBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class CompanyResponse(CompanyBase):
    id: int
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CompanyJobSummary(BaseModel):
    id: int
    title: str
    slug: str
    location: str
    work_type: str
    experience: str
    is_remote: bool = False
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    published_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============== Helper Functions ==============


def _active_job_filter():
    return and_(Job.is_active.is_(True), Job.status == JobStatus.PUBLISHED.value)


def _active_job_count(db: Session, company_id: int) -> int:
    return db.query(Job).filter(Job.company_id == company_id, _active_job_filter()).count()


def _get_company_or_404(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return company


def _ensure_can_manage(
    db: Session, company: Company, current_user: AuthenticatedUser, gate: AdminGate
) -> None:
    if gate.is_admin(current_user.id):
        return
    if not JobService(db).can_manage(current_user.id, company.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own company",
        )


def _company_payload(data: BaseModel) -> dict:
    payload = data.model_dump(exclude_unset=True)
    if payload.get("size") is not None:
        payload["size"] = payload["size"].value
    return payload


# ============== API Endpoints ==============


@router.get("")
def list_companies(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    industry: Optional[str] = None,
    size: Optional[CompanySize] = None,
    db: Session = Depends(get_db),
):
    """List companies with their count of active jobs."""
    query = db.query(Company)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Company.name.ilike(pattern),
                Company.description.ilike(pattern),
                Company.industry.ilike(pattern),
            )
        )
    if industry:
        query = query.filter(Company.industry == industry)
    if size:
        query = query.filter(Company.size == size.value)

    total = query.count()
    companies = (
        query.order_by(Company.name.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    counts = dict(
        db.query(Job.company_id, func.count(Job.id))
        .filter(Job.company_id.in_([c.id for c in companies]), _active_job_filter())
        .group_by(Job.company_id)
        .all()
    )

    return {
        "success": True,
        "data": [
            {
                **CompanyResponse.model_validate(company).model_dump(),
                "active_job_count": counts.get(company.id, 0),
            }
            for company in companies
        ],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Create a company.

    An employer who does not belong to a company yet becomes its member.
    """
    company = Company(**_company_payload(payload))
    db.add(company)
    db.flush()

    user = UserDirectory(db).find_by_id(current_user.id)
    if user and user.role == UserRole.EMPLOYER.value and user.company_id is None:
        user.company_id = company.id

    db.commit()
    db.refresh(company)

    return {
        "success": True,
        "data": CompanyResponse.model_validate(company),
        "message": "Company created successfully",
    }


@router.get("/{company_id}")
def get_company(company_id: int, db: Session = Depends(get_db)):
    """Get a company with its published, active jobs."""
    company = _get_company_or_404(db, company_id)
    jobs = (
        db.query(Job)
        .filter(Job.company_id == company_id, _active_job_filter())
        .order_by(Job.published_at.desc(), Job.id.desc())
        .all()
    )

    return {
        "success": True,
        "data": {
            **CompanyResponse.model_validate(company).model_dump(),
            "jobs": [CompanyJobSummary.model_validate(job) for job in jobs],
            "active_job_count": len(jobs),
        },
    }


@router.put("/{company_id}")
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    company = _get_company_or_404(db, company_id)
    _ensure_can_manage(db, company, current_user, gate)

    for field, value in _company_payload(payload).items():
        setattr(company, field, value)
    db.commit()
    db.refresh(company)

    return {
        "success": True,
        "data": CompanyResponse.model_validate(company),
        "message": "Company updated successfully",
    }


@router.delete("/{company_id}")
def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    """Delete a company; refused while it still has active jobs."""
    company = _get_company_or_404(db, company_id)
    _ensure_can_manage(db, company, current_user, gate)

    if _active_job_count(db, company_id) > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete company with active jobs",
        )

    db.query(User).filter(User.company_id == company_id).update(
        {User.company_id: None}, synchronize_session=False
    )
    db.delete(company)
    db.commit()

    return {"success": True, "message": "Company deleted successfully"}


@router.post("/{company_id}/logo")
async def upload_company_logo(
    company_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    """
    Upload a company logo (JPEG, PNG, WebP or SVG, at most 5MB).

    The stored file name replaces the company's `logo`.
    """
    company = _get_company_or_404(db, company_id)
    _ensure_can_manage(db, company, current_user, gate)

    error = uploads.validate_logo(file.content_type, file.size or 0)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    content = await uploads.read_limited(file, uploads.LOGO_MAX_BYTES)
    if content is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=uploads.LOGO_SIZE_ERROR)

    company.logo = uploads.store_company_logo(company_id, file.filename or "logo", content)
    db.commit()
    db.refresh(company)

    return {
        "success": True,
        "data": {"url": company.logo, "company": CompanyResponse.model_validate(company)},
        "message": "Logo uploaded successfully",
    }
