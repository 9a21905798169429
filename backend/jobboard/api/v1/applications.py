"""
Job application endpoints.

Job seekers apply, list and withdraw their own applications; employers of
the hiring company and admins review them.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from jobboard.api.deps import get_admin_gate, get_current_user
from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.db.session import get_db
from jobboard.models import JobApplication
from jobboard.models.enums import ApplicationStatus
from jobboard.services.applications import ApplicationService
from jobboard.services.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from jobboard.services.jobs import JobService

router = APIRouter()


# ============== Pydantic Schemas ==============


class CustomAnswer(BaseModel):
    question: str
    answer: str


class ApplicationCreate(BaseModel):
    job_id: int
    cover_letter: Optional[str] = Field(default=None, max_length=5000)
    resume_url: Optional[str] = None
    custom_answers: list[CustomAnswer] = []


class ApplicationUpdate(BaseModel):
    status: Optional[ApplicationStatus] = None
    employer_notes: Optional[str] = None
    interview_at: Optional[datetime] = None


class ApplicationJob(BaseModel):
    id: int
    title: str
    slug: str
    location: str
    company_id: int
    company_name: Optional[str] = None


class ApplicationResponse(BaseModel):
    id: int
    job_id: int
    user_id: int
    cover_letter: Optional[str] = None
    resume_url: Optional[str] = None
    custom_answers: list[dict] = []
    status: str
    employer_notes: Optional[str] = None
    interview_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    applied_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    job: Optional[ApplicationJob] = None

    @classmethod
    def from_application(cls, application: JobApplication) -> "ApplicationResponse":
        job = application.job
        return cls(
            id=application.id,
            job_id=application.job_id,
            user_id=application.user_id,
            cover_letter=application.cover_letter,
            resume_url=application.resume_url,
            custom_answers=application.custom_answers or [],
            status=application.status,
            employer_notes=application.employer_notes,
            interview_at=application.interview_at,
            reviewed_at=application.reviewed_at,
            rejected_at=application.rejected_at,
            accepted_at=application.accepted_at,
            applied_at=application.applied_at,
            updated_at=application.updated_at,
            job=ApplicationJob(
                id=job.id,
                title=job.title,
                slug=job.slug,
                location=job.location,
                company_id=job.company_id,
                company_name=job.company.name if job.company else None,
            )
            if job
            else None,
        )


# ============== Helper Functions ==============


def _can_review(db: Session, application: JobApplication, user_id: int, gate: AdminGate) -> bool:
    return gate.is_admin(user_id) or JobService(db).can_manage(user_id, application.job.company_id)


def _get_or_404(service: ApplicationService, application_id: int) -> JobApplication:
    try:
        return service.get(application_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# ============== API Endpoints ==============


@router.post("", status_code=status.HTTP_201_CREATED)
def apply_to_job(
    payload: ApplicationCreate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Apply to a published, active job. One application per user and job."""
    data = payload.model_dump(exclude={"job_id"})
    try:
        application = ApplicationService(db).apply(current_user.id, payload.job_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return {
        "success": True,
        "data": ApplicationResponse.from_application(application),
        "message": "Application submitted successfully",
    }


@router.get("")
def list_my_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    result = ApplicationService(db).list_for_user(
        current_user.id,
        status=status_filter.value if status_filter else None,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": [ApplicationResponse.from_application(a) for a in result["applications"]],
        "pagination": {"page": page, "limit": limit, "total": result["total"]},
    }


@router.get("/status")
def application_status_summary(
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Counts of your applications per status, plus the five most recent."""
    summary = ApplicationService(db).status_summary(current_user.id)
    return {
        "success": True,
        "data": {
            "total_applications": summary["total"],
            "status_summary": summary["by_status"],
            "recent_applications": [
                ApplicationResponse.from_application(a) for a in summary["recent"]
            ],
        },
    }


@router.get("/{application_id}")
def get_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    application = _get_or_404(ApplicationService(db), application_id)

    if application.user_id != current_user.id and not _can_review(
        db, application, current_user.id, gate
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    return {"success": True, "data": ApplicationResponse.from_application(application)}


@router.put("/{application_id}")
def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
):
    """
    Review an application (employer of the hiring company or admin).

    Status changes stamp reviewed_at / rejected_at / accepted_at;
    INTERVIEW_SCHEDULED records `interview_at` when given. Only the applicant
    withdraws, and a withdrawn application cannot be moved to another status.
    """
    service = ApplicationService(db)
    application = _get_or_404(service, application_id)

    if not _can_review(db, application, current_user.id, gate):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    interview_at = payload.interview_at
    if interview_at is not None and interview_at.tzinfo is not None:
        interview_at = interview_at.astimezone(timezone.utc).replace(tzinfo=None)

    try:
        application = service.review(
            application_id,
            status=payload.status.value if payload.status else None,
            employer_notes=payload.employer_notes,
            interview_at=interview_at,
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return {
        "success": True,
        "data": ApplicationResponse.from_application(application),
        "message": "Application updated successfully",
    }


@router.delete("/{application_id}")
def withdraw_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Withdraw your own application."""
    try:
        application = ApplicationService(db).withdraw(application_id, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return {
        "success": True,
        "data": ApplicationResponse.from_application(application),
        "message": "Application withdrawn successfully",
    }
