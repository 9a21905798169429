"""
Saved job endpoints (bookmarks). Every route acts on the caller's own list.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from jobboard.api.deps import get_current_user
from jobboard.core.session_resolver import AuthenticatedUser
from jobboard.db.session import get_db
from jobboard.models import Job, SavedJob

router = APIRouter()


class SaveJobRequest(BaseModel):
    job_id: int


class SavedJobResponse(BaseModel):
    id: int
    job_id: int
    user_id: int
    created_at: Optional[datetime] = None
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_saved(cls, saved: SavedJob) -> "SavedJobResponse":
        job = saved.job
        return cls(
            id=saved.id,
            job_id=saved.job_id,
            user_id=saved.user_id,
            created_at=saved.created_at,
            job_title=job.title if job else None,
            company_name=job.company.name if job and job.company else None,
            location=job.location if job else None,
        )


def _saved_query(db: Session, user_id: int):
    return (
        db.query(SavedJob)
        .options(joinedload(SavedJob.job).joinedload(Job.company))
        .filter(SavedJob.user_id == user_id)
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def save_job(
    payload: SaveJobRequest,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    if not db.query(Job).filter(Job.id == payload.job_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

    if _saved_query(db, current_user.id).filter(SavedJob.job_id == payload.job_id).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Job already saved")

    saved = SavedJob(job_id=payload.job_id, user_id=current_user.id)
    db.add(saved)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Job already saved")

    saved = _saved_query(db, current_user.id).filter(SavedJob.id == saved.id).first()
    return {
        "success": True,
        "data": SavedJobResponse.from_saved(saved),
        "message": "Job saved successfully",
    }


@router.get("")
def list_saved_jobs(
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    saved_jobs = _saved_query(db, current_user.id).order_by(SavedJob.created_at.desc(), SavedJob.id.desc()).all()
    return {
        "success": True,
        "data": [SavedJobResponse.from_saved(s) for s in saved_jobs],
        "total": len(saved_jobs),
    }


@router.get("/{saved_id}")
def get_saved_job(
    saved_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    saved = db.query(SavedJob).filter(SavedJob.id == saved_id).first()
    if not saved:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saved job not found")
    if saved.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    return {"success": True, "data": SavedJobResponse.from_saved(saved)}


@router.delete("")
def unsave_job_by_job_id(
    job_id: int = Query(..., alias="jobId"),
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Remove a bookmark by job id."""
    deleted = (
        db.query(SavedJob)
        .filter(SavedJob.user_id == current_user.id, SavedJob.job_id == job_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saved job not found")

    return {"success": True, "message": "Job removed from saved jobs"}


@router.delete("/{saved_id}")
def unsave_job(
    saved_id: int,
    db: Session = Depends(get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    saved = db.query(SavedJob).filter(SavedJob.id == saved_id).first()
    if not saved:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saved job not found")
    if saved.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    db.delete(saved)
    db.commit()
    return {"success": True, "message": "Job removed from saved jobs"}
