"""
Job Application Service.

Applying, reviewing and withdrawing applications. `application_count` on
the job tracks live (non-withdrawn) applications.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from jobboard.db.base import utcnow
from jobboard.models import Job, JobApplication
from jobboard.models.enums import ApplicationStatus, JobStatus
from jobboard.services.exceptions import ConflictError, NotFoundError, PermissionDeniedError

logger = logging.getLogger("applications")

FINAL_STATUSES = {ApplicationStatus.ACCEPTED.value, ApplicationStatus.REJECTED.value}


class ApplicationService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(JobApplication).options(
            joinedload(JobApplication.job).joinedload(Job.company),
            joinedload(JobApplication.user),
        )

    def get(self, application_id: int) -> JobApplication:
        application = self._query().filter(JobApplication.id == application_id).first()
        if not application:
            raise NotFoundError("Application not found")
        return application

    def apply(self, user_id: int, job_id: int, data: dict[str, Any]) -> JobApplication:
        """
        Submit an application and bump the job's application_count.

        Args:
            user_id: The applicant
            job_id: Job being applied to
            data: Optional cover_letter, resume_url and custom_resume

        Returns:
            The new application with its job, company and user loaded

        Raises:
            NotFoundError: Unknown job
            ConflictError: Job closed, deadline passed, or already applied
        """
        job = self.db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFoundError("Job not found")
        if job.status != JobStatus.PUBLISHED.value or not job.is_active:
            raise ConflictError("Job is not available for applications")
        if job.application_deadline and job.application_deadline < utcnow():
            raise ConflictError("The application deadline for this job has passed")

        existing = (
            self.db.query(JobApplication)
            .filter(JobApplication.job_id == job_id, JobApplication.user_id == user_id)
            .first()
        )
        if existing:
            raise ConflictError("You have already applied to this job")

        application = JobApplication(job_id=job_id, user_id=user_id, **data)
        self.db.add(application)
        try:
            self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent apply for the same pair
            self.db.rollback()
            raise ConflictError("You have already applied to this job")

        self.db.query(Job).filter(Job.id == job_id).update(
            {Job.application_count: Job.application_count + 1}, synchronize_session=False
        )
        self.db.commit()
        logger.info("User %s applied to job %s", user_id, job_id)
        return self.get(application.id)

    def list_for_user(
        self, user_id: int, status: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> dict:
        query = self._query().filter(JobApplication.user_id == user_id)
        if status:
            query = query.filter(JobApplication.status == status)

        total = query.count()
        applications = (
            query.order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {"applications": applications, "total": total, "page": page, "limit": limit}

    def status_summary(self, user_id: int, recent_limit: int = 5) -> dict:
        """
        Counts of a user's applications.

        Args:
            user_id: The applicant
            recent_limit: How many of the newest applications to include

        Returns:
            Dict with "total", "by_status" (status -> count) and "recent"
        """
        by_status = dict(
            self.db.query(JobApplication.status, func.count(JobApplication.id))
            .filter(JobApplication.user_id == user_id)
            .group_by(JobApplication.status)
            .all()
        )
        recent = (
            self._query()
            .filter(JobApplication.user_id == user_id)
            .order_by(JobApplication.created_at.desc(), JobApplication.id.desc())
            .limit(recent_limit)
            .all()
        )
        return {"total": sum(by_status.values()), "by_status": by_status, "recent": recent}

    def review(
        self,
        application_id: int,
        status: Optional[str] = None,
        employer_notes: Optional[str] = None,
        interview_at: Optional[datetime] = None,
    ) -> JobApplication:
        """
        Employer/admin update: status with its timestamp, and notes.

        Withdrawing belongs to the applicant (see `withdraw`), and a withdrawn
        application is closed to further status changes, so `application_count`
        only moves on apply and withdraw.
        """
        application = self.get(application_id)
        if status == ApplicationStatus.WITHDRAWN.value:
            raise ConflictError("Only the applicant can withdraw an application")
        if status and application.status == ApplicationStatus.WITHDRAWN.value:
            raise ConflictError("Cannot change the status of a withdrawn application")
        now = utcnow()

        if status:
            application.status = status
            if status == ApplicationStatus.REVIEWING.value:
                application.reviewed_at = now
            elif status == ApplicationStatus.INTERVIEW_SCHEDULED.value and interview_at:
                application.interview_at = interview_at
            elif status == ApplicationStatus.REJECTED.value:
                application.rejected_at = now
            elif status == ApplicationStatus.ACCEPTED.value:
                application.accepted_at = now

        if employer_notes is not None:
            application.employer_notes = employer_notes

        self.db.commit()
        return self.get(application_id)

    def withdraw(self, application_id: int, user_id: int) -> JobApplication:
        """Applicant withdraws; withdrawing twice returns the application unchanged."""
        application = self.get(application_id)
        if application.user_id != user_id:
            raise PermissionDeniedError("Unauthorized to withdraw this application")
        if application.status == ApplicationStatus.WITHDRAWN.value:
            return application
        if application.status in FINAL_STATUSES:
            raise ConflictError("Cannot withdraw application in current status")

        application.status = ApplicationStatus.WITHDRAWN.value
        self.db.query(Job).filter(
            Job.id == application.job_id, Job.application_count > 0
        ).update({Job.application_count: Job.application_count - 1}, synchronize_session=False)
        self.db.commit()
        return self.get(application_id)
