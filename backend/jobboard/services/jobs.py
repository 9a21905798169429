"""
Job Service.

Listing with filters, creation with unique slugs, view counting and
management permissions for job postings.
"""

import logging
import math
import re
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from jobboard.core.session_store import UserDirectory
from jobboard.db.base import utcnow
from jobboard.models import Company, Job
from jobboard.models.enums import JobStatus, UserRole
from jobboard.services.exceptions import InvalidDataError, NotFoundError, PermissionDeniedError

logger = logging.getLogger("jobs")

SORTABLE_FIELDS = {
    "created_at": Job.created_at,
    "published_at": Job.published_at,
    "title": Job.title,
    "salary_min": Job.salary_min,
    "salary_max": Job.salary_max,
    "view_count": Job.view_count,
    "application_count": Job.application_count,
}


def slugify(title: str) -> str:
    """Lowercase, collapse non-alphanumerics to '-', trim dashes."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    return slug.strip("-") or "job"


class JobService:
    def __init__(self, db: Session):
        self.db = db

    def unique_slug(self, title: str, exclude_id: Optional[int] = None) -> str:
        """Slug for `title`, suffixed -1, -2, ... until no other job uses it."""
        base = slugify(title)
        slug = base
        counter = 1
        while True:
            query = self.db.query(Job.id).filter(Job.slug == slug)
            if exclude_id is not None:
                query = query.filter(Job.id != exclude_id)
            if not query.first():
                return slug
            slug = f"{base}-{counter}"
            counter += 1

    def list_jobs(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        work_types: Optional[list[str]] = None,
        experience: Optional[list[str]] = None,
        accommodations: Optional[list[str]] = None,
        location: Optional[str] = None,
        company_id: Optional[int] = None,
        salary_min: Optional[int] = None,
        salary_max: Optional[int] = None,
        is_remote: Optional[bool] = None,
        is_active: bool = True,
        status: str = JobStatus.PUBLISHED.value,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict:
        """
        Filter, sort and paginate jobs.

        Only published, active jobs are listed unless `status` or
        `is_active` say otherwise. Salary bounds match overlapping ranges.

        Returns:
            Dict with "jobs" and a "pagination" block
        """
        query = (
            self.db.query(Job)
            .outerjoin(Company, Job.company_id == Company.id)
            .options(joinedload(Job.company))
            .filter(Job.is_active.is_(is_active), Job.status == status)
        )

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Job.title.ilike(pattern),
                    Job.description.ilike(pattern),
                    Company.name.ilike(pattern),
                )
            )
        if work_types:
            query = query.filter(Job.work_type.in_(work_types))
        if experience:
            query = query.filter(Job.experience.in_(experience))
        if location:
            query = query.filter(Job.location.ilike(f"%{location}%"))
        if company_id is not None:
            query = query.filter(Job.company_id == company_id)
        # Salary ranges overlap
        if salary_min is not None:
            query = query.filter(Job.salary_max >= salary_min)
        if salary_max is not None:
            query = query.filter(Job.salary_min <= salary_max)
        if is_remote is not None:
            query = query.filter(Job.is_remote.is_(is_remote))

        column = SORTABLE_FIELDS.get(sort_by, Job.created_at)
        query = query.order_by(column.asc() if sort_order == "asc" else column.desc(), Job.id.desc())

        if accommodations:
            # JSON list column: filter in Python before paginating
            wanted = set(accommodations)
            jobs = [job for job in query.all() if wanted.intersection(job.accommodations or [])]
            total = len(jobs)
            jobs = jobs[(page - 1) * limit: page * limit]
        else:
            total = query.count()
            jobs = query.offset((page - 1) * limit).limit(limit).all()

        total_pages = math.ceil(total / limit) if limit else 0
        return {
            "jobs": jobs,
            "pagination": {
                "page": page,
                "limit": limit,
                "total_count": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    def get_job(self, job_id: int, count_view: bool = True) -> Job:
        job = (
            self.db.query(Job)
            .options(joinedload(Job.company))
            .filter(Job.id == job_id)
            .first()
        )
        if not job:
            raise NotFoundError("Job not found")

        if count_view:
            self.db.query(Job).filter(Job.id == job_id).update(
                {Job.view_count: Job.view_count + 1}, synchronize_session=False
            )
            self.db.commit()
            self.db.refresh(job)
        return job

    def create_job(self, user_id: int, is_admin: bool, data: dict[str, Any]) -> Job:
        """
        Create a job for a company.

        Args:
            user_id: The creator
            is_admin: Admins may post for any company
            data: Validated job fields, including company_id

        Returns:
            The new job with a unique slug

        Raises:
            NotFoundError: Unknown company
            PermissionDeniedError: Employer posting for another company
        """
        company = self.db.query(Company).filter(Company.id == data["company_id"]).first()
        if not company:
            raise NotFoundError("Company not found")

        if not is_admin:
            self._require_company_member(user_id, company.id)

        job = Job(**data)
        job.slug = self.unique_slug(data["title"])
        if job.status == JobStatus.PUBLISHED.value:
            job.published_at = utcnow()

        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        logger.info("User %s created job %s (%s)", user_id, job.id, job.slug)
        return job

    def update_job(self, job_id: int, user_id: int, is_admin: bool, data: dict[str, Any]) -> Job:
        job = self.get_job(job_id, count_view=False)
        if not is_admin:
            self._require_company_member(user_id, job.company_id)

        if "company_id" in data and data["company_id"] != job.company_id:
            if not self.db.query(Company).filter(Company.id == data["company_id"]).first():
                raise NotFoundError("Company not found")
            if not is_admin:
                self._require_company_member(user_id, data["company_id"])

        if "title" in data and data["title"] != job.title:
            job.slug = self.unique_slug(data["title"], exclude_id=job.id)

        salary_min = data.get("salary_min", job.salary_min)
        salary_max = data.get("salary_max", job.salary_max)
        if salary_min is not None and salary_max is not None and salary_min > salary_max:
            raise InvalidDataError("Minimum salary must be less than or equal to maximum salary")

        was_published = job.status == JobStatus.PUBLISHED.value
        for field, value in data.items():
            setattr(job, field, value)
        if job.status == JobStatus.PUBLISHED.value and not was_published and not job.published_at:
            job.published_at = utcnow()

        self.db.commit()
        self.db.refresh(job)
        return job

    def delete_job(self, job_id: int, user_id: int, is_admin: bool) -> None:
        job = self.get_job(job_id, count_view=False)
        if not is_admin:
            self._require_company_member(user_id, job.company_id)
        self.db.delete(job)
        self.db.commit()

    def can_manage(self, user_id: int, company_id: int) -> bool:
        """
        Whether a user may manage a company and its jobs.

        Args:
            user_id: The acting user
            company_id: The company in question

        Returns:
            True only for a live EMPLOYER linked to the company; being
            linked without the employer role is not enough
        """
        user = UserDirectory(self.db).find_by_id(user_id)
        return bool(
            user
            and user.deleted_at is None
            and user.role == UserRole.EMPLOYER.value
            and user.company_id == company_id
        )

    def _require_company_member(self, user_id: int, company_id: int) -> None:
        if not self.can_manage(user_id, company_id):
            raise PermissionDeniedError("You can only manage jobs for your own company")
