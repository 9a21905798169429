from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, utcnow
from jobboard.models.enums import ApplicationStatus, JobStatus


class Job(Base):
    """Job posting with accessibility accommodations."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)
    responsibilities = Column(JSON, default=list)
    requirements = Column(JSON, default=list)
    preferred_skills = Column(JSON, default=list)
    benefits = Column(JSON, default=list)
    application_process = Column(JSON, default=list)

    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    location = Column(String, nullable=False)
    work_type = Column(String, nullable=False)  # WorkType
    is_remote = Column(Boolean, default=False)
    is_hybrid = Column(Boolean, default=False)
    experience = Column(String, nullable=False)  # ExperienceLevel

    salary_min = Column(Integer)
    salary_max = Column(Integer)
    salary_currency = Column(String(3), default="USD")

    # List of AccommodationType values
    accommodations = Column(JSON, default=list)
    accommodation_details = Column(Text)

    application_deadline = Column(DateTime)
    status = Column(String, default=JobStatus.DRAFT.value, index=True)
    is_active = Column(Boolean, default=False)
    is_featured = Column(Boolean, default=False)
    view_count = Column(Integer, default=0)
    application_count = Column(Integer, default=0)
    meta_title = Column(String)
    meta_description = Column(String)

    published_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    company = relationship("Company", back_populates="jobs")
    applications = relationship("JobApplication", back_populates="job", cascade="all, delete-orphan")
    saved_by = relationship("SavedJob", back_populates="job", cascade="all, delete-orphan")
    ratings = relationship("RecommendationRating", back_populates="job", cascade="all, delete-orphan")


class JobApplication(Base):
    """A job seeker's application to one job."""

    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    cover_letter = Column(Text)
    resume_url = Column(String)
    # Format: [{"question": "...", "answer": "..."}, ...]
    custom_answers = Column(JSON, default=list)

    status = Column(String, default=ApplicationStatus.PENDING.value, index=True)
    employer_notes = Column(Text)
    interview_at = Column(DateTime)
    reviewed_at = Column(DateTime)
    rejected_at = Column(DateTime)
    accepted_at = Column(DateTime)

    applied_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    job = relationship("Job", back_populates="applications")
    user = relationship("User", back_populates="applications")

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_application_job_user"),
    )


class SavedJob(Base):
    """Bookmark of a job by a user."""

    __tablename__ = "saved_jobs"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    job = relationship("Job", back_populates="saved_by")
    user = relationship("User", back_populates="saved_jobs")

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_saved_job_user"),
    )
