from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, utcnow
from jobboard.models.enums import UserRole


class User(Base):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=True)  # NULL for admin-created accounts
    name = Column(String)
    first_name = Column(String)
    last_name = Column(String)
    image = Column(String)
    role = Column(String, default=UserRole.JOB_SEEKER.value, nullable=False)
    status = Column(String, default="ACTIVE")
    is_profile_complete = Column(Boolean, default=False)

    agree_to_terms = Column(Boolean, default=False)
    agree_to_privacy = Column(Boolean, default=False)
    subscribe_newsletter = Column(Boolean, default=True)

    # Employers post jobs for exactly one company
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)  # soft delete

    # Relationships
    profile = relationship("UserProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan")
    applications = relationship("JobApplication", back_populates="user", cascade="all, delete-orphan")
    saved_jobs = relationship("SavedJob", back_populates="user", cascade="all, delete-orphan")
    ratings = relationship("RecommendationRating", back_populates="user", cascade="all, delete-orphan")
    company = relationship("Company")


class AuthSession(Base):
    """Database-backed login session, looked up by its opaque token."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True)
    session_token = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    expires = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="sessions")


class VerificationToken(Base):
    """Single-use password reset token."""

    __tablename__ = "verification_tokens"

    id = Column(Integer, primary_key=True)
    identifier = Column(String, nullable=False, index=True)  # email
    token = Column(String, unique=True, nullable=False)
    expires = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("identifier", "token", name="uq_verification_identifier_token"),
    )
