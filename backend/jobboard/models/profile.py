from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, utcnow
from jobboard.models.enums import ProfileSetupStatus


class UserProfile(Base):
    """
    Six-step profile setup for a job seeker.

    Steps: basic info, disability profile, skills & preferences,
    education & experience, documents, preview.
    """

    __tablename__ = "user_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Progress tracking
    status = Column(String, default=ProfileSetupStatus.NOT_STARTED.value, index=True)
    current_step = Column(Integer, default=1)
    completed_steps = Column(JSON, default=list)

    # 1. Basic information
    full_name = Column(String)
    preferred_name = Column(String)
    location = Column(String)
    email = Column(String)
    phone = Column(String)

    # 2. Disability profile
    disability_types = Column(JSON, default=list)
    support_needs = Column(Text)
    assistive_tech = Column(JSON, default=list)
    accommodations = Column(Text)

    # 3. Skills & work preferences
    soft_skills = Column(JSON, default=list)
    hard_skills = Column(JSON, default=list)
    industries = Column(JSON, default=list)
    work_arrangement = Column(String)

    # 4. Education & experience
    # Format: [{"degree": "...", "institution": "...", "year": "...", "description": "..."}]
    education = Column(JSON, default=list)
    # Format: [{"title": "...", "company": "...", "duration": "...", "description": "..."}]
    experience = Column(JSON, default=list)

    # 5. Documents
    resume_url = Column(String)
    certification_urls = Column(JSON, default=list)
    certifications = Column(JSON, default=list)

    # 6. Preview
    custom_summary = Column(Text)
    additional_info = Column(Text)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="profile")
