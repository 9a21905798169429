from sqlalchemy import Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, utcnow


class Company(Base):
    """Employer organisation that owns job postings."""

    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text)
    website = Column(String)
    logo = Column(String)
    size = Column(String)  # CompanySize
    industry = Column(String)
    location = Column(String)
    culture = Column(Text)
    values = Column(JSON, default=list)
    contact_email = Column(String)
    contact_phone = Column(String)
    linkedin_url = Column(String)
    twitter_url = Column(String)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    jobs = relationship("Job", back_populates="company", cascade="all, delete-orphan")
