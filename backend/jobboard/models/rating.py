from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from jobboard.db.base import Base, utcnow


class RecommendationRating(Base):
    """
    Rating of a recommended job, by the user or produced by the AI matcher.

    One row per (user, job); AI regeneration updates the row in place.
    """

    __tablename__ = "recommendation_ratings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)

    rating = Column(Integer, nullable=False)  # 1-10
    feedback = Column(Text)
    reason = Column(String)  # RatingReason
    recommended_by = Column(String)  # "AI" | "USER" | ...
    match_score = Column(Float)  # 0-100
    is_helpful = Column(Boolean, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="ratings")
    job = relationship("Job", back_populates="ratings")

    __table_args__ = (
        UniqueConstraint("user_id", "job_id", name="uq_rating_user_job"),
    )
