"""
Recommendation Rating Service.

Ratings are unique per (user, job). Only the owner may change or remove a
rating; statistics are computed with SQL aggregates.
"""

import math
from typing import Any, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from jobboard.models import Job, RecommendationRating, User
from jobboard.services.exceptions import ConflictError, NotFoundError, PermissionDeniedError

SORTABLE_FIELDS = {
    "created_at": RecommendationRating.created_at,
    "updated_at": RecommendationRating.updated_at,
    "rating": RecommendationRating.rating,
    "match_score": RecommendationRating.match_score,
}


class RecommendationRatingService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(RecommendationRating).options(
            joinedload(RecommendationRating.user),
            joinedload(RecommendationRating.job).joinedload(Job.company),
        )

    def list(
        self,
        user_id: Optional[int] = None,
        job_id: Optional[int] = None,
        rating: Optional[int] = None,
        reason: Optional[str] = None,
        recommended_by: Optional[str] = None,
        is_helpful: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict:
        query = self._query()
        if user_id is not None:
            query = query.filter(RecommendationRating.user_id == user_id)
        if job_id is not None:
            query = query.filter(RecommendationRating.job_id == job_id)
        if rating is not None:
            query = query.filter(RecommendationRating.rating == rating)
        if reason:
            query = query.filter(RecommendationRating.reason == reason)
        if recommended_by:
            query = query.filter(RecommendationRating.recommended_by == recommended_by)
        if is_helpful is not None:
            query = query.filter(RecommendationRating.is_helpful == is_helpful)

        total = query.count()

        column = SORTABLE_FIELDS.get(sort_by, RecommendationRating.created_at)
        order = column.asc() if sort_order == "asc" else column.desc()
        ratings = query.order_by(order).offset((page - 1) * limit).limit(limit).all()

        return {
            "data": ratings,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if limit else 0,
            },
        }

    def get(self, rating_id: int) -> Optional[RecommendationRating]:
        return self._query().filter(RecommendationRating.id == rating_id).first()

    def get_by_user_and_job(self, user_id: int, job_id: int) -> Optional[RecommendationRating]:
        return (
            self._query()
            .filter(
                RecommendationRating.user_id == user_id,
                RecommendationRating.job_id == job_id,
            )
            .first()
        )

    def create(self, user_id: int, data: dict[str, Any]) -> RecommendationRating:
        """
        Record a rating by `user_id`.

        Args:
            user_id: The rater
            data: Validated rating fields, including job_id

        Returns:
            The stored rating

        Raises:
            NotFoundError: Unknown user or job
            ConflictError: The user already rated this job
        """
        if not self.db.query(User).filter(User.id == user_id).first():
            raise NotFoundError("User not found")
        if not self.db.query(Job).filter(Job.id == data["job_id"]).first():
            raise NotFoundError("Job not found")
        if self.get_by_user_and_job(user_id, data["job_id"]):
            raise ConflictError("Rating already exists for this user and job")

        rating = RecommendationRating(user_id=user_id, **data)
        self.db.add(rating)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Rating already exists for this user and job")
        return self.get(rating.id)

    def update(self, rating_id: int, user_id: int, data: dict[str, Any]) -> RecommendationRating:
        rating = self._owned(rating_id, user_id, "update")
        for field, value in data.items():
            setattr(rating, field, value)
        self.db.commit()
        return self.get(rating_id)

    def delete(self, rating_id: int, user_id: int) -> None:
        rating = self._owned(rating_id, user_id, "delete")
        self.db.delete(rating)
        self.db.commit()

    def user_stats(self, user_id: int) -> dict:
        """
        Aggregate a user's ratings.

        Returns:
            Totals, averages, helpful count, rating distribution and
            reason distribution
        """
        stats = self._stats(RecommendationRating.user_id == user_id)

        reasons = (
            self.db.query(RecommendationRating.reason, func.count(RecommendationRating.id))
            .filter(
                RecommendationRating.user_id == user_id,
                RecommendationRating.reason.isnot(None),
            )
            .group_by(RecommendationRating.reason)
            .all()
        )
        stats["reason_distribution"] = [
            {"reason": reason, "count": count} for reason, count in reasons
        ]
        return stats

    def job_stats(self, job_id: int) -> dict:
        return self._stats(RecommendationRating.job_id == job_id)

    def _stats(self, condition) -> dict:
        total, avg_rating, avg_match, helpful = (
            self.db.query(
                func.count(RecommendationRating.id),
                func.avg(RecommendationRating.rating),
                func.avg(RecommendationRating.match_score),
                func.sum(case((RecommendationRating.is_helpful.is_(True), 1), else_=0)),
            )
            .filter(condition)
            .one()
        )

        distribution = (
            self.db.query(RecommendationRating.rating, func.count(RecommendationRating.id))
            .filter(condition)
            .group_by(RecommendationRating.rating)
            .order_by(RecommendationRating.rating)
            .all()
        )

        return {
            "total_ratings": total,
            "average_rating": float(avg_rating) if avg_rating is not None else None,
            "average_match_score": float(avg_match) if avg_match is not None else None,
            "helpful_ratings": int(helpful or 0),
            "rating_distribution": [
                {"rating": value, "count": count} for value, count in distribution
            ],
        }

    def _owned(self, rating_id: int, user_id: int, action: str) -> RecommendationRating:
        rating = self.db.query(RecommendationRating).filter(RecommendationRating.id == rating_id).first()
        if not rating:
            raise NotFoundError("Recommendation rating not found")
        if rating.user_id != user_id:
            raise PermissionDeniedError(f"Unauthorized: You can only {action} your own ratings")
        return rating
