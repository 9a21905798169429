"""
Recommendation Analytics Service.

Admin insight into stored recommendations over a recent window (7, 30 or 90
days), plus maintenance actions that clear stale recommendations so they are
regenerated on the next request.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from jobboard.db.base import utcnow
from jobboard.models import Company, Job, JobApplication, RecommendationRating, UserProfile
from jobboard.models.enums import ProfileSetupStatus

logger = logging.getLogger("recommendations")

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
TOP_LIMIT = 10
STALE_AFTER = timedelta(hours=24)
EXPIRE_AFTER = timedelta(days=30)


class RecommendationAnalyticsService:
    def __init__(self, db: Session):
        self.db = db

    def summary(
        self, period: str = "7d", user_id: Optional[int] = None, now: Optional[datetime] = None
    ) -> dict[str, Any]:
        """
        Aggregate recommendations created within `period`.

        Args:
            period: One of "7d", "30d" or "90d"
            user_id: Restrict the figures to one user's recommendations
            now: End of the window (defaults to the current time)

        Returns:
            Overview, distributions, match score range, top rated jobs,
            most engaged users and accommodation counts
        """
        end = now or utcnow()
        start = end - timedelta(days=PERIOD_DAYS[period])

        conditions = [RecommendationRating.created_at >= start]
        if user_id is not None:
            conditions.append(RecommendationRating.user_id == user_id)
        window = and_(*conditions)

        total, avg_rating, avg_match, min_match, max_match, helpful, not_helpful = (
            self.db.query(
                func.count(RecommendationRating.id),
                func.avg(RecommendationRating.rating),
                func.avg(RecommendationRating.match_score),
                func.min(RecommendationRating.match_score),
                func.max(RecommendationRating.match_score),
                func.sum(case((RecommendationRating.is_helpful.is_(True), 1), else_=0)),
                func.sum(case((RecommendationRating.is_helpful.is_(False), 1), else_=0)),
            )
            .filter(window)
            .one()
        )

        applied = (
            self.db.query(func.count(RecommendationRating.id))
            .join(
                JobApplication,
                and_(
                    JobApplication.user_id == RecommendationRating.user_id,
                    JobApplication.job_id == RecommendationRating.job_id,
                ),
            )
            .filter(window)
            .scalar()
        )

        return {
            "overview": {
                "total_recommendations": total,
                "average_rating": float(avg_rating or 0),
                "conversion_rate": round(applied / total * 100, 2) if total else 0,
                "period": period,
                "start_date": start,
                "end_date": end,
            },
            "rating_distribution": self._rating_distribution(window),
            "reason_distribution": self._reason_distribution(window),
            "helpfulness_stats": {
                "helpful": int(helpful or 0),
                "not_helpful": int(not_helpful or 0),
            },
            "match_score_stats": {
                "average": float(avg_match or 0),
                "minimum": float(min_match or 0),
                "maximum": float(max_match or 0),
            },
            "top_rated_jobs": self._top_rated_jobs(window),
            "user_engagement": self._user_engagement(window),
            "accommodation_insights": self._accommodation_insights(window),
        }

    def _rating_distribution(self, window) -> list[dict]:
        rows = (
            self.db.query(RecommendationRating.rating, func.count(RecommendationRating.id))
            .filter(window)
            .group_by(RecommendationRating.rating)
            .order_by(RecommendationRating.rating)
            .all()
        )
        return [{"rating": rating, "count": count} for rating, count in rows]

    def _reason_distribution(self, window) -> list[dict]:
        count = func.count(RecommendationRating.id)
        rows = (
            self.db.query(RecommendationRating.reason, count)
            .filter(window, RecommendationRating.reason.isnot(None))
            .group_by(RecommendationRating.reason)
            .order_by(count.desc(), RecommendationRating.reason)
            .all()
        )
        return [{"reason": reason, "count": total} for reason, total in rows]

    def _top_rated_jobs(self, window) -> list[dict]:
        rows = (
            self.db.query(RecommendationRating, Job.title, Company.name)
            .join(Job, Job.id == RecommendationRating.job_id)
            .outerjoin(Company, Company.id == Job.company_id)
            .filter(window)
            .order_by(
                RecommendationRating.rating.desc(),
                RecommendationRating.match_score.desc(),
                RecommendationRating.id,
            )
            .limit(TOP_LIMIT)
            .all()
        )
        return [
            {
                "job_id": rating.job_id,
                "job_title": title,
                "company_name": company_name,
                "rating": rating.rating,
                "match_score": rating.match_score,
                "reason": rating.reason,
            }
            for rating, title, company_name in rows
        ]

    def _user_engagement(self, window) -> list[dict]:
        count = func.count(RecommendationRating.id)
        rows = (
            self.db.query(RecommendationRating.user_id, count, func.avg(RecommendationRating.rating))
            .filter(window)
            .group_by(RecommendationRating.user_id)
            .order_by(count.desc(), RecommendationRating.user_id)
            .limit(TOP_LIMIT)
            .all()
        )
        return [
            {
                "user_id": user_id,
                "recommendation_count": total,
                "average_rating": float(average) if average is not None else None,
            }
            for user_id, total, average in rows
        ]

    def _accommodation_insights(self, window) -> list[dict]:
        # Accommodations are a JSON list, so they are counted per distinct job here
        jobs = (
            self.db.query(Job.accommodations)
            .filter(Job.id.in_(select(RecommendationRating.job_id).where(window)))
            .all()
        )
        counts = Counter(a for (accommodations,) in jobs for a in (accommodations or []))
        return [
            {"accommodation": accommodation, "job_count": total}
            for accommodation, total in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        ]

    # ============== Maintenance ==============

    def clear_stale(self, now: Optional[datetime] = None) -> int:
        """Drop recommendations older than 24h for every completed profile."""
        cutoff = (now or utcnow()) - STALE_AFTER
        user_ids = [
            user_id
            for (user_id,) in self.db.query(UserProfile.user_id).filter(
                UserProfile.status == ProfileSetupStatus.COMPLETED.value
            )
        ]
        if user_ids:
            self.db.query(RecommendationRating).filter(
                RecommendationRating.user_id.in_(user_ids),
                RecommendationRating.created_at < cutoff,
            ).delete(synchronize_session=False)
            self.db.commit()
        logger.info("Cleared stale recommendations for %d users", len(user_ids))
        return len(user_ids)

    def cleanup_old(self, now: Optional[datetime] = None) -> int:
        """Delete recommendations older than 30 days; returns how many."""
        cutoff = (now or utcnow()) - EXPIRE_AFTER
        deleted = (
            self.db.query(RecommendationRating)
            .filter(RecommendationRating.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info("Deleted %d recommendations older than %s", deleted, cutoff)
        return deleted

    def clear_user(self, user_id: int) -> int:
        deleted = (
            self.db.query(RecommendationRating)
            .filter(RecommendationRating.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
