from jobboard.services.applications import ApplicationService
from jobboard.services.jobs import JobService
from jobboard.services.profile_setup import ProfileSetupService, validate_step
from jobboard.services.ratings import RecommendationRatingService
from jobboard.services.recommendation_analytics import RecommendationAnalyticsService
from jobboard.services.recommendations import (
    RecommendationService,
    generate_fallback_recommendations,
    generate_recommendations,
    score_job,
)

__all__ = [
    "ApplicationService",
    "JobService",
    "ProfileSetupService",
    "validate_step",
    "RecommendationRatingService",
    "RecommendationAnalyticsService",
    "RecommendationService",
    "generate_fallback_recommendations",
    "generate_recommendations",
    "score_job",
]
