from jobboard.models.user import User, AuthSession, VerificationToken
from jobboard.models.company import Company
from jobboard.models.job import Job, JobApplication, SavedJob
from jobboard.models.profile import UserProfile
from jobboard.models.rating import RecommendationRating

__all__ = [
    "User",
    "AuthSession",
    "VerificationToken",
    "Company",
    "Job",
    "JobApplication",
    "SavedJob",
    "UserProfile",
    "RecommendationRating",
]
