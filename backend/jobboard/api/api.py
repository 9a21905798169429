"""
API Router Aggregator.

Combines all v1 API routers into a single router for the main app.
"""

from fastapi import APIRouter

from jobboard.api.v1 import (
    admin,
    applications,
    auth,
    companies,
    jobs,
    profiles,
    ratings,
    recommendations,
    saved_jobs,
    users,
)

api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

api_router.include_router(
    users.router,
    prefix="/user",
    tags=["User"],
)

api_router.include_router(
    companies.router,
    prefix="/companies",
    tags=["Companies"],
)

# Application and saved-job routes are registered before /jobs/{job_id}
api_router.include_router(
    applications.router,
    prefix="/jobs/applications",
    tags=["Applications"],
)

api_router.include_router(
    saved_jobs.router,
    prefix="/jobs/saved",
    tags=["Saved Jobs"],
)

api_router.include_router(
    jobs.router,
    prefix="/jobs",
    tags=["Jobs"],
)

api_router.include_router(
    profiles.router,
    prefix="/profiles",
    tags=["Profiles"],
)

api_router.include_router(
    ratings.router,
    prefix="/recommendation-ratings",
    tags=["Recommendation Ratings"],
)

api_router.include_router(
    recommendations.router,
    prefix="/recommendations",
    tags=["Recommendations"],
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"],
)
