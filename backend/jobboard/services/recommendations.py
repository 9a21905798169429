"""
Job Recommendation Service.

Matches a completed job-seeker profile against open jobs using Google
Gemini. When Gemini is unavailable (no key, API error, unparseable reply)
a deterministic rule-based scorer produces the same output shape, so the
endpoint always returns recommendations that can be stored as ratings.
"""

import json
import logging
import re
from datetime import timedelta
from typing import Any, Optional

import google.generativeai as genai
from sqlalchemy import or_, select
from sqlalchemy.orm import Session, joinedload

from jobboard.core.config import settings
from jobboard.db.base import utcnow
from jobboard.models import Job, JobApplication, RecommendationRating, UserProfile
from jobboard.models.enums import JobStatus, RatingReason
from jobboard.services.exceptions import NotFoundError

logger = logging.getLogger("recommendations")

MAX_CANDIDATE_JOBS = 50
CACHE_WINDOW = timedelta(hours=24)

# Factor weights for the rule-based scorer (sum to 1.0)
FACTOR_WEIGHTS = {
    "accommodation_match": 0.30,
    "skills_match": 0.25,
    "work_arrangement_match": 0.20,
    "industry_match": 0.15,
    "location_match": 0.10,
}

FACTOR_LABELS = {
    "accommodation_match": "Accommodation support",
    "skills_match": "Skills alignment",
    "work_arrangement_match": "Work arrangement fit",
    "industry_match": "Industry alignment",
    "location_match": "Location compatibility",
}

SYSTEM_PROMPT = """You are an expert job matching specialist focused on inclusive employment for
people with disabilities. Score each job for the candidate below, weighting:
accommodation matching 30%, skills 25%, work arrangement 20%, industry 15%,
location 10%.

Rating scale: 9-10 PERFECT_MATCH, 7-8 GOOD_FIT, 5-6 SOME_INTEREST,
3-4 NOT_RELEVANT, 1-2 POOR_MATCH. Use person-first, respectful language in
feedback and keep it actionable.

Respond with JSON only, no markdown, in exactly this shape:
{
  "recommendations": [
    {"job_id": 1, "rating": 8, "match_score": 82, "reason": "GOOD_FIT",
     "feedback": "...",
     "match_factors": {"skills_match": 80, "accommodation_match": 90,
                       "location_match": 70, "work_arrangement_match": 100,
                       "industry_match": 60}}
  ],
  "analysis": {
    "total_jobs_analyzed": 0,
    "top_matching_factors": [],
    "recommended_skill_improvements": [],
    "accommodation_insights": []
  }
}
"""


def configure_gemini() -> bool:
    """
    Configure the Gemini API with the API key.

    Returns True if configured successfully, False otherwise.
    """
    if not settings.GEMINI_API_KEY:
        logger.info("GEMINI_API_KEY not set - using rule-based recommendations")
        return False

    try:
        genai.configure(api_key=settings.GEMINI_API_KEY)
        return True
    except Exception as e:
        logger.error(f"Failed to configure Gemini: {e}")
        return False


# ============== Prompt ==============


def _join(values: Optional[list], default: str = "Not specified") -> str:
    return ", ".join(str(v) for v in values) if values else default


def build_prompt(profile: UserProfile, jobs: list[Job], max_recommendations: int) -> str:
    profile_section = f"""
## Candidate
- Location: {profile.location or 'Not specified'}
- Disability types: {_join(profile.disability_types)}
- Support needs: {profile.support_needs or 'Not specified'}
- Assistive technology: {_join(profile.assistive_tech, 'None specified')}
- Accommodation requirements: {profile.accommodations or 'Not specified'}
- Soft skills: {_join(profile.soft_skills)}
- Hard skills: {_join(profile.hard_skills)}
- Target industries: {_join(profile.industries)}
- Work arrangement preference: {profile.work_arrangement or 'Not specified'}
- Education: {json.dumps(profile.education or [])}
- Experience: {json.dumps(profile.experience or [])}
- Summary: {profile.custom_summary or 'Not provided'}
"""

    job_lines = []
    for job in jobs:
        salary = (
            f"{job.salary_min} - {job.salary_max} {job.salary_currency}"
            if job.salary_min and job.salary_max
            else "Not specified"
        )
        job_lines.append(
            f"""
### Job {job.id}: {job.title}
- Company: {job.company.name if job.company else 'Unknown'} ({job.company.industry if job.company else ''})
- Location: {job.location} | Remote: {'Yes' if job.is_remote else 'No'} | Hybrid: {'Yes' if job.is_hybrid else 'No'}
- Work type: {job.work_type} | Experience: {job.experience} | Salary: {salary}
- Accommodations: {_join(job.accommodations)}
- Accommodation details: {job.accommodation_details or 'Not provided'}
- Requirements: {_join(job.requirements)}
- Preferred skills: {_join(job.preferred_skills)}
"""
        )

    return (
        f"{SYSTEM_PROMPT}\n{profile_section}\n## Jobs\n{''.join(job_lines)}\n"
        f"Return at most {max_recommendations} recommendations, best first."
    )


# ============== Rule-based scoring ==============


def _normalize(value: str) -> str:
    return re.sub(r"[\s_\-]+", " ", str(value)).strip().lower()


def _accommodation_match(profile: UserProfile, job: Job) -> float:
    offered = [_normalize(a) for a in (job.accommodations or [])]
    if not offered:
        return 40.0

    needs = [_normalize(d) for d in (profile.disability_types or [])]
    if not needs:
        return 70.0

    covered = sum(1 for need in needs if any(a in need or need in a for a in offered))
    return 50.0 + 50.0 * covered / len(needs)


def _skills_match(profile: UserProfile, job: Job) -> float:
    terms = [_normalize(t) for t in (job.requirements or []) + (job.preferred_skills or [])]
    if not terms:
        return 50.0

    skills = [_normalize(s) for s in (profile.hard_skills or []) + (profile.soft_skills or [])]
    skills = [s for s in skills if s]
    matched = sum(1 for term in terms if any(skill in term for skill in skills))
    return 100.0 * matched / len(terms)


def _work_arrangement_match(profile: UserProfile, job: Job) -> float:
    preference = _normalize(profile.work_arrangement or "")
    is_remote = bool(job.is_remote) or job.work_type == "REMOTE"
    is_hybrid = bool(job.is_hybrid) or job.work_type == "HYBRID"

    if "remote" in preference:
        return 100.0 if is_remote else 30.0
    if "hybrid" in preference:
        if is_hybrid:
            return 100.0
        return 70.0 if is_remote else 40.0
    if "site" in preference or "office" in preference:
        return 60.0 if is_remote else 100.0
    return 60.0


def _industry_match(profile: UserProfile, job: Job) -> float:
    industry = _normalize(job.company.industry) if job.company and job.company.industry else ""
    wanted = [_normalize(i) for i in (profile.industries or [])]
    if not industry or not wanted:
        return 50.0
    return 100.0 if any(w in industry or industry in w for w in wanted) else 30.0


def _location_match(profile: UserProfile, job: Job) -> float:
    if job.is_remote:
        return 100.0
    if not profile.location:
        return 50.0
    city = _normalize(profile.location.split(",")[0])
    return 100.0 if city and city in _normalize(job.location or "") else 30.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def reason_for_rating(rating: int) -> str:
    if rating >= 9:
        return RatingReason.PERFECT_MATCH.value
    if rating >= 7:
        return RatingReason.GOOD_FIT.value
    if rating >= 5:
        return RatingReason.SOME_INTEREST.value
    if rating >= 3:
        return RatingReason.NOT_RELEVANT.value
    return RatingReason.POOR_MATCH.value


def score_job(profile: UserProfile, job: Job) -> dict:
    """Score one job against a profile. Pure and deterministic."""
    factors = {
        "accommodation_match": _accommodation_match(profile, job),
        "skills_match": _skills_match(profile, job),
        "work_arrangement_match": _work_arrangement_match(profile, job),
        "industry_match": _industry_match(profile, job),
        "location_match": _location_match(profile, job),
    }
    match_score = round(sum(factors[name] * weight for name, weight in FACTOR_WEIGHTS.items()), 1)
    rating = int(clamp(round(match_score / 10), 1, 10))

    strongest = max(FACTOR_WEIGHTS, key=lambda name: factors[name])
    company_name = job.company.name if job.company else "the company"
    feedback = (
        f"{job.title} at {company_name} scores {match_score:.0f}% overall. "
        f"Strongest factor: {FACTOR_LABELS[strongest].lower()} ({factors[strongest]:.0f}%)."
    )

    return {
        "job_id": job.id,
        "rating": rating,
        "match_score": match_score,
        "reason": reason_for_rating(rating),
        "feedback": feedback,
        "match_factors": {name: round(value, 1) for name, value in factors.items()},
    }


def generate_fallback_recommendations(
    profile: UserProfile, jobs: list[Job], max_recommendations: int = 10
) -> dict:
    """Rank jobs by score_job and summarize the strongest match factors."""
    scored = [score_job(profile, job) for job in jobs]
    scored.sort(key=lambda rec: (-rec["match_score"], rec["job_id"]))
    recommendations = scored[:max_recommendations]

    factor_totals = {name: 0.0 for name in FACTOR_WEIGHTS}
    for rec in recommendations:
        for name, value in rec["match_factors"].items():
            factor_totals[name] += value
    top_factors = sorted(factor_totals, key=lambda name: -factor_totals[name])[:3]

    for rec in recommendations:
        rec["recommended_by"] = "AI"

    return {
        "recommendations": recommendations,
        "analysis": {
            "total_jobs_analyzed": len(jobs),
            "top_matching_factors": [FACTOR_LABELS[name] for name in top_factors],
            "recommended_skill_improvements": [],
            "accommodation_insights": [],
            "source": "rules",
        },
    }


# ============== Gemini ==============


def _parse_gemini_response(text: str, jobs: list[Job], max_recommendations: int) -> Optional[dict]:
    """Parse and sanitize Gemini's JSON reply; None if it is unusable."""
    cleaned = re.sub(r"```(?:json)?", "", text).strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None

    valid_ids = {job.id for job in jobs}
    valid_reasons = {reason.value for reason in RatingReason}
    recommendations = []

    for rec in payload.get("recommendations") or []:
        if not isinstance(rec, dict):
            continue
        try:
            job_id = int(rec.get("job_id"))
            rating = int(clamp(round(float(rec.get("rating"))), 1, 10))
            match_score = clamp(float(rec.get("match_score")), 0, 100)
        except (TypeError, ValueError):
            continue
        if job_id not in valid_ids:
            continue

        reason = rec.get("reason")
        factors = rec.get("match_factors") if isinstance(rec.get("match_factors"), dict) else {}
        recommendations.append(
            {
                "job_id": job_id,
                "rating": rating,
                "match_score": match_score,
                "reason": reason if reason in valid_reasons else reason_for_rating(rating),
                "feedback": str(rec.get("feedback") or ""),
                "recommended_by": "AI",
                "match_factors": {
                    name: _clamp_factor(factors.get(name)) for name in FACTOR_WEIGHTS
                },
            }
        )

    analysis = payload.get("analysis") if isinstance(payload.get("analysis"), dict) else {}
    analysis.setdefault("total_jobs_analyzed", len(jobs))
    analysis["source"] = "gemini"

    return {"recommendations": recommendations[:max_recommendations], "analysis": analysis}


def _clamp_factor(value: Any) -> float:
    try:
        return clamp(float(value), 0, 100)
    except (TypeError, ValueError):
        return 50.0


def generate_recommendations(
    profile: UserProfile, jobs: list[Job], max_recommendations: int = 10
) -> dict:
    """
    Produce recommendations for a profile.

    Gemini is asked first when an API key is configured; any failure or an
    unusable reply falls back to the rule-based scorer.

    Args:
        profile: A completed profile setup
        jobs: Candidate jobs, already filtered for the user
        max_recommendations: Upper bound on returned recommendations

    Returns:
        {"recommendations": [...], "analysis": {...}} where every
        recommendation has job_id, rating (1-10), match_score (0-100),
        reason, feedback and recommended_by="AI"
    """
    if not jobs:
        return generate_fallback_recommendations(profile, jobs, max_recommendations)

    if not configure_gemini():
        return generate_fallback_recommendations(profile, jobs, max_recommendations)

    try:
        model = genai.GenerativeModel(settings.GEMINI_MODEL)
        logger.info("Requesting recommendations for %d jobs from Gemini", len(jobs))
        response = model.generate_content(build_prompt(profile, jobs, max_recommendations))
        result = _parse_gemini_response(response.text, jobs, max_recommendations)
    except Exception as e:
        logger.error(f"Gemini API error: {e}")
        result = None

    if not result or not result["recommendations"]:
        logger.warning("Falling back to rule-based recommendations")
        return generate_fallback_recommendations(profile, jobs, max_recommendations)
    return result


# ============== Persistence ==============


class RecommendationService:
    """Stores recommendations as RecommendationRating rows."""

    def __init__(self, db: Session):
        self.db = db

    def get_completed_profile(self, user_id: int) -> UserProfile:
        profile = self.db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
        if not profile:
            raise NotFoundError("User profile not found")
        return profile

    def recent(self, user_id: int, limit: int) -> list[RecommendationRating]:
        return (
            self.db.query(RecommendationRating)
            .options(joinedload(RecommendationRating.job).joinedload(Job.company))
            .filter(
                RecommendationRating.user_id == user_id,
                RecommendationRating.created_at >= utcnow() - CACHE_WINDOW,
            )
            .order_by(RecommendationRating.rating.desc(), RecommendationRating.id)
            .limit(limit)
            .all()
        )

    def candidate_jobs(self, user_id: int) -> list[Job]:
        """Published, active, open jobs the user has not applied to, newest first."""
        applied = select(JobApplication.job_id).where(JobApplication.user_id == user_id)
        return (
            self.db.query(Job)
            .options(joinedload(Job.company))
            .filter(
                Job.status == JobStatus.PUBLISHED.value,
                Job.is_active.is_(True),
                Job.id.notin_(applied),
                or_(Job.application_deadline.is_(None), Job.application_deadline >= utcnow()),
            )
            .order_by(Job.published_at.desc(), Job.id.desc())
            .limit(MAX_CANDIDATE_JOBS)
            .all()
        )

    def save(self, user_id: int, recommendations: list[dict]) -> list[RecommendationRating]:
        """Upsert one rating per recommended job."""
        saved = []
        for rec in recommendations:
            rating = (
                self.db.query(RecommendationRating)
                .filter(
                    RecommendationRating.user_id == user_id,
                    RecommendationRating.job_id == rec["job_id"],
                )
                .first()
            )
            if rating is None:
                rating = RecommendationRating(user_id=user_id, job_id=rec["job_id"])
                self.db.add(rating)

            rating.rating = rec["rating"]
            rating.match_score = rec["match_score"]
            rating.reason = rec["reason"]
            rating.feedback = rec["feedback"]
            rating.recommended_by = "AI"
            saved.append(rating)

        self.db.commit()
        for rating in saved:
            self.db.refresh(rating)
        return saved

    def update_feedback(self, user_id: int, job_id: int, data: dict) -> RecommendationRating:
        rating = (
            self.db.query(RecommendationRating)
            .filter(
                RecommendationRating.user_id == user_id,
                RecommendationRating.job_id == job_id,
            )
            .first()
        )
        if not rating:
            raise NotFoundError("Recommendation not found")

        for field, value in data.items():
            setattr(rating, field, value)
        self.db.commit()
        self.db.refresh(rating)
        return rating

    def delete(self, user_id: int, job_id: Optional[int] = None) -> int:
        """
        Remove one or all of a user's recommendations.

        Args:
            user_id: Owner of the recommendations
            job_id: Only this job's recommendation; all of them when None

        Returns:
            Number of recommendations deleted

        Raises:
            NotFoundError: `job_id` given but not recommended to the user
        """
        query = self.db.query(RecommendationRating).filter(RecommendationRating.user_id == user_id)
        if job_id is not None:
            query = query.filter(RecommendationRating.job_id == job_id)
            if not query.first():
                raise NotFoundError("Recommendation not found")

        count = query.delete(synchronize_session=False)
        self.db.commit()
        return count
