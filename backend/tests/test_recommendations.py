"""Tests for job recommendations and their analytics."""

from datetime import timedelta

import pytest

from jobboard.db.base import utcnow
from jobboard.models import Company, Job, JobApplication, RecommendationRating, UserProfile
from jobboard.models.enums import UserRole
from jobboard.services.recommendations import (
    _parse_gemini_response,
    clamp,
    generate_recommendations,
    reason_for_rating,
    score_job,
)


def profile(**fields):
    data = {
        "location": "Toronto, Canada",
        "disability_types": ["Hearing impairment"],
        "hard_skills": ["Python", "SQL"],
        "soft_skills": ["Communication"],
        "industries": ["Technology"],
        "work_arrangement": "remote",
    }
    data.update(fields)
    return UserProfile(**data)


def job(job_id=1, industry="Technology", **fields):
    data = {
        "title": "Data Engineer",
        "location": "Remote",
        "is_remote": True,
        "accommodations": ["HEARING"],
        "requirements": ["Python", "SQL"],
        "preferred_skills": [],
    }
    data.update(fields)
    return Job(id=job_id, company=Company(name="Acme Inclusive", industry=industry), **data)


# ============== Scoring ==============


def test_perfect_match():
    result = score_job(profile(), job())

    assert result["match_score"] == 100.0
    assert result["rating"] == 10
    assert result["reason"] == "PERFECT_MATCH"
    assert set(result["match_factors"].values()) == {100.0}
    assert "Acme Inclusive" in result["feedback"]


def test_weak_match():
    weak = job(
        industry="Healthcare",
        location="Vancouver",
        is_remote=False,
        accommodations=[],
        requirements=["Java"],
    )

    result = score_job(profile(), weak)

    assert result["match_factors"] == {
        "accommodation_match": 40.0,
        "skills_match": 0.0,
        "work_arrangement_match": 30.0,
        "industry_match": 30.0,
        "location_match": 30.0,
    }
    assert result["match_score"] == pytest.approx(25.5)
    assert result["rating"] == 3
    assert result["reason"] == "NOT_RELEVANT"


def test_neutral_scores_for_missing_information():
    result = score_job(
        profile(disability_types=[], industries=[], location=None, work_arrangement=None),
        job(is_remote=False, location="Ottawa", requirements=[]),
    )

    assert result["match_factors"] == {
        "accommodation_match": 70.0,
        "skills_match": 50.0,
        "work_arrangement_match": 60.0,
        "industry_match": 50.0,
        "location_match": 50.0,
    }


def test_hybrid_and_onsite_preferences():
    hybrid_job = job(is_remote=False, is_hybrid=True, location="Toronto")

    assert score_job(profile(work_arrangement="hybrid"), hybrid_job)["match_factors"][
        "work_arrangement_match"
    ] == 100.0
    assert score_job(profile(work_arrangement="hybrid"), job())["match_factors"][
        "work_arrangement_match"
    ] == 70.0
    assert score_job(profile(work_arrangement="on-site"), job())["match_factors"][
        "work_arrangement_match"
    ] == 60.0
    assert score_job(profile(), hybrid_job)["match_factors"]["location_match"] == 100.0


def test_reason_for_rating():
    assert [reason_for_rating(r) for r in (10, 7, 5, 3, 1)] == [
        "PERFECT_MATCH",
        "GOOD_FIT",
        "SOME_INTEREST",
        "NOT_RELEVANT",
        "POOR_MATCH",
    ]
    assert clamp(14, 1, 10) == 10
    assert clamp(-2, 0, 100) == 0


def test_fallback_without_api_key():
    jobs = [job(1, requirements=["Java"]), job(2)]

    result = generate_recommendations(profile(), jobs, max_recommendations=1)

    assert [r["job_id"] for r in result["recommendations"]] == [2]
    assert result["recommendations"][0]["recommended_by"] == "AI"
    assert result["analysis"]["source"] == "rules"
    assert result["analysis"]["total_jobs_analyzed"] == 2


def test_parse_gemini_response_sanitizes_values():
    jobs = [job(1), job(2)]
    text = """```json
    {"recommendations": [
        {"job_id": 1, "rating": 14, "match_score": 130, "reason": "MADE_UP",
         "feedback": "Great", "match_factors": {"skills_match": 80}},
        {"job_id": 99, "rating": 5, "match_score": 50},
        {"job_id": 2, "rating": "bad", "match_score": 50}
    ]}
    ```"""

    result = _parse_gemini_response(text, jobs, 10)

    assert len(result["recommendations"]) == 1
    rec = result["recommendations"][0]
    assert rec["rating"] == 10
    assert rec["match_score"] == 100
    assert rec["reason"] == "PERFECT_MATCH"
    assert rec["match_factors"]["skills_match"] == 80
    assert rec["match_factors"]["location_match"] == 50.0
    assert result["analysis"] == {"total_jobs_analyzed": 2, "source": "gemini"}

    assert _parse_gemini_response("not json", jobs, 10) is None
    assert _parse_gemini_response("[1, 2]", jobs, 10) is None


# ============== API ==============


@pytest.fixture
def seeker(make_user, completed_profile):
    user = make_user()
    completed_profile(user)
    return user


@pytest.fixture
def open_jobs(make_company, make_job):
    company = make_company()
    strong = make_job(
        company, "Data Engineer", is_remote=True, accommodations=["HEARING"],
        requirements=["Python", "SQL"],
    )
    weak = make_job(
        make_company("Beacon Health", industry="Healthcare"), "Nurse",
        location="Vancouver", requirements=["Nursing licence"],
    )
    return strong, weak


def test_generate_then_cache(client, auth_client, seeker, open_jobs, db_session):
    strong, weak = open_jobs
    api = auth_client(seeker)

    response = api.get(f"/api/recommendations/{seeker.id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["cached"] is False
    assert data["analysis"]["source"] == "rules"
    assert [r["job_id"] for r in data["recommendations"]] == [strong.id, weak.id]
    assert data["recommendations"][0]["rating"] == 10
    assert data["recommendations"][0]["match_factors"]["skills_match"] == 100.0
    assert db_session.query(RecommendationRating).filter_by(user_id=seeker.id).count() == 2

    cached = api.get(f"/api/recommendations/{seeker.id}").json()["data"]
    assert cached["cached"] is True
    assert [r["job_id"] for r in cached["recommendations"]] == [strong.id, weak.id]

    regenerated = api.get(f"/api/recommendations/{seeker.id}", params={"regenerate": "true"})
    assert regenerated.json()["data"]["cached"] is False
    assert db_session.query(RecommendationRating).filter_by(user_id=seeker.id).count() == 2


def test_applied_jobs_are_skipped(client, auth_client, seeker, open_jobs, db_session):
    strong, weak = open_jobs
    db_session.add(JobApplication(job_id=strong.id, user_id=seeker.id))
    db_session.commit()

    data = auth_client(seeker).get(f"/api/recommendations/{seeker.id}").json()["data"]

    assert [r["job_id"] for r in data["recommendations"]] == [weak.id]


def test_no_open_jobs(client, auth_client, seeker):
    response = auth_client(seeker).get(f"/api/recommendations/{seeker.id}").json()

    assert response["data"]["recommendations"] == []
    assert response["message"] == "No available jobs found for recommendations"


def test_profile_requirements(client, auth_client, make_user, db_session):
    no_profile = make_user()
    assert auth_client(no_profile).get(f"/api/recommendations/{no_profile.id}").status_code == 404

    draft = make_user()
    db_session.add(UserProfile(user_id=draft.id))
    db_session.commit()
    response = auth_client(draft).get(f"/api/recommendations/{draft.id}")
    assert response.status_code == 400
    assert response.json() == {"error": "Profile must be completed to get recommendations"}


def test_only_self_or_admin_reads(client, auth_client, make_user, seeker, open_jobs):
    stranger = auth_client(make_user())
    admin = auth_client(make_user(role=UserRole.ADMIN))

    assert stranger.get(f"/api/recommendations/{seeker.id}").status_code == 403
    assert admin.get(f"/api/recommendations/{seeker.id}").status_code == 200
    assert stranger.delete(f"/api/recommendations/{seeker.id}").status_code == 403


def test_feedback_and_delete(client, auth_client, seeker, open_jobs):
    strong, weak = open_jobs
    api = auth_client(seeker)
    api.get(f"/api/recommendations/{seeker.id}")

    feedback = api.post(
        f"/api/recommendations/{seeker.id}",
        json={"job_id": strong.id, "is_helpful": True, "feedback": "Spot on"},
    )
    assert feedback.status_code == 200
    assert feedback.json()["data"]["is_helpful"] is True
    assert feedback.json()["data"]["feedback"] == "Spot on"

    missing = api.post(f"/api/recommendations/{seeker.id}", json={"job_id": 999, "rating": 5})
    assert missing.status_code == 404

    one = api.delete(f"/api/recommendations/{seeker.id}", params={"jobId": strong.id}).json()
    assert one["deleted"] == 1
    assert api.delete(f"/api/recommendations/{seeker.id}", params={"jobId": strong.id}).status_code == 404

    rest = api.delete(f"/api/recommendations/{seeker.id}").json()
    assert rest["deleted"] == 1


# ============== Analytics ==============


@pytest.fixture
def rated(db_session, make_user, make_company, make_job):
    """Two seekers with recent ratings, one old rating and one application."""
    company = make_company()
    first = make_job(company, "First", accommodations=["HEARING", "VISUAL"])
    second = make_job(company, "Second", accommodations=["HEARING"])
    old_job = make_job(company, "Old", accommodations=["MOBILITY"])
    alice, bob = make_user(), make_user()

    db_session.add_all(
        [
            RecommendationRating(user_id=alice.id, job_id=first.id, rating=9, match_score=90,
                                 reason="PERFECT_MATCH", is_helpful=True),
            RecommendationRating(user_id=alice.id, job_id=second.id, rating=5, match_score=50,
                                 reason="SOME_INTEREST", is_helpful=False),
            RecommendationRating(user_id=bob.id, job_id=first.id, rating=7, match_score=70,
                                 reason="GOOD_FIT"),
            RecommendationRating(user_id=bob.id, job_id=old_job.id, rating=2, match_score=20,
                                 reason="POOR_MATCH", created_at=utcnow() - timedelta(days=40)),
            JobApplication(job_id=first.id, user_id=alice.id),
        ]
    )
    db_session.commit()
    return {"alice": alice, "bob": bob, "first": first, "second": second}


@pytest.fixture
def admin(auth_client, make_user):
    return auth_client(make_user(role=UserRole.ADMIN))


def test_analytics_summary(client, admin, rated):
    response = admin.get("/api/recommendations/analytics")

    assert response.status_code == 200
    data = response.json()["data"]
    overview = data["overview"]
    assert overview["total_recommendations"] == 3
    assert overview["average_rating"] == pytest.approx(7)
    assert overview["conversion_rate"] == 33.33
    assert overview["period"] == "7d"

    assert data["rating_distribution"] == [
        {"rating": 5, "count": 1},
        {"rating": 7, "count": 1},
        {"rating": 9, "count": 1},
    ]
    assert [r["reason"] for r in data["reason_distribution"]] == [
        "GOOD_FIT",
        "PERFECT_MATCH",
        "SOME_INTEREST",
    ]
    assert data["helpfulness_stats"] == {"helpful": 1, "not_helpful": 1}
    assert data["match_score_stats"] == {"average": 70.0, "minimum": 50.0, "maximum": 90.0}

    top = data["top_rated_jobs"][0]
    assert top["job_id"] == rated["first"].id
    assert top["company_name"] == "Acme Inclusive"
    assert data["user_engagement"][0] == {
        "user_id": rated["alice"].id,
        "recommendation_count": 2,
        "average_rating": 7.0,
    }
    assert data["accommodation_insights"] == [
        {"accommodation": "HEARING", "job_count": 2},
        {"accommodation": "VISUAL", "job_count": 1},
    ]


def test_analytics_period_and_user_filters(client, admin, rated):
    quarter = admin.get("/api/recommendations/analytics", params={"period": "90d"}).json()["data"]
    assert quarter["overview"]["total_recommendations"] == 4

    bob_only = admin.get(
        "/api/recommendations/analytics", params={"userId": rated["bob"].id}
    ).json()["data"]
    assert bob_only["overview"]["total_recommendations"] == 1
    assert bob_only["overview"]["conversion_rate"] == 0

    assert admin.get("/api/recommendations/analytics", params={"period": "1y"}).status_code == 400


def test_analytics_requires_admin(client, auth_client, rated):
    seeker = auth_client(rated["alice"])

    assert client.get("/api/recommendations/analytics").status_code == 401
    denied = seeker.get("/api/recommendations/analytics")
    assert denied.status_code == 403
    assert denied.json() == {"error": "Forbidden: Admin access required"}
    assert seeker.post("/api/recommendations/analytics", json={"action": "cleanup_old"}).status_code == 403


def test_analytics_maintenance_actions(client, admin, rated, db_session):
    def run(**body):
        return admin.post("/api/recommendations/analytics", json=body)

    cleanup = run(action="cleanup_old")
    assert cleanup.status_code == 200
    assert cleanup.json()["data"] == {"deleted_count": 1}

    missing_user = run(action="refresh_user")
    assert missing_user.status_code == 400
    assert missing_user.json() == {"error": "User ID required for refresh action"}

    refreshed = run(action="refresh_user", user_id=rated["alice"].id)
    assert refreshed.json()["data"] == {"deleted_count": 2}
    assert db_session.query(RecommendationRating).count() == 1

    assert run(action="explode").json() == {"error": "Invalid action"}


def test_regenerate_all_clears_stale_recommendations(client, admin, rated, completed_profile, db_session):
    completed_profile(rated["bob"])
    stale = (
        db_session.query(RecommendationRating)
        .filter_by(user_id=rated["bob"].id, job_id=rated["first"].id)
        .one()
    )
    stale.created_at = utcnow() - timedelta(days=2)
    db_session.commit()

    response = admin.post("/api/recommendations/analytics", json={"action": "regenerate_all"})

    assert response.json()["data"] == {"processed_users": 1}
    db_session.expire_all()
    remaining = {(r.user_id, r.job_id) for r in db_session.query(RecommendationRating)}
    # Alice has no completed profile, so her ratings stay
    assert (rated["bob"].id, rated["first"].id) not in remaining
    assert (rated["alice"].id, rated["first"].id) in remaining
