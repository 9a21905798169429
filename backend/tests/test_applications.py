"""Tests for job applications and saved jobs."""

from datetime import timedelta

from jobboard.db.base import utcnow
from jobboard.models import Job
from jobboard.models.enums import JobStatus, UserRole


def test_apply_increments_application_count(client, auth_client, make_user, make_company, make_job, db_session):
    job = make_job(make_company())
    api = auth_client(make_user())

    response = api.post(
        "/api/jobs/applications",
        json={
            "job_id": job.id,
            "cover_letter": "I would love to join.",
            "custom_answers": [{"question": "Start date?", "answer": "June"}],
        },
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "PENDING"
    assert data["custom_answers"] == [{"question": "Start date?", "answer": "June"}]
    assert data["job"]["company_name"] == "Acme Inclusive"
    db_session.expire_all()
    assert db_session.get(Job, job.id).application_count == 1


def test_cannot_apply_twice(client, auth_client, make_user, make_company, make_job):
    job = make_job(make_company())
    api = auth_client(make_user())

    assert api.post("/api/jobs/applications", json={"job_id": job.id}).status_code == 201
    again = api.post("/api/jobs/applications", json={"job_id": job.id})

    assert again.status_code == 409
    assert again.json() == {"error": "You have already applied to this job"}


def test_cannot_apply_to_closed_or_expired_jobs(client, auth_client, make_user, make_company, make_job):
    company = make_company()
    draft = make_job(company, "Draft", status=JobStatus.DRAFT.value)
    expired = make_job(company, "Expired", application_deadline=utcnow() - timedelta(days=1))
    api = auth_client(make_user())

    assert api.post("/api/jobs/applications", json={"job_id": draft.id}).status_code == 409
    assert api.post("/api/jobs/applications", json={"job_id": expired.id}).status_code == 409
    assert api.post("/api/jobs/applications", json={"job_id": 999}).status_code == 404


def test_list_my_applications(client, auth_client, make_user, make_company, make_job):
    company = make_company()
    first, second = make_job(company, "First"), make_job(company, "Second")
    api = auth_client(make_user())
    other = auth_client(make_user())
    api.post("/api/jobs/applications", json={"job_id": first.id})
    api.post("/api/jobs/applications", json={"job_id": second.id})
    other.post("/api/jobs/applications", json={"job_id": first.id})

    response = api.get("/api/jobs/applications").json()

    assert response["pagination"]["total"] == 2
    assert {a["job_id"] for a in response["data"]} == {first.id, second.id}
    assert api.get("/api/jobs/applications", params={"status": "ACCEPTED"}).json()["data"] == []


def test_employer_reviews_application(client, auth_client, make_user, make_company, make_job):
    company = make_company()
    job = make_job(company)
    seeker = auth_client(make_user())
    employer = auth_client(make_user(role=UserRole.EMPLOYER, company=company))
    outsider = auth_client(make_user(role=UserRole.EMPLOYER, company=make_company("Other")))
    application_id = seeker.post("/api/jobs/applications", json={"job_id": job.id}).json()["data"]["id"]

    assert outsider.get(f"/api/jobs/applications/{application_id}").status_code == 403
    assert outsider.put(
        f"/api/jobs/applications/{application_id}", json={"status": "REVIEWING"}
    ).status_code == 403
    assert seeker.put(
        f"/api/jobs/applications/{application_id}", json={"status": "ACCEPTED"}
    ).status_code == 403

    interview = employer.put(
        f"/api/jobs/applications/{application_id}",
        json={"status": "INTERVIEW_SCHEDULED", "interview_at": "2030-05-01T10:00:00Z"},
    )
    assert interview.status_code == 200
    data = interview.json()["data"]
    assert data["status"] == "INTERVIEW_SCHEDULED"
    assert data["interview_at"].startswith("2030-05-01T10:00:00")

    rejected = employer.put(
        f"/api/jobs/applications/{application_id}",
        json={"status": "REJECTED", "employer_notes": "Position filled"},
    ).json()["data"]
    assert rejected["rejected_at"] is not None
    assert rejected["employer_notes"] == "Position filled"

    assert seeker.get(f"/api/jobs/applications/{application_id}").status_code == 200


def test_withdraw_application(client, auth_client, make_user, make_company, make_job, db_session):
    job = make_job(make_company())
    seeker = auth_client(make_user())
    stranger = auth_client(make_user())
    application_id = seeker.post("/api/jobs/applications", json={"job_id": job.id}).json()["data"]["id"]

    assert stranger.delete(f"/api/jobs/applications/{application_id}").status_code == 403

    response = seeker.delete(f"/api/jobs/applications/{application_id}")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "WITHDRAWN"
    db_session.expire_all()
    assert db_session.get(Job, job.id).application_count == 0

    # Withdrawing again changes nothing
    assert seeker.delete(f"/api/jobs/applications/{application_id}").status_code == 200
    db_session.expire_all()
    assert db_session.get(Job, job.id).application_count == 0


def test_cannot_withdraw_decided_application(client, auth_client, make_user, make_company, make_job):
    company = make_company()
    job = make_job(company)
    seeker = auth_client(make_user())
    employer = auth_client(make_user(role=UserRole.EMPLOYER, company=company))
    application_id = seeker.post("/api/jobs/applications", json={"job_id": job.id}).json()["data"]["id"]
    employer.put(f"/api/jobs/applications/{application_id}", json={"status": "ACCEPTED"})

    assert seeker.delete(f"/api/jobs/applications/{application_id}").status_code == 409


# ============== Saved jobs ==============


def test_save_and_unsave_job(client, auth_client, make_user, make_company, make_job):
    job = make_job(make_company())
    api = auth_client(make_user())

    saved = api.post("/api/jobs/saved", json={"job_id": job.id})
    assert saved.status_code == 201
    assert saved.json()["data"]["job_title"] == job.title

    duplicate = api.post("/api/jobs/saved", json={"job_id": job.id})
    assert duplicate.status_code == 409
    assert duplicate.json() == {"error": "Job already saved"}

    listing = api.get("/api/jobs/saved").json()
    assert listing["total"] == 1
    assert listing["data"][0]["company_name"] == "Acme Inclusive"

    assert api.delete("/api/jobs/saved", params={"jobId": job.id}).status_code == 200
    assert api.get("/api/jobs/saved").json()["total"] == 0
    assert api.delete("/api/jobs/saved", params={"jobId": job.id}).status_code == 404


def test_saved_jobs_are_private(client, auth_client, make_user, make_company, make_job):
    job = make_job(make_company())
    owner = auth_client(make_user())
    stranger = auth_client(make_user())
    saved_id = owner.post("/api/jobs/saved", json={"job_id": job.id}).json()["data"]["id"]

    assert stranger.get(f"/api/jobs/saved/{saved_id}").status_code == 403
    assert stranger.delete(f"/api/jobs/saved/{saved_id}").status_code == 403
    assert stranger.get("/api/jobs/saved").json()["total"] == 0

    assert owner.get(f"/api/jobs/saved/{saved_id}").status_code == 200
    assert owner.delete(f"/api/jobs/saved/{saved_id}").status_code == 200
    assert owner.get(f"/api/jobs/saved/{saved_id}").status_code == 404


def test_save_unknown_job(client, auth_client, make_user):
    api = auth_client(make_user())

    assert api.post("/api/jobs/saved", json={"job_id": 999}).status_code == 404


def test_reviewer_cannot_withdraw_or_revive(client, auth_client, make_user, make_company, make_job, db_session):
    company = make_company()
    job = make_job(company)
    seeker = auth_client(make_user())
    employer = auth_client(make_user(role=UserRole.EMPLOYER, company=company))
    application_id = seeker.post("/api/jobs/applications", json={"job_id": job.id}).json()["data"]["id"]

    withdraw = employer.put(f"/api/jobs/applications/{application_id}", json={"status": "WITHDRAWN"})
    assert withdraw.status_code == 409
    assert withdraw.json() == {"error": "Only the applicant can withdraw an application"}
    db_session.expire_all()
    assert db_session.get(Job, job.id).application_count == 1

    seeker.delete(f"/api/jobs/applications/{application_id}")
    revive = employer.put(f"/api/jobs/applications/{application_id}", json={"status": "PENDING"})
    assert revive.status_code == 409
    assert seeker.get(f"/api/jobs/applications/{application_id}").json()["data"]["status"] == "WITHDRAWN"
    db_session.expire_all()
    assert db_session.get(Job, job.id).application_count == 0

    # Notes alone are still accepted
    notes = employer.put(f"/api/jobs/applications/{application_id}", json={"employer_notes": "Withdrew"})
    assert notes.status_code == 200


def test_application_status_summary(client, auth_client, make_user, make_company, make_job):
    company = make_company()
    jobs = [make_job(company, f"Role {n}") for n in range(7)]
    seeker = auth_client(make_user())
    other = auth_client(make_user())
    ids = [
        seeker.post("/api/jobs/applications", json={"job_id": job.id}).json()["data"]["id"]
        for job in jobs[:6]
    ]
    other.post("/api/jobs/applications", json={"job_id": jobs[6].id})
    seeker.delete(f"/api/jobs/applications/{ids[0]}")

    response = seeker.get("/api/jobs/applications/status")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_applications"] == 6
    assert data["status_summary"] == {"PENDING": 5, "WITHDRAWN": 1}
    assert len(data["recent_applications"]) == 5
    assert client.get("/api/jobs/applications/status").status_code == 401
