"""Tests for job search and management."""

from datetime import timedelta

from jobboard.db.base import utcnow
from jobboard.models.enums import JobStatus, UserRole
from jobboard.services.jobs import slugify


def job_body(company_id, **overrides):
    body = {
        "title": "Data Analyst",
        "description": "Analyse data",
        "company_id": company_id,
        "location": "Remote",
        "work_type": "FULL_TIME",
        "experience": "JUNIOR",
    }
    body.update(overrides)
    return body


def test_slugify():
    assert slugify("Senior  Python Dev (Remote)!") == "senior-python-dev-remote"
    assert slugify("!!!") == "job"


def test_list_only_published_active_jobs(client, make_company, make_job):
    company = make_company()
    make_job(company, "Visible")
    make_job(company, "Draft", status=JobStatus.DRAFT.value)
    make_job(company, "Inactive", is_active=False)

    response = client.get("/api/jobs")

    assert response.status_code == 200
    body = response.json()
    assert [job["title"] for job in body["data"]] == ["Visible"]
    assert body["pagination"] == {
        "page": 1,
        "limit": 10,
        "total_count": 1,
        "total_pages": 1,
        "has_next": False,
        "has_prev": False,
    }


def test_search_matches_title_description_and_company(client, make_company, make_job):
    beacon = make_company("Beacon Health")
    other = make_company("Other Co")
    make_job(beacon, "Nurse")
    make_job(other, "Python Developer")
    make_job(other, "Analyst", description="Heavy python usage")

    def titles(params):
        return sorted(j["title"] for j in client.get("/api/jobs", params=params).json()["data"])

    assert titles({"search": "python"}) == ["Analyst", "Python Developer"]
    assert titles({"search": "beacon"}) == ["Nurse"]


def test_filters(client, make_company, make_job):
    company = make_company()
    make_job(company, "Remote senior", is_remote=True, experience="SENIOR",
             salary_min=90000, salary_max=120000, accommodations=["VISUAL", "MOBILITY"])
    make_job(company, "Onsite junior", work_type="PART_TIME", experience="JUNIOR",
             salary_min=30000, salary_max=40000, accommodations=["HEARING"])

    def titles(params):
        return [j["title"] for j in client.get("/api/jobs", params=params).json()["data"]]

    assert titles({"experience": ["SENIOR"]}) == ["Remote senior"]
    assert titles({"work_type": ["PART_TIME"]}) == ["Onsite junior"]
    assert titles({"is_remote": "true"}) == ["Remote senior"]
    assert titles({"salary_min": 100000}) == ["Remote senior"]
    assert titles({"salary_max": 35000}) == ["Onsite junior"]
    assert titles({"accommodations": ["HEARING"]}) == ["Onsite junior"]
    assert sorted(titles({"accommodations": ["HEARING", "VISUAL"]})) == [
        "Onsite junior",
        "Remote senior",
    ]


def test_pagination_and_sorting(client, make_company, make_job):
    company = make_company()
    for index, title in enumerate(["Alpha", "Bravo", "Charlie"]):
        make_job(company, title, salary_min=1000 * (index + 1))

    response = client.get(
        "/api/jobs", params={"limit": 2, "page": 1, "sort_by": "title", "sort_order": "asc"}
    ).json()
    assert [j["title"] for j in response["data"]] == ["Alpha", "Bravo"]
    assert response["pagination"]["has_next"] is True

    second = client.get(
        "/api/jobs", params={"limit": 2, "page": 2, "sort_by": "title", "sort_order": "asc"}
    ).json()
    assert [j["title"] for j in second["data"]] == ["Charlie"]
    assert second["pagination"]["has_prev"] is True

    assert client.get("/api/jobs", params={"sort_by": "hashed_password"}).status_code == 400


def test_get_job_counts_views(client, make_company, make_job):
    job = make_job(make_company())

    client.get(f"/api/jobs/{job.id}")
    response = client.get(f"/api/jobs/{job.id}")

    assert response.status_code == 200
    assert response.json()["data"]["view_count"] == 2
    assert response.json()["data"]["company"]["name"] == "Acme Inclusive"
    assert client.get("/api/jobs/999").status_code == 404


def test_employer_creates_job_for_own_company(client, auth_client, make_user, make_company):
    company = make_company()
    api = auth_client(make_user(role=UserRole.EMPLOYER, company=company))

    draft = api.post("/api/jobs", json=job_body(company.id))
    assert draft.status_code == 201
    assert draft.json()["data"]["status"] == "DRAFT"
    assert draft.json()["data"]["published_at"] is None
    assert draft.json()["data"]["slug"] == "data-analyst"

    published = api.post(
        "/api/jobs",
        json=job_body(company.id, status="PUBLISHED", is_active=True, accommodations=["VISUAL"]),
    )
    assert published.status_code == 201
    data = published.json()["data"]
    assert data["slug"] == "data-analyst-1"
    assert data["published_at"] is not None
    assert data["accommodations"] == ["VISUAL"]


def test_create_job_permissions(client, auth_client, make_user, make_company):
    company = make_company()
    outsider = auth_client(make_user(role=UserRole.EMPLOYER, company=make_company("Other")))
    seeker = auth_client(make_user())
    admin = auth_client(make_user(role=UserRole.ADMIN))

    assert client.post("/api/jobs", json=job_body(company.id)).status_code == 401
    assert outsider.post("/api/jobs", json=job_body(company.id)).status_code == 403
    assert seeker.post("/api/jobs", json=job_body(company.id)).status_code == 403
    assert admin.post("/api/jobs", json=job_body(company.id)).status_code == 201
    assert admin.post("/api/jobs", json=job_body(999)).status_code == 404


def test_create_job_validates_salary_range(client, auth_client, make_user, make_company):
    company = make_company()
    api = auth_client(make_user(role=UserRole.ADMIN))

    response = api.post("/api/jobs", json=job_body(company.id, salary_min=5000, salary_max=1000))

    assert response.status_code == 400
    assert response.json()["error"] == "Validation failed"


def test_update_job(client, auth_client, make_user, make_company, make_job):
    company = make_company()
    job = make_job(
        company, "Old title", status=JobStatus.DRAFT.value, published_at=None, salary_max=50000
    )
    api = auth_client(make_user(role=UserRole.EMPLOYER, company=company))

    response = api.put(f"/api/jobs/{job.id}", json={"title": "New title", "status": "PUBLISHED"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["slug"] == "new-title"
    assert data["published_at"] is not None

    # Merged with the stored maximum
    bad = api.put(f"/api/jobs/{job.id}", json={"salary_min": 60000})
    assert bad.status_code == 400
    assert bad.json() == {"error": "Minimum salary must be less than or equal to maximum salary"}


def test_delete_job(client, auth_client, make_user, make_company, make_job):
    company = make_company()
    job = make_job(company)
    outsider = auth_client(make_user(role=UserRole.EMPLOYER))
    member = auth_client(make_user(role=UserRole.EMPLOYER, company=company))

    assert outsider.delete(f"/api/jobs/{job.id}").status_code == 403
    assert member.delete(f"/api/jobs/{job.id}").status_code == 200
    assert client.get(f"/api/jobs/{job.id}").status_code == 404


def test_deadline_is_serialized(client, make_company, make_job):
    deadline = (utcnow() + timedelta(days=10)).replace(microsecond=0)
    job = make_job(make_company(), application_deadline=deadline)

    data = client.get(f"/api/jobs/{job.id}").json()["data"]

    assert data["application_deadline"].startswith(deadline.isoformat()[:16])
