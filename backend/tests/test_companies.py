"""Tests for company endpoints."""

from jobboard.models import User
from jobboard.models.enums import JobStatus, UserRole


def test_list_companies_counts_active_jobs(client, make_company, make_job):
    acme = make_company("Acme Inclusive")
    make_company("Beacon Health", industry="Healthcare")
    make_job(acme, "Engineer")
    make_job(acme, "Draft role", status=JobStatus.DRAFT.value)

    response = client.get("/api/companies")

    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["data"]] == ["Acme Inclusive", "Beacon Health"]
    assert body["data"][0]["active_job_count"] == 1
    assert body["data"][1]["active_job_count"] == 0
    assert body["pagination"]["total"] == 2

    filtered = client.get("/api/companies", params={"industry": "Healthcare"}).json()
    assert [c["name"] for c in filtered["data"]] == ["Beacon Health"]


def test_employer_creating_company_becomes_member(client, auth_client, make_user, db_session):
    employer = make_user(role=UserRole.EMPLOYER)
    api = auth_client(employer)

    response = api.post(
        "/api/companies", json={"name": "  Northwind  ", "size": "SMALL", "values": ["Respect"]}
    )

    assert response.status_code == 201
    company = response.json()["data"]
    assert company["name"] == "Northwind"
    assert company["size"] == "SMALL"
    db_session.expire_all()
    assert db_session.get(User, employer.id).company_id == company["id"]


def test_create_company_requires_name(client, auth_client, make_user):
    api = auth_client(make_user(role=UserRole.EMPLOYER))

    response = api.post("/api/companies", json={"name": ""})

    assert response.status_code == 400


def test_get_company_includes_open_jobs(client, make_company, make_job):
    company = make_company()
    make_job(company, "Open role")
    make_job(company, "Paused role", status=JobStatus.PAUSED.value)

    response = client.get(f"/api/companies/{company.id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert [job["title"] for job in data["jobs"]] == ["Open role"]
    assert client.get("/api/companies/999").status_code == 404


def test_only_members_or_admins_update_company(client, auth_client, make_user, make_company):
    company = make_company()
    member = auth_client(make_user(role=UserRole.EMPLOYER, company=company))
    outsider = auth_client(make_user(role=UserRole.EMPLOYER))
    admin = auth_client(make_user(role=UserRole.ADMIN))

    assert outsider.put(f"/api/companies/{company.id}", json={"location": "Oslo"}).status_code == 403

    response = member.put(f"/api/companies/{company.id}", json={"location": "Oslo"})
    assert response.status_code == 200
    assert response.json()["data"]["location"] == "Oslo"

    assert admin.put(f"/api/companies/{company.id}", json={"culture": "Kind"}).status_code == 200


def test_company_with_active_jobs_cannot_be_deleted(
    client, auth_client, make_user, make_company, make_job, db_session
):
    company = make_company()
    member_user = make_user(role=UserRole.EMPLOYER, company=company)
    member = auth_client(member_user)
    job = make_job(company)

    response = member.delete(f"/api/companies/{company.id}")
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete company with active jobs"}

    job.is_active = False
    db_session.commit()

    assert member.delete(f"/api/companies/{company.id}").status_code == 200
    assert client.get(f"/api/companies/{company.id}").status_code == 404
    db_session.expire_all()
    assert db_session.get(User, member_user.id).company_id is None


def test_company_link_alone_does_not_grant_management(client, auth_client, make_user, make_company):
    company = make_company()
    linked_seeker = auth_client(make_user(company=company))

    response = linked_seeker.put(f"/api/companies/{company.id}", json={"location": "Oslo"})

    assert response.status_code == 403
    assert response.json() == {"error": "You can only manage your own company"}
    assert linked_seeker.delete(f"/api/companies/{company.id}").status_code == 403
