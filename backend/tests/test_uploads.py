"""Tests for profile document and company logo uploads."""

import asyncio
from io import BytesIO

import pytest
from fastapi import UploadFile

from jobboard.core.config import settings
from jobboard.models.enums import UserRole
from jobboard.services import uploads


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


def upload(api, content_type="application/pdf", upload_type="resume", name="My CV.pdf", size=32):
    return api.post(
        "/api/user/upload",
        files={"file": (name, b"x" * size, content_type)},
        data={"type": upload_type},
    )


def test_validate_upload_rules(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)

    assert uploads.validate_upload("resume", "application/pdf", 100) is None
    assert uploads.validate_upload("certification", "image/png", 100) is None
    assert uploads.validate_upload("resume", "image/png", 100) == "File must be PDF, DOC, or DOCX"
    assert uploads.validate_upload("avatar", "image/png", 100).startswith("Invalid file type")
    assert uploads.validate_upload("resume", "application/pdf", 2 * 1024 * 1024) == (
        "File size must be less than 1MB"
    )


def test_safe_filename_strips_paths_and_symbols():
    assert uploads.safe_filename("../../etc/pass wd") == "pass_wd"
    assert uploads.safe_filename("résumé (final).pdf") == "r_sum___final_.pdf"


def test_upload_resume_stores_file_under_user_directory(client, auth_client, make_user, upload_dir):
    user = make_user()
    api = auth_client(user)

    response = upload(api)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["file_name"].startswith(f"{user.id}/resume/")
    assert body["file_name"].endswith("-My_CV.pdf")
    assert (upload_dir / body["file_name"]).read_bytes() == b"x" * 32


def test_upload_rejects_wrong_content_type(client, auth_client, make_user):
    api = auth_client(make_user())

    response = upload(api, content_type="image/png", name="cv.png")

    assert response.status_code == 400
    assert response.json() == {"error": "File must be PDF, DOC, or DOCX"}


def test_certification_accepts_images(client, auth_client, make_user):
    api = auth_client(make_user())

    response = upload(api, content_type="image/jpeg", upload_type="certification", name="cert.jpg")

    assert response.status_code == 200
    assert "/certification/" in response.json()["file_name"]


def test_upload_requires_authentication(client):
    assert upload(client).status_code == 401


def test_delete_own_upload(client, auth_client, make_user, upload_dir):
    api = auth_client(make_user())
    file_name = upload(api).json()["file_name"]

    response = api.delete("/api/user/upload", params={"fileName": file_name})
    assert response.status_code == 200
    assert not (upload_dir / file_name).exists()

    again = api.delete("/api/user/upload", params={"fileName": file_name})
    assert again.status_code == 404


def test_cannot_delete_another_users_upload(client, auth_client, make_user, upload_dir):
    owner = auth_client(make_user())
    intruder_user = make_user()
    intruder = auth_client(intruder_user)
    file_name = upload(owner).json()["file_name"]

    assert intruder.delete("/api/user/upload", params={"fileName": file_name}).status_code == 403

    traversal = f"{intruder_user.id}/../{file_name}"
    response = intruder.delete("/api/user/upload", params={"fileName": traversal})
    assert response.status_code == 403
    assert (upload_dir / file_name).exists()


def test_delete_requires_file_name(client, auth_client, make_user):
    api = auth_client(make_user())

    response = api.delete("/api/user/upload")

    assert response.status_code == 400
    assert response.json() == {"error": "File name is required"}


def test_read_limited_stops_past_the_limit(monkeypatch):
    monkeypatch.setattr(uploads, "CHUNK_SIZE", 4)

    small = UploadFile(file=BytesIO(b"0123456789"))
    assert asyncio.run(uploads.read_limited(small, 10)) == b"0123456789"

    large = UploadFile(file=BytesIO(b"x" * 20))
    assert asyncio.run(uploads.read_limited(large, 9)) is None
    assert large.file.tell() == 12


def test_read_limited_trusts_declared_size():
    declared = UploadFile(file=BytesIO(b"tiny"), size=100)

    assert asyncio.run(uploads.read_limited(declared, 10)) is None
    assert declared.file.tell() == 0


def test_oversized_upload_is_refused(client, auth_client, make_user, upload_dir, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    api = auth_client(make_user())

    response = upload(api, size=1024 * 1024 + 1)

    assert response.status_code == 400
    assert response.json() == {"error": "File size must be less than 1MB"}
    assert list(upload_dir.iterdir()) == []


# ============== Company logos ==============


def logo(api, company_id, content_type="image/png", name="logo.png", size=64):
    return api.post(
        f"/api/companies/{company_id}/logo",
        files={"file": (name, b"x" * size, content_type)},
    )


def test_member_uploads_company_logo(client, auth_client, make_user, make_company, upload_dir):
    company = make_company()
    api = auth_client(make_user(role=UserRole.EMPLOYER, company=company))

    response = logo(api, company.id)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["url"].startswith(f"company-logos/{company.id}/")
    assert data["url"].endswith(".png")
    assert data["company"]["logo"] == data["url"]
    assert (upload_dir / data["url"]).read_bytes() == b"x" * 64


def test_company_logo_rules(client, auth_client, make_user, make_company, upload_dir):
    company = make_company()
    member = auth_client(make_user(role=UserRole.EMPLOYER, company=company))
    outsider = auth_client(make_user(role=UserRole.EMPLOYER, company=make_company("Other")))

    assert logo(outsider, company.id).status_code == 403
    assert logo(member, 999).status_code == 404
    assert logo(client, company.id).status_code == 401

    wrong_type = logo(member, company.id, content_type="application/pdf", name="logo.pdf")
    assert wrong_type.status_code == 400
    assert wrong_type.json() == {"error": "Invalid file type. Only JPEG, PNG, WebP, and SVG are allowed."}

    too_big = logo(member, company.id, size=uploads.LOGO_MAX_BYTES + 1)
    assert too_big.status_code == 400
    assert too_big.json() == {"error": "File too large. Maximum size is 5MB."}
    assert not (upload_dir / "company-logos").exists()
