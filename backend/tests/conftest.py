"""Test configuration and fixtures."""

import os

# Settings are read at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEMINI_API_KEY"] = ""
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobboard.core.config import SESSION_COOKIE_NAME
from jobboard.core.security import generate_session_token, get_password_hash
from jobboard.core.session_store import SessionStore
from jobboard.db.base import Base, utcnow
from jobboard.db.session import get_db
from jobboard.main import app
from jobboard.models import Company, Job, User, UserProfile
from jobboard.models.enums import (
    ExperienceLevel,
    JobStatus,
    ProfileSetupStatus,
    UserRole,
    WorkType,
)
from jobboard.services.jobs import slugify

TEST_PASSWORD = "password123"


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """Anonymous API client bound to the test database."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Create a user; the password is TEST_PASSWORD."""
    counter = {"n": 0}

    def _make_user(role=UserRole.JOB_SEEKER, email=None, company=None, **fields):
        counter["n"] += 1
        name = fields.pop("name", f"User {counter['n']}")
        user = User(
            email=email or f"user{counter['n']}@example.com",
            hashed_password=get_password_hash(TEST_PASSWORD),
            name=name,
            role=role.value,
            company_id=company.id if company else None,
            agree_to_terms=True,
            agree_to_privacy=True,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_client(session_factory, client):
    """Build a client signed in as `user` through a database session cookie."""

    def _auth_client(user):
        db = session_factory()
        try:
            record = SessionStore(db).create(
                generate_session_token(), user.id, utcnow() + timedelta(days=7)
            )
            token = record.session_token
        finally:
            db.close()

        signed_in = TestClient(app)
        signed_in.cookies.set(SESSION_COOKIE_NAME, token)
        return signed_in

    return _auth_client


@pytest.fixture
def make_company(db_session):
    def _make_company(name="Acme Inclusive", **fields):
        fields.setdefault("industry", "Technology")
        company = Company(name=name, **fields)
        db_session.add(company)
        db_session.commit()
        db_session.refresh(company)
        return company

    return _make_company


@pytest.fixture
def make_job(db_session):
    """Create a published, active job unless overridden."""

    def _make_job(company, title="Software Engineer", **fields):
        data = {
            "description": f"{title} role",
            "location": "Remote",
            "work_type": WorkType.FULL_TIME.value,
            "experience": ExperienceLevel.MID_LEVEL.value,
            "status": JobStatus.PUBLISHED.value,
            "is_active": True,
            "published_at": utcnow(),
        }
        data.update(fields)
        base_slug = slugify(title)
        slug = base_slug
        suffix = 1
        while db_session.query(Job).filter(Job.slug == slug).first():
            slug = f"{base_slug}-{suffix}"
            suffix += 1
        job = Job(title=title, slug=slug, company_id=company.id, **data)
        db_session.add(job)
        db_session.commit()
        db_session.refresh(job)
        return job

    return _make_job


@pytest.fixture
def completed_profile(db_session):
    """Attach a COMPLETED profile setup to a user."""

    def _completed_profile(user, **fields):
        data = {
            "full_name": user.name,
            "location": "Toronto, Canada",
            "email": user.email,
            "phone": "+1 416 555 0100",
            "disability_types": ["Hearing impairment"],
            "accommodations": "HEARING",
            "soft_skills": ["Communication"],
            "hard_skills": ["Python", "SQL"],
            "industries": ["Technology"],
            "work_arrangement": "remote",
        }
        data.update(fields)
        profile = UserProfile(
            user_id=user.id,
            status=ProfileSetupStatus.COMPLETED.value,
            current_step=6,
            completed_steps=[1, 2, 3, 4, 5, 6],
            completed_at=utcnow(),
            **data,
        )
        db_session.add(profile)
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _completed_profile
