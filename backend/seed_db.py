"""
Inclusive Jobs Database Seeder

Creates test users and a small catalogue of jobs:
- An admin
- An employer linked to Brightpath Labs
- A job seeker (Maya Patel) with a completed profile setup
- Published jobs with accommodations, ready for recommendations
"""

from jobboard.core.security import get_password_hash
from jobboard.db.base import Base, utcnow
from jobboard.db.session import SessionLocal, engine
from jobboard.models import Company, Job, User, UserProfile
from jobboard.models.enums import (
    AccommodationType,
    CompanySize,
    ExperienceLevel,
    JobStatus,
    ProfileSetupStatus,
    UserRole,
    WorkType,
)
from jobboard.services.jobs import slugify


def seed_database():
    """Seed the database with test data."""

    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        # Check if already seeded
        existing_admin = db.query(User).filter(User.email == "admin@inclusivejobs.dev").first()
        if existing_admin:
            print("Database already seeded. Skipping...")
            return

        print("Seeding database...")

        # 1. Admin
        admin = User(
            email="admin@inclusivejobs.dev",
            hashed_password=get_password_hash("admin12345"),
            name="Site Admin",
            role=UserRole.ADMIN.value,
            agree_to_terms=True,
            agree_to_privacy=True,
        )
        db.add(admin)

        # 2. Company and its employer
        company = Company(
            name="Brightpath Labs",
            description="Accessibility-first software studio.",
            website="https://brightpath.example.com",
            size=CompanySize.SMALL.value,
            industry="Technology",
            location="Toronto, Canada",
            values=["Accessibility", "Flexibility", "Respect"],
            contact_email="jobs@brightpath.example.com",
        )
        db.add(company)
        db.flush()  # Get IDs

        employer = User(
            email="hiring@brightpath.example.com",
            hashed_password=get_password_hash("employer123"),
            name="Daniel Okafor",
            first_name="Daniel",
            last_name="Okafor",
            role=UserRole.EMPLOYER.value,
            company_id=company.id,
            agree_to_terms=True,
            agree_to_privacy=True,
        )
        db.add(employer)

        # 3. Job seeker with a completed profile
        seeker = User(
            email="maya.patel@example.com",
            hashed_password=get_password_hash("seeker123"),
            name="Maya Patel",
            first_name="Maya",
            last_name="Patel",
            role=UserRole.JOB_SEEKER.value,
            is_profile_complete=True,
            agree_to_terms=True,
            agree_to_privacy=True,
        )
        db.add(seeker)
        db.flush()

        db.add(
            UserProfile(
                user_id=seeker.id,
                status=ProfileSetupStatus.COMPLETED.value,
                current_step=6,
                completed_steps=[1, 2, 3, 4, 5, 6],
                full_name="Maya Patel",
                location="Toronto, Canada",
                email="maya.patel@example.com",
                phone="+1 416 555 0142",
                disability_types=["Hearing impairment"],
                assistive_tech=["Captioning software"],
                accommodations="HEARING, COMMUNICATION",
                soft_skills=["Communication", "Teamwork"],
                hard_skills=["Python", "SQL", "Data analysis"],
                industries=["Technology"],
                work_arrangement="remote",
                education=[
                    {"degree": "B.Sc. Statistics", "institution": "University of Toronto", "year": "2020"}
                ],
                experience=[
                    {"title": "Data Analyst", "company": "Northwind", "duration": "3 years"}
                ],
                custom_summary="Analyst who turns messy data into clear decisions.",
                completed_at=utcnow(),
            )
        )

        # 4. Published jobs
        jobs = [
            {
                "title": "Junior Data Analyst",
                "description": "Build dashboards and reports with Python and SQL.",
                "requirements": ["Python", "SQL"],
                "preferred_skills": ["Data analysis", "Communication"],
                "location": "Remote",
                "work_type": WorkType.FULL_TIME.value,
                "is_remote": True,
                "experience": ExperienceLevel.JUNIOR.value,
                "salary_min": 55000,
                "salary_max": 70000,
                "accommodations": [AccommodationType.HEARING.value, AccommodationType.COMMUNICATION.value],
                "accommodation_details": "Captioned meetings and written-first communication.",
            },
            {
                "title": "Backend Engineer",
                "description": "Design FastAPI services for our accessibility platform.",
                "requirements": ["Python", "FastAPI", "PostgreSQL"],
                "location": "Toronto, Canada",
                "work_type": WorkType.HYBRID.value,
                "is_hybrid": True,
                "experience": ExperienceLevel.MID_LEVEL.value,
                "salary_min": 90000,
                "salary_max": 120000,
                "accommodations": [AccommodationType.MOBILITY.value, AccommodationType.VISUAL.value],
            },
            {
                "title": "Customer Support Specialist",
                "description": "Help customers over chat and email.",
                "requirements": ["Communication", "Empathy"],
                "location": "Vancouver, Canada",
                "work_type": WorkType.ON_SITE.value,
                "experience": ExperienceLevel.ENTRY_LEVEL.value,
                "salary_min": 40000,
                "salary_max": 50000,
                "accommodations": [AccommodationType.COGNITIVE.value],
            },
        ]
        for data in jobs:
            db.add(
                Job(
                    **data,
                    slug=slugify(data["title"]),
                    company_id=company.id,
                    status=JobStatus.PUBLISHED.value,
                    is_active=True,
                    published_at=utcnow(),
                )
            )

        # Commit all changes
        db.commit()

        print("Database seeded successfully!")
        print("\nCreated Users:")
        print("   - admin@inclusivejobs.dev (password: admin12345) [ADMIN]")
        print("   - hiring@brightpath.example.com (password: employer123) [EMPLOYER]")
        print("   - maya.patel@example.com (password: seeker123) [PROFILE COMPLETED]")
        print(f"\nCreated {len(jobs)} published jobs at Brightpath Labs")

    except Exception as e:
        db.rollback()
        print(f"Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
