from enum import Enum


class UserRole(str, Enum):
    JOB_SEEKER = "JOB_SEEKER"
    EMPLOYER = "EMPLOYER"
    ADMIN = "ADMIN"


class CompanySize(str, Enum):
    STARTUP = "STARTUP"
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"
    ENTERPRISE = "ENTERPRISE"


class WorkType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    FREELANCE = "FREELANCE"
    REMOTE = "REMOTE"
    HYBRID = "HYBRID"
    ON_SITE = "ON_SITE"


class ExperienceLevel(str, Enum):
    ENTRY_LEVEL = "ENTRY_LEVEL"
    JUNIOR = "JUNIOR"
    MID_LEVEL = "MID_LEVEL"
    SENIOR = "SENIOR"
    LEAD = "LEAD"
    EXECUTIVE = "EXECUTIVE"


class JobStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"
    EXPIRED = "EXPIRED"


class AccommodationType(str, Enum):
    VISUAL = "VISUAL"
    HEARING = "HEARING"
    MOBILITY = "MOBILITY"
    COGNITIVE = "COGNITIVE"
    MOTOR = "MOTOR"
    SOCIAL = "SOCIAL"
    SENSORY = "SENSORY"
    COMMUNICATION = "COMMUNICATION"
    LEARNING = "LEARNING"
    MENTAL_HEALTH = "MENTAL_HEALTH"


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWING = "REVIEWING"
    INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
    INTERVIEW_COMPLETED = "INTERVIEW_COMPLETED"
    OFFER_EXTENDED = "OFFER_EXTENDED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class ProfileSetupStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class RatingReason(str, Enum):
    PERFECT_MATCH = "PERFECT_MATCH"
    GOOD_FIT = "GOOD_FIT"
    SOME_INTEREST = "SOME_INTEREST"
    NOT_RELEVANT = "NOT_RELEVANT"
    POOR_MATCH = "POOR_MATCH"
    ALREADY_APPLIED = "ALREADY_APPLIED"
    LOCATION_ISSUE = "LOCATION_ISSUE"
    SALARY_MISMATCH = "SALARY_MISMATCH"
    SKILL_MISMATCH = "SKILL_MISMATCH"
    ACCOMMODATION_CONCERN = "ACCOMMODATION_CONCERN"
