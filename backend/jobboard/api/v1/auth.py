"""
Authentication API endpoints.

Handles registration, login (database session cookie), token sign-in
(signed provider cookie), logout and password reset.
"""

import logging
import re
from datetime import timedelta
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from jobboard.api.deps import get_current_user, get_token_provider
from jobboard.core.config import REMEMBER_ME_COOKIE, SESSION_COOKIE_NAME, settings
from jobboard.core.security import (
    generate_reset_token,
    generate_session_token,
    get_password_hash,
    verify_password,
)
from jobboard.core.session_resolver import AuthenticatedUser, TokenProvider
from jobboard.core.session_store import SessionStore, UserDirectory
from jobboard.db.base import utcnow
from jobboard.db.session import get_db
from jobboard.models import User, UserProfile, VerificationToken
from jobboard.models.enums import UserRole

logger = logging.getLogger("auth")

router = APIRouter()

EMAIL_PATTERN = r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$"

GENERIC_RESET_MESSAGE = "If an account with that email exists, we have sent a password reset link."


def normalize_email(value: str) -> str:
    """Validate email format and lowercase it."""
    value = value.strip()
    if not re.match(EMAIL_PATTERN, value):
        raise ValueError("Invalid email address")
    return value.lower()


# ============== Pydantic Schemas ==============


class UserRegister(BaseModel):
    """Schema for user registration."""

    first_name: str
    last_name: str
    email: str
    password: str
    role: UserRole
    agree_to_terms: bool
    agree_to_privacy: bool
    subscribe_newsletter: bool = True

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("Role must be either JOB_SEEKER or EMPLOYER")
        return v

    @field_validator("agree_to_terms", "agree_to_privacy")
    @classmethod
    def must_agree(cls, v: bool) -> bool:
        if not v:
            raise ValueError("You must agree to the terms of service and privacy policy")
        return v


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: str
    password: str
    remember: bool = False

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class UserResponse(BaseModel):
    """Schema for user response (without password)."""

    id: int
    email: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    image: Optional[str] = None
    is_profile_complete: bool = False

    class Config:
        from_attributes = True


class Token(BaseModel):
    """Schema for JWT token response."""

    access_token: str
    token_type: str = "bearer"


class EmailRequest(BaseModel):
    email: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    token: str
    email: str
    password: str
    confirm_password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        if not v:
            raise ValueError("Reset token is required")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


# ============== Helper Functions ==============


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by email and password."""
    user = UserDirectory(db).find_by_email(email)
    if not user or user.deleted_at is not None:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def start_session(db: Session, response: Response, user: User, remember: bool = False):
    """Create a database session and set its cookie on the response."""
    days = settings.REMEMBER_ME_EXPIRE_DAYS if remember else settings.SESSION_EXPIRE_DAYS
    expires_at = utcnow() + timedelta(days=days)
    record = SessionStore(db).create(generate_session_token(), user.id, expires_at)

    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=record.session_token,
        max_age=days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )

    if remember:
        response.set_cookie(
            key=REMEMBER_ME_COOKIE,
            value="true",
            max_age=settings.REMEMBER_ME_EXPIRE_DAYS * 24 * 60 * 60,
            httponly=False,
            secure=settings.is_production,
            samesite="lax",
            path="/",
        )

    return record


# ============== API Endpoints ==============


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(user_data: UserRegister, response: Response, db: Session = Depends(get_db)):
    """
    Register a new user.

    Creates the account with an empty profile setup and signs the user in
    with a database session.
    """
    if UserDirectory(db).find_by_email(user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists",
        )

    new_user = User(
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        name=f"{user_data.first_name} {user_data.last_name}",
        role=user_data.role.value,
        agree_to_terms=user_data.agree_to_terms,
        agree_to_privacy=user_data.agree_to_privacy,
        subscribe_newsletter=user_data.subscribe_newsletter,
    )
    new_user.profile = UserProfile()

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    start_session(db, response, new_user)
    logger.info("Registered user %s as %s", new_user.id, new_user.role)

    return {
        "message": "User created successfully",
        "user": UserResponse.model_validate(new_user),
        "auto_sign_in": True,
    }


@router.post("/login")
async def login(credentials: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """
    Login with email and password.

    Creates a database session (7 days, or 30 with `remember`) and sets the
    session cookie.
    """
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    record = start_session(db, response, user, remember=credentials.remember)

    return {
        "message": "Login successful",
        "user": UserResponse.model_validate(user),
        "session": {"expires": record.expires.isoformat()},
    }


@router.post("/token", response_model=Token)
async def issue_token(
    credentials: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    provider: TokenProvider = Depends(get_token_provider),
):
    """
    Credentials sign-in through the token provider.

    The signed token is returned and also set as the provider cookie.
    """
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token = provider.issue(user)
    response.set_cookie(
        key=provider.cookie_name,
        value=access_token,
        max_age=settings.AUTH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )

    return Token(access_token=access_token)


@router.get("/session")
async def get_session(current_user: AuthenticatedUser = Depends(get_current_user)):
    """Return the signed-in user, whichever mechanism authenticated them."""
    return {"user": current_user}


@router.delete("/session")
async def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    provider: TokenProvider = Depends(get_token_provider),
):
    """Logout: drop the database session (if any) and clear every auth cookie."""
    session_token = request.cookies.get(SESSION_COOKIE_NAME)
    if session_token:
        SessionStore(db).delete_by_token(session_token)

    for cookie_name in (SESSION_COOKIE_NAME, provider.cookie_name, REMEMBER_ME_COOKIE):
        response.delete_cookie(
            key=cookie_name,
            path="/",
            secure=settings.is_production,
            samesite="lax",
        )

    return {"message": "Logged out successfully"}


@router.post("/check-email")
async def check_email(payload: EmailRequest, db: Session = Depends(get_db)):
    """Report whether an account exists for the email."""
    if not payload.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required")

    existing = UserDirectory(db).find_by_email(payload.email.strip().lower())
    return {"exists": existing is not None}


@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Start a password reset.

    The response never reveals whether the account exists. The reset link
    is logged (there is no mail transport); in development it is also
    returned.
    """
    user = UserDirectory(db).find_by_email(payload.email)
    if not user:
        return {"message": GENERIC_RESET_MESSAGE}

    reset_token = VerificationToken(
        identifier=payload.email,
        token=generate_reset_token(),
        expires=utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
    )
    db.add(reset_token)
    db.commit()

    reset_url = (
        f"{settings.APP_URL}/auth/reset-password"
        f"?token={reset_token.token}&email={quote(payload.email)}"
    )
    logger.info("Password reset link: %s", reset_url)

    body = {"message": GENERIC_RESET_MESSAGE}
    if settings.ENVIRONMENT.lower() == "development":
        body["reset_url"] = reset_url
    return body


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Complete a password reset with a single-use token."""
    token_query = db.query(VerificationToken).filter(
        VerificationToken.identifier == payload.email,
        VerificationToken.token == payload.token,
    )
    reset_token = token_query.first()

    if not reset_token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token",
        )

    if reset_token.expires <= utcnow():
        token_query.delete(synchronize_session=False)
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Reset token has expired. Please request a new one.",
        )

    user = UserDirectory(db).find_by_email(payload.email)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.hashed_password = get_password_hash(payload.password)
    token_query.delete(synchronize_session=False)
    db.commit()

    return {
        "message": "Password has been reset successfully. You can now sign in with your new password."
    }
