"""
Credential helpers.

Passwords are stored as bcrypt hashes. The token provider signs user claims
as an HS256 JWT; database sessions and password resets use opaque random
tokens.
"""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from jobboard.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """
    Hash a password with bcrypt.

    Args:
        password: The plain text password

    Returns:
        The bcrypt hash to store on the user
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Check a plain password against a stored hash.

    Args:
        plain_password: The password as submitted
        hashed_password: The stored hash; admin-created accounts have none

    Returns:
        True if the password matches, False otherwise (always False
        for an account without a password)
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def sign_claims(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign user claims for the auth token cookie.

    Args:
        claims: Claims to sign; must carry "sub" (the user id)
        expires_delta: Custom lifetime, AUTH_TOKEN_EXPIRE_DAYS otherwise

    Returns:
        The encoded JWT with "iat" and "exp" added
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(days=settings.AUTH_TOKEN_EXPIRE_DAYS)
    payload = {**claims, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_signed_claims(token: str) -> Optional[dict]:
    """
    Decode and verify a token produced by sign_claims.

    Args:
        token: The encoded JWT from the cookie

    Returns:
        The claims, or None for a bad signature, an expired or garbled token
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except InvalidTokenError:
        return None


def generate_session_token() -> str:
    """Opaque token for a database session (a random UUID4)."""
    return str(uuid.uuid4())


def generate_reset_token() -> str:
    """
    Generate a password reset token.

    Returns:
        64 hex characters from the system CSPRNG
    """
    return secrets.token_hex(32)
