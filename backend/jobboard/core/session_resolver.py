"""
Dual-mode session resolution.

A request is authenticated by either of two independent mechanisms:

1. The token provider: a signed JWT in its own cookie. Verified in memory,
   no storage I/O. When it names a user it wins outright.
2. The database session: an opaque token in the session cookie, looked up in
   the SessionStore and checked against its expiry. Expired records are
   removed on read.

Both paths produce the same AuthenticatedUser, so route handlers never need
to know which one applied.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from jobboard.core.config import SESSION_COOKIE_NAME, settings
from jobboard.core.security import read_signed_claims, sign_claims
from jobboard.db.base import utcnow

logger = logging.getLogger("sessions")


class AuthenticatedUser(BaseModel):
    """Normalized identity handed to route handlers."""

    id: int
    email: Optional[str] = None
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image: Optional[str] = None
    role: Optional[str] = None
    is_profile_complete: bool = False
    company_id: Optional[int] = None

    @classmethod
    def from_user(cls, user: Any) -> "AuthenticatedUser":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            first_name=user.first_name,
            last_name=user.last_name,
            image=user.image,
            role=user.role,
            is_profile_complete=bool(user.is_profile_complete),
            company_id=user.company_id,
        )

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "AuthenticatedUser":
        return cls(
            id=claims["sub"],
            email=claims.get("email"),
            name=claims.get("name"),
            first_name=claims.get("firstName"),
            last_name=claims.get("lastName"),
            image=claims.get("picture"),
            role=claims.get("role"),
            is_profile_complete=bool(claims.get("isProfileComplete")),
            company_id=claims.get("companyId"),
        )


def build_claims(user: Any) -> dict:
    """JWT claims for a user; the subject is the user id as a string."""
    return {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "picture": user.image,
        "role": user.role,
        "isProfileComplete": bool(user.is_profile_complete),
        "companyId": user.company_id,
    }


class TokenProvider:
    """Stateless signed-cookie authentication."""

    def __init__(self, cookie_name: Optional[str] = None):
        self.cookie_name = cookie_name or settings.AUTH_TOKEN_COOKIE

    def issue(self, user: Any, expires_delta: Optional[timedelta] = None) -> str:
        return sign_claims(build_claims(user), expires_delta)

    def read_user(self, cookies: Mapping[str, str]) -> Optional[AuthenticatedUser]:
        """Claims from the provider cookie, or None when missing, invalid or malformed."""
        token = cookies.get(self.cookie_name)
        if not token:
            return None

        payload = read_signed_claims(token)
        if not payload or not payload.get("sub"):
            return None

        try:
            return AuthenticatedUser.from_claims(payload)
        except ValidationError:
            logger.warning("Discarding provider token with malformed claims")
            return None


# ============== Pure session decision ==============


@dataclass(frozen=True)
class DeleteSession:
    """Side effect: remove the session record with this token."""

    token: str


@dataclass(frozen=True)
class SessionDecision:
    user_id: Optional[int]
    effects: tuple = ()

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None


def evaluate_session(record: Any, now: datetime) -> SessionDecision:
    """
    Decide what a stored session record means at time `now`.

    Returns the owning user id for a live session. An expired session
    (expires <= now) yields no user plus a DeleteSession effect for the
    caller to execute; a missing record yields nothing at all.
    """
    if record is None:
        return SessionDecision(user_id=None)
    if record.expires <= now:
        return SessionDecision(user_id=None, effects=(DeleteSession(record.session_token),))
    return SessionDecision(user_id=record.user_id)


# ============== Resolver ==============


class SessionResolver:
    """
    Resolve a request's cookies to an AuthenticatedUser or None.

    `sessions` needs find_by_token/delete_by_token and `users` needs
    find_by_id; see jobboard.core.session_store.
    """

    def __init__(
        self,
        provider: TokenProvider,
        sessions: Any,
        users: Any,
        cookie_name: str = SESSION_COOKIE_NAME,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.provider = provider
        self.sessions = sessions
        self.users = users
        self.cookie_name = cookie_name
        self.clock = clock

    def resolve(
        self, cookies: Mapping[str, str], now: Optional[datetime] = None
    ) -> Optional[AuthenticatedUser]:
        user = self.provider.read_user(cookies)
        if user is not None:
            return user

        token = cookies.get(self.cookie_name)
        if not token:
            return None

        try:
            return self._resolve_database_session(token, now or self.clock())
        except SQLAlchemyError:
            # Fail closed: the client only ever sees 401
            logger.exception("Session lookup failed; treating request as unauthenticated")
            return None

    def _resolve_database_session(self, token: str, now: datetime) -> Optional[AuthenticatedUser]:
        record = self.sessions.find_by_token(token)
        decision = evaluate_session(record, now)

        for effect in decision.effects:
            self._apply(effect)

        if not decision.authenticated:
            return None

        user = self.users.find_by_id(decision.user_id)
        if user is None or user.deleted_at is not None:
            return None
        return AuthenticatedUser.from_user(user)

    def _apply(self, effect: DeleteSession) -> None:
        logger.info("Removing expired session")
        self.sessions.delete_by_token(effect.token)
