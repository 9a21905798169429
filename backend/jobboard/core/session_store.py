"""
Persistence for database sessions and user lookups.

Every operation is a single statement keyed by token or id, so concurrent
requests never need a transaction spanning more than one call.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobboard.models import AuthSession, User


class SessionStore:
    """Token -> (user, expiry) records backing the cookie session path."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, token: str, user_id: int, expires_at: datetime) -> AuthSession:
        """
        Persist a new session record.

        Args:
            token: Opaque session token (the cookie value)
            user_id: Owner of the session
            expires_at: Naive UTC expiry

        Returns:
            The stored AuthSession

        Raises:
            SQLAlchemyError: The insert failed (e.g. a duplicate token); the
                transaction is rolled back first
        """
        record = AuthSession(session_token=token, user_id=user_id, expires=expires_at)
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(record)
        return record

    def find_by_token(self, token: str) -> Optional[AuthSession]:
        """Session record for `token`, expired or not; None if absent."""
        return (
            self.db.query(AuthSession)
            .filter(AuthSession.session_token == token)
            .first()
        )

    def delete_by_token(self, token: str) -> None:
        """Delete the session if present. Deleting an absent token is a no-op."""
        try:
            self.db.query(AuthSession).filter(AuthSession.session_token == token).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def delete_for_user(self, user_id: int) -> int:
        """
        Delete every session of a user.

        Args:
            user_id: The user being signed out everywhere

        Returns:
            Number of sessions deleted
        """
        try:
            count = self.db.query(AuthSession).filter(AuthSession.user_id == user_id).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return count


class UserDirectory:
    """Read access to user records."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> Optional[User]:
        """
        Look up a user by id.

        Args:
            user_id: The user id from a session record or token claims

        Returns:
            The user, soft-deleted ones included, or None
        """
        return self.db.query(User).filter(User.id == user_id).first()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()
