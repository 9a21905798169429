import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from jobboard.models.enums import UserRole

logger = logging.getLogger("admin_gate")


class AdminGate:
    """
    Authorize privileged operations against the stored role.

    Token claims can carry a stale role until the token expires, so the
    decision always re-reads the user record.
    """

    def __init__(self, users: Any):
        self.users = users

    def is_admin(self, user_id: int) -> bool:
        try:
            user = self.users.find_by_id(user_id)
        except SQLAlchemyError:
            logger.exception("Role lookup failed for user %s; denying admin access", user_id)
            return False

        if user is None or user.deleted_at is not None:
            return False
        return user.role == UserRole.ADMIN.value
