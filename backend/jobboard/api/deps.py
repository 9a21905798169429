"""
Shared FastAPI dependencies for authentication and authorization.

Routes depend on `get_current_user` / `require_admin` only; cookie names and
token formats stay inside the session resolver.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from jobboard.core.admin_gate import AdminGate
from jobboard.core.session_resolver import AuthenticatedUser, SessionResolver, TokenProvider
from jobboard.core.session_store import SessionStore, UserDirectory
from jobboard.db.session import get_db

_UNRESOLVED = object()


def get_token_provider() -> TokenProvider:
    return TokenProvider()


def get_session_resolver(
    db: Session = Depends(get_db),
    provider: TokenProvider = Depends(get_token_provider),
) -> SessionResolver:
    return SessionResolver(provider, SessionStore(db), UserDirectory(db))


def get_admin_gate(db: Session = Depends(get_db)) -> AdminGate:
    return AdminGate(UserDirectory(db))


def get_optional_user(
    request: Request,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> Optional[AuthenticatedUser]:
    """Resolve the caller once per request; later calls reuse the result."""
    cached = getattr(request.state, "auth_user", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached

    user = resolver.resolve(request.cookies)
    request.state.auth_user = user
    return user


def get_current_user(
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> AuthenticatedUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


def require_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
    gate: AdminGate = Depends(get_admin_gate),
) -> AuthenticatedUser:
    if not gate.is_admin(current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: Admin access required",
        )
    return current_user
