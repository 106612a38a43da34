"""
Per-request session context.

Handlers receive the caller's identity as an explicit SessionContext argument
built from the bearer token, never from shared state.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from . import crud
from .database.connection import get_db
from .errors import AuthenticationError, InvalidIdentifier, PermissionDenied
from .security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SessionContext:
    user_id: str
    email: str
    role: str = "voter"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self):
        return {"user_id": self.user_id, "email": self.email, "role": self.role, "is_admin": self.is_admin}


def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> SessionContext:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied, token missing")
    payload = decode_access_token(credentials.credentials)
    return SessionContext(
        user_id=payload["sub"],
        email=payload.get("email", ""),
        role=payload.get("role", "voter"),
    )


def require_admin(session: SessionContext = Depends(get_session), db=Depends(get_db)) -> SessionContext:
    """Admin rights are checked against the stored user, not the token's role claim."""
    try:
        user = crud.get_user_by_id(db, session.user_id)
    except InvalidIdentifier:
        raise AuthenticationError("Invalid token payload")
    if not user:
        raise AuthenticationError("User no longer exists")
    if user.get("role") != "admin":
        raise PermissionDenied("Access denied, admin privileges required")
    return SessionContext(user_id=session.user_id, email=user.get("email", session.email), role="admin")
