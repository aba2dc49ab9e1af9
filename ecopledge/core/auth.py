"""
Bearer-token identity for the API.

Token extraction: `Authorization: Bearer <token>`. The token is the
user's `api_token`; issuing and rotating tokens happens outside this
service (the sign-in frontend provisions users).

Usage:
    @router.post("/things")
    def create(user: User = Depends(get_current_user)): ...

    @router.get("/things/{id}")
    def read(viewer: User | None = Depends(get_optional_user)): ...
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ecopledge.core.errors import AuthenticationRequiredError, InsufficientRoleError
from ecopledge.db.base import enum_value, get_db
from ecopledge.models.user import User

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)


def _resolve(db: Session, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    return db.query(User).filter(User.api_token == credentials.credentials).first()


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Anonymous reads are allowed; a bad token is treated as anonymous."""
    return _resolve(db, credentials)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise AuthenticationRequiredError("No token provided.")
    user = _resolve(db, credentials)
    if user is None:
        raise AuthenticationRequiredError("Invalid or expired token.")
    return user


def require_role(*roles: str):
    """
    Dependency factory: the caller must be authenticated and hold one of `roles`.

        @router.get("/admin/things")
        def list_things(admin: User = Depends(require_role("admin"))): ...
    """
    def _check(user: User = Depends(get_current_user)) -> User:
        if enum_value(user.role) not in roles:
            raise InsufficientRoleError(roles)
        return user
    return _check
