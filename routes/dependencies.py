"""
Shared route dependencies.

Authentication runs as FastAPI dependencies; AppErrors raised here are turned
into responses by the handler registered in main.py.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from models.auth import AuthenticatedUser
from services.auth_service import get_auth_service, STUDENT_ROLE

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """Resolve the bearer token to a user, or raise 401."""
    token = credentials.credentials if credentials else None
    return get_auth_service().verify_token(token)


def require_student(
    user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Current user, required to hold the student role."""
    return get_auth_service().require_role(user, [STUDENT_ROLE])
