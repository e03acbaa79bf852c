"""Bearer-token authentication for API endpoints"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from savings_credit.config import settings

bearer_scheme = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"


@dataclass
class CurrentUser:
    """Identity carried by a verified access token"""

    user_id: str
    role: str = "user"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Verify the bearer token and return its subject"""
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = jwt.decode(credentials.credentials, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise _unauthorized("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token")

    return CurrentUser(user_id=str(user_id), role=payload.get("role", "user"))


def get_current_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role != ADMIN_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return user
