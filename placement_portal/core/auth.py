"""
Authentication Utility - JWT handling and role checks.

Provides:
- JWT token creation/verification
- FastAPI dependencies for protected routes

Tokens are issued by the portal's user service with the user id in `sub`
and the account role in `role`. Role checks happen here, before any
workflow operation runs; the workflow itself only sees an actor id.
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from placement_portal.core.config import get_settings

settings = get_settings()

# Bearer token extractor
bearer_scheme = HTTPBearer()

ROLES = ("student", "employer", "faculty", "admin")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or role not in ROLES:
        raise credentials_exception

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise credentials_exception

    return {"user_id": user_id, "role": role}


def require_roles(*roles: str):
    """
    Dependency factory - Require one of the given roles.

    Usage:
        @router.put("/{id}/faculty-approval")
        async def route(user: dict = Depends(require_roles("faculty", "admin"))):
            ...
    """
    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in roles:
            raise HTTPException(status_code=403, detail="Access denied")
        return user

    return dependency
