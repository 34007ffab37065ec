from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import List

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload
)
from ..models.user import User


async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload


def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user


# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific user roles."""
    def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_checker


get_admin_user = require_role([UserRole.ADMIN])
get_doctor_user = require_role([UserRole.DOCTOR])
get_patient_user = require_role([UserRole.PATIENT])


def _hit(redis_client, key: str, limit: int):
    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)  # one hour window
        return
    if int(current_requests) >= limit:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later."
        )
    redis_client.incr(key)


# Rate limiting dependencies
def rate_limit_check(
    request: Request,
    redis_client=Depends(get_redis)
) -> None:
    """Per-IP rate limiting for authentication endpoints."""
    _hit(redis_client, f"rate_limit:{request.client.host}", settings.AUTH_RATE_LIMIT_PER_HOUR)


def booking_rate_limit(
    current_user: User = Depends(get_current_user),
    redis_client=Depends(get_redis)
) -> None:
    """Per-patient rate limiting for booking attempts."""
    _hit(redis_client, f"booking_rate_limit:{current_user.id}", settings.BOOKING_RATE_LIMIT_PER_HOUR)
