"""Shared API dependencies: database session, current user, role gates."""

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import verify_token
from app.models.user import User, UserRole
from app.schemas.common import check_coordinates_pair
from app.services.geo import GeoPoint

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: DbSession,
) -> User:
    """Resolve the bearer token to an active user.

    Raises:
        HTTPException 401: Missing, invalid or expired token, wrong token
            type, unknown user, or deactivated account.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required")

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    if payload.get("type") != "access":
        raise _unauthorized("Invalid token type")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise _unauthorized("Account is deactivated")

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def has_role(user: Any, role: UserRole) -> bool:
    return role.value in (user.roles or [])


def ensure_role(user: Any, role: UserRole) -> None:
    """Raise 403 unless the user holds the role."""
    if not has_role(user, role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. {_role_label(role)} role required.",
        )


def _role_label(role: UserRole) -> str:
    return "NGO" if role is UserRole.NGO else role.value.capitalize()


def require_role(role: UserRole) -> Callable[[User], Awaitable[User]]:
    """Dependency factory: the current user, if they hold the role."""

    async def dependency(current_user: CurrentUser) -> User:
        ensure_role(current_user, role)
        return current_user

    return dependency


CustomerUser = Annotated[User, Depends(require_role(UserRole.CUSTOMER))]
VendorUser = Annotated[User, Depends(require_role(UserRole.VENDOR))]
NGOUser = Annotated[User, Depends(require_role(UserRole.NGO))]


def query_point(latitude: float | None, longitude: float | None) -> GeoPoint | None:
    """Point from optional ``latitude``/``longitude`` query parameters.

    Raises:
        HTTPException 400: Only one of the two was given.
    """
    try:
        check_coordinates_pair(latitude, longitude)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if latitude is None or longitude is None:
        return None
    return GeoPoint(latitude=latitude, longitude=longitude)
