"""User discovery endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select

from app.api.deps import CurrentUser, DbSession, query_point
from app.core.config import settings
from app.models.user import User, UserRole
from app.schemas.user import (
    NearbyUser,
    NearbyUsersResponse,
    TopDonorsResponse,
    UserPublic,
)
from app.services.geo import GeoPoint, distance_expression, within_radius

router = APIRouter()


@router.get("/nearby", response_model=NearbyUsersResponse)
async def list_nearby_users(
    current_user: CurrentUser,
    db: DbSession,
    role: UserRole = UserRole.VENDOR,
    latitude: float | None = Query(default=None, ge=-90, le=90),
    longitude: float | None = Query(default=None, ge=-180, le=180),
    radius_km: float = Query(default=settings.nearby_radius_meters / 1000, gt=0, le=500),
    limit: int = Query(default=50, ge=1, le=200),
) -> NearbyUsersResponse:
    """Active users with a role near a point (default: the caller's location)."""
    center = query_point(latitude, longitude)
    if center is None and current_user.latitude is not None and current_user.longitude is not None:
        center = GeoPoint(latitude=current_user.latitude, longitude=current_user.longitude)
    if center is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Location required: pass latitude and longitude or set your profile location",
        )

    distance = distance_expression(User.latitude, User.longitude, center)
    query = select(User, distance.label("distance_m")).where(
        User.roles.contains([role.value]),
        User.is_active.is_(True),
        User.id != current_user.id,
    )
    query = within_radius(query, User.latitude, User.longitude, center, radius_km * 1000).limit(limit)

    result = await db.execute(query)
    users = [
        NearbyUser(
            **UserPublic.from_user(user).model_dump(),
            distance_km=round(distance_m / 1000, 3),
        )
        for user, distance_m in result.all()
    ]
    return NearbyUsersResponse(users=users, count=len(users))


@router.get("/top-donors", response_model=TopDonorsResponse)
async def list_top_donors(
    current_user: CurrentUser,
    db: DbSession,
    limit: int = Query(default=10, ge=1, le=100),
) -> TopDonorsResponse:
    """Vendors ranked by donation score."""
    result = await db.execute(
        select(User)
        .where(
            User.roles.contains([UserRole.VENDOR.value]),
            User.is_active.is_(True),
            User.donation_score > 0,
        )
        .order_by(User.donation_score.desc(), User.name)
        .limit(limit)
    )
    return TopDonorsResponse(
        users=[UserPublic.from_user(u) for u in result.scalars().all()]
    )


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(
    user_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> UserPublic:
    """Public profile of an active user."""
    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active.is_(True))
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return UserPublic.from_user(user)
