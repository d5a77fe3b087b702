"""User schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import EmailStr

from app.models.user import UserRole
from app.schemas.common import BaseSchema, GeoLocation


class UserInfo(BaseSchema):
    """Account details returned to the account owner."""

    id: UUID
    name: str
    email: EmailStr
    roles: list[UserRole]
    location: GeoLocation | None = None
    address: str | None = None
    phone: str | None = None
    donation_score: int = 0
    profile_image: str | None = None
    last_login: datetime | None = None

    @classmethod
    def from_user(cls, user: Any) -> "UserInfo":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            roles=list(user.roles or []),
            location=GeoLocation.from_coordinates(user.latitude, user.longitude),
            address=user.address,
            phone=user.phone,
            donation_score=user.donation_score or 0,
            profile_image=user.profile_image,
            last_login=user.last_login,
        )


class UserPublic(BaseSchema):
    """Profile visible to other users. No email or phone."""

    id: UUID
    name: str
    roles: list[UserRole]
    location: GeoLocation | None = None
    address: str | None = None
    profile_image: str | None = None
    donation_score: int = 0

    @classmethod
    def from_user(cls, user: Any) -> "UserPublic":
        return cls(
            id=user.id,
            name=user.name,
            roles=list(user.roles or []),
            location=GeoLocation.from_coordinates(user.latitude, user.longitude),
            address=user.address,
            profile_image=user.profile_image,
            donation_score=user.donation_score or 0,
        )


class NearbyUser(UserPublic):
    """Public profile with distance from the query point."""

    distance_km: float


class NearbyUsersResponse(BaseSchema):
    users: list[NearbyUser]
    count: int


class TopDonorsResponse(BaseSchema):
    users: list[UserPublic]
