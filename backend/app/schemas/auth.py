"""Authentication schemas."""

from typing import Annotated

from pydantic import EmailStr, Field, StringConstraints, field_validator, model_validator

from app.models.user import UserRole
from app.schemas.common import BaseSchema, Latitude, Longitude, check_coordinates_pair
from app.schemas.user import UserInfo

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=255)]
Phone = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=32)]
Address = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5)]
Password = Annotated[str, Field(min_length=6, max_length=72)]


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class SignupRequest(BaseSchema):
    """New account registration."""

    name: Name
    email: EmailStr
    password: Password
    roles: list[UserRole] = Field(min_length=1)
    phone: Phone
    address: Address
    latitude: Latitude
    longitude: Longitude

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("roles", mode="after")
    @classmethod
    def dedupe_roles(cls, value: list[UserRole]) -> list[UserRole]:
        return list(dict.fromkeys(value))


class LoginRequest(BaseSchema):
    """Email/password login."""

    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class ProfileUpdate(BaseSchema):
    """Partial profile update. Latitude and longitude go together."""

    name: Name | None = None
    phone: Phone | None = None
    address: Address | None = None
    latitude: Latitude | None = None
    longitude: Longitude | None = None

    @model_validator(mode="after")
    def validate_location(self) -> "ProfileUpdate":
        check_coordinates_pair(self.latitude, self.longitude)
        return self


class AuthResponse(BaseSchema):
    """Token issued on signup or login."""

    message: str
    token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserInfo


class ProfileResponse(BaseSchema):
    user: UserInfo


class ProfileUpdateResponse(BaseSchema):
    message: str
    user: UserInfo
