"""Common schemas and utilities."""

from typing import Annotated, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

Latitude = Annotated[float, Field(ge=-90, le=90, description="Latitude in degrees")]
Longitude = Annotated[float, Field(ge=-180, le=180, description="Longitude in degrees")]


def check_coordinates_pair(latitude: float | None, longitude: float | None) -> None:
    """Coordinates are optional, but only as a pair."""
    if (latitude is None) != (longitude is None):
        raise ValueError("Latitude and longitude must be provided together")


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    JSON keys are camelCase on the wire; snake_case is accepted on input.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class GeoLocation(BaseSchema):
    """GeoJSON point. Coordinates are [longitude, latitude]."""

    type: Literal["Point"] = "Point"
    coordinates: tuple[Longitude, Latitude]

    @classmethod
    def from_coordinates(
        cls,
        latitude: float | None,
        longitude: float | None,
    ) -> "GeoLocation | None":
        if latitude is None or longitude is None:
            return None
        return cls(coordinates=(longitude, latitude))


class PaginationMeta(BaseSchema):
    """Pagination metadata in response."""

    page: int
    per_page: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "PaginationMeta":
        return cls(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=(total + per_page - 1) // per_page,
        )


class PaginatedResponse(BaseSchema, Generic[T]):
    """Paginated response wrapper."""

    data: list[T]
    pagination: PaginationMeta


class ErrorDetail(BaseModel):
    """Error detail for validation errors."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    message: str
    errors: list[ErrorDetail] | None = None


class MessageResponse(BaseSchema):
    """Simple acknowledgement."""

    message: str
