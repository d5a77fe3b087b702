"""Product schemas."""

from datetime import date, datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import Field, StringConstraints, model_validator

from app.models.product import ProductCategory
from app.schemas.common import (
    BaseSchema,
    GeoLocation,
    Latitude,
    Longitude,
    check_coordinates_pair,
)

ProductName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=255)]
Unit = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=32)]


class ProductCreate(BaseSchema):
    """Product listing request. Location defaults to the vendor's."""

    name: ProductName
    description: str | None = None
    category: ProductCategory = ProductCategory.OTHER
    quantity: int = Field(default=1, ge=1)
    unit: Unit = "pcs"
    expiry_date: date | None = None
    address: str | None = None
    latitude: Latitude | None = None
    longitude: Longitude | None = None

    @model_validator(mode="after")
    def validate_location(self) -> "ProductCreate":
        check_coordinates_pair(self.latitude, self.longitude)
        return self


class ProductUpdate(BaseSchema):
    """Partial product update."""

    name: ProductName | None = None
    description: str | None = None
    category: ProductCategory | None = None
    quantity: int | None = Field(default=None, ge=0)
    unit: Unit | None = None
    expiry_date: date | None = None
    address: str | None = None
    latitude: Latitude | None = None
    longitude: Longitude | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def validate_location(self) -> "ProductUpdate":
        check_coordinates_pair(self.latitude, self.longitude)
        return self


class ProductResponse(BaseSchema):
    """Product response."""

    id: UUID
    vendor_id: UUID
    name: str
    description: str | None = None
    category: ProductCategory
    quantity: int
    unit: str
    expiry_date: date | None = None
    images: list[str] = []
    address: str | None = None
    location: GeoLocation | None = None
    is_active: bool
    distance_km: float | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_product(cls, product: Any, distance_km: float | None = None) -> "ProductResponse":
        return cls(
            id=product.id,
            vendor_id=product.vendor_id,
            name=product.name,
            description=product.description,
            category=product.category,
            quantity=product.quantity,
            unit=product.unit,
            expiry_date=product.expiry_date,
            images=list(product.images or []),
            address=product.address,
            location=GeoLocation.from_coordinates(product.latitude, product.longitude),
            is_active=product.is_active,
            distance_km=distance_km,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductImageResponse(BaseSchema):
    url: str
    images: list[str]
