"""Donation schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from app.models.donation import DonationStatus
from app.schemas.common import BaseSchema, GeoLocation


class DonationCreate(BaseSchema):
    """Offer (part of) a product as a donation."""

    product_id: UUID
    quantity: int = Field(default=1, ge=1)
    notes: str | None = None
    pickup_time: datetime | None = None


class DonationActionRequest(BaseSchema):
    """Optional details attached to a lifecycle action."""

    notes: str | None = None
    pickup_time: datetime | None = None


class DonationProduct(BaseSchema):
    """Product summary embedded in a donation."""

    id: UUID
    name: str
    category: str
    unit: str
    images: list[str] = []
    location: GeoLocation | None = None


class DonationResponse(BaseSchema):
    """Donation response."""

    id: UUID
    product_id: UUID
    vendor_id: UUID
    requested_by_id: UUID | None = None
    status: DonationStatus
    quantity: int
    notes: str | None = None
    pickup_time: datetime | None = None
    requested_at: datetime | None = None
    confirmed_at: datetime | None = None
    picked_up_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    product: DonationProduct | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_donation(cls, donation: Any, product: Any | None = None) -> "DonationResponse":
        summary = None
        if product is not None:
            summary = DonationProduct(
                id=product.id,
                name=product.name,
                category=product.category,
                unit=product.unit,
                images=list(product.images or []),
                location=GeoLocation.from_coordinates(product.latitude, product.longitude),
            )
        return cls(
            id=donation.id,
            product_id=donation.product_id,
            vendor_id=donation.vendor_id,
            requested_by_id=donation.requested_by_id,
            status=donation.status,
            quantity=donation.quantity,
            notes=donation.notes,
            pickup_time=donation.pickup_time,
            requested_at=donation.requested_at,
            confirmed_at=donation.confirmed_at,
            picked_up_at=donation.picked_up_at,
            completed_at=donation.completed_at,
            cancelled_at=donation.cancelled_at,
            product=summary,
            created_at=donation.created_at,
            updated_at=donation.updated_at,
        )
