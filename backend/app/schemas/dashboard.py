"""Dashboard statistics schemas."""

from pydantic import Field

from app.schemas.common import BaseSchema


class CustomerStats(BaseSchema):
    nearby_vendors: int
    available_products: int
    nearby_ngos: int = Field(alias="nearbyNGOs")
    unread_messages: int


class VendorStats(BaseSchema):
    total_products: int
    active_donations: int
    completed_donations: int
    donation_score: int
    unread_messages: int


class NGOStats(BaseSchema):
    available_donations: int
    active_requests: int
    completed_donations: int
    partner_vendors: int


class CustomerStatsResponse(BaseSchema):
    stats: CustomerStats


class VendorStatsResponse(BaseSchema):
    stats: VendorStats


class NGOStatsResponse(BaseSchema):
    stats: NGOStats
