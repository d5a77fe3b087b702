"""Role-specific dashboard statistics."""

import logging

from fastapi import APIRouter
from sqlalchemy import distinct, func, select

from app.api.deps import CustomerUser, DbSession, NGOUser, VendorUser
from app.core.config import settings
from app.models.donation import Donation, DonationStatus
from app.models.product import Product
from app.models.user import User, UserRole
from app.schemas.dashboard import (
    CustomerStats,
    CustomerStatsResponse,
    NGOStats,
    NGOStatsResponse,
    VendorStats,
    VendorStatsResponse,
)
from app.services.donation_lifecycle import ACTIVE_STATUSES, NGO_ACTIVE_STATUSES
from app.services.geo import GeoPoint, within_radius
from app.services.stream_chat import unread_count_or_zero

logger = logging.getLogger(__name__)
router = APIRouter()


async def count_nearby_users(db: DbSession, center: GeoPoint, role: UserRole) -> int:
    """Active users with the role within the discovery radius, capped."""
    query = select(User.id).where(
        User.roles.contains([role.value]),
        User.is_active.is_(True),
    )
    query = within_radius(
        query, User.latitude, User.longitude, center, settings.nearby_radius_meters,
        order_by_distance=False,
    ).limit(settings.nearby_max_results)
    return await db.scalar(select(func.count()).select_from(query.subquery())) or 0


async def count_nearby_products(db: DbSession, center: GeoPoint) -> int:
    """Active products within the discovery radius, capped."""
    query = select(Product.id).where(Product.is_active.is_(True))
    query = within_radius(
        query, Product.latitude, Product.longitude, center, settings.nearby_radius_meters,
        order_by_distance=False,
    ).limit(settings.nearby_max_results)
    return await db.scalar(select(func.count()).select_from(query.subquery())) or 0


@router.get("/customer/stats", response_model=CustomerStatsResponse)
async def customer_stats(current_user: CustomerUser, db: DbSession) -> CustomerStatsResponse:
    """Nearby vendors, products and NGOs for a customer."""
    nearby_vendors = available_products = nearby_ngos = 0

    if current_user.latitude is not None and current_user.longitude is not None:
        center = GeoPoint(latitude=current_user.latitude, longitude=current_user.longitude)
        nearby_vendors = await count_nearby_users(db, center, UserRole.VENDOR)
        available_products = await count_nearby_products(db, center)
        nearby_ngos = await count_nearby_users(db, center, UserRole.NGO)

    unread = await unread_count_or_zero(str(current_user.id))

    return CustomerStatsResponse(
        stats=CustomerStats(
            nearby_vendors=nearby_vendors,
            available_products=available_products,
            nearby_ngos=nearby_ngos,
            unread_messages=unread,
        )
    )


@router.get("/vendor/stats", response_model=VendorStatsResponse)
async def vendor_stats(current_user: VendorUser, db: DbSession) -> VendorStatsResponse:
    """Listing and donation totals for a vendor."""
    user_id = current_user.id

    total_products = await db.scalar(
        select(func.count(Product.id)).where(
            Product.vendor_id == user_id,
            Product.is_active.is_(True),
        )
    ) or 0
    active_donations = await db.scalar(
        select(func.count(Donation.id)).where(
            Donation.vendor_id == user_id,
            Donation.status.in_(ACTIVE_STATUSES),
        )
    ) or 0
    completed_donations = await db.scalar(
        select(func.count(Donation.id)).where(
            Donation.vendor_id == user_id,
            Donation.status == DonationStatus.COMPLETED.value,
        )
    ) or 0
    unread = await unread_count_or_zero(str(user_id))

    return VendorStatsResponse(
        stats=VendorStats(
            total_products=total_products,
            active_donations=active_donations,
            completed_donations=completed_donations,
            donation_score=current_user.donation_score or 0,
            unread_messages=unread,
        )
    )


@router.get("/ngo/stats", response_model=NGOStatsResponse)
async def ngo_stats(current_user: NGOUser, db: DbSession) -> NGOStatsResponse:
    """Open donations and request totals for an NGO."""
    user_id = current_user.id

    available_donations = await db.scalar(
        select(func.count(Donation.id)).where(
            Donation.status == DonationStatus.AVAILABLE.value,
        )
    ) or 0
    active_requests = await db.scalar(
        select(func.count(Donation.id)).where(
            Donation.requested_by_id == user_id,
            Donation.status.in_(NGO_ACTIVE_STATUSES),
        )
    ) or 0
    completed_donations = await db.scalar(
        select(func.count(Donation.id)).where(
            Donation.requested_by_id == user_id,
            Donation.status == DonationStatus.COMPLETED.value,
        )
    ) or 0
    partner_vendors = await db.scalar(
        select(func.count(distinct(Donation.vendor_id))).where(
            Donation.requested_by_id == user_id,
            Donation.status == DonationStatus.COMPLETED.value,
        )
    ) or 0

    return NGOStatsResponse(
        stats=NGOStats(
            available_donations=available_donations,
            active_requests=active_requests,
            completed_donations=completed_donations,
            partner_vendors=partner_vendors,
        )
    )
