"""Donation endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from app.api.deps import CurrentUser, DbSession, VendorUser, has_role, query_point
from app.core.config import settings
from app.models.donation import Donation, DonationStatus
from app.models.product import Product
from app.models.user import User, UserRole
from app.schemas.common import PaginatedResponse, PaginationMeta
from app.schemas.donation import DonationActionRequest, DonationCreate, DonationResponse
from app.services.donation_lifecycle import (
    DonationAction,
    DonationPermissionError,
    DonationTransitionError,
    apply_transition,
)
from app.services.geo import within_radius

logger = logging.getLogger(__name__)
router = APIRouter()


async def get_donation_or_404(db: DbSession, donation_id: UUID) -> Donation:
    result = await db.execute(
        select(Donation)
        .options(selectinload(Donation.product))
        .where(Donation.id == donation_id)
    )
    donation = result.scalar_one_or_none()
    if donation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Donation not found",
        )
    return donation


@router.get("", response_model=PaginatedResponse[DonationResponse])
async def list_donations(
    current_user: CurrentUser,
    db: DbSession,
    status_filter: DonationStatus = Query(default=DonationStatus.AVAILABLE, alias="status"),
    latitude: float | None = Query(default=None, ge=-90, le=90),
    longitude: float | None = Query(default=None, ge=-180, le=180),
    radius_km: float | None = Query(default=None, gt=0, le=500),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[DonationResponse]:
    """List donations by status, optionally near a point (by product location)."""
    query = (
        select(Donation)
        .join(Product, Donation.product_id == Product.id)
        .options(selectinload(Donation.product))
        .where(Donation.status == status_filter.value)
    )

    center = query_point(latitude, longitude)
    if center is not None:
        radius_m = (radius_km or settings.nearby_radius_meters / 1000) * 1000
        query = within_radius(query, Product.latitude, Product.longitude, center, radius_m)
    else:
        query = query.order_by(Donation.created_at.desc())

    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query) or 0

    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return PaginatedResponse(
        data=[DonationResponse.from_donation(d, d.product) for d in result.scalars().all()],
        pagination=PaginationMeta.build(page, per_page, total),
    )


@router.get("/mine", response_model=PaginatedResponse[DonationResponse])
async def list_my_donations(
    current_user: CurrentUser,
    db: DbSession,
    status_filter: DonationStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[DonationResponse]:
    """Donations the current vendor offers and/or the current NGO requested."""
    is_vendor = has_role(current_user, UserRole.VENDOR)
    is_ngo = has_role(current_user, UserRole.NGO)
    if not (is_vendor or is_ngo):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Vendor or NGO role required.",
        )

    conditions = []
    if is_vendor:
        conditions.append(Donation.vendor_id == current_user.id)
    if is_ngo:
        conditions.append(Donation.requested_by_id == current_user.id)

    query = select(Donation).options(selectinload(Donation.product)).where(or_(*conditions))
    if status_filter:
        query = query.where(Donation.status == status_filter.value)

    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query) or 0

    query = query.order_by(Donation.updated_at.desc()).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return PaginatedResponse(
        data=[DonationResponse.from_donation(d, d.product) for d in result.scalars().all()],
        pagination=PaginationMeta.build(page, per_page, total),
    )


@router.get("/{donation_id}", response_model=DonationResponse)
async def get_donation(
    donation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> DonationResponse:
    """Get a donation."""
    donation = await get_donation_or_404(db, donation_id)
    return DonationResponse.from_donation(donation, donation.product)


@router.post("", response_model=DonationResponse, status_code=status.HTTP_201_CREATED)
async def create_donation(
    payload: DonationCreate,
    current_user: VendorUser,
    db: DbSession,
) -> DonationResponse:
    """Offer one of the current vendor's active products as a donation."""
    result = await db.execute(
        select(Product).where(
            Product.id == payload.product_id,
            Product.vendor_id == current_user.id,
            Product.is_active.is_(True),
        )
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )

    if payload.quantity > product.quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {product.quantity} {product.unit} available",
        )

    donation = Donation(
        product_id=product.id,
        vendor_id=current_user.id,
        status=DonationStatus.AVAILABLE.value,
        quantity=payload.quantity,
        notes=payload.notes,
        pickup_time=payload.pickup_time,
    )
    db.add(donation)
    await db.flush()
    await db.refresh(donation)

    logger.info(f"Vendor {current_user.id} offered donation {donation.id} of product {product.id}")
    return DonationResponse.from_donation(donation, product)


async def _run_action(
    db: DbSession,
    donation_id: UUID,
    action: DonationAction,
    current_user: User,
    details: DonationActionRequest | None = None,
) -> DonationResponse:
    donation = await get_donation_or_404(db, donation_id)

    vendor = None
    if action is DonationAction.COMPLETE:
        vendor = current_user if donation.vendor_id == current_user.id else await db.get(User, donation.vendor_id)

    try:
        apply_transition(donation, action, current_user, vendor=vendor)
    except DonationPermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except DonationTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if details is not None:
        if details.notes is not None:
            donation.notes = details.notes
        if details.pickup_time is not None:
            donation.pickup_time = details.pickup_time

    await db.flush()
    await db.refresh(donation, attribute_names=["updated_at"])
    return DonationResponse.from_donation(donation, donation.product)


@router.post("/{donation_id}/request", response_model=DonationResponse)
async def request_donation(
    donation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
    details: DonationActionRequest | None = None,
) -> DonationResponse:
    """NGO requests an available donation."""
    return await _run_action(db, donation_id, DonationAction.REQUEST, current_user, details)


@router.post("/{donation_id}/confirm", response_model=DonationResponse)
async def confirm_donation(
    donation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
    details: DonationActionRequest | None = None,
) -> DonationResponse:
    """Vendor confirms a pending request."""
    return await _run_action(db, donation_id, DonationAction.CONFIRM, current_user, details)


@router.post("/{donation_id}/reject", response_model=DonationResponse)
async def reject_donation(
    donation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> DonationResponse:
    """Vendor declines a pending request; the donation becomes available again."""
    return await _run_action(db, donation_id, DonationAction.REJECT, current_user)


@router.post("/{donation_id}/pickup", response_model=DonationResponse)
async def pickup_donation(
    donation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> DonationResponse:
    """Mark a confirmed donation as picked up."""
    return await _run_action(db, donation_id, DonationAction.PICKUP, current_user)


@router.post("/{donation_id}/complete", response_model=DonationResponse)
async def complete_donation(
    donation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> DonationResponse:
    """Mark a picked-up donation as completed and credit the vendor."""
    return await _run_action(db, donation_id, DonationAction.COMPLETE, current_user)


@router.post("/{donation_id}/cancel", response_model=DonationResponse)
async def cancel_donation(
    donation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> DonationResponse:
    """Vendor withdraws a donation nobody has requested."""
    return await _run_action(db, donation_id, DonationAction.CANCEL, current_user)
