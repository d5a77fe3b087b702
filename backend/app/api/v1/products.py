"""Product endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from sqlalchemy import func, or_, select

from app.api.deps import CurrentUser, DbSession, VendorUser, query_point
from app.core.config import settings
from app.models.product import Product, ProductCategory
from app.schemas.common import MessageResponse, PaginatedResponse, PaginationMeta
from app.schemas.product import (
    ProductCreate,
    ProductImageResponse,
    ProductResponse,
    ProductUpdate,
)
from app.services.geo import GeoPoint, distance_expression, within_radius
from app.services.uploads import UploadError, save_product_image

logger = logging.getLogger(__name__)
router = APIRouter()


async def get_vendor_product_or_404(
    db: DbSession,
    product_id: UUID,
    vendor_id: UUID,
) -> Product:
    """Load a product owned by the vendor.

    Products owned by someone else are reported as missing, not forbidden.
    """
    result = await db.execute(
        select(Product).where(
            Product.id == product_id,
            Product.vendor_id == vendor_id,
        )
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return product


@router.get("", response_model=PaginatedResponse[ProductResponse])
async def list_products(
    current_user: CurrentUser,
    db: DbSession,
    category: ProductCategory | None = None,
    search: str | None = Query(default=None, max_length=100),
    vendor_id: UUID | None = None,
    latitude: float | None = Query(default=None, ge=-90, le=90),
    longitude: float | None = Query(default=None, ge=-180, le=180),
    radius_km: float | None = Query(default=None, gt=0, le=500),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[ProductResponse]:
    """List active products, optionally near a point."""
    query = select(Product).where(Product.is_active.is_(True))

    if category:
        query = query.where(Product.category == category.value)
    if vendor_id:
        query = query.where(Product.vendor_id == vendor_id)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
        )

    center = query_point(latitude, longitude)
    has_home = current_user.latitude is not None and current_user.longitude is not None
    if center is None and radius_km is not None and has_home:
        center = GeoPoint(latitude=current_user.latitude, longitude=current_user.longitude)

    if center is not None:
        radius_m = (radius_km or settings.nearby_radius_meters / 1000) * 1000
        query = within_radius(query, Product.latitude, Product.longitude, center, radius_m)
        distance = distance_expression(Product.latitude, Product.longitude, center)
        query = query.add_columns(distance.label("distance_m"))
    else:
        query = query.order_by(Product.created_at.desc())

    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query) or 0

    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    if center is not None:
        items = [
            ProductResponse.from_product(row[0], distance_km=round(row[1] / 1000, 3))
            for row in result.all()
        ]
    else:
        items = [ProductResponse.from_product(p) for p in result.scalars().all()]

    return PaginatedResponse(
        data=items,
        pagination=PaginationMeta.build(page, per_page, total),
    )


@router.get("/mine", response_model=PaginatedResponse[ProductResponse])
async def list_my_products(
    current_user: VendorUser,
    db: DbSession,
    include_inactive: bool = False,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
) -> PaginatedResponse[ProductResponse]:
    """List the current vendor's products."""
    query = select(Product).where(Product.vendor_id == current_user.id)
    if not include_inactive:
        query = query.where(Product.is_active.is_(True))

    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query) or 0

    query = query.order_by(Product.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)

    return PaginatedResponse(
        data=[ProductResponse.from_product(p) for p in result.scalars().all()],
        pagination=PaginationMeta.build(page, per_page, total),
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> ProductResponse:
    """Get an active product."""
    result = await db.execute(
        select(Product).where(Product.id == product_id, Product.is_active.is_(True))
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return ProductResponse.from_product(product)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    current_user: VendorUser,
    db: DbSession,
) -> ProductResponse:
    """List a new product. Location defaults to the vendor's location."""
    product = Product(
        vendor_id=current_user.id,
        name=payload.name,
        description=payload.description,
        category=payload.category.value,
        quantity=payload.quantity,
        unit=payload.unit,
        expiry_date=payload.expiry_date,
        images=[],
        address=payload.address or current_user.address,
        is_active=True,
    )
    if payload.latitude is not None and payload.longitude is not None:
        product.latitude, product.longitude = payload.latitude, payload.longitude
    else:
        product.latitude, product.longitude = current_user.latitude, current_user.longitude

    db.add(product)
    await db.flush()
    await db.refresh(product)

    logger.info(f"Vendor {current_user.id} listed product {product.id}")
    return ProductResponse.from_product(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    update: ProductUpdate,
    current_user: VendorUser,
    db: DbSession,
) -> ProductResponse:
    """Update one of the current vendor's products."""
    product = await get_vendor_product_or_404(db, product_id, current_user.id)

    fields = update.model_dump(exclude_unset=True, exclude={"latitude", "longitude"})
    for field, value in fields.items():
        if value is None and field in ("name", "category", "quantity", "unit", "is_active"):
            continue
        if isinstance(value, ProductCategory):
            value = value.value
        setattr(product, field, value)

    if update.latitude is not None and update.longitude is not None:
        product.latitude, product.longitude = update.latitude, update.longitude

    await db.flush()
    await db.refresh(product)
    return ProductResponse.from_product(product)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: UUID,
    current_user: VendorUser,
    db: DbSession,
) -> MessageResponse:
    """Deactivate one of the current vendor's products."""
    product = await get_vendor_product_or_404(db, product_id, current_user.id)
    product.is_active = False
    await db.flush()

    logger.info(f"Vendor {current_user.id} deactivated product {product.id}")
    return MessageResponse(message="Product deleted successfully")


@router.post("/{product_id}/images", response_model=ProductImageResponse)
async def upload_product_image(
    product_id: UUID,
    current_user: VendorUser,
    db: DbSession,
    image: UploadFile = File(...),
) -> ProductImageResponse:
    """Attach an image to one of the current vendor's products."""
    product = await get_vendor_product_or_404(db, product_id, current_user.id)

    try:
        url = await save_product_image(image, product.id)
    except UploadError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    # Reassign so the JSONB change is tracked
    product.images = [*(product.images or []), url]
    await db.flush()

    return ProductImageResponse(url=url, images=product.images)
