"""Shared test helpers.

Model instances are real (transient) ORM objects so that mapped properties
like ``point`` and ``set_point`` behave as in production. Database sessions
are AsyncMocks.
"""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

from app.core.security import get_password_hash
from app.models import Donation, DonationStatus, Product, User


def make_user(
    roles: list[str] | None = None,
    latitude: float | None = 12.9716,
    longitude: float | None = 77.5946,
    password: str | None = None,
    **overrides,
) -> User:
    """Create a transient user with sensible defaults."""
    now = datetime.now(UTC)
    fields = {
        "id": uuid.uuid4(),
        "name": "Test User",
        "email": f"user-{uuid.uuid4().hex[:8]}@greengrocer.in",
        "password_hash": get_password_hash(password) if password else "not-a-real-hash",
        "roles": roles if roles is not None else ["customer"],
        "phone": "9876543210",
        "address": "12 MG Road, Bengaluru",
        "profile_image": None,
        "donation_score": 0,
        "is_active": True,
        "last_login": None,
        "latitude": latitude,
        "longitude": longitude,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return User(**fields)


def make_product(vendor: User | None = None, **overrides) -> Product:
    now = datetime.now(UTC)
    fields = {
        "id": uuid.uuid4(),
        "vendor_id": vendor.id if vendor else uuid.uuid4(),
        "name": "Rice",
        "description": "Basmati rice",
        "category": "food",
        "quantity": 10,
        "unit": "kg",
        "expiry_date": None,
        "images": [],
        "address": "12 MG Road, Bengaluru",
        "is_active": True,
        "latitude": 12.9716,
        "longitude": 77.5946,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return Product(**fields)


def make_donation(
    product: Product | None = None,
    status: DonationStatus = DonationStatus.AVAILABLE,
    **overrides,
) -> Donation:
    now = datetime.now(UTC)
    product = product or make_product()
    fields = {
        "id": uuid.uuid4(),
        "product_id": product.id,
        "vendor_id": product.vendor_id,
        "requested_by_id": None,
        "status": status.value,
        "quantity": 2,
        "notes": None,
        "pickup_time": None,
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    donation = Donation(**fields)
    donation.product = product
    return donation


def scalar_result(value) -> MagicMock:
    """Mock ``db.execute`` result for ``scalar_one_or_none``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def scalars_result(values: list) -> MagicMock:
    """Mock ``db.execute`` result for ``scalars().all()``."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


def rows_result(rows: list) -> MagicMock:
    """Mock ``db.execute`` result for ``all()``."""
    result = MagicMock()
    result.all.return_value = rows
    return result


def make_db() -> AsyncMock:
    """AsyncMock session; ``add`` is synchronous like the real one."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


def make_request(host: str = "127.0.0.1") -> MagicMock:
    request = MagicMock()
    request.headers = {}
    request.client.host = host
    return request
