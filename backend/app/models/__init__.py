"""SQLAlchemy models."""

from app.models.donation import Donation, DonationStatus
from app.models.product import Product, ProductCategory
from app.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "Product",
    "ProductCategory",
    "Donation",
    "DonationStatus",
]
