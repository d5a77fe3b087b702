"""Product model."""

import enum
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, LocationMixin

if TYPE_CHECKING:
    from app.models.donation import Donation
    from app.models.user import User


class ProductCategory(str, enum.Enum):
    """Product category."""

    FOOD = "food"
    CLOTHING = "clothing"
    ELECTRONICS = "electronics"
    FURNITURE = "furniture"
    BOOKS = "books"
    HOUSEHOLD = "household"
    OTHER = "other"


class Product(BaseModel, LocationMixin):
    """Item listed by a vendor, optionally offered as a donation."""

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity"),
        CheckConstraint("latitude IS NULL OR latitude BETWEEN -90 AND 90", name="ck_products_latitude"),
        CheckConstraint("longitude IS NULL OR longitude BETWEEN -180 AND 180", name="ck_products_longitude"),
    )

    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    category: Mapped[str] = mapped_column(
        String(50),
        server_default=ProductCategory.OTHER.value,
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(
        Integer,
        default=1,
        nullable=False,
    )
    unit: Mapped[str] = mapped_column(
        String(32),
        server_default="pcs",
        nullable=False,
    )
    expiry_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )
    images: Mapped[list[str]] = mapped_column(
        JSONB,
        default=list,
        nullable=False,
    )
    address: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        nullable=False,
        index=True,
    )

    # Relationships
    vendor: Mapped["User"] = relationship(
        "User",
        back_populates="products",
    )
    donations: Mapped[list["Donation"]] = relationship(
        "Donation",
        back_populates="product",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Product {self.name}>"
