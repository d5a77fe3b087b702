"""User model."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, LocationMixin

if TYPE_CHECKING:
    from app.models.donation import Donation
    from app.models.product import Product


class UserRole(str, enum.Enum):
    """Marketplace role."""

    CUSTOMER = "customer"
    VENDOR = "vendor"
    NGO = "ngo"


class User(BaseModel, LocationMixin):
    """User model - email/password account with one or more roles."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("latitude IS NULL OR latitude BETWEEN -90 AND 90", name="ck_users_latitude"),
        CheckConstraint("longitude IS NULL OR longitude BETWEEN -180 AND 180", name="ck_users_longitude"),
        CheckConstraint(
            "roles <@ ARRAY['customer', 'vendor', 'ngo']::varchar[] AND cardinality(roles) > 0",
            name="ck_users_roles",
        ),
        Index("ix_users_roles", "roles", postgresql_using="gin"),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    roles: Mapped[list[str]] = mapped_column(
        ARRAY(String(20)),
        nullable=False,
        default=list,
    )
    phone: Mapped[str | None] = mapped_column(
        String(32),
        nullable=True,
    )
    address: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    profile_image: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    donation_score: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        nullable=False,
        index=True,
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    products: Mapped[list["Product"]] = relationship(
        "Product",
        back_populates="vendor",
        cascade="all, delete-orphan",
    )
    offered_donations: Mapped[list["Donation"]] = relationship(
        "Donation",
        back_populates="vendor",
        foreign_keys="Donation.vendor_id",
    )
    requested_donations: Mapped[list["Donation"]] = relationship(
        "Donation",
        back_populates="requested_by",
        foreign_keys="Donation.requested_by_id",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
