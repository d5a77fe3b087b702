"""Base model with common fields."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.services.geo import GeoPoint


class TimestampMixin:
    """Mixin for created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDMixin:
    """Mixin for UUID primary key."""

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


class LocationMixin:
    """Mixin for a WGS84 point stored as two indexed float columns."""

    latitude: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        index=True,
    )
    longitude: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        index=True,
    )

    @property
    def point(self) -> GeoPoint | None:
        if self.latitude is None or self.longitude is None:
            return None
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)

    def set_point(self, point: GeoPoint | None) -> None:
        self.latitude = point.latitude if point else None
        self.longitude = point.longitude if point else None

    @property
    def location(self) -> dict[str, Any] | None:
        """Location as a GeoJSON point."""
        point = self.point
        return point.to_geojson() if point else None


class BaseModel(Base, UUIDMixin, TimestampMixin):
    """Base model with UUID primary key and timestamps."""

    __abstract__ = True
