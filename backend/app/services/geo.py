"""Geospatial helpers for nearby discovery.

Locations are stored as plain latitude/longitude columns. Radius queries use
a bounding-box prefilter (index friendly) followed by an exact haversine
distance filter, ordered nearest first.

Distances are great-circle distances on a spherical earth using the mean
radius, which is well within tolerance for a 50 km discovery radius.
"""

import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, func

EARTH_RADIUS_M = 6_371_008.8

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0


class InvalidCoordinatesError(ValueError):
    """Raised for latitude/longitude outside the WGS84 range."""


def validate_latitude(value: float) -> float:
    if not MIN_LATITUDE <= value <= MAX_LATITUDE:
        raise InvalidCoordinatesError("Valid latitude required")
    return value


def validate_longitude(value: float) -> float:
    if not MIN_LONGITUDE <= value <= MAX_LONGITUDE:
        raise InvalidCoordinatesError("Valid longitude required")
    return value


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 point."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not isinstance(self.latitude, int | float) or math.isnan(self.latitude):
            raise InvalidCoordinatesError("Valid latitude required")
        if not isinstance(self.longitude, int | float) or math.isnan(self.longitude):
            raise InvalidCoordinatesError("Valid longitude required")
        validate_latitude(self.latitude)
        validate_longitude(self.longitude)

    def to_geojson(self) -> dict[str, Any]:
        """GeoJSON point; coordinates are [longitude, latitude]."""
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    @classmethod
    def from_geojson(cls, data: dict[str, Any]) -> "GeoPoint":
        if data.get("type") != "Point":
            raise InvalidCoordinatesError("Only GeoJSON Point locations are supported")
        coordinates = data.get("coordinates") or []
        if len(coordinates) != 2:
            raise InvalidCoordinatesError("Point requires [longitude, latitude]")
        longitude, latitude = coordinates
        return cls(latitude=float(latitude), longitude=float(longitude))


@dataclass(frozen=True)
class BoundingBox:
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in metres."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Clamp for floating point drift on antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def bounding_box(center: GeoPoint, radius_m: float) -> BoundingBox:
    """Lat/lon envelope containing every point within radius_m of center.

    Near the poles, or when the radius spans the pole, the longitude range
    widens to the full [-180, 180]. The box never wraps the antimeridian;
    a box that would cross it is widened to the full longitude range.
    """
    if radius_m < 0:
        raise ValueError("radius_m must be non-negative")

    angular = radius_m / EARTH_RADIUS_M
    lat = math.radians(center.latitude)

    min_lat = lat - angular
    max_lat = lat + angular

    if min_lat <= math.radians(MIN_LATITUDE) or max_lat >= math.radians(MAX_LATITUDE):
        return BoundingBox(
            min_latitude=max(MIN_LATITUDE, math.degrees(min_lat)),
            max_latitude=min(MAX_LATITUDE, math.degrees(max_lat)),
            min_longitude=MIN_LONGITUDE,
            max_longitude=MAX_LONGITUDE,
        )

    delta_lon = math.asin(min(1.0, math.sin(angular) / math.cos(lat)))
    min_lon = center.longitude - math.degrees(delta_lon)
    max_lon = center.longitude + math.degrees(delta_lon)

    if min_lon < MIN_LONGITUDE or max_lon > MAX_LONGITUDE:
        min_lon, max_lon = MIN_LONGITUDE, MAX_LONGITUDE

    return BoundingBox(
        min_latitude=math.degrees(min_lat),
        max_latitude=math.degrees(max_lat),
        min_longitude=min_lon,
        max_longitude=max_lon,
    )


def distance_expression(
    lat_col: ColumnElement[Any],
    lon_col: ColumnElement[Any],
    center: GeoPoint,
) -> ColumnElement[float]:
    """SQL haversine distance in metres from center to (lat_col, lon_col)."""
    lat0 = math.radians(center.latitude)
    lon0 = math.radians(center.longitude)

    lat = func.radians(lat_col)
    lon = func.radians(lon_col)

    h = func.power(func.sin((lat - lat0) / 2), 2) + math.cos(lat0) * func.cos(lat) * func.power(
        func.sin((lon - lon0) / 2), 2
    )
    h = func.least(1.0, func.greatest(0.0, h))
    return 2 * EARTH_RADIUS_M * func.asin(func.sqrt(h))


def within_radius(
    query: Select[Any],
    lat_col: ColumnElement[Any],
    lon_col: ColumnElement[Any],
    center: GeoPoint,
    radius_m: float,
    order_by_distance: bool = True,
) -> Select[Any]:
    """Restrict a select to rows within radius_m of center, nearest first."""
    box = bounding_box(center, radius_m)
    distance = distance_expression(lat_col, lon_col, center)

    query = query.where(
        lat_col.is_not(None),
        lon_col.is_not(None),
        lat_col.between(box.min_latitude, box.max_latitude),
        lon_col.between(box.min_longitude, box.max_longitude),
        distance <= radius_m,
    )
    if order_by_distance:
        query = query.order_by(distance)
    return query
