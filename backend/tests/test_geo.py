"""Property-based tests for geospatial helpers.

Uses Hypothesis to check the bounding-box prefilter never excludes a point
that the exact haversine filter would keep.
"""

import math

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from app.models.user import User
from app.services.geo import (
    EARTH_RADIUS_M,
    GeoPoint,
    InvalidCoordinatesError,
    bounding_box,
    haversine_distance_m,
    within_radius,
)

# =============================================================================
# Custom Strategies
# =============================================================================


def latitudes() -> st.SearchStrategy[float]:
    return st.floats(min_value=-90, max_value=90, allow_nan=False)


def longitudes() -> st.SearchStrategy[float]:
    return st.floats(min_value=-180, max_value=180, allow_nan=False)


@st.composite
def geo_points(draw) -> GeoPoint:
    return GeoPoint(latitude=draw(latitudes()), longitude=draw(longitudes()))


def radii() -> st.SearchStrategy[float]:
    """Radii from 100 m to 500 km."""
    return st.floats(min_value=100, max_value=500_000, allow_nan=False)


def destination(origin: GeoPoint, bearing_rad: float, distance_m: float) -> GeoPoint:
    """Point reached travelling distance_m from origin along bearing."""
    angular = distance_m / EARTH_RADIUS_M
    lat1 = math.radians(origin.latitude)
    lon1 = math.radians(origin.longitude)

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(bearing_rad)
    )
    lon2 = lon1 + math.atan2(
        math.sin(bearing_rad) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )
    lon2 = (math.degrees(lon2) + 540) % 360 - 180
    lat2 = max(-90.0, min(90.0, math.degrees(lat2)))
    return GeoPoint(latitude=lat2, longitude=lon2)


# =============================================================================
# GeoPoint
# =============================================================================


class TestGeoPoint:
    """Coordinate validation and GeoJSON conversion."""

    def test_geojson_is_longitude_first(self):
        point = GeoPoint(latitude=12.97, longitude=77.59)

        assert point.to_geojson() == {"type": "Point", "coordinates": [77.59, 12.97]}

    def test_from_geojson(self):
        point = GeoPoint.from_geojson({"type": "Point", "coordinates": [77.59, 12.97]})

        assert point.latitude == 12.97
        assert point.longitude == 77.59

    @pytest.mark.parametrize(
        "latitude,longitude",
        [(91, 0), (-90.5, 0), (0, 180.1), (0, -181), (float("nan"), 0)],
    )
    def test_out_of_range_rejected(self, latitude, longitude):
        with pytest.raises(InvalidCoordinatesError):
            GeoPoint(latitude=latitude, longitude=longitude)

    def test_from_geojson_rejects_other_types(self):
        with pytest.raises(InvalidCoordinatesError):
            GeoPoint.from_geojson({"type": "Polygon", "coordinates": []})

    def test_from_geojson_requires_pair(self):
        with pytest.raises(InvalidCoordinatesError):
            GeoPoint.from_geojson({"type": "Point", "coordinates": [1.0]})


# =============================================================================
# Haversine
# =============================================================================


class TestHaversine:
    def test_known_distance(self):
        """Bengaluru to Chennai is roughly 290 km."""
        bengaluru = GeoPoint(latitude=12.9716, longitude=77.5946)
        chennai = GeoPoint(latitude=13.0827, longitude=80.2707)

        distance_km = haversine_distance_m(bengaluru, chennai) / 1000

        assert 285 < distance_km < 295

    def test_zero_distance(self):
        point = GeoPoint(latitude=10, longitude=20)

        assert haversine_distance_m(point, point) == 0

    @given(a=geo_points(), b=geo_points())
    @settings(max_examples=100)
    def test_symmetric_and_bounded(self, a, b):
        d_ab = haversine_distance_m(a, b)
        d_ba = haversine_distance_m(b, a)

        assert d_ab == pytest.approx(d_ba, abs=1e-6)
        assert 0 <= d_ab <= math.pi * EARTH_RADIUS_M + 1


# =============================================================================
# Bounding box
# =============================================================================


class TestBoundingBox:
    def test_negative_radius_rejected(self):
        with pytest.raises(ValueError):
            bounding_box(GeoPoint(latitude=0, longitude=0), -1)

    def test_box_contains_center(self):
        center = GeoPoint(latitude=12.97, longitude=77.59)
        box = bounding_box(center, 50_000)

        assert box.min_latitude < center.latitude < box.max_latitude
        assert box.min_longitude < center.longitude < box.max_longitude

    def test_polar_box_spans_all_longitudes(self):
        box = bounding_box(GeoPoint(latitude=89.9, longitude=10), 50_000)

        assert box.min_longitude == -180
        assert box.max_longitude == 180
        assert box.max_latitude == 90

    def test_antimeridian_box_spans_all_longitudes(self):
        box = bounding_box(GeoPoint(latitude=0, longitude=179.9), 50_000)

        assert box.min_longitude == -180
        assert box.max_longitude == 180

    @given(center=geo_points(), radius=radii(), bearing=st.floats(min_value=0, max_value=2 * math.pi))
    @settings(max_examples=200)
    def test_points_inside_radius_are_inside_box(self, center, radius, bearing):
        """Any point within the radius passes the bounding-box prefilter."""
        target = destination(center, bearing, radius * 0.999)
        assume(haversine_distance_m(center, target) <= radius)

        box = bounding_box(center, radius)

        assert box.min_latitude - 1e-9 <= target.latitude <= box.max_latitude + 1e-9
        assert box.min_longitude - 1e-9 <= target.longitude <= box.max_longitude + 1e-9


# =============================================================================
# SQL query building
# =============================================================================


class TestWithinRadius:
    def _compile(self, query) -> str:
        return str(query.compile(dialect=postgresql.dialect()))

    def test_adds_distance_filter_and_ordering(self):
        center = GeoPoint(latitude=12.97, longitude=77.59)

        sql = self._compile(within_radius(select(User), User.latitude, User.longitude, center, 50_000))

        assert "asin" in sql
        assert "BETWEEN" in sql
        assert "ORDER BY" in sql

    def test_without_ordering(self):
        center = GeoPoint(latitude=12.97, longitude=77.59)

        sql = self._compile(
            within_radius(
                select(User.id), User.latitude, User.longitude, center, 50_000,
                order_by_distance=False,
            )
        )

        assert "ORDER BY" not in sql
        assert "latitude IS NOT NULL" in sql
