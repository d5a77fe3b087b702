"""Tests for user discovery endpoints."""

import uuid

import pytest
from fastapi import HTTPException, status
from sqlalchemy.dialects import postgresql

from app.api.v1.users import get_user, list_nearby_users, list_top_donors
from app.models.user import UserRole
from conftest import make_db, make_user, rows_result, scalar_result, scalars_result


class TestNearbyUsers:
    @pytest.mark.asyncio
    async def test_defaults_to_callers_location(self):
        customer = make_user(roles=["customer"])
        vendor = make_user(roles=["vendor"], name="Green Grocers")
        mock_db = make_db()
        mock_db.execute.return_value = rows_result([(vendor, 2500.0)])

        response = await list_nearby_users(
            current_user=customer, db=mock_db,
            role=UserRole.VENDOR, latitude=None, longitude=None, radius_km=50, limit=50,
        )

        assert response.count == 1
        assert response.users[0].id == vendor.id
        assert response.users[0].distance_km == 2.5
        assert response.users[0].name == "Green Grocers"

    @pytest.mark.asyncio
    async def test_requires_a_location(self):
        user = make_user(latitude=None, longitude=None)

        with pytest.raises(HTTPException) as exc_info:
            await list_nearby_users(
                current_user=user, db=make_db(),
                role=UserRole.NGO, latitude=None, longitude=None, radius_km=50, limit=50,
            )

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_explicit_point_without_profile_location(self):
        user = make_user(latitude=None, longitude=None)
        mock_db = make_db()
        mock_db.execute.return_value = rows_result([])

        response = await list_nearby_users(
            current_user=user, db=mock_db,
            role=UserRole.NGO, latitude=19.07, longitude=72.87, radius_km=10, limit=5,
        )

        assert response.count == 0
        assert response.users == []

    @pytest.mark.asyncio
    async def test_half_a_point_is_400_even_with_profile_location(self):
        with pytest.raises(HTTPException) as exc_info:
            await list_nearby_users(
                current_user=make_user(), db=make_db(),
                role=UserRole.NGO, latitude=19.07, longitude=None, radius_km=10, limit=5,
            )

        assert exc_info.value.detail == "Latitude and longitude must be provided together"

    @pytest.mark.asyncio
    async def test_query_excludes_caller_and_inactive_users(self):
        user = make_user()
        mock_db = make_db()
        mock_db.execute.return_value = rows_result([])

        await list_nearby_users(
            current_user=user, db=mock_db,
            role=UserRole.VENDOR, latitude=None, longitude=None, radius_km=50, limit=50,
        )

        query = mock_db.execute.call_args.args[0]
        sql = str(query.compile(dialect=postgresql.dialect()))
        assert "users.is_active IS true" in sql
        assert "users.id !=" in sql


class TestTopDonors:
    @pytest.mark.asyncio
    async def test_returns_public_profiles(self):
        donors = [
            make_user(roles=["vendor"], donation_score=50),
            make_user(roles=["vendor"], donation_score=20),
        ]
        mock_db = make_db()
        mock_db.execute.return_value = scalars_result(donors)

        response = await list_top_donors(current_user=make_user(), db=mock_db, limit=10)

        assert [u.donation_score for u in response.users] == [50, 20]
        assert not hasattr(response.users[0], "email")


class TestGetUser:
    @pytest.mark.asyncio
    async def test_unknown_user_is_404(self):
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(HTTPException) as exc_info:
            await get_user(user_id=uuid.uuid4(), current_user=make_user(), db=mock_db)

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND
        assert exc_info.value.detail == "User not found"

    @pytest.mark.asyncio
    async def test_public_profile(self):
        other = make_user(roles=["ngo"], name="Helping Hands")
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(other)

        response = await get_user(user_id=other.id, current_user=make_user(), db=mock_db)

        assert response.name == "Helping Hands"
        assert response.location.coordinates == (other.longitude, other.latitude)
