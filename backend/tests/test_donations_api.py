"""Tests for donation endpoints.

**Feature: donation-lifecycle**
"""

import uuid
from datetime import UTC, datetime

import pytest
from fastapi import HTTPException, status

from app.api.v1.donations import (
    cancel_donation,
    complete_donation,
    confirm_donation,
    create_donation,
    get_donation,
    list_donations,
    list_my_donations,
    reject_donation,
    request_donation,
)
from app.models.donation import DonationStatus
from app.schemas.donation import DonationActionRequest, DonationCreate
from conftest import make_db, make_donation, make_product, make_user, scalar_result, scalars_result


def _assign_id(obj) -> None:
    obj.id = uuid.uuid4()


def _with_timestamps(obj, attribute_names=None) -> None:
    now = datetime.now(UTC)
    obj.created_at = obj.created_at or now
    obj.updated_at = now


class TestCreateDonation:
    @pytest.mark.asyncio
    async def test_offer_product(self):
        vendor = make_user(roles=["vendor"])
        product = make_product(vendor, quantity=10)
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(product)
        mock_db.add.side_effect = _assign_id
        mock_db.refresh.side_effect = _with_timestamps

        response = await create_donation(
            payload=DonationCreate(product_id=product.id, quantity=4, notes="Fresh stock"),
            current_user=vendor,
            db=mock_db,
        )

        assert response.status == DonationStatus.AVAILABLE
        assert response.vendor_id == vendor.id
        assert response.quantity == 4
        assert response.product.name == product.name

    @pytest.mark.asyncio
    async def test_unknown_product_is_404(self):
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(HTTPException) as exc_info:
            await create_donation(
                payload=DonationCreate(product_id=uuid.uuid4()),
                current_user=make_user(roles=["vendor"]),
                db=mock_db,
            )

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_quantity_exceeding_stock(self):
        vendor = make_user(roles=["vendor"])
        product = make_product(vendor, quantity=3, unit="kg")
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(product)

        with pytest.raises(HTTPException) as exc_info:
            await create_donation(
                payload=DonationCreate(product_id=product.id, quantity=5),
                current_user=vendor,
                db=mock_db,
            )

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert exc_info.value.detail == "Only 3 kg available"
        mock_db.add.assert_not_called()


class TestLifecycleEndpoints:
    """Actions map lifecycle errors to 400/403."""

    @pytest.mark.asyncio
    async def test_ngo_requests_with_details(self):
        donation = make_donation()
        ngo = make_user(roles=["ngo"])
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(donation)
        pickup = datetime(2025, 6, 1, 10, 0, tzinfo=UTC)

        response = await request_donation(
            donation_id=donation.id,
            current_user=ngo,
            db=mock_db,
            details=DonationActionRequest(notes="Will collect", pickup_time=pickup),
        )

        assert response.status == DonationStatus.REQUESTED
        assert response.requested_by_id == ngo.id
        assert response.notes == "Will collect"
        assert response.pickup_time == pickup
        mock_db.refresh.assert_awaited_once_with(donation, attribute_names=["updated_at"])

    @pytest.mark.asyncio
    async def test_customer_cannot_request(self):
        donation = make_donation()
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(donation)

        with pytest.raises(HTTPException) as exc_info:
            await request_donation(
                donation_id=donation.id,
                current_user=make_user(roles=["customer"]),
                db=mock_db,
            )

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
        assert donation.status == DonationStatus.AVAILABLE.value

    @pytest.mark.asyncio
    async def test_confirm_wrong_status_is_400(self):
        donation = make_donation()
        vendor = make_user(roles=["vendor"], id=donation.vendor_id)
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(donation)

        with pytest.raises(HTTPException) as exc_info:
            await confirm_donation(donation_id=donation.id, current_user=vendor, db=mock_db)

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_reject_clears_requester(self):
        ngo = make_user(roles=["ngo"])
        donation = make_donation(status=DonationStatus.REQUESTED, requested_by_id=ngo.id)
        vendor = make_user(roles=["vendor"], id=donation.vendor_id)
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(donation)

        response = await reject_donation(donation_id=donation.id, current_user=vendor, db=mock_db)

        assert response.status == DonationStatus.AVAILABLE
        assert response.requested_by_id is None

    @pytest.mark.asyncio
    async def test_complete_by_ngo_credits_vendor(self):
        ngo = make_user(roles=["ngo"])
        donation = make_donation(status=DonationStatus.PICKED_UP, requested_by_id=ngo.id)
        vendor = make_user(roles=["vendor"], id=donation.vendor_id, donation_score=10)
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(donation)
        mock_db.get.return_value = vendor

        response = await complete_donation(donation_id=donation.id, current_user=ngo, db=mock_db)

        assert response.status == DonationStatus.COMPLETED
        assert vendor.donation_score == 20
        assert response.completed_at is not None

    @pytest.mark.asyncio
    async def test_complete_by_vendor_uses_current_user(self):
        donation = make_donation(status=DonationStatus.PICKED_UP, requested_by_id=uuid.uuid4())
        vendor = make_user(roles=["vendor"], id=donation.vendor_id, donation_score=0)
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(donation)

        await complete_donation(donation_id=donation.id, current_user=vendor, db=mock_db)

        assert vendor.donation_score == 10
        mock_db.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_by_other_vendor_is_403(self):
        donation = make_donation()
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(donation)

        with pytest.raises(HTTPException) as exc_info:
            await cancel_donation(
                donation_id=donation.id,
                current_user=make_user(roles=["vendor"]),
                db=mock_db,
            )

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_missing_donation_is_404(self):
        mock_db = make_db()
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(HTTPException) as exc_info:
            await get_donation(donation_id=uuid.uuid4(), current_user=make_user(), db=mock_db)

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND
        assert exc_info.value.detail == "Donation not found"


class TestListDonations:
    @pytest.mark.asyncio
    async def test_list_available(self):
        donations = [make_donation(), make_donation()]
        mock_db = make_db()
        mock_db.scalar.return_value = 2
        mock_db.execute.return_value = scalars_result(donations)

        response = await list_donations(
            current_user=make_user(roles=["ngo"]), db=mock_db,
            status_filter=DonationStatus.AVAILABLE,
            latitude=12.97, longitude=77.59, radius_km=10,
            page=1, per_page=20,
        )

        assert response.pagination.total == 2
        assert all(d.status == DonationStatus.AVAILABLE for d in response.data)

    @pytest.mark.asyncio
    async def test_list_with_longitude_only_is_400(self):
        with pytest.raises(HTTPException) as exc_info:
            await list_donations(
                current_user=make_user(roles=["ngo"]), db=make_db(),
                status_filter=DonationStatus.AVAILABLE,
                latitude=None, longitude=77.59, radius_km=10,
                page=1, per_page=20,
            )

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_mine_requires_vendor_or_ngo(self):
        with pytest.raises(HTTPException) as exc_info:
            await list_my_donations(
                current_user=make_user(roles=["customer"]), db=make_db(),
                status_filter=None, page=1, per_page=20,
            )

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
        assert exc_info.value.detail == "Access denied. Vendor or NGO role required."

    @pytest.mark.asyncio
    async def test_mine_for_ngo(self):
        ngo = make_user(roles=["ngo"])
        donation = make_donation(status=DonationStatus.REQUESTED, requested_by_id=ngo.id)
        mock_db = make_db()
        mock_db.scalar.return_value = 1
        mock_db.execute.return_value = scalars_result([donation])

        response = await list_my_donations(
            current_user=ngo, db=mock_db, status_filter=DonationStatus.REQUESTED, page=1, per_page=20
        )

        assert response.data[0].requested_by_id == ngo.id
