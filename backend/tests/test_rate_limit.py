"""Tests for the in-memory fixed-window rate limiter."""

from unittest.mock import patch

import pytest
from fastapi import HTTPException, status

from app.core import rate_limit
from app.core.rate_limit import client_address, enforce_rate_limit, reset_rate_limits
from conftest import make_request


class TestEnforceRateLimit:
    def setup_method(self):
        reset_rate_limits()

    def test_allows_up_to_limit(self):
        request = make_request()

        for _ in range(3):
            enforce_rate_limit(request, limit_per_minute=3, scope="test")

        with pytest.raises(HTTPException) as exc_info:
            enforce_rate_limit(request, limit_per_minute=3, scope="test")

        assert exc_info.value.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert int(exc_info.value.headers["Retry-After"]) >= 1

    def test_window_resets(self):
        request = make_request()

        with patch.object(rate_limit, "_now", return_value=1000.0):
            enforce_rate_limit(request, limit_per_minute=1, scope="test")
            with pytest.raises(HTTPException):
                enforce_rate_limit(request, limit_per_minute=1, scope="test")

        with patch.object(rate_limit, "_now", return_value=1061.0):
            enforce_rate_limit(request, limit_per_minute=1, scope="test")

    def test_keys_are_per_client_and_scope(self):
        enforce_rate_limit(make_request("10.0.0.1"), limit_per_minute=1, scope="a")
        enforce_rate_limit(make_request("10.0.0.2"), limit_per_minute=1, scope="a")
        enforce_rate_limit(make_request("10.0.0.1"), limit_per_minute=1, scope="b")

    def test_forwarded_for_header(self):
        first = make_request("10.0.0.1")
        first.headers = {"x-forwarded-for": "203.0.113.5, 10.0.0.1"}
        second = make_request("10.0.0.2")
        second.headers = {"x-forwarded-for": "203.0.113.5"}

        assert client_address(first) == "203.0.113.5"
        enforce_rate_limit(first, limit_per_minute=1, scope="xff")
        with pytest.raises(HTTPException):
            enforce_rate_limit(second, limit_per_minute=1, scope="xff")

    def test_disabled(self):
        request = make_request()

        with patch.object(rate_limit.settings, "rate_limit_enabled", False):
            for _ in range(5):
                enforce_rate_limit(request, limit_per_minute=1, scope="off")


class TestAccountLimit:
    """Login attempts also count against the account email."""

    def setup_method(self):
        reset_rate_limits()

    def test_same_account_from_many_addresses(self):
        for i in range(2):
            enforce_rate_limit(
                make_request(f"10.0.1.{i}"),
                limit_per_minute=2,
                scope="login",
                account="ngo@helpinghands.org",
            )

        with pytest.raises(HTTPException) as exc_info:
            enforce_rate_limit(
                make_request("10.0.1.99"),
                limit_per_minute=2,
                scope="login",
                account="NGO@HelpingHands.org ",
            )

        assert exc_info.value.status_code == status.HTTP_429_TOO_MANY_REQUESTS

    def test_other_accounts_unaffected(self):
        request = make_request("10.0.2.1")
        enforce_rate_limit(request, limit_per_minute=1, scope="login", account="a@helpinghands.org")

        enforce_rate_limit(
            make_request("10.0.2.2"),
            limit_per_minute=1,
            scope="login",
            account="b@helpinghands.org",
        )

    def test_rejected_attempt_is_not_counted(self):
        busy = make_request("10.0.3.1")
        enforce_rate_limit(busy, limit_per_minute=1, scope="login", account="a@helpinghands.org")

        # Address is at its limit, so nothing is counted for the second account
        with pytest.raises(HTTPException):
            enforce_rate_limit(busy, limit_per_minute=1, scope="login", account="b@helpinghands.org")

        enforce_rate_limit(
            make_request("10.0.3.2"),
            limit_per_minute=1,
            scope="login",
            account="b@helpinghands.org",
        )
