"""Stream Chat server-side client.

Real-time messaging, presence and channel state live entirely in Stream.
This backend only:
- issues user tokens for the client SDK,
- mirrors users into Stream (upsert),
- creates channels on behalf of a user,
- reads unread counts for dashboards.

Calls go to the Stream REST API with a server-side JWT signed by the API
secret.
"""

import logging
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from jose import jwt

from app.core.config import settings

logger = logging.getLogger(__name__)


class StreamChatError(Exception):
    """Base exception for Stream Chat API errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class StreamChatConfigurationError(StreamChatError):
    """Raised when Stream credentials are missing."""

    def __init__(self, message: str = "Stream Chat is not configured."):
        super().__init__(message, status_code=500)


class StreamChatAuthenticationError(StreamChatError):
    """Raised when Stream rejects the server credentials."""

    def __init__(self, message: str = "Stream Chat authentication failed."):
        super().__init__(message, status_code=401)


class StreamChatRateLimitError(StreamChatError):
    """Raised when the Stream API rate limit is exceeded."""

    def __init__(self, reset_at: datetime | None = None):
        self.reset_at = reset_at
        super().__init__("Stream Chat rate limit exceeded. Please try again later.", status_code=429)


class StreamChatTimeoutError(StreamChatError):
    """Raised when a Stream API request times out."""

    def __init__(self, message: str = "Stream Chat request timed out."):
        super().__init__(message, status_code=504)


class ChatUser(Protocol):
    id: Any
    name: str
    email: str
    profile_image: str | None
    roles: list[str]


def default_avatar_url(name: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote(name)}&background=random"


def build_stream_user(user: ChatUser) -> dict[str, Any]:
    """Build the Stream user payload for a local user.

    Role flags are applied in vendor, ngo, customer order, so for multi-role
    users the last matching role wins ``userType``.
    """
    user_id = str(user.id)
    roles = user.roles or []

    payload: dict[str, Any] = {
        "id": user_id,
        "name": user.name,
        "email": user.email,
        "image": user.profile_image or default_avatar_url(user.name),
    }
    if "vendor" in roles:
        payload.update({"vendorId": user_id, "isVendor": True, "userType": "vendor"})
    if "ngo" in roles:
        payload.update({"ngoId": user_id, "isNGO": True, "userType": "ngo"})
    if "customer" in roles:
        payload.update({"customerId": user_id, "isCustomer": True, "userType": "customer"})
    return payload


class StreamChatService:
    """Service for interacting with the Stream Chat REST API."""

    DEFAULT_BASE_URL = "https://chat.stream-io-api.com"

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        base_url: str | None = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = httpx.Timeout(timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise StreamChatConfigurationError()

    def create_token(
        self,
        user_id: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a client-side user token. No network call is made."""
        self._require_configured()
        claims: dict[str, Any] = {"user_id": user_id}
        if expires_delta:
            now = datetime.now(UTC)
            claims["iat"] = now
            claims["exp"] = now + expires_delta
        return jwt.encode(claims, self.api_secret, algorithm="HS256")

    def _server_token(self) -> str:
        return jwt.encode({"server": True}, self.api_secret, algorithm="HS256")

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": self._server_token(),
            "stream-auth-type": "jwt",
            "Content-Type": "application/json",
            "X-Stream-Client": "prakriti-setu-backend",
        }

    def _handle_response_error(self, response: httpx.Response) -> None:
        """Raise a typed error for a failed Stream response."""
        if response.is_success:
            return

        status_code = response.status_code

        if status_code == 429:
            reset_at = None
            reset_timestamp = response.headers.get("x-ratelimit-reset")
            if reset_timestamp:
                try:
                    reset_at = datetime.fromtimestamp(int(reset_timestamp), tz=UTC)
                except (ValueError, TypeError):
                    pass
            raise StreamChatRateLimitError(reset_at=reset_at)

        if status_code in (401, 403):
            raise StreamChatAuthenticationError()

        try:
            error_data = response.json()
            message = error_data.get("message", response.text)
        except ValueError:
            message = response.text or f"Stream Chat API error: {status_code}"

        raise StreamChatError(message, status_code=status_code)

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        self._require_configured()
        query = {"api_key": self.api_key, **(params or {})}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}/{path.lstrip('/')}",
                    headers=self._get_headers(),
                    params=query,
                    json=json,
                )
        except httpx.TimeoutException:
            raise StreamChatTimeoutError()
        except httpx.HTTPError as e:
            raise StreamChatError(f"Stream Chat request failed: {e}", status_code=502)

        self._handle_response_error(response)
        try:
            return response.json()
        except ValueError:
            raise StreamChatError("Invalid Stream Chat response", status_code=502)

    async def upsert_users(self, users: list[dict[str, Any]]) -> dict[str, Any]:
        """Create or update users in Stream.

        Args:
            users: Stream user payloads, each with an ``id``.

        Returns:
            Stream response with the stored users keyed by id.
        """
        return await self._request(
            "POST",
            "/users",
            json={"users": {u["id"]: u for u in users}},
        )

    async def upsert_user(self, user: dict[str, Any]) -> dict[str, Any]:
        return await self.upsert_users([user])

    async def create_channel(
        self,
        channel_type: str,
        channel_id: str,
        created_by_id: str,
        members: list[str],
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a channel (or fetch it if it already exists).

        Args:
            channel_type: Stream channel type, e.g. ``messaging``.
            channel_id: Channel id.
            created_by_id: Id of the user creating the channel.
            members: Member user ids.
            data: Extra channel fields (name, image, custom metadata).

        Returns:
            The channel as returned by Stream.
        """
        channel_data = {
            **(data or {}),
            "members": members,
            "created_by": {"id": created_by_id},
        }
        response = await self._request(
            "POST",
            f"/channels/{channel_type}/{channel_id}/query",
            json={
                "data": channel_data,
                "state": False,
                "watch": False,
                "presence": False,
            },
        )
        return response.get("channel", {})

    async def get_unread_count(self, user_id: str) -> int:
        """Total unread messages across all channels of a user."""
        response = await self._request("GET", "/unread", params={"user_id": user_id})
        return int(response.get("total_unread_count", 0))


@lru_cache
def get_stream_service() -> StreamChatService:
    """Get cached Stream Chat service built from settings."""
    return StreamChatService(
        api_key=settings.stream_api_key,
        api_secret=settings.stream_api_secret,
        base_url=settings.stream_base_url,
        timeout=settings.stream_timeout_seconds,
    )


async def sync_stream_user(user: ChatUser, service: StreamChatService | None = None) -> bool:
    """Mirror a user into Stream.

    Failures are logged and swallowed; the local user record is the source of
    truth and must persist regardless.

    Returns:
        True if Stream accepted the user.
    """
    service = service or get_stream_service()
    payload = build_stream_user(user)
    try:
        await service.upsert_user(payload)
    except StreamChatError as e:
        logger.error(f"Error creating Stream Chat user {payload['id']}: {e.message}")
        return False
    logger.info(f"Stream Chat user synced: {user.name} ({payload['id']})")
    return True


async def unread_count_or_zero(user_id: str, service: StreamChatService | None = None) -> int:
    """Unread message count, or 0 if Stream is unavailable."""
    service = service or get_stream_service()
    if not service.is_configured:
        return 0
    try:
        return await service.get_unread_count(user_id)
    except StreamChatError as e:
        logger.warning(f"Failed to fetch unread count for {user_id}: {e.message}")
        return 0
