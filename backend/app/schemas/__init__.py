"""Pydantic schemas for request/response validation."""

from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
    SignupRequest,
)
from app.schemas.common import (
    BaseSchema,
    ErrorDetail,
    ErrorResponse,
    GeoLocation,
    MessageResponse,
    PaginatedResponse,
    PaginationMeta,
)
from app.schemas.dashboard import (
    CustomerStats,
    CustomerStatsResponse,
    NGOStats,
    NGOStatsResponse,
    VendorStats,
    VendorStatsResponse,
)
from app.schemas.donation import (
    DonationActionRequest,
    DonationCreate,
    DonationResponse,
)
from app.schemas.product import (
    ProductCreate,
    ProductImageResponse,
    ProductResponse,
    ProductUpdate,
)
from app.schemas.stream import (
    ChannelCreate,
    ChannelResponse,
    StreamTokenResponse,
)
from app.schemas.user import (
    NearbyUser,
    NearbyUsersResponse,
    TopDonorsResponse,
    UserInfo,
    UserPublic,
)

__all__ = [
    # Auth
    "SignupRequest",
    "LoginRequest",
    "ProfileUpdate",
    "AuthResponse",
    "ProfileResponse",
    "ProfileUpdateResponse",
    # Common
    "BaseSchema",
    "GeoLocation",
    "PaginatedResponse",
    "PaginationMeta",
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    # Dashboard
    "CustomerStats",
    "CustomerStatsResponse",
    "VendorStats",
    "VendorStatsResponse",
    "NGOStats",
    "NGOStatsResponse",
    # Donation
    "DonationCreate",
    "DonationActionRequest",
    "DonationResponse",
    # Product
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductImageResponse",
    # Stream
    "StreamTokenResponse",
    "ChannelCreate",
    "ChannelResponse",
    # User
    "UserInfo",
    "UserPublic",
    "NearbyUser",
    "NearbyUsersResponse",
    "TopDonorsResponse",
]
