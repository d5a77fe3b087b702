"""Authentication endpoints."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.api.deps import CurrentUser, DbSession
from app.core.config import settings
from app.core.rate_limit import enforce_rate_limit
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    ProfileUpdateResponse,
    SignupRequest,
)
from app.schemas.user import UserInfo
from app.services.geo import GeoPoint
from app.services.stream_chat import sync_stream_user

logger = logging.getLogger(__name__)
router = APIRouter()


def _issue_token(user: User) -> tuple[str, int]:
    token = create_access_token(str(user.id))
    return token, settings.jwt_access_token_expire_minutes * 60


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: Request,
    payload: SignupRequest,
    db: DbSession,
) -> AuthResponse:
    """Register a new user."""
    enforce_rate_limit(
        request,
        limit_per_minute=settings.auth_rate_limit_per_minute,
        scope="auth:signup",
    )

    existing = await db.execute(select(User).where(User.email == payload.email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists with this email",
        )

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        roles=[role.value for role in payload.roles],
        phone=payload.phone,
        address=payload.address,
        donation_score=0,
        is_active=True,
    )
    user.set_point(GeoPoint(latitude=payload.latitude, longitude=payload.longitude))
    try:
        db.add(user)
        await db.flush()
    except IntegrityError:
        # Concurrent signup with the same email won the unique index
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists with this email",
        )
    await db.refresh(user)

    logger.info(f"Registered user {user.id} with roles {user.roles}")

    # Chat sync is best-effort; the account exists either way
    await sync_stream_user(user)

    token, expires_in = _issue_token(user)
    return AuthResponse(
        message="User registered successfully",
        token=token,
        expires_in=expires_in,
        user=UserInfo.from_user(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    request: Request,
    payload: LoginRequest,
    db: DbSession,
) -> AuthResponse:
    """Login with email and password."""
    enforce_rate_limit(
        request,
        limit_per_minute=settings.auth_rate_limit_per_minute,
        scope="auth:login",
        account=payload.email,
    )

    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated",
        )

    user.last_login = datetime.now(UTC)
    await db.flush()

    token, expires_in = _issue_token(user)
    return AuthResponse(
        message="Login successful",
        token=token,
        expires_in=expires_in,
        user=UserInfo.from_user(user),
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: CurrentUser) -> ProfileResponse:
    """Get current user profile."""
    return ProfileResponse(user=UserInfo.from_user(current_user))


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    update: ProfileUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> ProfileUpdateResponse:
    """Update name, phone, address and/or location of the current user."""
    if update.name is not None:
        current_user.name = update.name
    if update.phone is not None:
        current_user.phone = update.phone
    if update.address is not None:
        current_user.address = update.address
    if update.latitude is not None and update.longitude is not None:
        current_user.set_point(
            GeoPoint(latitude=update.latitude, longitude=update.longitude)
        )

    await db.flush()

    if update.name is not None:
        await sync_stream_user(current_user)

    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserInfo.from_user(current_user),
    )
