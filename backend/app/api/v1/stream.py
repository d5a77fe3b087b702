"""Stream Chat proxy endpoints.

Messaging itself happens between the client SDK and Stream. These endpoints
hand out user tokens and create channels with server credentials.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from app.api.deps import CurrentUser, DbSession
from app.models.user import User
from app.schemas.stream import ChannelCreate, ChannelResponse, StreamTokenResponse
from app.services.stream_chat import (
    StreamChatError,
    build_stream_user,
    get_stream_service,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _dedupe_members(current_user_id: str, members: list[str]) -> list[str]:
    """Caller first, then members in request order, without duplicates."""
    return list(dict.fromkeys([current_user_id, *members]))


@router.post("/token", response_model=StreamTokenResponse)
async def create_chat_token(current_user: CurrentUser) -> StreamTokenResponse:
    """Issue a Stream Chat token for the current user."""
    user_id = str(current_user.id)
    service = get_stream_service()

    logger.info(f"Generating Stream Chat token for user: {current_user.name} ({user_id})")

    try:
        token = service.create_token(user_id)
    except StreamChatError as e:
        logger.error(f"Error generating Stream Chat token: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate chat token",
        )

    return StreamTokenResponse(token=token, api_key=service.api_key, user_id=user_id)


@router.post("/channel", response_model=ChannelResponse)
async def create_chat_channel(
    payload: ChannelCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> ChannelResponse:
    """Get or create a channel, mirroring every known member into Stream first."""
    service = get_stream_service()
    current_user_id = str(current_user.id)
    members = _dedupe_members(current_user_id, payload.members)

    member_ids: list[UUID] = []
    for member_id in members:
        try:
            member_ids.append(UUID(member_id))
        except ValueError:
            logger.warning(f"Skipping Stream user sync for non-local member id {member_id!r}")

    result = await db.execute(select(User).where(User.id.in_(member_ids)))
    known_users = {str(u.id): u for u in result.scalars().all()}

    for member_id in members:
        member = known_users.get(member_id)
        if member is None:
            continue
        try:
            await service.upsert_user(build_stream_user(member))
        except StreamChatError as e:
            # Channel creation continues without this member's profile sync
            logger.error(f"Error creating Stream Chat user {member_id}: {e.message}")

    try:
        await service.create_channel(
            channel_type=payload.channel_type,
            channel_id=payload.channel_id,
            created_by_id=current_user_id,
            members=members,
            data=payload.metadata,
        )
    except StreamChatError as e:
        logger.error(f"Error creating Stream Chat channel {payload.channel_id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create chat channel",
        )

    return ChannelResponse(
        channel_id=payload.channel_id,
        channel_type=payload.channel_type,
        members=members,
    )
