"""Stream Chat proxy schemas."""

from typing import Annotated, Any

from pydantic import Field, StringConstraints

from app.schemas.common import BaseSchema

# Stream allows letters, digits and "-_!" in channel ids and types
ChannelId = Annotated[str, StringConstraints(pattern=r"^[A-Za-z0-9_!\-]{1,64}$")]
ChannelType = Annotated[str, StringConstraints(pattern=r"^[a-z0-9_\-]{1,64}$")]


class StreamTokenResponse(BaseSchema):
    """Client SDK credentials for the current user."""

    token: str
    api_key: str
    user_id: str


class ChannelCreate(BaseSchema):
    """Get-or-create channel request."""

    channel_type: ChannelType = "messaging"
    channel_id: ChannelId
    members: list[str] = Field(default_factory=list, max_length=100)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ChannelResponse(BaseSchema):
    channel_id: str
    channel_type: str
    members: list[str]
