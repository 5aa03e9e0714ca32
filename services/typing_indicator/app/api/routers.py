import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from starlette.status import (
    HTTP_202_ACCEPTED,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from ..core.models import ChannelMember, Persona
from ..core.typing_rabbitmq import TypingRabbitMQClient
from ..core.typing_tracker import TypingTracker

router = APIRouter(tags=["typing"])

logger = logging.getLogger(__name__)


class MemberResponse(BaseModel):
    """A member currently typing"""

    id: int
    channel_id: Optional[int] = None
    persona: Optional[Persona] = None

    @classmethod
    def from_member(cls, member: ChannelMember) -> "MemberResponse":
        return cls(
            id=member.id,
            channel_id=member.channel_id,
            persona=member.persona,
        )


class TypingMembersResponse(BaseModel):
    """Members typing in a channel, without the caller"""

    channel_id: int
    members: List[MemberResponse]
    has_typing_members: bool
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


class HasTypingResponse(BaseModel):
    channel_id: int
    has_typing_members: bool


class TypingStatusRequest(BaseModel):
    """Typing status to announce on the chat exchange"""

    member_id: int
    is_typing: bool
    persona: Optional[Persona] = None


class TypingStatusAccepted(BaseModel):
    channel_id: int
    member_id: int
    is_typing: bool


class ErrorResponse(BaseModel):
    """Model for error responses"""

    detail: str


def get_typing_tracker(request: Request) -> TypingTracker:
    """Get the TypingTracker instance from the app state"""
    tracker = getattr(request.app.state, "typing_tracker", None)
    if tracker is None:
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
            detail="Typing service not initialized"
        )
    return tracker


def get_rabbitmq_client(request: Request) -> Optional[TypingRabbitMQClient]:
    return getattr(request.app.state, "rabbitmq_client", None)


@router.get("/typing/health")
async def health_check(
    rabbitmq_client: Optional[TypingRabbitMQClient] = Depends(
        get_rabbitmq_client
    ),
):
    """Health check endpoint."""
    if rabbitmq_client is not None and rabbitmq_client.is_connected():
        return {"status": "healthy"}
    return {"status": "unhealthy"}


@router.get(
    "/channels/{channel_id}/typing",
    response_model=TypingMembersResponse,
    responses={
        503: {"model": ErrorResponse, "description": "Not initialized"},
    },
)
async def get_typing_members(
    channel_id: int,
    tracker: TypingTracker = Depends(get_typing_tracker),
):
    """
    List the members typing in a channel

    Parameters:
    - **channel_id**: ID of the channel

    Returns:
    - **TypingMembersResponse**: Typing members, our own persona excluded
    """
    members = tracker.get_typing_members(channel_id)
    return TypingMembersResponse(
        channel_id=channel_id,
        members=[MemberResponse.from_member(member) for member in members],
        has_typing_members=len(members) > 0,
    )


@router.get(
    "/channels/{channel_id}/typing/exists",
    response_model=HasTypingResponse,
    responses={
        503: {"model": ErrorResponse, "description": "Not initialized"},
    },
)
async def has_typing_members(
    channel_id: int,
    tracker: TypingTracker = Depends(get_typing_tracker),
):
    """Tell whether anyone but us is typing in a channel"""
    return HasTypingResponse(
        channel_id=channel_id,
        has_typing_members=tracker.has_typing_members(channel_id),
    )


@router.post(
    "/channels/{channel_id}/typing",
    response_model=TypingStatusAccepted,
    status_code=HTTP_202_ACCEPTED,
    responses={
        503: {"model": ErrorResponse, "description": "Bus unavailable"},
    },
)
async def publish_typing_status(
    channel_id: int,
    status_request: TypingStatusRequest,
    rabbitmq_client: Optional[TypingRabbitMQClient] = Depends(
        get_rabbitmq_client
    ),
):
    """
    Announce that a member started or stopped typing in a channel

    Parameters:
    - **channel_id**: ID of the channel
    - **status_request**: Member, persona and typing flag

    Returns:
    - **TypingStatusAccepted**: The status handed to the bus
    """
    if rabbitmq_client is None:
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
            detail="Typing bus not initialized"
        )

    published = await rabbitmq_client.publish_typing_status(
        member_id=status_request.member_id,
        channel_id=channel_id,
        is_typing=status_request.is_typing,
        persona=status_request.persona,
    )
    if not published:
        logger.error(
            f"Could not publish typing status for member "
            f"{status_request.member_id} in channel {channel_id}"
        )
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to publish typing status"
        )

    return TypingStatusAccepted(
        channel_id=channel_id,
        member_id=status_request.member_id,
        is_typing=status_request.is_typing,
    )
