# services/typing_indicator/app/core/models.py
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .events import EventType


class PersonaType(str, Enum):
    PARTNER = "partner"
    GUEST = "guest"


class Persona(BaseModel):
    """Identity behind a channel member; equal when id and type match"""
    model_config = ConfigDict(frozen=True)

    id: int
    type: PersonaType = PersonaType.PARTNER


class ChannelMember(BaseModel):
    """A participant of one channel.

    Canonical instances are created and updated by ChannelMemberService; other
    components keep references to them but never copy them.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: int
    channel_id: Optional[int] = None
    persona: Optional[Persona] = None


class TypingStatusPayload(BaseModel):
    """Body of a typing status event as delivered by the bus"""
    type: EventType = EventType.CHAT_TYPING_STATUS
    id: int = Field(validation_alias=AliasChoices("id", "member_id"))
    channel_id: int = Field(
        validation_alias=AliasChoices("channel_id", "channelId")
    )
    persona: Optional[Persona] = None
    is_typing: bool = Field(
        validation_alias=AliasChoices("is_typing", "isTyping")
    )
    source: Optional[str] = None
