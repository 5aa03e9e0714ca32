from enum import Enum


class EventType(str, Enum):
    """Bus events consumed or emitted by the typing indicator service."""
    CHAT_TYPING_STATUS = "chat:member:typing_status"


# Source tag stamped on events published by this service
SERVICE_SOURCE = "typing_indicator"
