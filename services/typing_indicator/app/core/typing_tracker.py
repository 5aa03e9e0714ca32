"""
Typing tracker for keeping "who is typing" state per channel.
"""
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Protocol, Set, Union

from .events import EventType
from .member_service import ChannelMemberService
from .models import ChannelMember, TypingStatusPayload
from .store import SessionStore
from .timers import AsyncioTimerFacility, TimerFacility

logger = logging.getLogger(__name__)

# Idle window after which a member that stopped signalling is dropped
OTHER_LONG_TYPING_MS = 60000


class EventBus(Protocol):
    def subscribe(
        self, event_type: EventType, handler: Callable[[Any], Any]
    ) -> None:
        ...


class TypingTracker:
    """Tracks typing members per channel and expires them when idle.

    ``member_ids_by_channel_id`` and ``timer_by_member_id`` move in lock-step:
    a member id is in a channel set exactly while it has a pending expiry
    timer, and a channel key is dropped as soon as its set is empty.
    """

    def __init__(
        self,
        bus: EventBus,
        member_service: ChannelMemberService,
        store: SessionStore,
        timers: Optional[TimerFacility] = None,
        typing_timeout_ms: int = OTHER_LONG_TYPING_MS,
    ):
        """Initialize the tracker.

        Args:
            bus: Transport delivering typing status events
            member_service: Resolver returning canonical ChannelMember objects
            store: Identity provider used to leave ourselves out of results
            timers: Timer facility; defaults to the running asyncio loop
            typing_timeout_ms: Expiry delay of a typing signal
        """
        self.bus = bus
        self.member_service = member_service
        self.store = store
        self.timers = timers or AsyncioTimerFacility()
        self.typing_timeout_ms = typing_timeout_ms
        self.member_ids_by_channel_id: Dict[int, Set[int]] = {}
        self.timer_by_member_id: Dict[int, Any] = {}
        self._subscribed = False

    def setup(self) -> "TypingTracker":
        """Subscribe to typing status events on the bus."""
        if self._subscribed:
            logger.warning("Typing tracker already subscribed")
            return self

        self.bus.subscribe(EventType.CHAT_TYPING_STATUS, self._on_typing_status)
        self._subscribed = True
        logger.info("Typing tracker subscribed to typing status events")
        return self

    def _on_typing_status(self, payload: TypingStatusPayload) -> None:
        member = self.member_service.insert(
            payload.id,
            channel_id=payload.channel_id,
            persona=payload.persona,
        )
        if payload.is_typing:
            self.add_typing_member(member)
        else:
            self.remove_typing_member(member)

    def add_typing_member(self, member: ChannelMember) -> None:
        """Mark ``member`` as typing in its channel and (re)arm its expiry."""
        member_ids = self.member_ids_by_channel_id.setdefault(
            member.channel_id, set()
        )
        member_ids.add(member.id)

        self.timers.cancel(self.timer_by_member_id.get(member.id))
        self.timer_by_member_id[member.id] = self.timers.schedule(
            partial(self._expire, member), self.typing_timeout_ms
        )
        logger.debug(
            f"Member {member.id} typing in channel {member.channel_id}"
        )

    def _expire(self, member: ChannelMember) -> None:
        logger.debug(f"Typing status of member {member.id} expired")
        self.remove_typing_member(member)

    def remove_typing_member(self, member: ChannelMember) -> None:
        """Drop ``member`` from its channel; a no-op when it is not typing."""
        member_ids = self.member_ids_by_channel_id.get(member.channel_id)
        if member_ids is not None:
            member_ids.discard(member.id)
            if not member_ids:
                del self.member_ids_by_channel_id[member.channel_id]

        self.timers.cancel(self.timer_by_member_id.pop(member.id, None))

    def get_typing_members(
        self, channel: Union[int, Any]
    ) -> List[ChannelMember]:
        """Members typing in ``channel``, leaving out our own persona."""
        channel_id = getattr(channel, "id", channel)
        member_ids = self.member_ids_by_channel_id.get(channel_id, ())
        members = [self.member_service.insert(member_id) for member_id in member_ids]
        return [
            member for member in members
            if not self.store.is_self(member.persona)
        ]

    def has_typing_members(self, channel: Union[int, Any]) -> bool:
        return len(self.get_typing_members(channel)) > 0

    def shutdown(self) -> None:
        """Cancel every pending expiry and forget all typing state."""
        for handle in self.timer_by_member_id.values():
            self.timers.cancel(handle)
        self.timer_by_member_id.clear()
        self.member_ids_by_channel_id.clear()
        logger.info("Typing tracker shut down")
