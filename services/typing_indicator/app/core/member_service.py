"""
Canonical cache of channel members.
"""
import logging
from typing import Dict, Optional

from .models import ChannelMember, Persona

logger = logging.getLogger(__name__)


class ChannelMemberService:
    """Resolves member ids to a single shared ChannelMember instance."""

    def __init__(self):
        self.members: Dict[int, ChannelMember] = {}

    def insert(
        self,
        member_id: int,
        channel_id: Optional[int] = None,
        persona: Optional[Persona] = None,
    ) -> ChannelMember:
        """Return the canonical member for ``member_id``.

        The member is created on first sight. Fields passed as None leave the
        cached value untouched, so a bare ``insert(member_id)`` is a lookup
        that never erases what earlier events told us.

        Args:
            member_id: Id of the channel member
            channel_id: Channel the member currently belongs to
            persona: Identity behind the member

        Returns:
            The cached ChannelMember, updated in place
        """
        member = self.members.get(member_id)
        if member is None:
            member = ChannelMember(
                id=member_id, channel_id=channel_id, persona=persona
            )
            self.members[member_id] = member
            logger.debug(f"Cached new channel member {member_id}")
            return member

        if channel_id is not None and member.channel_id != channel_id:
            logger.debug(
                f"Member {member_id} moved from channel "
                f"{member.channel_id} to {channel_id}"
            )
            member.channel_id = channel_id
        if persona is not None:
            member.persona = persona
        return member

    def get(self, member_id: int) -> Optional[ChannelMember]:
        return self.members.get(member_id)
