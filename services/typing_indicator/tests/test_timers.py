import asyncio

import pytest

from services.typing_indicator.app.core.member_service import (
    ChannelMemberService,
)
from services.typing_indicator.app.core.models import Persona
from services.typing_indicator.app.core.store import SessionStore
from services.typing_indicator.app.core.timers import AsyncioTimerFacility
from services.typing_indicator.app.core.typing_tracker import TypingTracker

from fakes import FakeBus


class TestAsyncioTimerFacility:
    """Tests for timers on a real event loop"""

    @pytest.mark.asyncio
    async def test_callback_runs_after_duration(self):
        timers = AsyncioTimerFacility()
        fired = asyncio.Event()

        timers.schedule(fired.set, 20)
        assert not fired.is_set()

        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancelled_callback_never_runs(self):
        timers = AsyncioTimerFacility()
        calls = []

        handle = timers.schedule(lambda: calls.append("fired"), 10)
        timers.cancel(handle)
        await asyncio.sleep(0.05)

        assert calls == []
        assert handle.cancelled()

    @pytest.mark.asyncio
    async def test_cancel_none_and_spent_handles(self):
        timers = AsyncioTimerFacility()
        timers.cancel(None)

        handle = timers.schedule(lambda: None, 1)
        await asyncio.sleep(0.02)
        timers.cancel(handle)
        timers.cancel(handle)

    @pytest.mark.asyncio
    async def test_binds_to_running_loop(self):
        timers = AsyncioTimerFacility()
        assert timers.loop is asyncio.get_running_loop()


class TestTrackerOnEventLoop:
    """The tracker driven by real asyncio timers"""

    @pytest.mark.asyncio
    async def test_member_expires_and_refresh_replaces_timer(self):
        member_service = ChannelMemberService()
        tracker = TypingTracker(
            FakeBus(),
            member_service,
            SessionStore(Persona(id=99)),
            timers=AsyncioTimerFacility(),
            typing_timeout_ms=100,
        ).setup()
        member = member_service.insert(1, channel_id=1, persona=Persona(id=1))

        tracker.add_typing_member(member)
        await asyncio.sleep(0.06)
        tracker.add_typing_member(member)
        await asyncio.sleep(0.06)
        # 120ms after the first signal, 60ms after the refresh
        assert tracker.get_typing_members(1) == [member]

        await asyncio.sleep(0.15)
        assert tracker.get_typing_members(1) == []
        assert tracker.timer_by_member_id == {}
        assert tracker.member_ids_by_channel_id == {}
