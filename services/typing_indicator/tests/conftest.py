import logging

import pytest

from services.typing_indicator.app.core.member_service import (
    ChannelMemberService,
)
from services.typing_indicator.app.core.models import Persona, PersonaType
from services.typing_indicator.app.core.store import SessionStore
from services.typing_indicator.app.core.typing_tracker import TypingTracker

from fakes import FakeBus, FakeTimerFacility

logging.basicConfig(level=logging.DEBUG)

SELF_PERSONA = Persona(id=3, type=PersonaType.PARTNER)


@pytest.fixture
def timers():
    return FakeTimerFacility()


@pytest.fixture
def bus():
    return FakeBus()


@pytest.fixture
def member_service():
    return ChannelMemberService()


@pytest.fixture
def store():
    return SessionStore(SELF_PERSONA)


@pytest.fixture
def tracker(bus, member_service, store, timers):
    return TypingTracker(bus, member_service, store, timers=timers).setup()


@pytest.fixture
def alice(member_service):
    return member_service.insert(1, channel_id=1, persona=Persona(id=10))


@pytest.fixture
def bob(member_service):
    return member_service.insert(2, channel_id=1, persona=Persona(id=11))


@pytest.fixture
def me(member_service):
    return member_service.insert(3, channel_id=1, persona=SELF_PERSONA)
