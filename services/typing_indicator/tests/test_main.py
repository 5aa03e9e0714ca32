from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from services.typing_indicator.app import main
from services.typing_indicator.app.core.events import EventType
from services.typing_indicator.app.core.typing_rabbitmq import (
    TypingRabbitMQClient,
)


@pytest.fixture
def offline_bus(monkeypatch):
    monkeypatch.setattr(
        TypingRabbitMQClient, "initialize", AsyncMock(return_value=True)
    )
    monkeypatch.setattr(TypingRabbitMQClient, "shutdown", AsyncMock())


class TestLifespan:
    """Tests for the application wiring"""

    def test_startup_wires_tracker_to_bus(self, offline_bus):
        with TestClient(main.app) as client:
            tracker = main.app.state.typing_tracker
            bus = main.app.state.rabbitmq_client

            assert tracker.bus is bus
            assert EventType.CHAT_TYPING_STATUS.value in bus.handlers
            assert tracker.typing_timeout_ms == main.settings.TYPING_TIMEOUT_MS

            response = client.get(
                f"{main.settings.API_PREFIX}/channels/1/typing"
            )
            assert response.status_code == 200
            assert response.json()["members"] == []

        TypingRabbitMQClient.shutdown.assert_awaited_once()
        assert tracker.member_ids_by_channel_id == {}
