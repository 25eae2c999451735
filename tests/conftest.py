"""Pytest configuration and fixtures for Alarm.com Panel tests."""

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

from custom_components.alarmdotcom_panel.capabilities import CapabilityStore
from custom_components.alarmdotcom_panel.models import (
    AlarmSession,
    PartitionState,
    RemoteState,
)

SYSTEM_ID = "system-1"
PARTITION_ID = "system-1-partition-1"
AJAX_KEY = "ajax-key-123"


def create_remote_state(code: Any) -> RemoteState:  # noqa: ANN401
    """Create a remote state whose first partition reports the given code."""
    return RemoteState(
        system_id=SYSTEM_ID,
        partitions=(
            PartitionState(
                id=PARTITION_ID,
                description="House",
                state=code,
                arm_type=None,
            ),
        ),
    )


@pytest_asyncio.fixture
async def hass() -> Mock:
    """Create a mock Home Assistant instance bound to the running loop."""
    loop = asyncio.get_running_loop()
    hass = Mock()
    hass.loop = loop
    hass.is_stopping = False
    hass.data = {}
    hass.async_create_background_task.side_effect = (
        lambda target, name=None, eager_start=False: loop.create_task(target)
    )
    return hass


@pytest.fixture
def settings() -> dict[str, Any]:
    """Fixture providing complete entry settings."""
    return {
        "username": "user@example.com",
        "password": "secret",
        "default_pin": "1234",
        "poll_interval": 60,
        "provider": "alarm.com",
        "partition_id": PARTITION_ID,
    }


@pytest.fixture
def store(settings: dict[str, Any]) -> CapabilityStore:
    """Fixture providing a capability store with complete settings."""
    return CapabilityStore(settings)


@pytest.fixture
def alarm_session() -> AlarmSession:
    """Fixture providing a session with one system."""
    return AlarmSession(ajax_key=AJAX_KEY, systems=(SYSTEM_ID,), identity_id="42")


@pytest.fixture
def remote_state() -> Callable[[Any], RemoteState]:
    """Fixture providing the remote state factory."""
    return create_remote_state


@pytest.fixture
def mock_client(alarm_session: AlarmSession) -> Mock:
    """Create a mock remote client reporting a disarmed system."""
    client = Mock()
    client.login = AsyncMock(return_value=alarm_session)
    client.get_state = AsyncMock(return_value=create_remote_state(1))
    client.arm_away = AsyncMock(return_value=None)
    client.arm_stay = AsyncMock(return_value=None)
    client.disarm = AsyncMock(return_value=None)
    client.async_close = AsyncMock()
    return client


@pytest.fixture
def sample_login_page() -> str:
    """Fixture providing a login page with ASP.NET hidden fields."""
    return (
        "<html><body><form>"
        '<input type="hidden" name="__VIEWSTATE" id="__VIEWSTATE" value="vs123" />'
        '<input type="hidden" name="__VIEWSTATEGENERATOR" '
        'id="__VIEWSTATEGENERATOR" value="gen456" />'
        '<input type="hidden" name="__EVENTVALIDATION" '
        'id="__EVENTVALIDATION" value="ev789" />'
        '<input type="hidden" name="__PREVIOUSPAGE" id="__PREVIOUSPAGE" value="pp" />'
        '<input type="hidden" name="__OTHER" id="__OTHER" value="ignored" />'
        "</form></body></html>"
    )


@pytest.fixture
def sample_identities_response() -> dict:
    """Fixture providing a sample identities API response."""
    return {
        "data": [
            {
                "id": "42",
                "type": "identity",
                "relationships": {
                    "associatedSystems": {
                        "data": [{"id": SYSTEM_ID, "type": "systems/system"}],
                    },
                    "selectedSystem": {
                        "data": {"id": SYSTEM_ID, "type": "systems/system"},
                    },
                },
            },
        ],
    }


@pytest.fixture
def sample_system_response() -> dict:
    """Fixture providing a sample system API response."""
    return {
        "data": {
            "id": SYSTEM_ID,
            "type": "systems/system",
            "relationships": {
                "partitions": {
                    "data": [{"id": PARTITION_ID, "type": "devices/partition"}],
                },
            },
        },
    }


@pytest.fixture
def sample_partitions_response() -> dict:
    """Fixture providing a sample partitions API response."""
    return {
        "data": [
            {
                "id": PARTITION_ID,
                "type": "devices/partition",
                "attributes": {
                    "description": "House",
                    "state": 3,
                    "desiredState": 3,
                },
            },
        ],
    }
