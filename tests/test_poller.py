"""Tests for the alarm poller."""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from custom_components.alarmdotcom_panel.api import (
    AlarmDotComApiError,
    AlarmDotComAuthError,
)
from custom_components.alarmdotcom_panel.capabilities import CapabilityStore
from custom_components.alarmdotcom_panel.events import StateChangeNotifier
from custom_components.alarmdotcom_panel.models import (
    AlarmSession,
    ArmMode,
    CoarseState,
    LocalState,
    PollOutcome,
    RemoteState,
    StateChangeEvent,
    TimelineEntry,
)
from custom_components.alarmdotcom_panel.poller import AlarmPoller
from custom_components.alarmdotcom_panel.session import SessionManager

from .conftest import SYSTEM_ID, create_remote_state


@pytest.fixture
def notifier() -> StateChangeNotifier:
    """Fixture providing a notifier."""
    return StateChangeNotifier()


@pytest.fixture
def events(notifier: StateChangeNotifier) -> list[StateChangeEvent]:
    """Fixture collecting emitted state change events."""
    received: list[StateChangeEvent] = []
    notifier.subscribe(received.append)
    return received


@pytest.fixture
def timeline(notifier: StateChangeNotifier) -> list[TimelineEntry]:
    """Fixture collecting emitted timeline entries."""
    received: list[TimelineEntry] = []
    notifier.subscribe_timeline(received.append)
    return received


@pytest.fixture
def session_manager(mock_client: Mock, store: CapabilityStore) -> SessionManager:
    """Fixture providing a session manager without a seed hook."""
    return SessionManager(mock_client, store)


@pytest.fixture
def poller(
    hass: Mock,
    mock_client: Mock,
    session_manager: SessionManager,
    store: CapabilityStore,
    notifier: StateChangeNotifier,
) -> AlarmPoller:
    """Fixture providing a poller."""
    return AlarmPoller(hass, mock_client, session_manager, store, notifier)


class TestPollOnceStateChanges:
    """Tests for state reconciliation in async_poll_once."""

    @pytest.mark.asyncio
    async def test_first_poll_records_state_and_mirrors_controls(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        store: CapabilityStore,
        events: list[StateChangeEvent],
    ) -> None:
        """Test that the first mapped state is written with previous unknown."""
        await session_manager.async_connect()

        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.CHANGED
        assert store.get_capability_value("alarm_state") == LocalState.DISARMED
        assert store.get_capability_value("homealarm_state") == CoarseState.DISARMED
        assert isinstance(store.get_capability_value("last_changed"), datetime)
        assert store.get_capability_value("onoff") is False
        assert store.get_capability_value("arm_mode") == ArmMode.DISARMED
        assert events == [StateChangeEvent("disarmed", "unknown", 1)]

    @pytest.mark.asyncio
    async def test_disarmed_to_armed_away_emits_one_event_and_entry(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
        events: list[StateChangeEvent],
        timeline: list[TimelineEntry],
    ) -> None:
        """Test that a 1 to 3 transition emits exactly one event and entry."""
        await session_manager.async_connect()
        await poller.async_poll_once()
        events.clear()
        timeline.clear()

        mock_client.get_state.return_value = create_remote_state(3)
        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.CHANGED
        assert events == [StateChangeEvent("armed_away", "disarmed", 3)]
        assert len(timeline) == 1
        assert timeline[0].severity == "notice"
        assert timeline[0].message == "Alarm state changed from disarmed to armed_away"
        assert timeline[0].metadata == {
            "from": "disarmed",
            "to": "armed_away",
            "raw_state": 3,
        }
        assert store.get_capability_value("homealarm_state") == CoarseState.ARMED
        assert store.get_capability_value("onoff") is True
        assert store.get_capability_value("arm_mode") == ArmMode.AWAY

    @pytest.mark.asyncio
    async def test_disarm_transition_is_info(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        timeline: list[TimelineEntry],
    ) -> None:
        """Test that a change to disarmed is logged with info severity."""
        await session_manager.async_connect()
        mock_client.get_state.return_value = create_remote_state(2)
        await poller.async_poll_once()
        mock_client.get_state.return_value = create_remote_state(1)
        await poller.async_poll_once()

        assert [entry.severity for entry in timeline] == ["notice", "info"]

    @pytest.mark.asyncio
    async def test_same_state_twice_emits_no_event_but_reconciles(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
        events: list[StateChangeEvent],
    ) -> None:
        """Test that an unchanged state still overwrites optimistic controls."""
        await session_manager.async_connect()
        mock_client.get_state.return_value = create_remote_state(2)
        await poller.async_poll_once()
        last_changed = store.get_capability_value("last_changed")

        store.set_capability_value("onoff", True)
        store.set_capability_value("arm_mode", ArmMode.AWAY)
        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.UNCHANGED
        assert len(events) == 1
        assert store.get_capability_value("last_changed") == last_changed
        assert store.get_capability_value("onoff") is False
        assert store.get_capability_value("arm_mode") == ArmMode.STAY

    @pytest.mark.asyncio
    async def test_night_mode_sets_night_arm_mode(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
    ) -> None:
        """Test that armed night is partially armed with the night mode."""
        await session_manager.async_connect()
        mock_client.get_state.return_value = create_remote_state(4)
        await poller.async_poll_once()

        assert store.get_capability_value("alarm_state") == LocalState.ARMED_NIGHT
        assert (
            store.get_capability_value("homealarm_state")
            == CoarseState.PARTIALLY_ARMED
        )
        assert store.get_capability_value("onoff") is False
        assert store.get_capability_value("arm_mode") == ArmMode.NIGHT

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [0, 8, None, "armed"])
    async def test_unmapped_code_leaves_values_untouched(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
        events: list[StateChangeEvent],
        code: object,
    ) -> None:
        """Test that unknown or transient codes write nothing."""
        await session_manager.async_connect()
        await poller.async_poll_once()
        events.clear()
        before = {
            name: store.get_capability_value(name)
            for name in ("alarm_state", "homealarm_state", "onoff", "arm_mode")
        }

        mock_client.get_state.return_value = create_remote_state(code)
        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.UNMAPPED
        assert events == []
        after = {name: store.get_capability_value(name) for name in before}
        assert after == before

    @pytest.mark.asyncio
    async def test_missing_partition_data(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
    ) -> None:
        """Test that a state without partitions is reported and ignored."""
        await session_manager.async_connect()
        mock_client.get_state.return_value = RemoteState(system_id=SYSTEM_ID)

        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.NO_PARTITION_DATA
        assert store.get_capability_value("alarm_state") is None


class TestPollOnceFailures:
    """Tests for error handling in async_poll_once."""

    @pytest.mark.asyncio
    async def test_not_connected_attempts_connect(
        self,
        poller: AlarmPoller,
        mock_client: Mock,
        session_manager: SessionManager,
    ) -> None:
        """Test that a tick without a session connects instead of fetching."""
        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.NOT_CONNECTED
        mock_client.get_state.assert_not_called()
        mock_client.login.assert_awaited_once()
        assert session_manager.connected is True

    @pytest.mark.asyncio
    async def test_not_connected_with_missing_credentials_never_raises(
        self,
        hass: Mock,
        mock_client: Mock,
        notifier: StateChangeNotifier,
    ) -> None:
        """Test that a failing reconnect is absorbed by the tick."""
        store = CapabilityStore({})
        manager = SessionManager(mock_client, store)
        poller = AlarmPoller(hass, mock_client, manager, store, notifier)

        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.NOT_CONNECTED
        assert store.unavailable_reason == "Missing credentials"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            AlarmDotComAuthError("Authentication error: 401"),
            AlarmDotComApiError("Not authorized"),
        ],
    )
    async def test_auth_failure_invalidates_and_reconnects(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        error: Exception,
    ) -> None:
        """Test that an auth failure forces a new login."""
        await session_manager.async_connect()
        mock_client.get_state.side_effect = error

        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.AUTH_FAILED
        assert mock_client.login.await_count == 2
        assert session_manager.connected is True

    @pytest.mark.asyncio
    async def test_auth_failure_with_failed_relogin_leaves_no_session(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
    ) -> None:
        """Test that a failed re-login leaves the device disconnected."""
        await session_manager.async_connect()
        mock_client.get_state.side_effect = AlarmDotComAuthError("expired")
        mock_client.login.side_effect = AlarmDotComAuthError("rejected")

        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.AUTH_FAILED
        assert session_manager.session is None
        assert store.unavailable_reason == "Login failed: rejected"

    @pytest.mark.asyncio
    async def test_transient_failures_mark_unavailable_at_threshold(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
    ) -> None:
        """Test that three failed ticks in a row mark the device unavailable."""
        await session_manager.async_connect()
        mock_client.get_state.side_effect = httpx.ReadTimeout("timed out")

        assert await poller.async_poll_once() is PollOutcome.FAILED
        assert await poller.async_poll_once() is PollOutcome.FAILED
        assert store.available is True

        assert await poller.async_poll_once() is PollOutcome.FAILED
        assert store.available is False
        assert store.unavailable_reason == "Polling failed: timed out"
        assert mock_client.login.await_count == 1

    @pytest.mark.asyncio
    async def test_successful_poll_restores_availability(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
    ) -> None:
        """Test that a successful fetch clears the failure state."""
        await session_manager.async_connect()
        mock_client.get_state.side_effect = AlarmDotComApiError("Request failed: 500")
        for _ in range(3):
            await poller.async_poll_once()
        assert store.available is False

        mock_client.get_state.side_effect = None
        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.CHANGED
        assert store.available is True
        assert store.unavailable_reason is None

    @pytest.mark.asyncio
    async def test_unexpected_login_error_never_raises(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
    ) -> None:
        """Test that a login raising a non-API error is absorbed by the tick."""
        mock_client.login.side_effect = KeyError("id")

        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.NOT_CONNECTED
        assert session_manager.session is None
        assert store.unavailable_reason == "Login failed: 'id'"

    @pytest.mark.asyncio
    async def test_unexpected_reconnect_error_never_raises(
        self,
        hass: Mock,
        mock_client: Mock,
        store: CapabilityStore,
        notifier: StateChangeNotifier,
    ) -> None:
        """Test that any error from the session manager is absorbed by the tick."""
        manager = Mock(session=None, system_id=None)
        manager.async_connect = AsyncMock(side_effect=RuntimeError("boom"))
        poller = AlarmPoller(hass, mock_client, manager, store, notifier)

        outcome = await poller.async_poll_once()

        assert outcome is PollOutcome.NOT_CONNECTED
        manager.async_connect.assert_awaited_once_with(force=False)


class TestFetchState:
    """Tests for async_fetch_state."""

    @pytest.mark.asyncio
    async def test_fetch_state_raises_fetch_errors(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
    ) -> None:
        """Test that async_fetch_state propagates client errors."""
        await session_manager.async_connect()
        mock_client.get_state.side_effect = AlarmDotComApiError("Request failed: 500")

        with pytest.raises(AlarmDotComApiError):
            await poller.async_fetch_state()


class TestCoordinatorRefresh:
    """Tests for the coordinator refresh running one tick."""

    @pytest.mark.asyncio
    async def test_refresh_stores_tick_outcome_and_notifies(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
    ) -> None:
        """Test that a refresh keeps the outcome and calls listeners."""
        await session_manager.async_connect()
        listener = Mock()
        poller.async_add_listener(listener)

        await poller.async_refresh()

        assert poller.data is PollOutcome.CHANGED
        assert poller.last_update_success is True
        listener.assert_called_once()
        await poller.async_shutdown()

    @pytest.mark.asyncio
    async def test_refresh_after_unexpected_login_error_recovers(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        alarm_session: AlarmSession,
    ) -> None:
        """Test that a failed login does not stop later refreshes."""
        mock_client.login.side_effect = [KeyError("id"), alarm_session]

        await poller.async_refresh()
        assert poller.data is PollOutcome.NOT_CONNECTED
        assert poller.last_update_success is True

        await poller.async_refresh()
        assert session_manager.connected is True

        await poller.async_refresh()
        assert poller.data is PollOutcome.CHANGED

    @pytest.mark.asyncio
    async def test_unavailability_reaches_listeners(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        store: CapabilityStore,
    ) -> None:
        """Test that repeated failures still notify listeners every tick."""
        await session_manager.async_connect()
        mock_client.get_state.side_effect = httpx.ReadTimeout("timed out")
        listener = Mock()
        poller.async_add_listener(listener)

        for _ in range(3):
            await poller.async_refresh()

        assert listener.call_count == 3
        assert store.available is False
        await poller.async_shutdown()


class TestScheduledPolling:
    """Tests for scheduled polling."""

    @pytest.mark.asyncio
    async def test_start_polls_periodically(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
    ) -> None:
        """Test that polling runs on the interval without entity listeners."""
        await session_manager.async_connect()

        poller.start(1)
        assert poller.running is True
        assert poller.update_interval == timedelta(seconds=1)
        async with asyncio.timeout(5):
            while mock_client.get_state.await_count < 2:
                await asyncio.sleep(0.05)
        await poller.async_shutdown()

        assert poller.running is False
        count = mock_client.get_state.await_count
        await asyncio.sleep(0.05)
        assert mock_client.get_state.await_count == count

    @pytest.mark.asyncio
    async def test_scheduled_polling_survives_unexpected_login_error(
        self,
        poller: AlarmPoller,
        session_manager: SessionManager,
        mock_client: Mock,
        alarm_session: AlarmSession,
    ) -> None:
        """Test that a tick whose login raises does not end the schedule."""
        mock_client.login.side_effect = [KeyError("id"), alarm_session]

        poller.start(1)
        async with asyncio.timeout(5):
            while mock_client.login.await_count < 2:
                await asyncio.sleep(0.05)

        assert poller.running is True
        assert session_manager.connected is True
        await poller.async_shutdown()

    @pytest.mark.asyncio
    async def test_start_again_changes_interval(self, poller: AlarmPoller) -> None:
        """Test that starting again keeps one schedule with the new interval."""
        poller.start(60)
        poller.start(30)

        assert poller.running is True
        assert poller.update_interval == timedelta(seconds=30)
        await poller.async_shutdown()
        assert poller.running is False

    @pytest.mark.asyncio
    async def test_shutdown_without_start(self, poller: AlarmPoller) -> None:
        """Test that shutting down an idle poller does nothing."""
        await poller.async_shutdown()
        assert poller.running is False
