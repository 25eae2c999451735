"""Coordinator polling the remote alarm state."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from homeassistant.core import callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .api import is_auth_failure
from .capabilities import reconcile_controls
from .const import (
    CAPABILITY_ALARM_STATE,
    CAPABILITY_HOMEALARM_STATE,
    CAPABILITY_LAST_CHANGED,
    DOMAIN,
    POLL_FAILURE_THRESHOLD,
    SEVERITY_INFO,
    SEVERITY_NOTICE,
    UNKNOWN_STATE,
)
from .exceptions import AlarmPanelError, NotConnectedError
from .models import (
    ArmMode,
    LocalState,
    PollOutcome,
    RemoteState,
    StateChangeEvent,
    TimelineEntry,
)
from .states import MappedState, Unmapped, map_state

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .api import RemoteClient
    from .capabilities import CapabilitySink
    from .events import StateChangeNotifier
    from .session import SessionManager

_LOGGER = logging.getLogger(__name__)


class AlarmPoller(DataUpdateCoordinator[PollOutcome]):
    """Fetches the remote state and reconciles the local capabilities.

    Each refresh runs one poll tick and keeps its outcome as the coordinator
    data. Ticks are not serialised against command re-polls. Whichever poll
    writes last wins, which keeps polled values authoritative over the
    optimistic writes of the dispatcher.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        client: RemoteClient,
        session_manager: SessionManager,
        sink: CapabilitySink,
        notifier: StateChangeNotifier,
        config_entry: ConfigEntry | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=None,
            always_update=True,
        )
        self._client = client
        self._session_manager = session_manager
        self._sink = sink
        self._notifier = notifier
        self._consecutive_failures = 0
        self._unsub_keepalive: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        """Return True while scheduled polling is active."""
        return self._unsub_keepalive is not None

    @callback
    def start(self, interval: float) -> None:
        """Poll every interval seconds, rescheduling if already running."""
        _LOGGER.info("Starting polling with interval: %s seconds", interval)
        self.update_interval = timedelta(seconds=interval)
        if self._unsub_keepalive is None:
            # Ticks must keep running without entity listeners so state
            # events are still fired.
            self._unsub_keepalive = self.async_add_listener(lambda: None)
        self._schedule_refresh()

    async def async_shutdown(self) -> None:
        """Stop scheduled polling."""
        if self._unsub_keepalive is not None:
            self._unsub_keepalive()
            self._unsub_keepalive = None
        await super().async_shutdown()

    async def _async_update_data(self) -> PollOutcome:
        """Run one poll tick."""
        return await self.async_poll_once()

    async def async_fetch_state(self) -> PollOutcome:
        """Fetch the remote state and apply it.

        Fetch errors are raised to the caller.
        """
        state = await self._async_fetch()
        return self._apply(state)

    async def async_poll_once(self) -> PollOutcome:
        """Run one poll tick. Never raises."""
        try:
            state = await self._async_fetch()
        except NotConnectedError:
            _LOGGER.debug("Poll skipped, not connected; trying to connect")
            await self._async_reconnect(force=False)
            return PollOutcome.NOT_CONNECTED
        except Exception as err:
            _LOGGER.error("Polling error: %s", err)
            if is_auth_failure(err):
                self._session_manager.invalidate()
                await self._async_reconnect(force=True)
                return PollOutcome.AUTH_FAILED
            self._record_failure(err)
            return PollOutcome.FAILED

        self._consecutive_failures = 0
        self._sink.set_available()
        return self._apply(state)

    async def _async_fetch(self) -> RemoteState:
        session = self._session_manager.session
        system_id = self._session_manager.system_id
        if session is None or system_id is None:
            raise NotConnectedError("Not connected")
        return await self._client.get_state(system_id, session)

    async def _async_reconnect(self, *, force: bool) -> None:
        try:
            await self._session_manager.async_connect(force=force)
        except AlarmPanelError as err:
            # Already surfaced through the sink's availability.
            _LOGGER.debug("Reconnect failed: %s", err)
        except Exception:
            _LOGGER.exception("Unexpected error while reconnecting")

    def _record_failure(self, err: Exception) -> None:
        self._consecutive_failures += 1
        if self._consecutive_failures == POLL_FAILURE_THRESHOLD:
            self._sink.set_unavailable(f"Polling failed: {err}")

    def _apply(self, state: RemoteState) -> PollOutcome:
        partition = state.first_partition
        if partition is None:
            _LOGGER.error("No partition data found for system %s", state.system_id)
            return PollOutcome.NO_PARTITION_DATA

        _LOGGER.debug("Current raw state: %s", partition.state)
        mapped = map_state(partition.state)
        if isinstance(mapped, Unmapped):
            _LOGGER.info("Unmapped state received: %s", mapped.raw_code)
            return PollOutcome.UNMAPPED

        previous_local = self._sink.get_capability_value(CAPABILITY_ALARM_STATE)
        previous_coarse = self._sink.get_capability_value(CAPABILITY_HOMEALARM_STATE)
        outcome = PollOutcome.UNCHANGED
        if (previous_local, previous_coarse) != (mapped.local, mapped.coarse):
            self._record_change(mapped, previous_local, partition.state)
            outcome = PollOutcome.CHANGED

        reconcile_controls(self._sink, ArmMode.from_local_state(mapped.local))
        return outcome

    def _record_change(
        self,
        mapped: MappedState,
        previous_local: str | None,
        raw_state: int,
    ) -> None:
        now = datetime.now(UTC)
        previous = str(previous_local) if previous_local else UNKNOWN_STATE
        new = str(mapped.local)

        self._sink.set_capability_value(CAPABILITY_ALARM_STATE, mapped.local)
        self._sink.set_capability_value(CAPABILITY_HOMEALARM_STATE, mapped.coarse)
        self._sink.set_capability_value(CAPABILITY_LAST_CHANGED, now)
        _LOGGER.info("Alarm state changed from %s to %s", previous, new)

        self._notifier.emit_state_change(
            StateChangeEvent(state=new, previous_state=previous, raw_state=raw_state)
        )
        self._notifier.emit_timeline(
            TimelineEntry(
                message=f"Alarm state changed from {previous} to {new}",
                severity=(
                    SEVERITY_INFO
                    if mapped.local == LocalState.DISARMED
                    else SEVERITY_NOTICE
                ),
                timestamp=now,
                metadata={"from": previous, "to": new, "raw_state": raw_state},
            )
        )
