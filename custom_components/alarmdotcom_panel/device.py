"""Alarm.com panel device.

One AlarmPanelDevice exists per paired partition. It owns the session,
the poll coordinator and the command dispatcher, and publishes state changes
to subscribers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .const import (
    CAPABILITY_HOMEALARM_STATE,
    CONF_POLL_INTERVAL,
    CREDENTIAL_SETTINGS,
    REFRESH_DELAY,
)
from .dispatcher import CommandDispatcher
from .events import StateChangeNotifier
from .exceptions import AlarmPanelError
from .models import CoarseState, CommandKind, PollConfig
from .poller import AlarmPoller
from .session import SessionManager

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .api import RemoteClient
    from .capabilities import CapabilitySink
    from .models import AlarmSession, StateChangeEvent, TimelineEntry

_LOGGER = logging.getLogger(__name__)

CONDITION_TARGETS = {
    "away": CoarseState.ARMED,
    "stay": CoarseState.PARTIALLY_ARMED,
    "disarmed": CoarseState.DISARMED,
}


class AlarmPanelDevice:
    """Polls one Alarm.com partition and relays commands to it."""

    def __init__(
        self,
        hass: HomeAssistant,
        client: RemoteClient,
        sink: CapabilitySink,
        *,
        config_entry: ConfigEntry | None = None,
        refresh_delay: float = REFRESH_DELAY,
    ) -> None:
        """Initialize the device.

        Args:
            hass: Home Assistant instance running the poll coordinator.
            client: Remote client owned by this device.
            sink: Capability sink holding settings and capability values.
            config_entry: Config entry owning the device, if any.
            refresh_delay: Seconds before the settled-state re-poll.

        """
        self._sink = sink
        self._notifier = StateChangeNotifier()
        self._session_manager = SessionManager(
            client, sink, on_connected=self._async_seed_state
        )
        self._poller = AlarmPoller(
            hass,
            client,
            self._session_manager,
            sink,
            self._notifier,
            config_entry=config_entry,
        )
        self._dispatcher = CommandDispatcher(
            client,
            self._session_manager,
            self._poller,
            sink,
            refresh_delay=refresh_delay,
        )

    @property
    def session_manager(self) -> SessionManager:
        """Return the session manager."""
        return self._session_manager

    @property
    def poller(self) -> AlarmPoller:
        """Return the poller."""
        return self._poller

    @property
    def poll_config(self) -> PollConfig:
        """Return the configured polling settings."""
        return PollConfig.from_settings(self._sink.get_setting)

    def subscribe(
        self, handler: Callable[[StateChangeEvent], None]
    ) -> Callable[[], None]:
        """Subscribe to state-change events."""
        return self._notifier.subscribe(handler)

    def subscribe_timeline(
        self, handler: Callable[[TimelineEntry], None]
    ) -> Callable[[], None]:
        """Subscribe to timeline entries."""
        return self._notifier.subscribe_timeline(handler)

    async def _async_seed_state(self, session: AlarmSession) -> None:
        _LOGGER.debug("Seeding state for system %s", session.systems[0])
        await self._poller.async_fetch_state()

    async def async_start(self) -> None:
        """Connect and start polling.

        A failed connect leaves the device unavailable; polling still starts
        so later ticks can recover.
        """
        try:
            await self.async_connect()
        except AlarmPanelError as err:
            _LOGGER.warning("Initial connect failed: %s", err)
        self._poller.start(self.poll_config.interval_seconds)

    async def async_connect(self, *, force: bool = False) -> AlarmSession:
        """Connect to the remote service, see SessionManager.async_connect."""
        return await self._session_manager.async_connect(force=force)

    async def async_apply_settings(self, changed: Iterable[str]) -> None:
        """React to changed settings.

        Credential changes force a reconnect; credential or interval changes
        reschedule polling. Listeners are told about the new state either way.
        """
        changed = set(changed)
        if not changed:
            return
        _LOGGER.debug("Settings changed: %s", sorted(changed))

        restart = False
        if changed & CREDENTIAL_SETTINGS:
            restart = True
            try:
                await self.async_connect(force=True)
            except AlarmPanelError as err:
                _LOGGER.warning("Reconnect after settings change failed: %s", err)
        if CONF_POLL_INTERVAL in changed:
            restart = True

        if restart:
            self._poller.start(self.poll_config.interval_seconds)
        self._poller.async_update_listeners()

    async def async_execute(self, kind: CommandKind, pin: str | None = None) -> None:
        """Dispatch a command, see CommandDispatcher.async_execute."""
        await self._dispatcher.async_execute(kind, pin)

    async def async_arm_away(self, pin: str | None = None) -> None:
        """Arm away."""
        await self.async_execute(CommandKind.ARM_AWAY, pin)

    async def async_arm_stay(self, pin: str | None = None) -> None:
        """Arm stay."""
        await self.async_execute(CommandKind.ARM_STAY, pin)

    async def async_disarm(self, pin: str | None = None) -> None:
        """Disarm."""
        await self.async_execute(CommandKind.DISARM, pin)

    def is_state(self, target: str) -> bool:
        """Return True if the coarse state matches an away/stay/disarmed target."""
        expected = CONDITION_TARGETS.get(target)
        if expected is None:
            return False
        return self._sink.get_capability_value(CAPABILITY_HOMEALARM_STATE) == expected

    async def async_shutdown(self) -> None:
        """Stop polling, cancel pending re-polls and drop the session."""
        _LOGGER.debug("Shutting down alarm panel device")
        try:
            await self._poller.async_shutdown()
        finally:
            try:
                await self._dispatcher.async_cancel_pending()
            finally:
                self._session_manager.invalidate()
