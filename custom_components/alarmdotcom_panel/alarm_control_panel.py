"""Alarm control panel platform for Alarm.com Panel integration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.alarm_control_panel import (
    AlarmControlPanelEntity,
    AlarmControlPanelEntityFeature,
    AlarmControlPanelState,
)

from .const import (
    CAPABILITY_ALARM_STATE,
    CAPABILITY_HOMEALARM_STATE,
    CAPABILITY_LAST_CHANGED,
    DOMAIN,
)
from .entity import AlarmDotComEntity
from .models import LocalState

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .capabilities import CapabilityStore
    from .device import AlarmPanelDevice

_LOGGER = logging.getLogger(__name__)

ALARM_STATE_MAP = {
    LocalState.DISARMED: AlarmControlPanelState.DISARMED,
    LocalState.ARMED_STAY: AlarmControlPanelState.ARMED_HOME,
    LocalState.ARMED_AWAY: AlarmControlPanelState.ARMED_AWAY,
    LocalState.ARMED_NIGHT: AlarmControlPanelState.ARMED_NIGHT,
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the alarm control panel for a paired partition."""
    data = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([AlarmDotComAlarmPanel(data.device, data.store, entry)])


class AlarmDotComAlarmPanel(AlarmDotComEntity, AlarmControlPanelEntity):
    """Alarm.com partition as an alarm control panel."""

    _attr_name = None
    _attr_supported_features = (
        AlarmControlPanelEntityFeature.ARM_HOME
        | AlarmControlPanelEntityFeature.ARM_AWAY
    )
    _attr_code_arm_required = False

    def __init__(
        self,
        device: AlarmPanelDevice,
        store: CapabilityStore,
        entry: ConfigEntry,
    ) -> None:
        """Initialize the alarm control panel."""
        super().__init__(device, store, entry, "alarm")

    @property
    def alarm_state(self) -> AlarmControlPanelState | None:
        """Return the state of the alarm."""
        state = self._store.get_capability_value(CAPABILITY_ALARM_STATE)
        if state is None:
            return None
        return ALARM_STATE_MAP.get(LocalState(state))

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return extra state attributes."""
        last_changed = self._store.get_capability_value(CAPABILITY_LAST_CHANGED)
        return {
            "homealarm_state": self._store.get_capability_value(
                CAPABILITY_HOMEALARM_STATE
            ),
            "last_changed": last_changed.isoformat() if last_changed else None,
            "unavailable_reason": self._store.unavailable_reason,
        }

    async def async_alarm_disarm(self, code: str | None = None) -> None:
        """Send disarm command."""
        _LOGGER.info("Disarming %s", self.entity_id)
        await self._device.async_disarm(code)

    async def async_alarm_arm_away(self, code: str | None = None) -> None:
        """Send arm away command."""
        _LOGGER.info("Arming %s (away)", self.entity_id)
        await self._device.async_arm_away(code)

    async def async_alarm_arm_home(self, code: str | None = None) -> None:
        """Send arm stay command."""
        _LOGGER.info("Arming %s (stay)", self.entity_id)
        await self._device.async_arm_stay(code)
