"""Button platform for Alarm.com Panel integration.

Quick actions arming the partition with the configured default pin.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from homeassistant.components.button import ButtonEntity

from .const import DOMAIN
from .entity import AlarmDotComEntity
from .models import CommandKind

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .capabilities import CapabilityStore
    from .device import AlarmPanelDevice

_LOGGER = logging.getLogger(__name__)

BUTTONS = {
    CommandKind.ARM_STAY: ("arm_stay", "mdi:shield-home"),
    CommandKind.ARM_AWAY: ("arm_away", "mdi:shield-lock"),
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the arm buttons for a paired partition."""
    data = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        [
            AlarmDotComArmButton(data.device, data.store, entry, kind)
            for kind in BUTTONS
        ]
    )


class AlarmDotComArmButton(AlarmDotComEntity, ButtonEntity):
    """Button sending one arm command."""

    def __init__(
        self,
        device: AlarmPanelDevice,
        store: CapabilityStore,
        entry: ConfigEntry,
        kind: CommandKind,
    ) -> None:
        """Initialize the arm button."""
        key, icon = BUTTONS[kind]
        super().__init__(device, store, entry, f"{key}_button")
        self._kind = kind
        self._attr_translation_key = key
        self._attr_icon = icon

    async def async_press(self) -> None:
        """Send the arm command."""
        _LOGGER.info("Button pressed: %s", self._kind)
        try:
            await self._device.async_execute(self._kind)
        except Exception as err:
            _LOGGER.error("Failed to send %s: %s", self._kind, err)
            raise
