"""Switch platform for Alarm.com Panel integration.

The switch mirrors the on/off capability: on means armed away.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.switch import SwitchEntity

from .const import CAPABILITY_ONOFF, DOMAIN
from .entity import AlarmDotComEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .capabilities import CapabilityStore
    from .device import AlarmPanelDevice


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the armed switch for a paired partition."""
    data = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([AlarmDotComArmedSwitch(data.device, data.store, entry)])


class AlarmDotComArmedSwitch(AlarmDotComEntity, SwitchEntity):
    """Arm away when turned on, disarm when turned off."""

    _attr_translation_key = "armed"

    def __init__(
        self,
        device: AlarmPanelDevice,
        store: CapabilityStore,
        entry: ConfigEntry,
    ) -> None:
        """Initialize the switch."""
        super().__init__(device, store, entry, CAPABILITY_ONOFF)

    @property
    def is_on(self) -> bool | None:
        """Return True if the panel is armed away."""
        return self._store.get_capability_value(CAPABILITY_ONOFF)

    async def async_turn_on(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        """Arm away with the default pin."""
        await self._device.async_arm_away()

    async def async_turn_off(self, **kwargs: Any) -> None:  # noqa: ANN401, ARG002
        """Disarm with the default pin."""
        await self._device.async_disarm()
