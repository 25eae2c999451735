"""Select platform for Alarm.com Panel integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.select import SelectEntity

from .const import CAPABILITY_ARM_MODE, DOMAIN
from .entity import AlarmDotComEntity
from .models import ArmMode, CommandKind

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .capabilities import CapabilityStore
    from .device import AlarmPanelDevice

# Night is shown when polled but cannot be selected.
MODE_COMMANDS = {
    ArmMode.DISARMED: CommandKind.DISARM,
    ArmMode.STAY: CommandKind.ARM_STAY,
    ArmMode.AWAY: CommandKind.ARM_AWAY,
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the arm mode select for a paired partition."""
    data = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([AlarmDotComArmModeSelect(data.device, data.store, entry)])


class AlarmDotComArmModeSelect(AlarmDotComEntity, SelectEntity):
    """Arm mode control."""

    _attr_translation_key = "arm_mode"
    _attr_options = [str(mode) for mode in MODE_COMMANDS]

    def __init__(
        self,
        device: AlarmPanelDevice,
        store: CapabilityStore,
        entry: ConfigEntry,
    ) -> None:
        """Initialize the select."""
        super().__init__(device, store, entry, CAPABILITY_ARM_MODE)

    @property
    def current_option(self) -> str | None:
        """Return the mirrored arm mode if it is selectable."""
        mode = self._store.get_capability_value(CAPABILITY_ARM_MODE)
        if mode is None or str(mode) not in self._attr_options:
            return None
        return str(mode)

    async def async_select_option(self, option: str) -> None:
        """Send the command matching the selected mode."""
        await self._device.async_execute(MODE_COMMANDS[ArmMode(option)])
