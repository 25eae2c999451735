"""Base entity for Alarm.com Panel integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import CONF_PARTITION_ID, DOMAIN, MANUFACTURER
from .poller import AlarmPoller

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry

    from .capabilities import CapabilityStore
    from .device import AlarmPanelDevice


class AlarmDotComEntity(CoordinatorEntity[AlarmPoller]):
    """Entity backed by the capability store of a panel.

    State is written whenever the poll coordinator notifies its listeners.
    """

    _attr_has_entity_name = True

    def __init__(
        self,
        device: AlarmPanelDevice,
        store: CapabilityStore,
        entry: ConfigEntry,
        key: str,
    ) -> None:
        """Initialize the entity.

        Args:
            device: Panel device commands are sent through.
            store: Capability store the entity state is read from.
            entry: Config entry of the panel.
            key: Suffix making the unique id distinct per platform.

        """
        super().__init__(device.poller)
        self._device = device
        self._store = store
        partition_id = entry.data.get(CONF_PARTITION_ID, entry.entry_id)
        self._attr_unique_id = f"{partition_id}_{key}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, str(partition_id))},
            name=entry.title,
            manufacturer=MANUFACTURER,
            model="Partition",
        )

    @property
    def available(self) -> bool:
        """Return if entity is available."""
        return self._store.available
