"""The Alarm.com Panel integration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, callback

from .api import AlarmDotComClient, create_session_client
from .capabilities import CapabilityStore
from .const import DOMAIN, EVENT_STATE_CHANGED, EVENT_TIMELINE
from .device import AlarmPanelDevice
from .models import StateChangeEvent, TimelineEntry

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [
    Platform.ALARM_CONTROL_PANEL,
    Platform.BUTTON,
    Platform.SELECT,
    Platform.SWITCH,
]


@dataclass
class AlarmPanelData:
    """Runtime objects stored per config entry."""

    device: AlarmPanelDevice
    store: CapabilityStore
    client: AlarmDotComClient


def entry_settings(entry: ConfigEntry) -> dict[str, Any]:
    """Return the settings of an entry, options overriding data."""
    return {**entry.data, **entry.options}


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up an Alarm.com panel from a config entry."""
    _LOGGER.info("Setting up Alarm.com Panel integration for entry %s", entry.entry_id)

    store = CapabilityStore(entry_settings(entry))
    client = AlarmDotComClient(create_session_client(hass))
    device = AlarmPanelDevice(hass, client, store, config_entry=entry)

    @callback
    def _fire_state_changed(event: StateChangeEvent) -> None:
        hass.bus.async_fire(
            EVENT_STATE_CHANGED, {"entry_id": entry.entry_id, **event.as_dict()}
        )

    @callback
    def _fire_timeline(timeline_entry: TimelineEntry) -> None:
        hass.bus.async_fire(
            EVENT_TIMELINE, {"entry_id": entry.entry_id, **timeline_entry.as_dict()}
        )

    entry.async_on_unload(device.subscribe(_fire_state_changed))
    entry.async_on_unload(device.subscribe_timeline(_fire_timeline))

    # Connection failures leave the entities unavailable with a reason
    # instead of failing the setup.
    await device.async_start()

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = AlarmPanelData(
        device=device, store=store, client=client
    )
    entry.async_on_unload(entry.add_update_listener(async_update_listener))

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    _LOGGER.info(
        "Successfully setup Alarm.com Panel integration for entry %s", entry.entry_id
    )
    return True


async def async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Apply changed options to the running device."""
    data: AlarmPanelData = hass.data[DOMAIN][entry.entry_id]
    changed = data.store.update_settings(entry_settings(entry))
    await data.device.async_apply_settings(changed)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    _LOGGER.info("Unloading Alarm.com Panel integration for entry %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        data: AlarmPanelData = hass.data[DOMAIN].pop(entry.entry_id)
        try:
            await data.device.async_shutdown()
        finally:
            await data.client.async_close()
        _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)
    else:
        _LOGGER.warning("Failed to unload some platforms for entry %s", entry.entry_id)

    return unload_ok
