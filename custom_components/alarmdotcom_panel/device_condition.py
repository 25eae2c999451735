"""Device conditions for Alarm.com Panel integration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import voluptuous as vol
from homeassistant.const import CONF_CONDITION, CONF_DEVICE_ID, CONF_DOMAIN, CONF_TYPE
from homeassistant.core import callback
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers import device_registry as dr

from .const import DOMAIN

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.condition import ConditionCheckerType
    from homeassistant.helpers.typing import ConfigType, TemplateVarsType

    from .device import AlarmPanelDevice

CONDITION_TARGETS = {
    "is_away": "away",
    "is_stay": "stay",
    "is_disarmed": "disarmed",
}

CONDITION_SCHEMA = cv.DEVICE_CONDITION_BASE_SCHEMA.extend(
    {vol.Required(CONF_TYPE): vol.In(CONDITION_TARGETS)}
)


async def async_get_conditions(
    hass: HomeAssistant, device_id: str
) -> list[dict[str, str]]:
    """List the conditions offered for a panel device."""
    return [
        {
            CONF_CONDITION: "device",
            CONF_DEVICE_ID: device_id,
            CONF_DOMAIN: DOMAIN,
            CONF_TYPE: condition_type,
        }
        for condition_type in CONDITION_TARGETS
    ]


@callback
def async_condition_from_config(
    hass: HomeAssistant, config: ConfigType
) -> ConditionCheckerType:
    """Create a checker comparing the panel state to the configured target."""
    target = CONDITION_TARGETS[config[CONF_TYPE]]
    device_id = config[CONF_DEVICE_ID]

    @callback
    def test_is_state(hass: HomeAssistant, variables: TemplateVarsType) -> bool:
        device = _async_get_panel_device(hass, device_id)
        return device is not None and device.is_state(target)

    return test_is_state


@callback
def _async_get_panel_device(
    hass: HomeAssistant, device_id: str
) -> AlarmPanelDevice | None:
    device_entry = dr.async_get(hass).async_get(device_id)
    if device_entry is None:
        return None
    entries = hass.data.get(DOMAIN, {})
    for entry_id in device_entry.config_entries:
        if entry_id in entries:
            return entries[entry_id].device
    return None
