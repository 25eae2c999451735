"""Capability values and settings of a paired panel.

The device core only talks to the CapabilitySink protocol. CapabilityStore
is the in-memory implementation used by the config entry. Entities read it
and are told about changes by the poll coordinator.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

from .const import CAPABILITY_ARM_MODE, CAPABILITY_ONOFF
from .models import ArmMode

if TYPE_CHECKING:
    from collections.abc import Mapping

_LOGGER = logging.getLogger(__name__)


class CapabilitySink(Protocol):
    """Storage for capability values, settings and availability."""

    def get_capability_value(self, name: str) -> Any:  # noqa: ANN401
        """Return the stored value of a capability, or None."""

    def set_capability_value(self, name: str, value: Any) -> None:  # noqa: ANN401
        """Store a capability value."""

    def get_setting(self, key: str) -> Any:  # noqa: ANN401
        """Return a setting, or None when it is not configured."""

    def set_available(self) -> None:
        """Mark the device available."""

    def set_unavailable(self, reason: str) -> None:
        """Mark the device unavailable with a human-readable reason."""


class CapabilityStore:
    """In-memory CapabilitySink for one config entry."""

    def __init__(self, settings: Mapping[str, Any] | None = None) -> None:
        """Initialize the store with the entry settings."""
        self._settings: dict[str, Any] = dict(settings or {})
        self._values: dict[str, Any] = {}
        self._available = False
        self._unavailable_reason: str | None = None

    @property
    def available(self) -> bool:
        """Return True if the device is available."""
        return self._available

    @property
    def unavailable_reason(self) -> str | None:
        """Return why the device is unavailable, if it is."""
        return self._unavailable_reason

    @property
    def settings(self) -> dict[str, Any]:
        """Return a copy of the current settings."""
        return dict(self._settings)

    def get_capability_value(self, name: str) -> Any:  # noqa: ANN401
        """Return the stored value of a capability, or None."""
        return self._values.get(name)

    def set_capability_value(self, name: str, value: Any) -> None:  # noqa: ANN401
        """Store a capability value."""
        self._values[name] = value

    def get_setting(self, key: str) -> Any:  # noqa: ANN401
        """Return a setting, or None when it is not configured."""
        return self._settings.get(key)

    def update_settings(self, settings: Mapping[str, Any]) -> set[str]:
        """Replace the settings and return the keys whose value changed."""
        keys = set(self._settings) | set(settings)
        changed = {key for key in keys if self._settings.get(key) != settings.get(key)}
        self._settings = dict(settings)
        return changed

    def set_available(self) -> None:
        """Mark the device available."""
        self._available = True
        self._unavailable_reason = None

    def set_unavailable(self, reason: str) -> None:
        """Mark the device unavailable."""
        _LOGGER.warning("Alarm panel unavailable: %s", reason)
        self._available = False
        self._unavailable_reason = reason


def reconcile_controls(sink: CapabilitySink, mode: ArmMode) -> None:
    """Mirror an arm mode onto the on/off and arm mode controls.

    Only values that differ from the stored ones are written.
    """
    desired_on = mode == ArmMode.AWAY
    if sink.get_capability_value(CAPABILITY_ONOFF) != desired_on:
        sink.set_capability_value(CAPABILITY_ONOFF, desired_on)
    if sink.get_capability_value(CAPABILITY_ARM_MODE) != mode:
        sink.set_capability_value(CAPABILITY_ARM_MODE, mode)
