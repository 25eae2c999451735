"""Data models for Alarm.com Panel integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from homeassistant.const import CONF_PASSWORD, CONF_USERNAME

from .const import (
    CONF_DEFAULT_PIN,
    CONF_POLL_INTERVAL,
    CONF_PROVIDER,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PROVIDER,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime


class LocalState(StrEnum):
    """Semantic alarm state of the tracked partition."""

    DISARMED = "disarmed"
    ARMED_STAY = "armed_stay"
    ARMED_AWAY = "armed_away"
    ARMED_NIGHT = "armed_night"


class CoarseState(StrEnum):
    """Three-valued projection of LocalState used by the on/off control."""

    DISARMED = "disarmed"
    PARTIALLY_ARMED = "partially_armed"
    ARMED = "armed"


class ArmMode(StrEnum):
    """Value mirrored on the arm mode control."""

    DISARMED = "disarmed"
    STAY = "stay"
    AWAY = "away"
    NIGHT = "night"

    @classmethod
    def from_local_state(cls, state: LocalState) -> ArmMode:
        """Return the control mode matching a polled local state."""
        return _LOCAL_TO_ARM_MODE[state]


_LOCAL_TO_ARM_MODE = {
    LocalState.DISARMED: ArmMode.DISARMED,
    LocalState.ARMED_STAY: ArmMode.STAY,
    LocalState.ARMED_AWAY: ArmMode.AWAY,
    LocalState.ARMED_NIGHT: ArmMode.NIGHT,
}


class CommandKind(StrEnum):
    """Commands accepted by the dispatcher."""

    ARM_AWAY = "armAway"
    ARM_STAY = "armStay"
    DISARM = "disarm"

    @property
    def target_mode(self) -> ArmMode:
        """Mode the controls are reconciled to after dispatch."""
        return _COMMAND_TARGETS[self]


_COMMAND_TARGETS = {
    CommandKind.ARM_AWAY: ArmMode.AWAY,
    CommandKind.ARM_STAY: ArmMode.STAY,
    CommandKind.DISARM: ArmMode.DISARMED,
}


class PollOutcome(StrEnum):
    """Classification of a single poll tick."""

    CHANGED = "changed"
    UNCHANGED = "unchanged"
    UNMAPPED = "unmapped"
    NO_PARTITION_DATA = "no_partition_data"
    NOT_CONNECTED = "not_connected"
    AUTH_FAILED = "auth_failed"
    FAILED = "failed"


def _optional(value: Any) -> str | None:  # noqa: ANN401
    if value is None:
        return None
    text = str(value)
    return text or None


@dataclass(frozen=True)
class Credentials:
    """Login material read from the entry settings."""

    username: str | None
    password: str | None
    default_pin: str | None = None
    provider: str = DEFAULT_PROVIDER

    @classmethod
    def from_settings(cls, get_setting: Callable[[str], Any]) -> Credentials:
        """Build credentials from a settings getter."""
        return cls(
            username=_optional(get_setting(CONF_USERNAME)),
            password=_optional(get_setting(CONF_PASSWORD)),
            default_pin=_optional(get_setting(CONF_DEFAULT_PIN)),
            provider=_optional(get_setting(CONF_PROVIDER)) or DEFAULT_PROVIDER,
        )

    @property
    def complete(self) -> bool:
        """Return True if both username and password are present."""
        return bool(self.username and self.password)


@dataclass(frozen=True)
class PollConfig:
    """Polling settings."""

    interval_seconds: int = DEFAULT_POLL_INTERVAL

    @classmethod
    def from_settings(cls, get_setting: Callable[[str], Any]) -> PollConfig:
        """Build the poll config, falling back to the default on bad input."""
        raw = get_setting(CONF_POLL_INTERVAL)
        try:
            interval = int(raw)
        except (TypeError, ValueError):
            return cls()
        if interval <= 0:
            return cls()
        return cls(interval_seconds=interval)


@dataclass(frozen=True)
class AlarmSession:
    """Authentication handle returned by a successful login."""

    ajax_key: str
    systems: tuple[str, ...]
    identity_id: str | None = None


@dataclass(frozen=True, slots=True)
class PartitionState:
    """State of one partition as reported by the remote service."""

    id: str
    description: str
    state: int | None
    arm_type: int | str | None = None


@dataclass(frozen=True, slots=True)
class RemoteState:
    """Snapshot of a security system fetched during a poll."""

    system_id: str
    partitions: tuple[PartitionState, ...] = ()

    @property
    def first_partition(self) -> PartitionState | None:
        """Return the partition this integration tracks, if any."""
        return self.partitions[0] if self.partitions else None


@dataclass(frozen=True, slots=True)
class StateChangeEvent:
    """Payload emitted when the polled local state changes."""

    state: str
    previous_state: str
    raw_state: int

    def as_dict(self) -> dict[str, Any]:
        """Return the event payload."""
        return {
            "state": self.state,
            "previous_state": self.previous_state,
            "raw_state": self.raw_state,
        }


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    """Audit entry appended for every state change."""

    message: str
    severity: str
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Return the entry as a serialisable payload."""
        return {
            "message": self.message,
            "severity": self.severity,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }
