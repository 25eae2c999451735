"""Exceptions raised by the Alarm.com panel device."""

from homeassistant.exceptions import HomeAssistantError


class AlarmPanelError(HomeAssistantError):
    """Base exception for panel connection and command errors."""


class MissingCredentialsError(AlarmPanelError):
    """Username or password is not configured."""


class AuthError(AlarmPanelError):
    """Login was rejected or could not be performed."""


class NoSystemsFoundError(AlarmPanelError):
    """Login succeeded but the account has no security systems."""


class InitialStateError(AlarmPanelError):
    """Login succeeded but the first state fetch failed."""


class NotConnectedError(AlarmPanelError):
    """A command was attempted without an active session."""
