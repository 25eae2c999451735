"""Session management for the Alarm.com panel device."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from .api import AlarmDotComApiError
from .const import REASON_MISSING_CREDENTIALS, REASON_NO_SYSTEMS
from .exceptions import (
    AuthError,
    InitialStateError,
    MissingCredentialsError,
    NoSystemsFoundError,
)
from .models import AlarmSession, Credentials

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .api import RemoteClient
    from .capabilities import CapabilitySink

_LOGGER = logging.getLogger(__name__)


class SessionManager:
    """Owns the authentication session of one device.

    A session is only installed once login returned at least one system.
    Concurrent forced connects are not serialised; the last one to finish
    wins.
    """

    def __init__(
        self,
        client: RemoteClient,
        sink: CapabilitySink,
        on_connected: Callable[[AlarmSession], Awaitable[object]] | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            client: Remote client used to log in.
            sink: Capability sink providing settings and availability.
            on_connected: Coroutine run after login to seed the local state.

        """
        self._client = client
        self._sink = sink
        self._on_connected = on_connected
        self._session: AlarmSession | None = None

    @property
    def session(self) -> AlarmSession | None:
        """Return the current session, if any."""
        return self._session

    @property
    def connected(self) -> bool:
        """Return True if a usable session is installed."""
        return self._session is not None and bool(self._session.systems)

    @property
    def system_id(self) -> str | None:
        """Return the identifier of the tracked security system."""
        if not self.connected:
            return None
        return self._session.systems[0]

    @property
    def credentials(self) -> Credentials:
        """Return the credentials currently configured."""
        return Credentials.from_settings(self._sink.get_setting)

    def invalidate(self) -> None:
        """Drop the current session."""
        self._session = None

    async def async_connect(self, *, force: bool = False) -> AlarmSession:
        """Log in unless a session already exists.

        Args:
            force: Log in again even if a session exists.

        Returns:
            The installed session.

        Raises:
            MissingCredentialsError: If username or password is empty.
            AuthError: If the login request failed or was rejected.
            NoSystemsFoundError: If the account has no security systems.
            InitialStateError: If the first state fetch failed.

        """
        if self._session is not None and not force:
            _LOGGER.debug("Using existing Alarm.com session")
            return self._session

        credentials = self.credentials
        if not credentials.complete:
            _LOGGER.error("Missing credentials in settings")
            self._session = None
            self._sink.set_unavailable(REASON_MISSING_CREDENTIALS)
            raise MissingCredentialsError(REASON_MISSING_CREDENTIALS)

        try:
            _LOGGER.info(
                "Attempting login for user %s (provider %s)",
                credentials.username,
                credentials.provider,
            )
            session = await self._client.login(
                credentials.username, credentials.password
            )
        except (AlarmDotComApiError, httpx.HTTPError) as err:
            _LOGGER.error("Login failed for user %s: %s", credentials.username, err)
            raise self._login_failed(err) from err
        except Exception as err:
            _LOGGER.exception(
                "Unexpected error during login for user %s", credentials.username
            )
            raise self._login_failed(err) from err

        if not session.systems:
            self._session = None
            _LOGGER.error("Login succeeded but no systems were found")
            self._sink.set_unavailable(REASON_NO_SYSTEMS)
            raise NoSystemsFoundError(REASON_NO_SYSTEMS)

        self._session = session
        _LOGGER.info("Login successful, systems found: %d", len(session.systems))

        if self._on_connected is not None:
            try:
                await self._on_connected(session)
            except (AlarmDotComApiError, httpx.HTTPError) as err:
                _LOGGER.error("Initial state fetch failed: %s", err)
                raise self._seed_failed(err) from err
            except Exception as err:
                _LOGGER.exception("Unexpected error during initial state fetch")
                raise self._seed_failed(err) from err

        self._sink.set_available()
        return session

    def _login_failed(self, err: Exception) -> AuthError:
        self._session = None
        reason = f"Login failed: {err}"
        self._sink.set_unavailable(reason)
        return AuthError(reason)

    def _seed_failed(self, err: Exception) -> InitialStateError:
        reason = f"Initial state fetch failed: {err}"
        self._sink.set_unavailable(reason)
        return InitialStateError(reason)
