"""Arm and disarm command dispatch."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from .capabilities import reconcile_controls
from .const import REFRESH_DELAY
from .exceptions import NotConnectedError
from .models import CommandKind, Credentials

if TYPE_CHECKING:
    from .api import RemoteClient
    from .capabilities import CapabilitySink
    from .poller import AlarmPoller
    from .session import SessionManager

_LOGGER = logging.getLogger(__name__)


class CommandDispatcher:
    """Sends commands to the remote system and refreshes the state after.

    Arming is not synchronous on the remote side, so a successful command is
    followed by an immediate poll, which usually sees the transient arming
    code, and a delayed one that sees the settled state.
    """

    def __init__(
        self,
        client: RemoteClient,
        session_manager: SessionManager,
        poller: AlarmPoller,
        sink: CapabilitySink,
        refresh_delay: float = REFRESH_DELAY,
    ) -> None:
        """Initialize the dispatcher."""
        self._client = client
        self._session_manager = session_manager
        self._poller = poller
        self._sink = sink
        self._refresh_delay = refresh_delay
        self._refresh_tasks: set[asyncio.Task[None]] = set()

    async def async_execute(self, kind: CommandKind, pin: str | None = None) -> None:
        """Execute a command against the tracked system.

        Args:
            kind: Command to send.
            pin: User code; the configured default pin is used when omitted.

        Raises:
            NotConnectedError: If there is no session. Nothing is sent.
            Exception: Any error raised by the remote client, unmodified.

        """
        kind = CommandKind(kind)
        session = self._session_manager.session
        system_id = self._session_manager.system_id
        if session is None or system_id is None:
            _LOGGER.error("Action attempted without auth: %s", kind)
            raise NotConnectedError("Not connected")

        if not pin:
            pin = Credentials.from_settings(self._sink.get_setting).default_pin

        _LOGGER.info(
            "Executing action %s on system %s (pin supplied: %s)",
            kind,
            system_id,
            bool(pin),
        )
        command = {
            CommandKind.ARM_AWAY: self._client.arm_away,
            CommandKind.ARM_STAY: self._client.arm_stay,
            CommandKind.DISARM: self._client.disarm,
        }[kind]

        try:
            await command(system_id, session, pin)
        except Exception as err:
            _LOGGER.error("%s action failed: %s", kind, err)
            raise
        finally:
            reconcile_controls(self._sink, kind.target_mode)
            self._poller.async_update_listeners()

        await self._async_refresh_soon()

    async def _async_refresh_soon(self) -> None:
        await self._poller.async_refresh()

        task = asyncio.create_task(self._async_delayed_refresh())
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _async_delayed_refresh(self) -> None:
        """Refresh the coordinator once the remote state has settled."""
        await asyncio.sleep(self._refresh_delay)
        await self._poller.async_refresh()

    async def async_cancel_pending(self) -> None:
        """Cancel delayed re-polls that have not run yet."""
        tasks = list(self._refresh_tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._refresh_tasks.clear()
