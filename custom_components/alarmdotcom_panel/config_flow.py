"""
Configuration flow for Alarm.com Panel integration.

Pairing verifies the credentials, lists the partitions of the account's
first security system and creates one entry for the selected partition.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import voluptuous as vol
from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.const import CONF_PASSWORD, CONF_USERNAME
from homeassistant.core import callback

from . import api
from .const import (
    CONF_DEFAULT_PIN,
    CONF_PARTITION_ID,
    CONF_POLL_INTERVAL,
    CONF_PROVIDER,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PROVIDER,
    DOMAIN,
    ERROR_API_ERROR,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_AUTH,
    ERROR_NO_SYSTEMS,
    ERROR_TIMEOUT,
    ERROR_UNKNOWN,
    MIN_POLL_INTERVAL,
)
from .models import AlarmSession, PartitionState

_LOGGER = logging.getLogger(__name__)


class AlarmDotComConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for Alarm.com Panel integration."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the config flow."""
        self._credentials: dict[str, Any] = {}
        self._partitions: dict[str, PartitionState] = {}

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlow:  # noqa: ARG004
        """Return the options flow."""
        return AlarmDotComOptionsFlow()

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Verify the credentials.

        Args:
            user_input: User input data containing username, password and
                provider.

        Returns:
            ConfigFlowResult indicating the next step or errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            session = api.create_session_client(self.hass)
            try:
                alarm_session = await api.async_login(
                    session,
                    user_input[CONF_USERNAME],
                    user_input[CONF_PASSWORD],
                )
                partitions = await self._async_fetch_partitions(session, alarm_session)
                _LOGGER.info("Successfully logged in to Alarm.com")

            except api.AlarmDotComAuthError as err:
                _LOGGER.warning(
                    "Authentication failed (%s): %s", ERROR_INVALID_AUTH, err
                )
                errors["base"] = ERROR_INVALID_AUTH
            except httpx.ConnectError:
                _LOGGER.exception("Connection error (%s)", ERROR_CANNOT_CONNECT)
                errors["base"] = ERROR_CANNOT_CONNECT
            except httpx.TimeoutException:
                _LOGGER.exception("Timeout error (%s)", ERROR_TIMEOUT)
                errors["base"] = ERROR_TIMEOUT
            except api.AlarmDotComApiError:
                _LOGGER.exception("API client error (%s)", ERROR_API_ERROR)
                errors["base"] = ERROR_API_ERROR
            except Exception:
                _LOGGER.exception(
                    "Unexpected error during login (%s)",
                    ERROR_UNKNOWN,
                )
                errors["base"] = ERROR_UNKNOWN

            else:
                if not partitions:
                    errors["base"] = ERROR_NO_SYSTEMS
                else:
                    self._credentials = {
                        CONF_USERNAME: user_input[CONF_USERNAME],
                        CONF_PASSWORD: user_input[CONF_PASSWORD],
                        CONF_PROVIDER: user_input.get(CONF_PROVIDER)
                        or DEFAULT_PROVIDER,
                    }
                    self._partitions = {p.id: p for p in partitions}
                    return await self.async_step_partition()
            finally:
                await session.aclose()

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_USERNAME): str,
                    vol.Required(CONF_PASSWORD): str,
                    vol.Optional(CONF_PROVIDER, default=DEFAULT_PROVIDER): str,
                }
            ),
            errors=errors,
        )

    async def _async_fetch_partitions(
        self,
        session: httpx.AsyncClient,
        alarm_session: AlarmSession,
    ) -> tuple[PartitionState, ...]:
        if not alarm_session.systems:
            return ()
        state = await api.async_get_state(
            session, alarm_session.systems[0], alarm_session
        )
        _LOGGER.debug("Security system partitions: %s", state.partitions)
        return state.partitions

    async def async_step_partition(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Let the user pick the partition to add.

        Args:
            user_input: User input containing the selected partition id.

        Returns:
            ConfigFlowResult creating the entry or showing the list.

        """
        if user_input is not None:
            partition = self._partitions[user_input[CONF_PARTITION_ID]]
            await self.async_set_unique_id(
                f"{self._credentials[CONF_USERNAME].lower()}_{partition.id}"
            )
            self._abort_if_unique_id_configured()

            return self.async_create_entry(
                title=partition.description or f"Partition {partition.id}",
                data={**self._credentials, CONF_PARTITION_ID: partition.id},
            )

        choices = {
            p.id: p.description or f"Partition {p.id}"
            for p in self._partitions.values()
        }
        return self.async_show_form(
            step_id="partition",
            data_schema=vol.Schema({vol.Required(CONF_PARTITION_ID): vol.In(choices)}),
        )


class AlarmDotComOptionsFlow(OptionsFlow):
    """Edit the settings of a paired panel."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Show and store the settings."""
        if user_input is not None:
            return self.async_create_entry(data=user_input)

        current = {**self.config_entry.data, **self.config_entry.options}
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_USERNAME, default=current.get(CONF_USERNAME, "")
                    ): str,
                    vol.Required(
                        CONF_PASSWORD, default=current.get(CONF_PASSWORD, "")
                    ): str,
                    vol.Optional(
                        CONF_PROVIDER,
                        default=current.get(CONF_PROVIDER, DEFAULT_PROVIDER),
                    ): str,
                    vol.Optional(
                        CONF_DEFAULT_PIN, default=current.get(CONF_DEFAULT_PIN, "")
                    ): str,
                    vol.Optional(
                        CONF_POLL_INTERVAL,
                        default=current.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
                    ): vol.All(vol.Coerce(int), vol.Range(min=MIN_POLL_INTERVAL)),
                }
            ),
        )
