"""API client for the Alarm.com web service.

This module provides functions to interact with the Alarm.com web API,
including login, security system state retrieval and arm/disarm commands.
"""

import logging
import re
from typing import Any, Protocol

import httpx
from homeassistant.core import HomeAssistant
from homeassistant.helpers.httpx_client import create_async_httpx_client
from httpx_retries import Retry, RetryTransport

from .const import (
    AJAX_KEY_COOKIE,
    BASE_URL,
    IDENTITIES_URL,
    LOGIN_FORM_URL,
    LOGIN_PAGE_URL,
    PARTITIONS_URL,
    SYSTEMS_URL,
    USER_AGENT,
)
from .models import AlarmSession, PartitionState, RemoteState

_LOGGER = logging.getLogger(__name__)

# HTTP status codes
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403

AUTH_ERROR_CODES = frozenset({"401", "403", "423"})

HIDDEN_FIELD_PATTERN = re.compile(
    r'<input[^>]*name="(?P<name>__[A-Z]+)"[^>]*value="(?P<value>[^"]*)"',
)
LOGIN_HIDDEN_FIELDS = (
    "__VIEWSTATE",
    "__VIEWSTATEGENERATOR",
    "__EVENTVALIDATION",
    "__PREVIOUSPAGE",
)
USERNAME_FIELD = "ctl00$ContentPlaceHolder1$loginform$txtUserName"
PASSWORD_FIELD = "ctl00$ContentPlaceHolder1$loginform$txtPassword"  # noqa: S105

ARM_OPTIONS = {
    "forceBypass": False,
    "noEntryDelay": False,
    "silentArming": False,
}


class AlarmDotComApiError(Exception):
    """Base exception for Alarm.com API client errors."""


class AlarmDotComAuthError(AlarmDotComApiError):
    """Exception raised for authentication errors."""


def create_headers(ajax_key: str | None = None) -> dict[str, str]:
    """Create HTTP headers for Alarm.com API requests.

    Args:
        ajax_key: Optional ajax request key obtained at login.

    Returns:
        Dictionary containing HTTP headers for API requests.

    """
    headers = {
        "accept": "application/vnd.api+json",
        "referer": f"{BASE_URL}/web/system/home",
        "user-agent": USER_AGENT,
    }
    if ajax_key:
        headers["AjaxRequestUniqueKey"] = ajax_key
    return headers


def is_http_error(status: int) -> bool:
    """Check if HTTP status code indicates an error."""
    return status >= HTTP_BAD_REQUEST


def is_auth_error(status: int) -> bool:
    """Check if HTTP status code indicates an authentication error."""
    return status in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN)


def is_auth_failure(err: BaseException) -> bool:
    """Check if an exception raised by a remote call means the session is gone.

    Args:
        err: Exception raised by the remote client.

    Returns:
        True for AlarmDotComAuthError or any error whose message mentions auth.

    """
    if isinstance(err, AlarmDotComAuthError):
        return True
    return "auth" in str(err).lower()


def validate_response(response: httpx.Response) -> dict[str, Any]:
    """Validate HTTP response and return parsed JSON:API data.

    Args:
        response: HTTP response object to validate.

    Returns:
        Parsed JSON document from response.

    Raises:
        AlarmDotComAuthError: If authentication error is detected.
        AlarmDotComApiError: If API error is detected.

    """
    _validate_http_status(response)
    try:
        data = response.json()
    except ValueError as err:
        error_msg = f"Invalid JSON response: {err}"
        raise AlarmDotComApiError(error_msg) from err
    _validate_api_errors(data)
    return data


def _validate_http_status(response: httpx.Response) -> None:
    if not is_http_error(response.status_code):
        return

    if is_auth_error(response.status_code):
        auth_error = f"Authentication error: {response.status_code}"
        raise AlarmDotComAuthError(auth_error)

    client_error = f"Request failed: {response.status_code}"
    raise AlarmDotComApiError(client_error)


def _validate_api_errors(data: dict[str, Any]) -> None:
    errors = data.get("errors") or []
    if not errors:
        return

    first = errors[0]
    error_message = first.get("detail") or first.get("title") or "Unknown API error"

    if str(first.get("status", first.get("code", ""))) in AUTH_ERROR_CODES:
        raise AlarmDotComAuthError(f"Authentication error: {error_message}")

    raise AlarmDotComApiError(error_message)


def extract_hidden_fields(html: str) -> dict[str, str]:
    """Extract the ASP.NET hidden form fields needed to post the login form.

    Args:
        html: Body of the login page.

    Returns:
        Mapping of hidden field name to value.

    Raises:
        AlarmDotComApiError: If the view state is missing.

    """
    fields = {
        match.group("name"): match.group("value")
        for match in HIDDEN_FIELD_PATTERN.finditer(html)
        if match.group("name") in LOGIN_HIDDEN_FIELDS
    }
    if "__VIEWSTATE" not in fields:
        error_msg = "Login page did not contain a view state"
        raise AlarmDotComApiError(error_msg)
    return fields


def extract_system_ids(data: dict[str, Any]) -> tuple[str, ...]:
    """Extract security system identifiers from the identities response.

    The associated systems of the first identity are used; the selected
    system is the fallback for accounts that only expose one.
    """
    identities = data.get("data") or []
    if not identities:
        return ()

    relationships = identities[0].get("relationships", {})
    associated = relationships.get("associatedSystems", {}).get("data") or []
    systems = [str(item["id"]) for item in associated if item.get("id")]
    if systems:
        return tuple(systems)

    selected = relationships.get("selectedSystem", {}).get("data") or {}
    if selected.get("id"):
        return (str(selected["id"]),)
    return ()


def extract_partition_ids(data: dict[str, Any]) -> list[str]:
    """Extract partition identifiers from a system response."""
    partitions = (
        data.get("data", {})
        .get("relationships", {})
        .get("partitions", {})
        .get("data")
        or []
    )
    return [str(item["id"]) for item in partitions if item.get("id")]


def extract_partitions(data: dict[str, Any]) -> tuple[PartitionState, ...]:
    """Extract partition states from a partitions response."""
    items = data.get("data") or []
    if isinstance(items, dict):
        items = [items]

    partitions = []
    for item in items:
        attributes = item.get("attributes", {})
        partitions.append(
            PartitionState(
                id=str(item.get("id", "")),
                description=str(attributes.get("description", "")),
                state=attributes.get("state"),
                arm_type=attributes.get("armType", attributes.get("desiredState")),
            )
        )
    return tuple(partitions)


def create_session_client(hass: HomeAssistant) -> httpx.AsyncClient:
    """Create HTTP client with retry logic for Alarm.com requests.

    Only idempotent reads are retried; commands are sent exactly once.

    Args:
        hass: Home Assistant instance.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    base_client = create_async_httpx_client(hass, timeout=10.0)
    retry = Retry(
        total=2,
        backoff_factor=0.5,
        allowed_methods=["GET"],
        status_forcelist=[502, 503, 504],
    )
    base_client._transport = RetryTransport(  # noqa: SLF001
        transport=base_client._transport,  # noqa: SLF001
        retry=retry,
    )
    return base_client


async def async_login(
    session: httpx.AsyncClient,
    username: str,
    password: str,
) -> AlarmSession:
    """Log in to Alarm.com and discover the account's security systems.

    Args:
        session: HTTP client session; keeps the login cookies.
        username: Account user name.
        password: Account password.

    Returns:
        AlarmSession with the ajax key and system identifiers.

    Raises:
        AlarmDotComAuthError: If the credentials are rejected.
        AlarmDotComApiError: If API request fails.

    """
    _LOGGER.debug("Fetching Alarm.com login page")
    page = await session.get(LOGIN_PAGE_URL, headers={"user-agent": USER_AGENT})
    _validate_http_status(page)
    form = extract_hidden_fields(page.text)
    form.update(
        {
            USERNAME_FIELD: username,
            PASSWORD_FIELD: password,
            "IsFromNewSite": "1",
            "JavaScriptTest": "1",
        }
    )

    _LOGGER.debug("Posting Alarm.com login form")
    response = await session.post(
        LOGIN_FORM_URL,
        headers={"user-agent": USER_AGENT},
        data=form,
    )
    _validate_http_status(response)

    ajax_key = session.cookies.get(AJAX_KEY_COOKIE)
    if not ajax_key:
        auth_error = "Authentication failed: no ajax key returned"
        raise AlarmDotComAuthError(auth_error)

    response = await session.get(IDENTITIES_URL, headers=create_headers(ajax_key))
    data = validate_response(response)
    systems = extract_system_ids(data)
    identities = data.get("data") or []
    identity_id = str(identities[0]["id"]) if identities else None
    _LOGGER.debug("Logged in to Alarm.com, %d systems found", len(systems))
    return AlarmSession(ajax_key=ajax_key, systems=systems, identity_id=identity_id)


async def async_get_partition_ids(
    session: httpx.AsyncClient,
    system_id: str,
    alarm_session: AlarmSession,
) -> list[str]:
    """Fetch the partition identifiers of a security system."""
    url = f"{SYSTEMS_URL}/{system_id}"
    response = await session.get(url, headers=create_headers(alarm_session.ajax_key))
    return extract_partition_ids(validate_response(response))


async def async_get_state(
    session: httpx.AsyncClient,
    system_id: str,
    alarm_session: AlarmSession,
) -> RemoteState:
    """Fetch the current partition states of a security system.

    Args:
        session: HTTP client session.
        system_id: Security system identifier.
        alarm_session: Session returned by async_login.

    Returns:
        RemoteState snapshot.

    Raises:
        AlarmDotComAuthError: If the session is no longer valid.
        AlarmDotComApiError: If API request fails.

    """
    partition_ids = await async_get_partition_ids(session, system_id, alarm_session)
    if not partition_ids:
        _LOGGER.debug("System %s reports no partitions", system_id)
        return RemoteState(system_id=system_id)

    response = await session.get(
        PARTITIONS_URL,
        headers=create_headers(alarm_session.ajax_key),
        params=[("ids[]", partition_id) for partition_id in partition_ids],
    )
    partitions = extract_partitions(validate_response(response))
    _LOGGER.debug(
        "State received for system %s: %s",
        system_id,
        [(p.id, p.state, p.arm_type) for p in partitions],
    )
    return RemoteState(system_id=system_id, partitions=partitions)


async def async_send_partition_command(
    session: httpx.AsyncClient,
    system_id: str,
    alarm_session: AlarmSession,
    command: str,
    pin: str | None = None,
) -> None:
    """Send an arm or disarm command to the first partition of a system.

    Args:
        session: HTTP client session.
        system_id: Security system identifier.
        alarm_session: Session returned by async_login.
        command: One of armAway, armStay or disarm.
        pin: Optional user code.

    Raises:
        AlarmDotComAuthError: If the session is no longer valid.
        AlarmDotComApiError: If API request fails.

    """
    partition_ids = await async_get_partition_ids(session, system_id, alarm_session)
    if not partition_ids:
        error_msg = f"System {system_id} has no partitions"
        raise AlarmDotComApiError(error_msg)

    payload: dict[str, Any] = {"statePollOnly": False}
    if command != "disarm":
        payload.update(ARM_OPTIONS)
    if pin:
        payload["userCode"] = pin

    url = f"{PARTITIONS_URL}/{partition_ids[0]}/{command}"
    _LOGGER.debug("Sending %s to partition %s", command, partition_ids[0])
    response = await session.post(
        url,
        headers=create_headers(alarm_session.ajax_key),
        json=payload,
    )
    validate_response(response)


class RemoteClient(Protocol):
    """Operations the panel device needs from the remote service."""

    async def login(self, username: str, password: str) -> AlarmSession:
        """Authenticate and return a new session."""

    async def get_state(
        self, system_id: str, alarm_session: AlarmSession
    ) -> RemoteState:
        """Fetch the state of a security system."""

    async def arm_away(
        self, system_id: str, alarm_session: AlarmSession, pin: str | None = None
    ) -> None:
        """Arm the system in away mode."""

    async def arm_stay(
        self, system_id: str, alarm_session: AlarmSession, pin: str | None = None
    ) -> None:
        """Arm the system in stay mode."""

    async def disarm(
        self, system_id: str, alarm_session: AlarmSession, pin: str | None = None
    ) -> None:
        """Disarm the system."""


class AlarmDotComClient:
    """Remote client bound to one HTTP session.

    Each device owns its own client so login cookies are never shared.
    """

    def __init__(self, session: httpx.AsyncClient) -> None:
        """Initialize the client with an HTTP session."""
        self._session = session

    async def login(self, username: str, password: str) -> AlarmSession:
        """Authenticate and return a new session."""
        return await async_login(self._session, username, password)

    async def get_state(
        self, system_id: str, alarm_session: AlarmSession
    ) -> RemoteState:
        """Fetch the state of a security system."""
        return await async_get_state(self._session, system_id, alarm_session)

    async def arm_away(
        self, system_id: str, alarm_session: AlarmSession, pin: str | None = None
    ) -> None:
        """Arm the system in away mode."""
        await async_send_partition_command(
            self._session, system_id, alarm_session, "armAway", pin
        )

    async def arm_stay(
        self, system_id: str, alarm_session: AlarmSession, pin: str | None = None
    ) -> None:
        """Arm the system in stay mode."""
        await async_send_partition_command(
            self._session, system_id, alarm_session, "armStay", pin
        )

    async def disarm(
        self, system_id: str, alarm_session: AlarmSession, pin: str | None = None
    ) -> None:
        """Disarm the system."""
        await async_send_partition_command(
            self._session, system_id, alarm_session, "disarm", pin
        )

    async def async_close(self) -> None:
        """Close the HTTP session."""
        await self._session.aclose()
