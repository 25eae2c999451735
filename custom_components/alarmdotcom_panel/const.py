"""Constants for Alarm.com Panel integration.

This module contains all the constants used throughout the integration,
including API endpoints, settings keys and capability names.
"""

DOMAIN = "alarmdotcom_panel"

BASE_URL = "https://www.alarm.com"
LOGIN_PAGE_URL = f"{BASE_URL}/login.aspx"
LOGIN_FORM_URL = f"{BASE_URL}/web/Default.aspx"
IDENTITIES_URL = f"{BASE_URL}/web/api/identities"
SYSTEMS_URL = f"{BASE_URL}/web/api/systems/systems"
PARTITIONS_URL = f"{BASE_URL}/web/api/devices/partitions"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36"
)
AJAX_KEY_COOKIE = "afg"

MANUFACTURER = "Alarm.com"

DEFAULT_POLL_INTERVAL = 60
MIN_POLL_INTERVAL = 10
DEFAULT_PROVIDER = "alarm.com"
REFRESH_DELAY = 3  # Seconds between the immediate and settled re-poll
POLL_FAILURE_THRESHOLD = 3

CONF_DEFAULT_PIN = "default_pin"
CONF_POLL_INTERVAL = "poll_interval"
CONF_PROVIDER = "provider"
CONF_PARTITION_ID = "partition_id"

# Changing any of these forces a reconnect
CREDENTIAL_SETTINGS = frozenset({"username", "password", CONF_PROVIDER})

CAPABILITY_ONOFF = "onoff"
CAPABILITY_ARM_MODE = "arm_mode"
CAPABILITY_HOMEALARM_STATE = "homealarm_state"
CAPABILITY_ALARM_STATE = "alarm_state"
CAPABILITY_LAST_CHANGED = "last_changed"

EVENT_STATE_CHANGED = f"{DOMAIN}_state_changed"
EVENT_TIMELINE = f"{DOMAIN}_timeline"

SEVERITY_INFO = "info"
SEVERITY_NOTICE = "notice"

UNKNOWN_STATE = "unknown"

REASON_MISSING_CREDENTIALS = "Missing credentials"
REASON_NO_SYSTEMS = "No systems found"

ERROR_INVALID_AUTH = "invalid_auth"
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_TIMEOUT = "timeout_error"
ERROR_API_ERROR = "api_error"
ERROR_NO_SYSTEMS = "no_systems"
ERROR_UNKNOWN = "unknown_error"
