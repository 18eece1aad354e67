"""Service types, per-service session TTLs and request timeouts."""

SERVICE_TYPES = [
    "pihole",
    "unifi",
    "unifi_protect",
    "home_assistant",
    "google_calendar",
    "docker",
    "snmp",
    "modbus",
    "custom",
]

# Session TTLs in seconds, kept under each service's own session lifetime
SESSION_TTL_SECONDS: dict[str, float] = {
    "pihole": 5 * 60,
    "unifi": 30 * 60,
    "unifi_protect": 30 * 60,
}

# Request timeouts in seconds
LOGIN_TIMEOUT = 10.0
PIHOLE_TIMEOUT = 5.0
UNIFI_TIMEOUT = 10.0
PROTECT_BOOTSTRAP_TIMEOUT = 15.0
PROTECT_EVENTS_TIMEOUT = 10.0
PROTECT_SNAPSHOT_TIMEOUT = 10.0

UNIFI_DEFAULT_SITE = "default"
UNIFI_ALARM_LIMIT = 10

PROTECT_EVENTS_WINDOW_SECONDS = 24 * 60 * 60
PROTECT_EVENTS_LIMIT = 50
