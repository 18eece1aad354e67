"""Remote service adapters, keyed by the service type of their credentials."""

from broker.adapters.base import ServiceAdapter
from broker.adapters.pihole import PiholeAdapter
from broker.adapters.unifi import UnifiAdapter
from broker.adapters.unifi_protect import ProtectAdapter, ProtectSensorsAdapter, ProtectSnapshotAdapter

ADAPTERS: dict[str, ServiceAdapter] = {
    "pihole": PiholeAdapter(),
    "unifi": UnifiAdapter(),
    "unifi_protect": ProtectAdapter(),
}

# Alternative Protect views that reuse the Protect session
PROTECT_SENSORS = ProtectSensorsAdapter()
PROTECT_SNAPSHOT = ProtectSnapshotAdapter()


__all__ = [
    "ADAPTERS",
    "PROTECT_SENSORS",
    "PROTECT_SNAPSHOT",
    "PiholeAdapter",
    "ProtectAdapter",
    "ProtectSensorsAdapter",
    "ProtectSnapshotAdapter",
    "ServiceAdapter",
    "UnifiAdapter",
]
