"""UniFi Network controller adapter.

Login sets a session cookie. Stats come from four endpoints fetched
concurrently: health (primary), devices, clients and alarms. A failed
non-primary branch contributes its empty default to the merged result.
"""

import logging
from typing import Any

import httpx

from broker.adapters.base import ServiceAdapter, cookie_pairs
from broker.schemas.widgets import UnifiAlarm, UnifiClient, UnifiDevice, UnifiStats
from broker.services.errors import AuthenticationFailed
from broker.services.fanout import fan_out
from broker.utils.constants import UNIFI_ALARM_LIMIT, UNIFI_DEFAULT_SITE, UNIFI_TIMEOUT

logger = logging.getLogger(__name__)

# branch name -> stat endpoint
BRANCHES = {
    "health": "health",
    "devices": "device",
    "clients": "sta",
    "alarms": "alarm",
}
PRIMARY = "health"


def _rows(payload: Any) -> list[dict]:
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return [row for row in payload["data"] if isinstance(row, dict)]
    return []


def merge_health(stats: UnifiStats, rows: list[dict]) -> None:
    for item in rows:
        subsystem = item.get("subsystem")
        if subsystem == "wlan":
            stats.num_user = item.get("num_user") or 0
            stats.num_guest = item.get("num_guest") or 0
            stats.num_iot = item.get("num_iot") or 0
            stats.access_points = item.get("num_ap") or 0
            stats.traffic.tx_bytes += item.get("tx_bytes") or 0
            stats.traffic.rx_bytes += item.get("rx_bytes") or 0
            stats.traffic.tx_packets += item.get("tx_packets") or 0
            stats.traffic.rx_packets += item.get("rx_packets") or 0
        elif subsystem == "wan":
            stats.wan_ip = item.get("wan_ip")
            stats.uptime = item.get("uptime")
            stats.wan_uptime = item.get("uptime")
            stats.latency = item.get("latency")
            stats.speedtest_ping = item.get("speedtest_ping")
            stats.xput_up = item.get("xput_up")
            stats.xput_down = item.get("xput_down")
        elif subsystem == "www":
            stats.gateways = item.get("num_gw") or 0
            stats.gateway_status = item.get("status")
        elif subsystem == "sw":
            stats.switches = item.get("num_sw") or 0
        elif subsystem == "lan":
            stats.num_lan = item.get("num_user") or 0


def to_device(device: dict) -> UnifiDevice:
    system_stats = device.get("system-stats") or {}
    return UnifiDevice(
        name=device.get("name") or device.get("hostname") or "Unknown",
        model=device.get("model"),
        type=device.get("type"),
        ip=device.get("ip"),
        mac=device.get("mac"),
        state=device.get("state"),
        adopted=device.get("adopted"),
        uptime=device.get("uptime"),
        version=device.get("version"),
        upgradable=device.get("upgradable"),
        num_sta=device.get("num_sta") or 0,
        user_num_sta=device.get("user-num_sta") or 0,
        guest_num_sta=device.get("guest-num_sta") or 0,
        bytes=device.get("bytes") or 0,
        tx_bytes=device.get("tx_bytes") or 0,
        rx_bytes=device.get("rx_bytes") or 0,
        satisfaction=device.get("satisfaction"),
        cpu=system_stats.get("cpu"),
        mem=system_stats.get("mem"),
        uplink=device.get("uplink"),
    )


def to_client(client: dict) -> UnifiClient:
    return UnifiClient(
        name=client.get("hostname") or client.get("name") or "Unknown",
        mac=client.get("mac"),
        ip=client.get("ip"),
        network=client.get("network"),
        essid=client.get("essid"),
        is_guest=client.get("is_guest"),
        is_wired=client.get("is_wired"),
        signal=client.get("signal"),
        rssi=client.get("rssi"),
        tx_bytes=client.get("tx_bytes") or 0,
        rx_bytes=client.get("rx_bytes") or 0,
        tx_rate=client.get("tx_rate"),
        rx_rate=client.get("rx_rate"),
        uptime=client.get("uptime"),
        last_seen=client.get("last_seen"),
        ap_mac=client.get("ap_mac"),
        channel=client.get("channel"),
        radio=client.get("radio"),
    )


def to_alarm(alarm: dict) -> UnifiAlarm:
    return UnifiAlarm(
        datetime=alarm.get("datetime"),
        msg=alarm.get("msg"),
        key=alarm.get("key"),
        subsystem=alarm.get("subsystem"),
        archived=alarm.get("archived"),
    )


def merge_stats(site: str, payloads: dict[str, Any]) -> UnifiStats:
    """Merge the per-branch payloads into one stats record.

    Each branch fills its own fields, so the result does not depend on
    which branches are present or the order they are applied in.
    """
    stats = UnifiStats(site_name=site)
    merge_health(stats, _rows(payloads.get("health")))
    stats.devices = [to_device(d) for d in _rows(payloads.get("devices"))]
    stats.clients = [to_client(c) for c in _rows(payloads.get("clients"))]
    stats.alarms = [to_alarm(a) for a in _rows(payloads.get("alarms"))[:UNIFI_ALARM_LIMIT]]
    return stats


class UnifiAdapter(ServiceAdapter):
    service_tag = "unifi"
    display_name = "UniFi Controller"
    required_fields = ("username", "password")
    identity_fields = ("username", "password")

    async def login(self, client: httpx.AsyncClient, host: str, secrets: dict[str, Any]) -> str:
        resp = await self._post_login(
            client,
            f"{host}/api/login",
            {"username": secrets["username"], "password": secrets["password"], "remember": False},
        )
        cookies = cookie_pairs(resp)
        if not cookies:
            raise AuthenticationFailed(
                "No session cookies received from UniFi Controller", remote_status=resp.status_code
            )
        return "; ".join(cookies)

    async def fetch(
        self, client: httpx.AsyncClient, host: str, session: str, params: dict[str, Any]
    ) -> dict[str, Any]:
        site = params.get("site") or UNIFI_DEFAULT_SITE
        headers = {"Cookie": session}
        results = await fan_out({
            name: (
                self._get_json(client, f"{host}/api/s/{site}/stat/{endpoint}",
                               headers=headers, timeout=UNIFI_TIMEOUT),
                UNIFI_TIMEOUT,
            )
            for name, endpoint in BRANCHES.items()
        })

        payloads = {PRIMARY: results[PRIMARY].unwrap()}
        for name, result in results.items():
            if name == PRIMARY:
                continue
            if result.ok:
                payloads[name] = result.value
            else:
                logger.warning(f"UniFi {name} fetch failed (non-critical): {result.error}")
        return payloads

    def normalize(self, raw: dict[str, Any], host: str, params: dict[str, Any]) -> UnifiStats:
        stats = merge_stats(params.get("site") or UNIFI_DEFAULT_SITE, raw)
        logger.info(
            f"UniFi stats: {len(stats.clients)} clients, {len(stats.devices)} devices, "
            f"{len(stats.alarms)} alarms"
        )
        return stats
