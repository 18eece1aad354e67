"""Normalized widget payloads returned by the proxy endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Number = int | float


# ---------------------------------------------------------------------------
# Pi-hole
# ---------------------------------------------------------------------------

class PiholeQueries(BaseModel):
    total: int = 0
    blocked: int = 0
    percent_blocked: float = 0.0
    unique_domains: int = 0
    forwarded: int = 0
    cached: int = 0


class PiholeClients(BaseModel):
    active: int = 0
    total: int = 0


class PiholeGravity(BaseModel):
    domains_being_blocked: int = 0
    last_update: int | None = None


class PiholeSummary(BaseModel):
    queries: PiholeQueries = Field(default_factory=PiholeQueries)
    clients: PiholeClients = Field(default_factory=PiholeClients)
    gravity: PiholeGravity = Field(default_factory=PiholeGravity)


# ---------------------------------------------------------------------------
# UniFi Network controller
# ---------------------------------------------------------------------------

class UnifiTraffic(BaseModel):
    tx_bytes: Number = 0
    rx_bytes: Number = 0
    tx_packets: Number = 0
    rx_packets: Number = 0


class UnifiDevice(BaseModel):
    name: str = "Unknown"
    model: str | None = None
    type: str | None = None
    ip: str | None = None
    mac: str | None = None
    state: int | None = None
    adopted: bool | None = None
    uptime: Number | None = None
    version: str | None = None
    upgradable: bool | None = None
    num_sta: int = 0
    user_num_sta: int = 0
    guest_num_sta: int = 0
    bytes: Number = 0
    tx_bytes: Number = 0
    rx_bytes: Number = 0
    satisfaction: Number | None = None
    cpu: Number | str | None = None
    mem: Number | str | None = None
    uplink: dict[str, Any] | None = None


class UnifiClient(BaseModel):
    name: str = "Unknown"
    mac: str | None = None
    ip: str | None = None
    network: str | None = None
    essid: str | None = None
    is_guest: bool | None = None
    is_wired: bool | None = None
    signal: Number | None = None
    rssi: Number | None = None
    tx_bytes: Number = 0
    rx_bytes: Number = 0
    tx_rate: Number | None = None
    rx_rate: Number | None = None
    uptime: Number | None = None
    last_seen: Number | None = None
    ap_mac: str | None = None
    channel: Number | None = None
    radio: str | None = None


class UnifiAlarm(BaseModel):
    datetime: str | None = None
    msg: str | None = None
    key: str | None = None
    subsystem: str | None = None
    archived: bool | None = None


class UnifiStats(BaseModel):
    site_name: str
    num_user: int = 0
    num_guest: int = 0
    num_iot: int = 0
    num_lan: int = 0
    gateways: int = 0
    switches: int = 0
    access_points: int = 0
    wan_ip: str | None = None
    uptime: Number | None = None
    wan_uptime: Number | None = None
    latency: Number | None = None
    speedtest_ping: Number | None = None
    xput_up: Number | None = None
    xput_down: Number | None = None
    gateway_status: str | None = None
    devices: list[UnifiDevice] = []
    clients: list[UnifiClient] = []
    alarms: list[UnifiAlarm] = []
    traffic: UnifiTraffic = Field(default_factory=UnifiTraffic)


# ---------------------------------------------------------------------------
# UniFi Protect (camelCase on the wire, as the Protect API itself uses)
# ---------------------------------------------------------------------------

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


class ProtectChannel(_CamelModel):
    id: int | str | None = None
    name: str | None = None
    enabled: bool | None = None
    is_rtsp_enabled: bool | None = None
    rtsp_alias: str | None = None


class ProtectCamera(_CamelModel):
    id: str
    name: str | None = None
    type: str | None = None
    model: str | None = None
    mac: str | None = None
    host: str | None = None
    state: str | None = None
    is_connected: bool = False
    is_motion_detected: bool = False
    is_recording: bool = False
    last_seen: int | None = None
    channels: list[ProtectChannel] = []


class ProtectEvent(_CamelModel):
    id: str
    type: str | None = None
    score: Number | None = None
    smart_detect_types: list[str] = []
    camera: str | None = None
    camera_name: str = "Unknown"
    start: int | None = None
    end: int | None = None
    thumbnail: str | None = None
    heatmap: str | None = None
    model_key: str | None = None


class SensorReading(BaseModel):
    value: Number | None = None
    unit: str


class SensorStats(BaseModel):
    temperature: SensorReading | None = None
    humidity: SensorReading | None = None
    light: SensorReading | None = None


class ProtectSensor(_CamelModel):
    id: str
    name: str | None = None
    type: str | None = None
    model: str | None = None
    mac: str | None = None
    state: str | None = None
    is_connected: bool = False
    last_seen: int | None = None
    stats: SensorStats = Field(default_factory=SensorStats)


class ProtectBootstrap(BaseModel):
    cameras: list[ProtectCamera] = []
    events: list[ProtectEvent] = []
    sensors: list[ProtectSensor] = []


class ProtectSensors(BaseModel):
    sensors: list[ProtectSensor] = []
