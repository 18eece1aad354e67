"""UniFi Protect adapter.

Login answers with a session cookie, an auth/CSRF token header, or both;
both are replayed on every later request. The bootstrap call is primary,
recent events are best-effort.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from broker.adapters.base import ServiceAdapter, cookie_pairs
from broker.schemas.widgets import (
    ProtectBootstrap,
    ProtectCamera,
    ProtectChannel,
    ProtectEvent,
    ProtectSensor,
    ProtectSensors,
    SensorReading,
    SensorStats,
)
from broker.services.errors import AuthenticationFailed
from broker.services.fanout import fan_out
from broker.utils.constants import (
    PROTECT_BOOTSTRAP_TIMEOUT,
    PROTECT_EVENTS_LIMIT,
    PROTECT_EVENTS_TIMEOUT,
    PROTECT_EVENTS_WINDOW_SECONDS,
    PROTECT_SNAPSHOT_TIMEOUT,
)

logger = logging.getLogger(__name__)

_SENSOR_UNITS = {"temperature": "celsius", "humidity": "percent", "light": "lux"}


@dataclass
class ProtectSession:
    cookies: list[str] = field(default_factory=list)
    token: str | None = None

    def headers(self) -> dict[str, str]:
        headers = {}
        if self.cookies:
            headers["Cookie"] = "; ".join(self.cookies)
        if self.token:
            headers["Authorization"] = (
                self.token if self.token.startswith("Bearer ") else f"Bearer {self.token}"
            )
        return headers


@dataclass
class CameraSnapshot:
    content: bytes
    content_type: str


def usable_records(rows: Any, kind: str) -> list[dict]:
    """Keep the dict rows that carry an id; warn about the rest."""
    if not isinstance(rows, list):
        return []
    usable = [r for r in rows if isinstance(r, dict) and r.get("id")]
    if len(usable) < len(rows):
        logger.warning(f"UniFi Protect: skipped {len(rows) - len(usable)} malformed {kind} record(s)")
    return usable


def to_camera(camera: dict) -> ProtectCamera:
    return ProtectCamera(
        id=str(camera["id"]),
        name=camera.get("name"),
        type=camera.get("type"),
        model=camera.get("model"),
        mac=camera.get("mac"),
        host=camera.get("host"),
        state=camera.get("state"),
        is_connected=bool(camera.get("isConnected") or camera.get("state") == "CONNECTED"),
        is_motion_detected=bool(camera.get("isMotionDetected")),
        is_recording=bool(camera.get("isRecording")),
        last_seen=camera.get("lastSeen"),
        channels=[
            ProtectChannel(
                id=ch.get("id"),
                name=ch.get("name"),
                enabled=ch.get("enabled"),
                is_rtsp_enabled=ch.get("isRtspEnabled"),
                rtsp_alias=ch.get("rtspAlias"),
            )
            for ch in camera.get("channels") or []
        ],
    )


def to_sensor(sensor: dict) -> ProtectSensor:
    raw_stats = sensor.get("stats") or {}
    readings = {}
    for name, default_unit in _SENSOR_UNITS.items():
        reading = raw_stats.get(name)
        if reading:
            readings[name] = SensorReading(
                value=reading.get("value"), unit=reading.get("unit") or default_unit
            )
    return ProtectSensor(
        id=str(sensor["id"]),
        name=sensor.get("name"),
        type=sensor.get("type"),
        model=sensor.get("model"),
        mac=sensor.get("mac"),
        state=sensor.get("state"),
        is_connected=bool(sensor.get("isConnected") or sensor.get("state") == "CONNECTED"),
        last_seen=sensor.get("lastSeen"),
        stats=SensorStats(**readings),
    )


def to_event(event: dict, host: str, camera_names: dict[str, str | None]) -> ProtectEvent:
    return ProtectEvent(
        id=str(event["id"]),
        type=event.get("type"),
        score=event.get("score"),
        smart_detect_types=event.get("smartDetectTypes") or [],
        camera=event.get("camera"),
        camera_name=camera_names.get(event.get("camera")) or "Unknown",
        start=event.get("start"),
        end=event.get("end"),
        thumbnail=(
            f"{host}/proxy/protect/api/events/{event['id']}/thumbnail"
            if event.get("thumbnail") else None
        ),
        heatmap=event.get("heatmap"),
        model_key=event.get("modelKey"),
    )


class ProtectAdapter(ServiceAdapter):
    service_tag = "unifi_protect"
    display_name = "UniFi Protect"
    required_fields = ("username", "password")
    identity_fields = ("username", "password")

    async def login(
        self, client: httpx.AsyncClient, host: str, secrets: dict[str, Any]
    ) -> ProtectSession:
        resp = await self._post_login(
            client,
            f"{host}/api/auth/login",
            {"username": secrets["username"], "password": secrets["password"], "rememberMe": True},
        )
        session = ProtectSession(
            cookies=cookie_pairs(resp),
            token=resp.headers.get("authorization") or resp.headers.get("x-csrf-token"),
        )
        if not session.cookies and not session.token:
            raise AuthenticationFailed(
                "No session cookie or token received from UniFi Protect",
                remote_status=resp.status_code,
            )
        return session

    async def _bootstrap(self, client: httpx.AsyncClient, host: str, session: ProtectSession) -> dict:
        return await self._get_json(
            client,
            f"{host}/proxy/protect/api/bootstrap",
            headers=session.headers(),
            timeout=PROTECT_BOOTSTRAP_TIMEOUT,
        )

    async def fetch(
        self, client: httpx.AsyncClient, host: str, session: ProtectSession, params: dict[str, Any]
    ) -> dict[str, Any]:
        now_ms = int(time.time() * 1000)
        events_params = {
            "start": str(now_ms - PROTECT_EVENTS_WINDOW_SECONDS * 1000),
            "end": str(now_ms),
            "limit": str(PROTECT_EVENTS_LIMIT),
            "orderDirection": "DESC",
        }
        results = await fan_out({
            "bootstrap": (self._bootstrap(client, host, session), PROTECT_BOOTSTRAP_TIMEOUT),
            "events": (
                self._get_json(client, f"{host}/proxy/protect/api/events",
                               headers=session.headers(), params=events_params,
                               timeout=PROTECT_EVENTS_TIMEOUT),
                PROTECT_EVENTS_TIMEOUT,
            ),
        })

        raw = {"bootstrap": results["bootstrap"].unwrap(), "events": []}
        events = results["events"]
        if events.ok and isinstance(events.value, list):
            raw["events"] = events.value
        elif not events.ok:
            logger.warning(f"UniFi Protect events fetch failed (non-critical): {events.error}")
        return raw

    def normalize(self, raw: dict[str, Any], host: str, params: dict[str, Any]) -> ProtectBootstrap:
        bootstrap = raw.get("bootstrap")
        if not isinstance(bootstrap, dict):
            bootstrap = {}
        cameras = [to_camera(c) for c in usable_records(bootstrap.get("cameras"), "camera")]
        names = {c.id: c.name for c in cameras}
        events = [to_event(e, host, names) for e in usable_records(raw.get("events"), "event")]
        sensors = [to_sensor(s) for s in usable_records(bootstrap.get("sensors"), "sensor")]
        logger.info(
            f"UniFi Protect data: {len(cameras)} cameras, {len(events)} events, {len(sensors)} sensors"
        )
        return ProtectBootstrap(cameras=cameras, events=events, sensors=sensors)


class ProtectSensorsAdapter(ProtectAdapter):
    """Sensors only; shares the Protect session cache entries."""

    async def fetch(
        self, client: httpx.AsyncClient, host: str, session: ProtectSession, params: dict[str, Any]
    ) -> dict:
        return await self._bootstrap(client, host, session)

    def normalize(self, raw: dict, host: str, params: dict[str, Any]) -> ProtectSensors:
        return ProtectSensors(
            sensors=[
                to_sensor(s)
                for s in usable_records(raw.get("sensors") if isinstance(raw, dict) else None, "sensor")
            ]
        )


class ProtectSnapshotAdapter(ProtectAdapter):
    """Current JPEG snapshot of one camera (``params["camera_id"]``)."""

    async def fetch(
        self, client: httpx.AsyncClient, host: str, session: ProtectSession, params: dict[str, Any]
    ) -> httpx.Response:
        return await self._get(
            client,
            f"{host}/proxy/protect/api/cameras/{params['camera_id']}/snapshot",
            headers={**session.headers(), "Accept": "image/*"},
            timeout=PROTECT_SNAPSHOT_TIMEOUT,
        )

    def normalize(self, raw: httpx.Response, host: str, params: dict[str, Any]) -> CameraSnapshot:
        return CameraSnapshot(
            content=raw.content,
            content_type=raw.headers.get("content-type") or "image/jpeg",
        )
