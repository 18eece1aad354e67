"""Widget proxy API: Pi-hole, UniFi controller and UniFi Protect.

Each endpoint accepts either raw secrets in the query string or a
``credentialId``; the latter needs a bearer token and resolves against the
caller's own credentials.
"""

import re

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from broker.adapters import ADAPTERS, PROTECT_SENSORS, PROTECT_SNAPSHOT
from broker.api.deps import get_broker, get_optional_user, get_vault
from broker.models.user import User
from broker.schemas.widgets import PiholeSummary, ProtectBootstrap, ProtectSensors, UnifiStats
from broker.services.proxy_broker import CredentialRef, ProxyBroker
from broker.services.vault import CredentialVault
from broker.utils.constants import UNIFI_DEFAULT_SITE

router = APIRouter(prefix="/api", tags=["widgets"])

_CAMERA_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _validate_host(host: str) -> str:
    host = host.strip()
    if not (host.startswith("http://") or host.startswith("https://")):
        raise HTTPException(status_code=400, detail="host must start with http:// or https://")
    return host.rstrip("/")


def _credential_ref(credential_id: int | None, user: User | None) -> CredentialRef | None:
    if credential_id is None:
        return None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required when using credentialId",
        )
    return CredentialRef(credential_id=credential_id, user_id=user.id)


@router.get("/pihole", response_model=PiholeSummary)
async def pihole_summary(
    host: str,
    password: str | None = None,
    credential_id: int | None = Query(default=None, alias="credentialId"),
    user: User | None = Depends(get_optional_user),
    vault: CredentialVault = Depends(get_vault),
    broker: ProxyBroker = Depends(get_broker),
):
    ref = _credential_ref(credential_id, user)
    return await broker.call(
        ADAPTERS["pihole"],
        _validate_host(host),
        secrets=None if ref else {"password": password},
        ref=ref,
        vault=vault,
    )


@router.get("/unifi/stats", response_model=UnifiStats)
async def unifi_stats(
    host: str,
    username: str | None = None,
    password: str | None = None,
    site: str = UNIFI_DEFAULT_SITE,
    credential_id: int | None = Query(default=None, alias="credentialId"),
    user: User | None = Depends(get_optional_user),
    vault: CredentialVault = Depends(get_vault),
    broker: ProxyBroker = Depends(get_broker),
):
    ref = _credential_ref(credential_id, user)
    return await broker.call(
        ADAPTERS["unifi"],
        _validate_host(host),
        secrets=None if ref else {"username": username, "password": password},
        ref=ref,
        vault=vault,
        params={"site": site},
    )


@router.get("/unifi-protect/bootstrap", response_model=ProtectBootstrap, response_model_by_alias=True)
async def protect_bootstrap(
    host: str,
    credential_id: int = Query(alias="credentialId"),
    user: User | None = Depends(get_optional_user),
    vault: CredentialVault = Depends(get_vault),
    broker: ProxyBroker = Depends(get_broker),
):
    return await broker.call(
        ADAPTERS["unifi_protect"],
        _validate_host(host),
        ref=_credential_ref(credential_id, user),
        vault=vault,
    )


@router.get("/unifi-protect/sensors", response_model=ProtectSensors, response_model_by_alias=True)
async def protect_sensors(
    host: str,
    credential_id: int = Query(alias="credentialId"),
    user: User | None = Depends(get_optional_user),
    vault: CredentialVault = Depends(get_vault),
    broker: ProxyBroker = Depends(get_broker),
):
    return await broker.call(
        PROTECT_SENSORS,
        _validate_host(host),
        ref=_credential_ref(credential_id, user),
        vault=vault,
    )


@router.get("/unifi-protect/camera/{camera_id}/snapshot")
async def protect_camera_snapshot(
    camera_id: str,
    host: str,
    credential_id: int = Query(alias="credentialId"),
    user: User | None = Depends(get_optional_user),
    vault: CredentialVault = Depends(get_vault),
    broker: ProxyBroker = Depends(get_broker),
):
    if not _CAMERA_ID_RE.fullmatch(camera_id):
        raise HTTPException(status_code=400, detail="Invalid camera id")
    snapshot = await broker.call(
        PROTECT_SNAPSHOT,
        _validate_host(host),
        ref=_credential_ref(credential_id, user),
        vault=vault,
        params={"camera_id": camera_id},
    )
    return Response(
        content=snapshot.content,
        media_type=snapshot.content_type,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
