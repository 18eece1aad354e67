"""HTTP surface tests: auth, credential CRUD, widget proxies, system endpoints."""

import httpx
import pytest
from fastapi.testclient import TestClient

from broker.database import get_session
from broker.main import app
from broker.models.user import User
from broker.services.auth import create_access_token, hash_password
from broker.services.http_client import build_http_client
from broker.services.proxy_broker import ProxyBroker
from mock_services import MockPihole, MockProtect, MockUnifi


@pytest.fixture
def remotes():
    return {
        "pihole.local": MockPihole(),
        "unifi.local": MockUnifi(),
        "protect.local": MockProtect(),
    }


@pytest.fixture
def client(db_session, cache, remotes):
    async def handler(request: httpx.Request) -> httpx.Response:
        return await remotes[request.url.host].handler(request)

    app.dependency_overrides[get_session] = lambda: db_session
    app.state.session_cache = cache
    app.state.broker = ProxyBroker(cache, build_http_client(httpx.MockTransport(handler)))
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


def _create(client, user, **overrides):
    body = {"name": "Home UniFi", "service_type": "unifi", "data": {"username": "u", "password": "p"}}
    body.update(overrides)
    return client.post("/api/credentials", json=body, headers=_auth(user))


# ---------------------------------------------------------------------------
# Auth / system
# ---------------------------------------------------------------------------

def test_health(client):
    resp = client.get("/api/system/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_login_issues_token(client, db_session):
    db_session.add(User(username="carol", hashed_password=hash_password("hunter2")))
    db_session.commit()

    resp = client.post("/api/auth/login", json={"username": "carol", "password": "hunter2"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "carol"
    assert resp.json()["expires_in"] > 0
    token = resp.json()["access_token"]

    resp = client.get("/api/credentials", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json() == []


def test_login_rejects_wrong_password(client, db_session):
    db_session.add(User(username="carol", hashed_password=hash_password("hunter2")))
    db_session.commit()

    resp = client.post("/api/auth/login", json={"username": "carol", "password": "nope"})
    assert resp.status_code == 401


def test_invalid_token_rejected(client, users):
    resp = client.get("/api/credentials", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_cache_status_requires_auth(client, users):
    alice, _ = users
    assert client.get("/api/system/cache").status_code in (401, 403)

    resp = client.get("/api/system/cache", headers=_auth(alice))
    assert resp.status_code == 200
    assert resp.json() == {"entries": 0, "live": 0}


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

def test_credentials_require_auth(client):
    assert client.get("/api/credentials").status_code in (401, 403)


def test_create_and_read_never_return_secrets(client, users):
    alice, _ = users

    resp = _create(client, alice, description="rack controller")
    assert resp.status_code == 201
    created = resp.json()
    assert created["name"] == "Home UniFi"
    assert created["service_type"] == "unifi"
    assert "data" not in created
    assert "credential_data" not in created
    assert "p" not in created.values()

    resp = client.get(f"/api/credentials/{created['id']}", headers=_auth(alice))
    assert resp.status_code == 200
    assert "credential_data" not in resp.json()

    listed = client.get("/api/credentials", headers=_auth(alice)).json()
    assert [c["id"] for c in listed] == [created["id"]]


def test_invalid_service_type(client, users):
    alice, _ = users

    resp = _create(client, alice, service_type="ftp")
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_service_type"


def test_empty_payload_rejected(client, users):
    alice, _ = users
    assert _create(client, alice, data={}).status_code == 422


def test_other_users_credential_is_not_found(client, users):
    alice, bob = users
    cred_id = _create(client, alice).json()["id"]

    for method, url in [
        ("get", f"/api/credentials/{cred_id}"),
        ("delete", f"/api/credentials/{cred_id}"),
        ("post", f"/api/credentials/{cred_id}/test"),
    ]:
        resp = client.request(method, url, headers=_auth(bob))
        assert resp.status_code == 404
        assert resp.json() == {"error": "not_found", "detail": "Credential not found"}

    resp = client.put(f"/api/credentials/{cred_id}", json={"name": "mine"}, headers=_auth(bob))
    assert resp.status_code == 404
    assert client.get("/api/credentials", headers=_auth(bob)).json() == []


def test_update_and_delete(client, users):
    alice, _ = users
    cred_id = _create(client, alice).json()["id"]

    resp = client.put(f"/api/credentials/{cred_id}", json={"name": "Lab UniFi"}, headers=_auth(alice))
    assert resp.status_code == 200
    assert resp.json()["name"] == "Lab UniFi"

    resp = client.put(f"/api/credentials/{cred_id}", json={}, headers=_auth(alice))
    assert resp.status_code == 400

    assert client.delete(f"/api/credentials/{cred_id}", headers=_auth(alice)).status_code == 204
    assert client.get(f"/api/credentials/{cred_id}", headers=_auth(alice)).status_code == 404


def test_format_check(client, users):
    alice, _ = users
    good = _create(client, alice).json()["id"]
    bad = _create(client, alice, data={"username": "u"}).json()["id"]

    resp = client.post(f"/api/credentials/{good}/test", headers=_auth(alice))
    assert resp.json()["valid"] is True

    resp = client.post(f"/api/credentials/{bad}/test", headers=_auth(alice))
    assert resp.json() == {"valid": False, "message": "Missing password", "service_type": "unifi"}


def test_service_types(client, users):
    alice, _ = users
    resp = client.get("/api/credentials/service-types", headers=_auth(alice))
    assert resp.status_code == 200
    assert "unifi_protect" in resp.json()["service_types"]


# ---------------------------------------------------------------------------
# Widget proxies
# ---------------------------------------------------------------------------

def test_pihole_with_raw_password(client, remotes):
    resp = client.get("/api/pihole", params={"host": "http://pihole.local/", "password": "pi-secret"})

    assert resp.status_code == 200
    assert resp.json()["queries"]["total"] == 15230
    assert remotes["pihole.local"].logins == 1


def test_pihole_wrong_password(client):
    resp = client.get("/api/pihole", params={"host": "http://pihole.local", "password": "bad"})

    assert resp.status_code == 401
    assert resp.json()["error"] == "authentication_failed"
    assert resp.json()["remote_status"] == 401


def test_missing_secret(client):
    resp = client.get("/api/pihole", params={"host": "http://pihole.local"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "credential_missing_field"


def test_host_must_have_scheme(client):
    resp = client.get("/api/pihole", params={"host": "pihole.local", "password": "pi-secret"})
    assert resp.status_code == 400


def test_unifi_with_stored_credential(client, users, remotes):
    alice, _ = users
    cred_id = _create(client, alice).json()["id"]

    params = {"host": "https://unifi.local", "credentialId": cred_id}
    first = client.get("/api/unifi/stats", params=params, headers=_auth(alice))
    second = client.get("/api/unifi/stats", params=params, headers=_auth(alice))

    assert first.status_code == 200
    assert first.json()["access_points"] == 4
    assert first.json()["site_name"] == "default"
    assert second.json() == first.json()
    assert remotes["unifi.local"].logins == 1


def test_credential_id_needs_token(client, users, remotes):
    alice, _ = users
    cred_id = _create(client, alice).json()["id"]

    resp = client.get("/api/unifi/stats", params={"host": "https://unifi.local", "credentialId": cred_id})

    assert resp.status_code == 401
    assert remotes["unifi.local"].logins == 0


def test_credential_id_of_other_user(client, users, remotes):
    alice, bob = users
    cred_id = _create(client, alice).json()["id"]

    resp = client.get(
        "/api/unifi/stats",
        params={"host": "https://unifi.local", "credentialId": cred_id},
        headers=_auth(bob),
    )

    assert resp.status_code == 404
    assert remotes["unifi.local"].logins == 0


def test_protect_bootstrap_is_camel_case(client, users):
    alice, _ = users
    cred_id = _create(client, alice, service_type="unifi_protect").json()["id"]

    resp = client.get(
        "/api/unifi-protect/bootstrap",
        params={"host": "https://protect.local", "credentialId": cred_id},
        headers=_auth(alice),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["cameras"][0]["isConnected"] is True
    assert body["events"][1]["cameraName"] == "Unknown"


def test_protect_sensors(client, users):
    alice, _ = users
    cred_id = _create(client, alice, service_type="unifi_protect").json()["id"]

    resp = client.get(
        "/api/unifi-protect/sensors",
        params={"host": "https://protect.local", "credentialId": cred_id},
        headers=_auth(alice),
    )

    assert resp.status_code == 200
    assert resp.json()["sensors"][0]["stats"]["temperature"]["unit"] == "celsius"


def test_protect_snapshot(client, users):
    alice, _ = users
    cred_id = _create(client, alice, service_type="unifi_protect").json()["id"]
    params = {"host": "https://protect.local", "credentialId": cred_id}

    resp = client.get("/api/unifi-protect/camera/cam1/snapshot", params=params, headers=_auth(alice))
    assert resp.status_code == 200
    assert resp.content == b"\xff\xd8jpeg"
    assert resp.headers["content-type"] == "image/jpeg"
    assert "no-cache" in resp.headers["cache-control"]

    resp = client.get("/api/unifi-protect/camera/bad.id/snapshot", params=params, headers=_auth(alice))
    assert resp.status_code == 400


def test_cache_counts_live_sessions(client, users):
    alice, _ = users
    client.get("/api/pihole", params={"host": "http://pihole.local", "password": "pi-secret"})

    resp = client.get("/api/system/cache", headers=_auth(alice))
    assert resp.json() == {"entries": 1, "live": 1}


def test_purge_drops_expired_sessions(client, users, clock):
    alice, _ = users
    client.get("/api/pihole", params={"host": "http://pihole.local", "password": "pi-secret"})
    clock.advance(300)

    resp = client.post("/api/system/cache/purge", headers=_auth(alice))
    assert resp.json() == {"removed": 1}
    assert client.get("/api/system/cache", headers=_auth(alice)).json() == {"entries": 0, "live": 0}
