"""Shared fixtures: in-memory database, vault, cache with a fake clock, mocked outbound client."""

import os

os.environ.setdefault("BROKER_DATABASE_URL", "sqlite://")
os.environ.setdefault("BROKER_ENCRYPTION_KEY", "test-encryption-secret")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import broker.models  # noqa: E402,F401
from broker.models.user import User  # noqa: E402
from broker.services.credential_store import SqlCredentialStore  # noqa: E402
from broker.services.encryption import Cipher  # noqa: E402
from broker.services.http_client import build_http_client  # noqa: E402
from broker.services.proxy_broker import ProxyBroker  # noqa: E402
from broker.services.session_cache import SessionCache  # noqa: E402
from broker.services.vault import CredentialVault  # noqa: E402


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Database / vault
# ---------------------------------------------------------------------------

@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def users(db_session):
    alice = User(username="alice", hashed_password="x")
    bob = User(username="bob", hashed_password="x")
    db_session.add(alice)
    db_session.add(bob)
    db_session.commit()
    db_session.refresh(alice)
    db_session.refresh(bob)
    return alice, bob


@pytest.fixture
def cipher():
    return Cipher("test-encryption-secret")


@pytest.fixture
def vault(db_session, cipher):
    return CredentialVault(SqlCredentialStore(db_session), cipher)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return SessionCache(clock=clock)


@pytest_asyncio.fixture
async def make_broker(cache):
    """Build a ProxyBroker whose outbound client talks to a mock handler."""
    clients = []

    def _make(handler) -> ProxyBroker:
        client = build_http_client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return ProxyBroker(cache, client)

    yield _make

    for client in clients:
        await client.aclose()
