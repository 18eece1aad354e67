"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from broker.config import settings
from broker.database import create_db_and_tables
from broker.utils.logging import setup_logging
from broker.api import auth, credentials, system, widgets
from broker.services.errors import BrokerError
from broker.services.http_client import build_http_client
from broker.services.proxy_broker import ProxyBroker
from broker.services.session_cache import SessionCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    create_db_and_tables()

    # Process-wide session cache and outbound client; both die with the process
    app.state.session_cache = SessionCache()
    app.state.http_client = build_http_client()
    app.state.broker = ProxyBroker(app.state.session_cache, app.state.http_client)
    logger.info("Proxy broker ready")

    yield

    await app.state.http_client.aclose()
    app.state.session_cache.clear()


app = FastAPI(
    title="Dashboard Broker",
    description="Credential vault and session-cached proxy for dashboard widgets",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BrokerError)
async def broker_error_handler(request: Request, exc: BrokerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Mount routers
app.include_router(auth.router)
app.include_router(credentials.router)
app.include_router(widgets.router)
app.include_router(system.router)
