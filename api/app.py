"""
FastAPI application factory.

Everything is injectable so tests can pass an in-memory store and mocked
auth collaborators; omitted collaborators are built from the environment
(Vault secrets, INVOICE_* and AUTH_* variables).
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import APIRouter, FastAPI, Request

from api.base import success_response
from api.companies import create_companies_router
from api.errors import register_error_handlers
from api.invoices import create_invoices_router
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.config import AuthConfig, load_auth_config
from auth.rate_limiter import RateLimiter
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.session import SessionManager
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_database_url, get_login_credentials, get_valkey_url
from core.config import InvoiceConfig, load_invoice_config
from core.services.invoice_service import InvoiceService
from core.store import InvoiceStore, create_store

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def configure_logging() -> None:
    """Root logging from LOG_LEVEL (default INFO)."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_store(config: InvoiceConfig, closers: list[Callable[[], None]]) -> InvoiceStore:
    postgres = None
    if config.store_backend == "postgres":
        postgres = PostgresClient(get_database_url())
        postgres.apply_schema()
        closers.append(postgres.close)
    return create_store(config, postgres)


def create_app(
    invoice_config: InvoiceConfig | None = None,
    auth_config: AuthConfig | None = None,
    store: InvoiceStore | None = None,
    session_manager: SessionManager | None = None,
    auth_service: AuthService | None = None,
) -> FastAPI:
    """
    Assemble the app.

    Args:
        invoice_config: Defaults to load_invoice_config()
        auth_config: Defaults to load_auth_config()
        store: Defaults to the backend named by invoice_config.store_backend
        session_manager: Defaults to a Valkey-backed SessionManager
        auth_service: Defaults to an AuthService with Vault credentials

    Connections opened here are closed on shutdown; injected collaborators
    are left to their owner.
    """
    invoice_config = invoice_config or load_invoice_config()
    auth_config = auth_config or load_auth_config()
    closers: list[Callable[[], None]] = []
    store = store or _build_store(invoice_config, closers)

    if session_manager is None or auth_service is None:
        valkey = ValkeyClient(get_valkey_url())
        closers.append(valkey.close)
        session_manager = session_manager or SessionManager(valkey, auth_config)
        auth_service = auth_service or AuthService(
            get_login_credentials(),
            session_manager,
            RateLimiter(valkey, auth_config),
        )

    invoice_svc = InvoiceService(store, invoice_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        for close in closers:
            close()

    app = FastAPI(title="Invoice Studio", version="1.0.0", lifespan=lifespan)
    register_error_handlers(app)

    # Starlette runs the last-added middleware first: request ids wrap auth
    app.add_middleware(AuthMiddleware, session_manager=session_manager, cookie_name=auth_config.cookie_name)
    app.add_middleware(RequestIDMiddleware)

    health = APIRouter(tags=["health"])

    @health.get("/health")
    async def health_check(request: Request):
        return success_response(
            {"status": "ok", "store": invoice_config.store_backend},
            request,
        ).model_dump(mode="json")

    app.include_router(health, prefix=API_PREFIX)
    app.include_router(create_auth_router(auth_service, auth_config), prefix=API_PREFIX)
    app.include_router(create_invoices_router(invoice_svc), prefix=API_PREFIX)
    app.include_router(create_companies_router(invoice_svc), prefix=API_PREFIX)

    app.state.invoice_service = invoice_svc
    logger.info(
        f"Invoice Studio ready: store={invoice_config.store_backend}, "
        f"numbering={invoice_config.numbering_policy}"
    )
    return app


def main() -> FastAPI:
    """Entry point for `uvicorn api.app:main --factory`."""
    configure_logging()
    return create_app()
