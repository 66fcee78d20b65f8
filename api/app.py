"""
Application factory and entrypoint.

create_app() builds every process-scoped handle (connection pool, Valkey
connection, email client), wires them into the auth service, and stores them
on app.state. The lifespan creates the tables on startup and closes the
handles on shutdown.

Run with:
    python -m api.app
or:
    uvicorn api.app:create_app --factory
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

import psycopg2
import redis
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.base import success_response, error_response, ErrorCodes
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.api import create_seller_auth_router
from auth.cookies import CookiePolicy
from auth.crypto import CryptoService
from auth.database import SellerDatabase
from auth.dependencies import SellerGuard
from auth.exceptions import MissingConfigurationError
from auth.security_logger import SecurityLogger
from auth.service import AuthService
from auth.session import SessionManager
from auth.tokens import TokenSigner
from clients.email_client import EmailGatewayClient
from clients.env_config import Settings, load_settings
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient

logger = logging.getLogger(__name__)

SELLER_AUTH_PREFIX = "/api/v1/seller"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app(
    settings: Settings | None = None,
    *,
    postgres: PostgresClient | None = None,
    valkey: ValkeyClient | None = None,
    email_client: EmailGatewayClient | None = None,
    seller_db: SellerDatabase | None = None,
    security_logger: SecurityLogger | None = None,
    auth_overrides: dict | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Any handle not passed in is created from settings.

    Args:
        settings: Process configuration (loaded from the environment if None)
        postgres: Connection pool
        valkey: Session cache connection
        email_client: Verification email sender
        seller_db: Seller store
        security_logger: Security event sink
        auth_overrides: AuthConfig field overrides (e.g. bcrypt_rounds)

    Raises:
        MissingConfigurationError: If settings are loaded and incomplete
    """
    settings = settings or load_settings()
    auth_config = settings.auth_config(**(auth_overrides or {}))

    postgres = postgres or PostgresClient(settings.database_url)
    valkey = valkey or ValkeyClient(settings.redis_url)
    email_client = email_client or EmailGatewayClient(
        gateway_url=settings.email_gateway_url,
        api_key=settings.email_api_key,
        hmac_secret=settings.email_hmac_secret,
        sender=settings.email_from,
    )
    seller_db = seller_db or SellerDatabase(postgres, bcrypt_rounds=auth_config.bcrypt_rounds)
    security_logger = security_logger or SecurityLogger(postgres)

    token_signer = TokenSigner()
    auth_service = AuthService(
        config=auth_config,
        seller_db=seller_db,
        session_manager=SessionManager(valkey, auth_config),
        crypto=CryptoService(auth_config.crypto_secret, token_signer),
        tokens=token_signer,
        email_client=email_client,
        security_logger=security_logger,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(f"Seller auth starting ({settings.app_env})")
        seller_db.create_schema()
        security_logger.create_schema()

        yield

        valkey.close()
        postgres.close()
        logger.info("Seller auth shutdown complete")

    app = FastAPI(title="Seller Auth", lifespan=lifespan)

    app.state.settings = settings
    app.state.postgres = postgres
    app.state.valkey = valkey
    app.state.auth_service = auth_service

    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app, expose_details=settings.is_development)

    app.include_router(
        create_seller_auth_router(auth_service, SellerGuard(auth_service), CookiePolicy(auth_config)),
        prefix=SELLER_AUTH_PREFIX,
    )

    @app.get("/health")
    def health(request: Request):
        """Ping the session cache and the database."""
        request_id = getattr(request.state, "request_id", None)
        try:
            valkey.ping()
            postgres.ping()
        except (redis.RedisError, psycopg2.Error) as e:
            logger.warning(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content=error_response(
                    ErrorCodes.SERVICE_UNAVAILABLE,
                    "A backing service is unavailable.",
                    request_id,
                ).model_dump(mode="json"),
            )
        return success_response({"status": "ok"}, request_id)

    return app


def main() -> None:
    configure_logging()

    try:
        settings = load_settings()
    except MissingConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)

    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
