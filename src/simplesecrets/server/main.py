"""The main application factory for the simple-secrets service."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from importlib.metadata import metadata, version

import structlog
from fastapi import FastAPI
from safir.dependencies.http_client import http_client_dependency
from safir.fastapi import ClientRequestError, client_request_error_handler
from safir.logging import configure_logging, configure_uvicorn_logging
from safir.middleware.x_forwarded import XForwardedMiddleware
from safir.slack.webhook import SlackRouteErrorHandler

from .audit import ServerEvent
from .constants import ROOT_LOGGER
from .dependencies.config import config_dependency
from .dependencies.context import context_dependency
from .handlers import index, secrets

__all__ = ["create_app"]


def create_app() -> FastAPI:
    """Create the FastAPI application.

    This is in a function rather than using a global variable (as is more
    typical for FastAPI) because we want to defer configuration loading until
    after the test suite has a chance to override the path to the
    configuration file.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        config = config_dependency.config
        await context_dependency.initialize(config)
        context_dependency.audit.audit(
            ServerEvent.START,
            f"New instance of simple-secrets started: {config.spiffe_id}",
        )

        yield

        await context_dependency.aclose()
        await http_client_dependency.aclose()

    # Configure logging.
    config = config_dependency.config
    configure_logging(
        name=ROOT_LOGGER, profile=config.profile, log_level=config.log_level
    )
    configure_uvicorn_logging(config.log_level)

    # Create the application object.
    app = FastAPI(
        title=config.name,
        description=metadata("simple-secrets")["Summary"],
        version=version("simple-secrets"),
        openapi_url=f"{config.path_prefix}/openapi.json",
        docs_url=f"{config.path_prefix}/docs",
        redoc_url=f"{config.path_prefix}/redoc",
        lifespan=lifespan,
    )

    # Attach the routers.
    app.include_router(index.router)
    app.include_router(secrets.router, prefix=config.path_prefix)

    # Register middleware.
    app.add_middleware(XForwardedMiddleware)

    # Configure Slack alerts.
    logger = structlog.get_logger(ROOT_LOGGER)
    if config.slack_webhook:
        webhook = config.slack_webhook.get_secret_value()
        SlackRouteErrorHandler.initialize(webhook, config.name, logger)
        logger.debug("Initialized Slack webhook")

    # Configure exception handlers.
    app.exception_handler(ClientRequestError)(client_request_error_handler)

    return app
