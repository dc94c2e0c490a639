"""Component factory and process-wide context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Self

import structlog
from httpx import AsyncClient
from safir.dependencies.http_client import http_client_dependency
from safir.metrics import EventManager
from structlog.stdlib import BoundLogger

from .audit import AuditLogger
from .config import Config
from .constants import AUDIT_LOGGER
from .events import SecretEvents
from .services.auth import AuthService
from .services.secret import SecretService
from .storage.etcd import EtcdStorageClient

__all__ = ["Factory", "ProcessContext"]


@dataclass(frozen=True, slots=True)
class ProcessContext:
    """Per-process global application state.

    This object holds all of the per-process singletons and is managed by
    `~simplesecrets.server.dependencies.context.ContextDependency`. It is
    used by the `Factory` class as a source of dependencies to inject into
    created service and storage objects.
    """

    config: Config
    """simple-secrets configuration."""

    http_client: AsyncClient
    """Shared HTTP client."""

    event_manager: EventManager
    """Manager for metrics event publishers."""

    events: SecretEvents
    """Event publishers for simple-secrets events."""

    audit: AuditLogger
    """Audit trail shared by all requests."""

    @classmethod
    async def from_config(cls, config: Config) -> Self:
        """Create a new process context from the service configuration.

        Parameters
        ----------
        config
            simple-secrets configuration.

        Returns
        -------
        ProcessContext
            Shared context for a simple-secrets process.
        """
        http_client = await http_client_dependency()
        event_manager = config.metrics.make_manager()
        await event_manager.initialize()
        events = SecretEvents()
        await events.initialize(event_manager)
        audit_logger = structlog.get_logger(AUDIT_LOGGER)
        return cls(
            config=config,
            http_client=http_client,
            event_manager=event_manager,
            events=events,
            audit=AuditLogger(config.spiffe_id, audit_logger),
        )

    async def aclose(self) -> None:
        """Free allocated resources."""
        await self.event_manager.aclose()


class Factory:
    """Build simple-secrets components.

    Uses the contents of a `ProcessContext` to construct the components of
    the application on demand.

    Parameters
    ----------
    context
        Shared process context.
    logger
        Logger to use for messages.
    """

    def __init__(self, context: ProcessContext, logger: BoundLogger) -> None:
        self._context = context
        self._logger = logger

    def create_auth_service(self) -> AuthService:
        """Create a service for logins and session tokens."""
        return AuthService(
            storage=self.create_etcd_client(),
            audit=self._context.audit,
            events=self._context.events,
            token_lifetime=self._context.config.token_expiration,
            logger=self._logger,
        )

    def create_etcd_client(self) -> EtcdStorageClient:
        """Create a client for the etcd cluster."""
        return EtcdStorageClient(
            self._context.config.etcd_endpoints,
            self._context.http_client,
            self._logger,
        )

    def create_secret_service(self) -> SecretService:
        """Create a service for storing and retrieving secrets."""
        return SecretService(
            storage=self.create_etcd_client(),
            auth=self.create_auth_service(),
            audit=self._context.audit,
            events=self._context.events,
            logger=self._logger,
        )

    def set_logger(self, logger: BoundLogger) -> None:
        """Replace the internal logger.

        Used by the context dependency to update the logger for all
        newly-created components when it's rebound with additional context.

        Parameters
        ----------
        logger
            New logger.
        """
        self._logger = logger
