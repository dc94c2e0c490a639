"""Storage and retrieval of named secrets."""

from __future__ import annotations

from uuid import NAMESPACE_DNS, UUID, uuid5

from structlog.stdlib import BoundLogger

from ..audit import AuditLogger, ServerEvent
from ..constants import SECRET_NAMESPACE
from ..events import (
    AccessDeniedEvent,
    SecretEvents,
    SecretFetchEvent,
    SecretSetEvent,
)
from ..exceptions import (
    EtcdWebError,
    InvalidTokenError,
    TokenRequiredError,
    UnknownSecretError,
)
from ..storage.etcd import EtcdStorageClient
from .auth import AuthService

__all__ = ["SecretService", "secret_id"]


def secret_id(name: str) -> UUID:
    """Return the stable identifier of a secret name.

    The identifier is a version 5 UUID of the name in the DNS namespace, so
    the same name always maps to the same etcd directory.
    """
    return uuid5(NAMESPACE_DNS, name)


class SecretService:
    """Store and retrieve secrets on behalf of authenticated users.

    Each secret lives in ``/secrets/<uuid>``, holding its original name in
    ``name`` and its contents in ``value``.

    Parameters
    ----------
    storage
        etcd client.
    auth
        Service used to resolve session tokens.
    audit
        Audit trail.
    events
        Metrics event publishers.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        storage: EtcdStorageClient,
        auth: AuthService,
        audit: AuditLogger,
        events: SecretEvents,
        logger: BoundLogger,
    ) -> None:
        self._storage = storage
        self._auth = auth
        self._audit = audit
        self._events = events
        self._logger = logger

    async def set_secret(
        self, name: str, value: str, token: str | None
    ) -> UUID:
        """Create or replace a secret.

        Parameters
        ----------
        name
            Name of the secret.
        value
            New contents of the secret.
        token
            Session token of the caller, if one was provided.

        Returns
        -------
        UUID
            Identifier under which the secret was stored.

        Raises
        ------
        EtcdWebError
            Raised if etcd could not be contacted or refused the write.
        InvalidTokenError
            Raised if the session token is unknown or expired.
        TokenRequiredError
            Raised if no session token was provided.
        """
        if token is None:
            self._audit.audit(
                ServerEvent.SECRET_CREATE_FAILURE_NO_TOKEN,
                f"Secret {name} failed set, no token entered attempt",
            )
            event = AccessDeniedEvent(reason="no_token")
            await self._events.secret_set_denied.publish(event)
            raise TokenRequiredError

        username = await self._auth.get_token_owner(token)
        if username is None:
            self._audit.audit(
                ServerEvent.SECRET_CREATE_FAILURE_INVALID_TOKEN,
                f"Secret {name} failed set, invalid token attempt",
            )
            event = AccessDeniedEvent(reason="invalid_token")
            await self._events.secret_set_denied.publish(event)
            raise InvalidTokenError

        uuid = secret_id(name)
        try:
            await self._storage.set(f"{SECRET_NAMESPACE}/{uuid}/name", name)
            await self._storage.set(f"{SECRET_NAMESPACE}/{uuid}/value", value)
        except EtcdWebError:
            self._audit.audit(
                ServerEvent.SECRET_CREATE_FAILURE,
                f"Unable to set secret {name} by user {username},"
                " internal error",
            )
            raise

        self._audit.audit(
            ServerEvent.SECRET_CREATE_SUCCESS,
            f"Secret {name} set with UUID {uuid} by user {username}",
        )
        await self._events.secret_set.publish(
            SecretSetEvent(username=username)
        )
        return uuid

    async def get_secret(self, name: str, token: str | None) -> str:
        """Retrieve the contents of a secret.

        Parameters
        ----------
        name
            Name of the secret.
        token
            Session token of the caller, if one was provided.

        Returns
        -------
        str
            Contents of the secret.

        Raises
        ------
        EtcdParseError
            Raised if the etcd reply could not be parsed.
        EtcdWebError
            Raised if etcd could not be contacted.
        InvalidTokenError
            Raised if the session token is unknown or expired.
        TokenRequiredError
            Raised if no session token was provided.
        UnknownSecretError
            Raised if no secret with that name exists.
        """
        if token is None:
            self._audit.audit(
                ServerEvent.SECRET_FETCH_FAILURE_NO_TOKEN,
                f"Secret {name} failed fetch, no token entered attempt",
            )
            event = AccessDeniedEvent(reason="no_token")
            await self._events.secret_fetch_denied.publish(event)
            raise TokenRequiredError

        username = await self._auth.get_token_owner(token)
        if username is None:
            self._audit.audit(
                ServerEvent.SECRET_FETCH_FAILURE_INVALID_TOKEN,
                f"Secret {name} failed fetch, invalid token attempt",
            )
            event = AccessDeniedEvent(reason="invalid_token")
            await self._events.secret_fetch_denied.publish(event)
            raise InvalidTokenError

        uuid = secret_id(name)
        value = await self._storage.get(f"{SECRET_NAMESPACE}/{uuid}/value")
        if value is None:
            self._audit.audit(
                ServerEvent.SECRET_FETCH_FAILURE_NOEXIST,
                f"Secret {name} failed fetch by user {username},"
                " does not exist",
            )
            raise UnknownSecretError

        self._audit.audit(
            ServerEvent.SECRET_FETCH_SUCCESS,
            f"Secret {name} UUID {uuid} fetched by user {username}",
        )
        await self._events.secret_fetch.publish(
            SecretFetchEvent(username=username)
        )
        return value
