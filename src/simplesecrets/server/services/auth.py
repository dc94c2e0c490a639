"""Password login and session tokens."""

from __future__ import annotations

import asyncio
import re
import secrets
from datetime import timedelta

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from structlog.stdlib import BoundLogger

from ..audit import AuditLogger, ServerEvent
from ..constants import TOKEN_ALPHABET, TOKEN_LENGTH, USERNAME_PATTERN
from ..events import LoginFailureEvent, LoginSuccessEvent, SecretEvents
from ..exceptions import EtcdWebError, InvalidCredentialsError
from ..storage.etcd import EtcdStorageClient

__all__ = ["AuthService", "generate_token"]


def generate_token() -> str:
    """Generate a new random alphanumeric session token."""
    chars = [secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH)]
    return "".join(chars)


class AuthService:
    """Verify user passwords and manage session tokens.

    Password hashes are stored in etcd in the argon2 encoded format under
    ``/users/<username>/password``. Session tokens are stored under
    ``/session_tokens/<token>`` with the username as the value and expire
    on their own.

    Parameters
    ----------
    storage
        etcd client.
    audit
        Audit trail.
    events
        Metrics event publishers.
    token_lifetime
        How long session tokens remain valid.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        storage: EtcdStorageClient,
        audit: AuditLogger,
        events: SecretEvents,
        token_lifetime: timedelta,
        logger: BoundLogger,
    ) -> None:
        self._storage = storage
        self._audit = audit
        self._events = events
        self._token_lifetime = token_lifetime
        self._logger = logger
        self._hasher = PasswordHasher()

    async def login(self, username: str, password: str) -> str:
        """Check a password and issue a new session token.

        Parameters
        ----------
        username
            Username to authenticate.
        password
            Password presented by the user.

        Returns
        -------
        str
            New session token.

        Raises
        ------
        EtcdWebError
            Raised if etcd could not be contacted, including when storing
            the new token fails.
        InvalidCredentialsError
            Raised if the user is unknown or the password is wrong.
        """
        if not await self._check_password(username, password):
            self._audit.audit(
                ServerEvent.LOGIN_FAILURE_INVALID_PASSWORD,
                f"Login failure for user {username} due to invalid password",
            )
            event = LoginFailureEvent(username=username)
            await self._events.login_failure.publish(event)
            raise InvalidCredentialsError("Invalid username or password")

        token = generate_token()
        try:
            await self._storage.set(
                f"/session_tokens/{token}", username, ttl=self._token_lifetime
            )
        except EtcdWebError:
            self._audit.audit(
                ServerEvent.LOGIN_FAILURE_TOKEN_CREATION_FAILURE,
                f"Login failure for user {username} due to token creation"
                " failure",
            )
            raise

        self._audit.audit(
            ServerEvent.TOKEN_CREATED,
            f"Session token for user {username} created",
        )
        self._audit.audit(
            ServerEvent.LOGIN_SUCCESS, f"Login success for user {username}"
        )
        await self._events.login_success.publish(
            LoginSuccessEvent(username=username)
        )
        return token

    async def get_token_owner(self, token: str) -> str | None:
        """Return the user who owns a session token.

        Parameters
        ----------
        token
            Session token.

        Returns
        -------
        str or None
            Username, or `None` if the token is malformed, unknown, or has
            expired.
        """
        if not token.isalnum() or not token.isascii():
            return None
        return await self._storage.get(f"/session_tokens/{token}")

    async def _check_password(self, username: str, password: str) -> bool:
        if not re.match(USERNAME_PATTERN, username):
            return False
        encoded = await self._storage.get(f"/users/{username}/password")
        if not encoded:
            self._logger.debug("No password hash for user", user=username)
            return False
        return await asyncio.to_thread(self._verify, encoded, password)

    def _verify(self, encoded: str, password: str) -> bool:
        try:
            return self._hasher.verify(encoded, password)
        except InvalidHashError:
            self._logger.warning("Stored password hash is invalid")
            return False
        except VerificationError:
            return False
