"""Metrics events for the simple-secrets service."""

from __future__ import annotations

from pydantic import Field
from safir.dependencies.metrics import EventMaker
from safir.metrics import EventManager, EventPayload

__all__ = [
    "AccessDeniedEvent",
    "LoginFailureEvent",
    "LoginSuccessEvent",
    "SecretEvents",
    "SecretFetchEvent",
    "SecretSetEvent",
]


class LoginSuccessEvent(EventPayload):
    """A user logged in and was issued a session token."""

    username: str = Field(..., title="Username", description="User logged in")


class LoginFailureEvent(EventPayload):
    """A login attempt was rejected."""

    username: str = Field(
        ..., title="Username", description="User who attempted to log in"
    )


class SecretFetchEvent(EventPayload):
    """A secret was read."""

    username: str = Field(
        ..., title="Username", description="User who read the secret"
    )


class SecretSetEvent(EventPayload):
    """A secret was stored."""

    username: str = Field(
        ..., title="Username", description="User who stored the secret"
    )


class AccessDeniedEvent(EventPayload):
    """A secret operation was refused because of its session token."""

    reason: str = Field(
        ...,
        title="Reason",
        description="Why access was denied",
        examples=["no_token", "invalid_token"],
    )


class SecretEvents(EventMaker):
    """Event publishers for simple-secrets events.

    Attributes
    ----------
    login_success
        Event publisher for successful logins.
    login_failure
        Event publisher for rejected logins.
    secret_fetch
        Event publisher for secret reads.
    secret_fetch_denied
        Event publisher for refused secret reads.
    secret_set
        Event publisher for stored secrets.
    secret_set_denied
        Event publisher for refused secret writes.
    """

    async def initialize(self, manager: EventManager) -> None:
        self.login_success = await manager.create_publisher(
            "login_success", LoginSuccessEvent
        )
        self.login_failure = await manager.create_publisher(
            "login_failure", LoginFailureEvent
        )
        self.secret_fetch = await manager.create_publisher(
            "secret_fetch", SecretFetchEvent
        )
        self.secret_fetch_denied = await manager.create_publisher(
            "secret_fetch_denied", AccessDeniedEvent
        )
        self.secret_set = await manager.create_publisher(
            "secret_set", SecretSetEvent
        )
        self.secret_set_denied = await manager.create_publisher(
            "secret_set_denied", AccessDeniedEvent
        )
