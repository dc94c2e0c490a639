"""Exceptions for the simple-secrets service."""

from __future__ import annotations

from typing import Self, override

from fastapi import status
from pydantic import ValidationError
from safir.fastapi import ClientRequestError
from safir.slack.blockkit import (
    SlackCodeBlock,
    SlackException,
    SlackMessage,
    SlackWebException,
)

__all__ = [
    "EtcdParseError",
    "EtcdWebError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "TokenRequiredError",
    "UnknownSecretError",
]


class InvalidCredentialsError(ClientRequestError):
    """Login was attempted without valid HTTP Basic credentials."""

    error = "invalid_credentials"
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidTokenError(ClientRequestError):
    """The session token is unknown or has expired."""

    error = "invalid_token"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Bad token") -> None:
        super().__init__(message)


class TokenRequiredError(ClientRequestError):
    """A secret operation was attempted without a session token."""

    error = "token_required"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Token required") -> None:
        super().__init__(message)


class UnknownSecretError(ClientRequestError):
    """The requested secret does not exist."""

    error = "invalid_secret"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid secret") -> None:
        super().__init__(message)


class EtcdParseError(SlackException):
    """Unable to parse a reply from etcd.

    Parameters
    ----------
    message
        Summary error message.
    error
        Detailed error message, possibly multi-line.
    """

    @classmethod
    def from_exception(cls, exc: ValidationError) -> Self:
        """Create an exception from a Pydantic parse failure."""
        error = f"{type(exc).__name__}: {exc!s}"
        return cls("Unable to parse reply from etcd", error)

    def __init__(self, message: str, error: str) -> None:
        super().__init__(message)
        self.error = error

    @override
    def to_slack(self) -> SlackMessage:
        message = super().to_slack()
        block = SlackCodeBlock(heading="Error", code=self.error)
        message.blocks.append(block)
        return message


class EtcdWebError(SlackWebException):
    """An API call to etcd failed."""
