"""Audit trail of security-relevant service events."""

from __future__ import annotations

from enum import Enum

from structlog.stdlib import BoundLogger

__all__ = ["AuditLogger", "ServerEvent"]


class ServerEvent(Enum):
    """Names of audit events.

    The values are the event names expected by the log collection pipeline
    and must not change.
    """

    START = "SERVER_START"
    LOGIN_FAILURE_INVALID_PASSWORD = "LOGIN_FAILURE_INVALID_PASSWORD"
    LOGIN_FAILURE_TOKEN_CREATION_FAILURE = (
        "LOGIN_FAILURE_TOKEN_CREATION_FAILURE"
    )
    TOKEN_CREATED = "TOKEN_CREATED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    SECRET_CREATE_FAILURE = "SECRET_CREATE_FAILURE"
    SECRET_CREATE_FAILURE_NO_TOKEN = "SECRET_CREATE_FAILURE_NO_TOKEN"
    SECRET_CREATE_FAILURE_INVALID_TOKEN = "SECRET_CREATE_FAILURE_INVALID_TOKEN"
    SECRET_CREATE_SUCCESS = "SECRET_CREATE_SUCCESS"
    SECRET_FETCH_FAILURE_NO_TOKEN = "SECRET_FETCH_FAILURE_NO_TOKEN"
    SECRET_FETCH_FAILURE_INVALID_TOKEN = "SECRET_FETCH_FAILURE_INVALID_TOKEN"
    SECRET_FETCH_FAILURE_NOEXIST = "SECRET_FETCH_FAILURE_NOEXIST"
    SECRET_FETCH_SUCCESS = "SECRET_FETCH_SUCCESS"


class AuditLogger:
    """Record audit events as structured log messages.

    Every message carries the event name in ``audit_event`` and the SPIFFE ID
    of the service instance in ``spiffe_id``.

    Parameters
    ----------
    spiffe_id
        SPIFFE ID of this service instance.
    logger
        Logger to which to write audit events.
    """

    def __init__(self, spiffe_id: str, logger: BoundLogger) -> None:
        self._logger = logger.bind(spiffe_id=spiffe_id)

    def audit(self, event: ServerEvent, message: str) -> None:
        """Record an audit event.

        Parameters
        ----------
        event
            Type of event.
        message
            Human-readable description of the event.
        """
        self._logger.info(message, audit_event=event.value)
