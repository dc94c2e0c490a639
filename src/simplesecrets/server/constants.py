"""Global constants."""

from datetime import timedelta
from pathlib import Path

__all__ = [
    "AUDIT_LOGGER",
    "CONFIGURATION_PATH",
    "ENV_PREFIX",
    "ETCD_KEY_NOT_FOUND",
    "ROOT_LOGGER",
    "SECRET_NAMESPACE",
    "SPIFFE_ID",
    "TOKEN_ALPHABET",
    "TOKEN_EXPIRATION",
    "TOKEN_LENGTH",
    "USERNAME_PATTERN",
]

AUDIT_LOGGER = "simplesecrets.audit"
"""Logger used for audit events.

This is a child of `ROOT_LOGGER` so that it shares its configuration. In
production the JSON log stream is collected by fluentd.
"""

CONFIGURATION_PATH = Path("/etc/simple-secrets/config.yaml")
"""Default path to service configuration."""

ENV_PREFIX = "SIMPLE_SECRETS_"
"""Prefix for environment variables specific to this service."""

ETCD_KEY_NOT_FOUND = 100
"""etcd v2 error code returned for a missing key."""

ROOT_LOGGER = "simplesecrets"
"""Name of the logger configured at startup."""

SECRET_NAMESPACE = "/secrets"
"""etcd directory holding secrets, keyed by the UUID of the secret name."""

SPIFFE_ID = "spiffe://example.org/simple-secrets1"
"""Default SPIFFE ID of this service instance."""

TOKEN_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
)
"""Characters used in session tokens."""

TOKEN_EXPIRATION = timedelta(seconds=600)
"""Default lifetime of a session token."""

TOKEN_LENGTH = 24
"""Number of characters in a session token."""

USERNAME_PATTERN = "^[^/]+$"
"""Usernames become part of an etcd key and so may not contain a slash."""
