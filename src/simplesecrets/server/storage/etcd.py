"""Client for the etcd v2 keys API."""

from __future__ import annotations

from datetime import timedelta
from typing import Any
from urllib.parse import quote

from httpx import AsyncClient, HTTPError, Response, TransportError
from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from ..constants import ETCD_KEY_NOT_FOUND
from ..exceptions import EtcdParseError, EtcdWebError
from ..models.etcd import EtcdError, EtcdReply

__all__ = ["EtcdStorageClient"]


class EtcdStorageClient:
    """Read and write keys in etcd.

    Cluster members are tried in order. A member is skipped only if it
    cannot be reached; any reply from a member is treated as authoritative.

    Parameters
    ----------
    endpoints
        Client URLs of the etcd cluster members.
    http_client
        Shared HTTP client.
    logger
        Logger for messages.
    """

    def __init__(
        self,
        endpoints: list[str],
        http_client: AsyncClient,
        logger: BoundLogger,
    ) -> None:
        if not endpoints:
            raise ValueError("No etcd endpoints configured")
        self._endpoints = endpoints
        self._http_client = http_client
        self._logger = logger

    async def get(self, key: str) -> str | None:
        """Get the value of a key.

        Parameters
        ----------
        key
            Absolute key, such as ``/users/someone/password``.

        Returns
        -------
        str or None
            Value of the key, or `None` if it does not exist. A key without a
            value (a directory) is returned as the empty string.

        Raises
        ------
        EtcdParseError
            Raised if the etcd reply could not be parsed.
        EtcdWebError
            Raised if etcd could not be contacted or returned an error.
        """
        r = await self._request("GET", key)
        if r.status_code == 404 and self._is_not_found(r):
            self._logger.debug("etcd key not found", key=key)
            return None
        try:
            r.raise_for_status()
            reply = EtcdReply.model_validate(r.json())
        except HTTPError as e:
            raise EtcdWebError.from_exception(e) from e
        except ValidationError as e:
            raise EtcdParseError.from_exception(e) from e
        except ValueError as e:
            msg = "Unable to parse reply from etcd"
            raise EtcdParseError(msg, str(e)) from e
        return reply.node.value or ""

    async def set(
        self, key: str, value: str, ttl: timedelta | None = None
    ) -> None:
        """Set the value of a key.

        Parameters
        ----------
        key
            Absolute key.
        value
            New value.
        ttl
            If given, etcd will delete the key after this much time.

        Raises
        ------
        EtcdWebError
            Raised if etcd could not be contacted or returned an error.
        """
        data = {"value": value}
        if ttl is not None:
            data["ttl"] = str(int(ttl.total_seconds()))
        r = await self._request("PUT", key, data=data)
        try:
            r.raise_for_status()
        except HTTPError as e:
            raise EtcdWebError.from_exception(e) from e
        self._logger.debug("Set etcd key", key=key, ttl=data.get("ttl"))

    async def _request(
        self, method: str, key: str, **kwargs: Any
    ) -> Response:
        """Send a request to the first reachable cluster member."""
        path = "/v2/keys" + quote(key, safe="/")
        *others, last = self._endpoints
        for endpoint in others:
            url = endpoint + path
            try:
                return await self._http_client.request(method, url, **kwargs)
            except TransportError as e:
                msg = f"Cannot reach etcd member {endpoint}"
                self._logger.warning(msg, error=str(e))
        try:
            url = last + path
            return await self._http_client.request(method, url, **kwargs)
        except TransportError as e:
            raise EtcdWebError.from_exception(e) from e

    def _is_not_found(self, r: Response) -> bool:
        try:
            error = EtcdError.model_validate(r.json())
        except (ValidationError, ValueError):
            return False
        return error.error_code == ETCD_KEY_NOT_FOUND
