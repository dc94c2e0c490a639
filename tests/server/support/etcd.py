"""Mock etcd v2 keys API."""

from __future__ import annotations

from datetime import timedelta
from urllib.parse import parse_qs, unquote

import respx
from argon2 import PasswordHasher
from httpx import ConnectError, Request, Response

__all__ = ["MockEtcd", "register_mock_etcd"]


class MockEtcd:
    """Mock etcd cluster that stores keys in memory.

    Only plain keys are supported. Directories exist implicitly and cannot
    be read.

    Attributes
    ----------
    data
        Stored keys and their values.
    ttls
        Requested lifetime of each key that was given one. Keys never
        expire on their own; call `expire` to simulate it.
    down
        Cluster members that should refuse connections.
    fail
        If set, every request returns a 500 error.
    fail_writes
        If set, every write returns a 500 error.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, timedelta] = {}
        self.down: set[str] = set()
        self.fail = False
        self.fail_writes = False
        self._index = 1

    def add_user(self, username: str, password: str) -> None:
        """Store an argon2 password hash for a user."""
        encoded = PasswordHasher().hash(password)
        self.data[f"/users/{username}/password"] = encoded

    def expire(self, key: str) -> None:
        """Delete a key as if its TTL had passed."""
        del self.data[key]
        self.ttls.pop(key, None)

    def handle(self, request: Request) -> Response:
        """Answer a keys API request.

        Parameters
        ----------
        request
            Incoming request.

        Returns
        -------
        httpx.Response
            Response in the format returned by etcd.
        """
        member = f"{request.url.scheme}://{request.url.netloc.decode()}"
        if member in self.down:
            raise ConnectError("Connection refused", request=request)
        if self.fail or (self.fail_writes and request.method == "PUT"):
            return Response(500, text="Internal Server Error")
        key = unquote(request.url.raw_path.decode().split("?")[0])
        key = key.removeprefix("/v2/keys")
        if request.method == "GET":
            return self._get(key)
        if request.method == "PUT":
            return self._put(key, request)
        return Response(405)

    def _get(self, key: str) -> Response:
        if key not in self.data:
            return Response(
                404,
                json={
                    "errorCode": 100,
                    "message": "Key not found",
                    "cause": key,
                    "index": self._index,
                },
            )
        node: dict[str, str | int] = {
            "key": key,
            "value": self.data[key],
            "modifiedIndex": self._index,
            "createdIndex": self._index,
        }
        if key in self.ttls:
            node["ttl"] = int(self.ttls[key].total_seconds())
        return Response(200, json={"action": "get", "node": node})

    def _put(self, key: str, request: Request) -> Response:
        form = parse_qs(request.content.decode())
        value = form["value"][0]
        status = 200 if key in self.data else 201
        self._index += 1
        self.data[key] = value
        node: dict[str, str | int] = {
            "key": key,
            "value": value,
            "modifiedIndex": self._index,
            "createdIndex": self._index,
        }
        if "ttl" in form:
            ttl = int(form["ttl"][0])
            self.ttls[key] = timedelta(seconds=ttl)
            node["ttl"] = ttl
        else:
            self.ttls.pop(key, None)
        return Response(status, json={"action": "set", "node": node})


def register_mock_etcd(
    respx_mock: respx.Router, members: list[str]
) -> MockEtcd:
    """Mock out an etcd cluster.

    Parameters
    ----------
    respx_mock
        Mock router.
    members
        Client URLs of the cluster members. All members share one store.

    Returns
    -------
    MockEtcd
        Mock etcd cluster.
    """
    mock = MockEtcd()
    for member in members:
        route = respx_mock.route(url__startswith=f"{member}/v2/keys/")
        route.mock(side_effect=mock.handle)
    return mock
