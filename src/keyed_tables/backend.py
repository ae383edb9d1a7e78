"""Key-value backend interface and client construction.

The engine only talks to the backend through the handful of commands in
``KeyValueBackend``. The method names and return shapes are those of the
redis-py client created with ``decode_responses=True``, so a ``redis.Redis``
(or a ``fakeredis.FakeRedis``) is passed in directly.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

import fakeredis
import redis


class KeyValuePipeline(Protocol):
    """A batch of write commands sent together by ``execute()``."""

    def set(self, name: str, value: Any) -> Any: ...

    def delete(self, *names: str) -> Any: ...

    def hset(self, name: str, key: str | None = None, value: Any = None, mapping: Mapping[str, Any] | None = None) -> Any: ...

    def sadd(self, name: str, *values: str) -> Any: ...

    def srem(self, name: str, *values: str) -> Any: ...

    def execute(self) -> list[Any]: ...


class KeyValueBackend(Protocol):
    """The commands the engine needs from its backend."""

    def get(self, name: str) -> str | None: ...

    def set(self, name: str, value: Any) -> Any: ...

    def delete(self, *names: str) -> int: ...

    def exists(self, *names: str) -> int: ...

    def hgetall(self, name: str) -> dict[str, str]: ...

    def hset(self, name: str, key: str | None = None, value: Any = None, mapping: Mapping[str, Any] | None = None) -> int: ...

    def sadd(self, name: str, *values: str) -> int: ...

    def srem(self, name: str, *values: str) -> int: ...

    def smembers(self, name: str) -> set[str]: ...

    def incr(self, name: str, amount: int = 1) -> int: ...

    def pipeline(self, transaction: bool = True) -> KeyValuePipeline: ...


def connect(url: str | None = None) -> redis.Redis:
    """Create a client for *url*, e.g. ``redis://localhost:6379/0``.

    Without a URL the client talks to a private in-process fakeredis server,
    so nothing outlives the client.
    """
    if url is None:
        return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    return redis.Redis.from_url(url, decode_responses=True)


def list_keys(client: redis.Redis, pattern: str = "*") -> list[str]:
    """Return the keys matching *pattern*, sorted."""
    return sorted(client.scan_iter(match=pattern))
