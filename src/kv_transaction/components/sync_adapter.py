"""Adapter exposing a blocking memcached-style client as a BackingStore.

Each call runs in a worker thread so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Protocol

from ..core.errors import BackingStoreError, KeyNotFoundError
from ..core.types import MISSING, TTL, Command, Key, Missing, OperationKind, Value

logger = logging.getLogger(__name__)


class SyncClient(Protocol):
    """Blocking client surface the adapter relies on."""

    def get(self, key: Key) -> Value | None: ...

    def get_many(self, keys: list[Key]) -> dict[Key, Value]: ...

    def set(self, key: Key, value: Value, expire: int = 0) -> Any: ...

    def delete(self, key: Key) -> Any: ...

    def touch(self, key: Key, expire: int = 0) -> bool: ...


class SyncStoreAdapter:
    """Run a synchronous client's calls off the event loop.

    Args:
        client: Blocking client with get, get_many, set, delete and touch

    A ``None`` reply from ``client.get`` is read as a missing key. Client
    exceptions are re-raised as BackingStoreError.
    """

    def __init__(self, client: SyncClient):
        self.client = client

    async def _call(self, name: str, *args: Any) -> Any:
        method = getattr(self.client, name)
        try:
            return await asyncio.to_thread(method, *args)
        except BackingStoreError:
            raise
        except Exception as e:
            logger.warning(f"Store call {name} failed: {e}")
            raise BackingStoreError(f"{name} failed: {e}") from e

    async def get(self, key: Key) -> Value | Missing:
        value = await self._call("get", key)
        return MISSING if value is None else value

    async def get_multi(self, keys: Iterable[Key]) -> dict[Key, Value]:
        found = await self._call("get_many", list(keys))
        return dict(found or {})

    async def set(self, key: Key, value: Value, ttl: TTL) -> None:
        await self._call("set", key, value, ttl)

    async def delete(self, key: Key) -> None:
        await self._call("delete", key)

    async def command(self, command: Command) -> Any:
        if command.kind is not OperationKind.TOUCH:
            raise BackingStoreError(f"Unsupported command: {command.command_text}")  # noqa: TRY003

        try:
            ttl = int(command.args[-1])
        except (IndexError, ValueError) as e:
            raise BackingStoreError(f"Malformed command: {command.command_text}") from e

        touched = await self._call("touch", command.key, ttl)
        if not touched:
            raise KeyNotFoundError(f"Cannot touch missing key {command.key!r}")  # noqa: TRY003
        return touched
