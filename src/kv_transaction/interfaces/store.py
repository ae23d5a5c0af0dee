"""Protocol definition for the backing store client."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from ..core.types import TTL, Command, Key, Missing, Value


class BackingStore(Protocol):
    """Asynchronous key-value store a transaction replays its operations into.

    Implementations raise BackingStoreError (or a subclass) on failure.
    """

    async def get(self, key: Key) -> Value | Missing:
        """Return the stored value, or MISSING if the key does not exist."""
        ...

    async def get_multi(self, keys: Iterable[Key]) -> dict[Key, Value]:
        """Return a mapping holding only the keys that exist."""
        ...

    async def set(self, key: Key, value: Value, ttl: TTL) -> None:
        """Store value under key; ttl of 0 means no expiry."""
        ...

    async def delete(self, key: Key) -> None:
        """Remove key."""
        ...

    async def command(self, command: Command) -> Any:
        """Execute a low-level command with no dedicated method (e.g. touch)."""
        ...
