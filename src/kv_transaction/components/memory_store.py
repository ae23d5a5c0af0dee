"""In-memory backing store implementation.

Uses sortedcontainers.SortedDict for ordered key storage with per-key expiry.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from sortedcontainers import SortedDict

from ..core.errors import BackingStoreError, KeyNotFoundError
from ..core.types import MISSING, TTL, Command, Key, Missing, OperationKind, Value

logger = logging.getLogger(__name__)


class MemoryStore:
    """Process-local key-value store speaking the BackingStore protocol.

    Holds (value, expires_at) pairs in key order. A ttl of 0 never expires;
    a positive ttl expires that many seconds after the write or touch.

    Invariants:
        - Expired entries are never returned and are purged on access
        - Keys are always maintained in sorted order
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """Initialize empty store."""
        self._data: SortedDict = SortedDict()
        self._clock = clock

    def _expires_at(self, ttl: TTL) -> float | None:
        if ttl < 0:
            raise BackingStoreError(f"Invalid TTL {ttl}")  # noqa: TRY003
        return self._clock() + ttl if ttl else None

    def _lookup(self, key: Key) -> Value | Missing:
        entry = self._data.get(key)
        if entry is None:
            return MISSING

        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return MISSING
        return value

    async def get(self, key: Key) -> Value | Missing:
        return self._lookup(key)

    async def get_multi(self, keys: Iterable[Key]) -> dict[Key, Value]:
        found = {}
        for key in keys:
            value = self._lookup(key)
            if value is not MISSING:
                found[key] = value
        return found

    async def set(self, key: Key, value: Value, ttl: TTL) -> None:
        self._data[key] = (value, self._expires_at(ttl))

    async def delete(self, key: Key) -> None:
        self._data.pop(key, None)

    async def command(self, command: Command) -> Any:
        """Execute a low-level command. Only ``touch <key> <ttl>`` is understood."""
        if command.kind is not OperationKind.TOUCH or command.verb != "touch":
            raise BackingStoreError(f"Unsupported command: {command.command_text}")  # noqa: TRY003

        # key comes from the descriptor; it may itself contain spaces
        try:
            ttl = int(command.args[-1])
        except (IndexError, ValueError) as e:
            raise BackingStoreError(f"Malformed command: {command.command_text}") from e

        value = self._lookup(command.key)
        if value is MISSING:
            raise KeyNotFoundError(f"Cannot touch missing key {command.key!r}")  # noqa: TRY003

        self._data[command.key] = (value, self._expires_at(ttl))
        logger.debug(f"Touched {command.key!r} with TTL {ttl}")
        return True

    def keys(self) -> list[Key]:
        """Return live keys in sorted order."""
        return [key for key in list(self._data.keys()) if self._lookup(key) is not MISSING]

    def __len__(self) -> int:
        return len(self.keys())

    def clear(self) -> None:
        """Remove every entry."""
        self._data.clear()
