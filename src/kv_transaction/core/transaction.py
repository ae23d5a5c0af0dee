"""Transaction - buffered reads and writes in front of a backing store.

Queues writes per key, serves reads from the queue and a read-through cache,
and replays the queue against the store on commit.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sortedcontainers import SortedDict

from .config import CommitMode, TransactionConfig
from .errors import CommitError, UnknownOperationError
from .types import (
    MISSING,
    TTL,
    Command,
    DeleteOperation,
    Key,
    Missing,
    PendingOperation,
    SetOperation,
    TouchOperation,
    Value,
)

if TYPE_CHECKING:
    from ..interfaces.store import BackingStore

logger = logging.getLogger(__name__)


class Transaction:
    """Read-your-writes transaction over an asynchronous key-value store.

    Args:
        store: Backing store the queued operations are replayed into
        config: Tracing, dry-run and replay options

    Public API:
        - get(key), get_multi(keys): Read through queue, cache, then store
        - set(key, value, ttl), delete(key), touch(key, ttl): Queue a write
        - commit(): Replay queued operations against the store
        - rollback(): Discard queued operations and cached values

    Invariants:
        - At most one pending operation per key
        - A queued delete hides the key from reads; its cache entry is evicted
        - A queued set's value is the key's cache entry
        - Only commit talks to the store on behalf of writes

    Not thread-safe: a transaction belongs to one unit of work at a time.
    """

    def __init__(self, store: BackingStore, config: TransactionConfig | None = None):
        self.store = store
        self.config = config or TransactionConfig()
        self._queue: SortedDict = SortedDict()  # key -> PendingOperation
        self._cache: dict[Key, Value] = {}
        self._trace = self.config.trace_sink(logger)

    def __repr__(self) -> str:
        return f"Transaction(pending={len(self._queue)}, cached={len(self._cache)})"

    def __len__(self) -> int:
        return len(self._queue)

    def __contains__(self, key: Key) -> bool:
        return key in self._queue

    async def __aenter__(self) -> Transaction:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            logger.info(f"Rolling back transaction after {exc_type.__name__}")
            self.rollback()
            return False
        await self.commit()
        return False

    def _debug(self, message: str) -> None:
        if self._trace is not None:
            self._trace(f"Transaction: {message}")

    def _is_deleted(self, key: Key) -> bool:
        return isinstance(self._queue.get(key), DeleteOperation)

    # Reads

    async def get(self, key: Key) -> Value | Missing:
        """Return the value of key as if every queued write were applied.

        Returns MISSING when the key is queued for deletion or the store does
        not hold it. Store errors propagate unchanged.
        """
        if self._is_deleted(key):
            self._debug(f"key {key!r} is queued for deletion")
            return MISSING

        if key in self._cache:
            self._debug(f"key {key!r} served from cache")
            return self._cache[key]

        self._debug(f"getting key {key!r}")
        value = await self.store.get(key)
        return self._resolve_fetched(key, value)

    def _resolve_fetched(self, key: Key, value: Value | Missing) -> Value | Missing:
        """Merge a value fetched from the store with writes queued meanwhile.

        A delete or set queued while the fetch was in flight wins over the
        fetched value.
        """
        if self._is_deleted(key):
            return MISSING
        if key in self._cache:
            return self._cache[key]
        if value is not MISSING:
            self._cache[key] = value
        return value

    async def get_multi(self, keys: Iterable[Key]) -> dict[Key, Value]:
        """Return a mapping of the keys that exist, as if queued writes were applied.

        Unresolved keys are fetched in a single store round trip; no store call
        is made when every key is answered by the queue or the cache.
        """
        result: dict[Key, Value] = {}
        lookup: list[Key] = []

        for key in dict.fromkeys(keys):
            if self._is_deleted(key):
                self._debug(f"key {key!r} is queued for deletion")
                continue
            if key in self._cache:
                self._debug(f"key {key!r} served from cache")
                result[key] = self._cache[key]
            else:
                lookup.append(key)

        if not lookup:
            return result

        self._debug(f"getting keys {lookup!r}")
        values = await self.store.get_multi(lookup)

        for key in lookup:
            value = self._resolve_fetched(key, values.get(key, MISSING))
            if value is not MISSING:
                result[key] = value

        return result

    # Writes

    def set(self, key: Key, value: Value, ttl: TTL | None = None) -> None:
        """Queue a set of key, replacing any pending operation on it."""
        self._debug(f"queueing set of key {key!r} to value {value!r} with TTL {ttl}")
        self._queue[key] = SetOperation(key=key, value=value, ttl=ttl)
        self._cache[key] = value

    def delete(self, key: Key) -> None:
        """Queue a delete of key, replacing any pending operation on it."""
        self._debug(f"queueing delete of key {key!r}")
        self._queue[key] = DeleteOperation(key=key)
        self._cache.pop(key, None)

    def touch(self, key: Key, ttl: TTL) -> None:
        """Queue an expiry refresh for key.

        A pending set takes the new ttl, a pending delete is left alone, and a
        pending touch has its ttl replaced.
        """
        self._debug(f"queueing touch of key {key!r} with TTL {ttl}")
        op = self._queue.get(key)

        if op is None:
            self._queue[key] = TouchOperation(key=key, ttl=ttl)
        elif isinstance(op, (SetOperation, TouchOperation)):
            op.ttl = ttl
        # pending delete wins

    def pending(self) -> list[PendingOperation]:
        """Return queued operations in commit order."""
        return list(self._queue.values())

    # Commit / rollback

    def _ttl(self, ttl: TTL | None) -> TTL:
        return self.config.default_ttl if ttl is None else ttl

    async def _execute(self, op: PendingOperation) -> Any:
        """Apply a single queued operation to the store and return its reply."""
        if self.config.simulate:
            report = self._trace or logger.info
            report(f"Transaction: simulating {op!r}")
            return None

        if isinstance(op, SetOperation):
            ttl = self._ttl(op.ttl)
            self._debug(f"setting key {op.key!r} to value {op.value!r} with TTL {ttl}")
            return await self.store.set(op.key, op.value, ttl)
        elif isinstance(op, DeleteOperation):
            self._debug(f"deleting key {op.key!r}")
            return await self.store.delete(op.key)
        elif isinstance(op, TouchOperation):
            ttl = self._ttl(op.ttl)
            self._debug(f"touching key {op.key!r} with TTL {ttl}")
            return await self.store.command(Command.touch(op.key, ttl))
        else:
            kind = getattr(op, "kind", type(op).__name__)
            raise UnknownOperationError(f"Unknown operation type: {kind}")  # noqa: TRY003

    async def commit(self) -> Any:
        """Replay every queued operation against the store.

        A single operation is executed directly: the store's reply is returned
        and its error propagates unchanged. Several operations are replayed
        according to ``config.commit_mode`` and any failure raises CommitError.

        The queue and cache are left as they are, so a failed commit can be
        retried or rolled back.

        Returns:
            The store's reply for a single-operation commit, otherwise None

        Raises:
            BackingStoreError: Single-operation commit failed in the store
            UnknownOperationError: Single queued operation of unknown kind
            CommitError: One or more operations of a batch failed
        """
        ops = self.pending()

        if not ops:
            return None

        if len(ops) == 1:
            return await self._execute(ops[0])

        logger.debug(f"Committing {len(ops)} operations ({self.config.commit_mode.value})")

        if self.config.commit_mode is CommitMode.CONCURRENT:
            await self._commit_concurrent(ops)
        else:
            await self._commit_sequential(ops)
        return None

    async def _commit_sequential(self, ops: list[PendingOperation]) -> None:
        """Replay in key order, stopping at the first failure."""
        applied: list[Key] = []

        for i, op in enumerate(ops):
            try:
                await self._execute(op)
            except Exception as e:
                logger.warning(f"Commit stopped at key {op.key!r}: {e}")
                raise CommitError(
                    [(op.key, e)], applied, [o.key for o in ops[i + 1:]]
                ) from e
            applied.append(op.key)

    async def _commit_concurrent(self, ops: list[PendingOperation]) -> None:
        """Replay all operations at once and report every failure."""
        results = await asyncio.gather(
            *(self._execute(op) for op in ops), return_exceptions=True
        )

        failures: list[tuple[Key, BaseException]] = []
        applied: list[Key] = []
        for op, outcome in zip(ops, results):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                failures.append((op.key, outcome))
            else:
                applied.append(op.key)

        if failures:
            logger.warning(f"Commit failed for {len(failures)} of {len(ops)} operations")
            raise CommitError(failures, applied) from failures[0][1]

    def rollback(self) -> None:
        """Discard all queued operations and cached values."""
        self._debug("rolling back")
        self._queue.clear()
        self._cache.clear()

    reset = rollback
