"""Shared fixtures for transaction tests."""

from __future__ import annotations

import asyncio
import time

import pytest

from kv_transaction.components.memory_store import MemoryStore
from kv_transaction.core.errors import BackingStoreError


class RecordingStore(MemoryStore):
    """MemoryStore that records every call and can be told to fail on a key."""

    def __init__(self, clock=time.monotonic):
        super().__init__(clock)
        self.calls: list[tuple] = []
        self.fail_on: set = set()

    def _check(self, key):
        if key in self.fail_on:
            raise BackingStoreError(f"injected failure for {key!r}")

    async def get(self, key):
        self.calls.append(("get", key))
        self._check(key)
        return await super().get(key)

    async def get_multi(self, keys):
        keys = list(keys)
        self.calls.append(("get_multi", keys))
        for key in keys:
            self._check(key)
        return await super().get_multi(keys)

    async def set(self, key, value, ttl):
        self.calls.append(("set", key, value, ttl))
        self._check(key)
        await super().set(key, value, ttl)

    async def delete(self, key):
        self.calls.append(("delete", key))
        self._check(key)
        await super().delete(key)

    async def command(self, command):
        self.calls.append(("command", command.command_text))
        self._check(command.key)
        return await super().command(command)

    def seed(self, **values):
        """Populate directly, bypassing the call log."""
        for key, value in values.items():
            self._data[key] = (value, None)


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store():
    """Create an empty recording store."""
    return RecordingStore()


@pytest.fixture
def clock():
    """Create a manually advanced clock."""
    return FakeClock()


class GatedStore(RecordingStore):
    """RecordingStore whose reads wait until the test opens the gate."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()

    async def get(self, key):
        await self.gate.wait()
        return await super().get(key)

    async def get_multi(self, keys):
        await self.gate.wait()
        return await super().get_multi(keys)


@pytest.fixture
def gated():
    """Create a store holding k='stored' with a closed read gate."""
    store = GatedStore()
    store.seed(k="stored")
    return store
