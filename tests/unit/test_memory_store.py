"""Unit tests for the in-memory backing store."""

import asyncio

import pytest

from kv_transaction import (
    MISSING,
    BackingStoreError,
    Command,
    KeyNotFoundError,
    MemoryStore,
    Transaction,
)
from kv_transaction.core.types import OperationKind


@pytest.fixture
def memory(clock):
    """Create an empty store driven by a fake clock."""
    return MemoryStore(clock=clock)


def test_set_get_delete(memory):
    """Test basic set, get and delete."""
    asyncio.run(memory.set("k", "v", 0))
    assert asyncio.run(memory.get("k")) == "v"

    asyncio.run(memory.delete("k"))
    assert asyncio.run(memory.get("k")) is MISSING


def test_delete_missing_key_is_silent(memory):
    """Test that deleting an absent key is not an error."""
    asyncio.run(memory.delete("ghost"))


def test_get_multi_omits_missing(memory):
    """Test that get_multi returns only existing keys."""
    asyncio.run(memory.set("a", 1, 0))
    asyncio.run(memory.set("c", 3, 0))

    assert asyncio.run(memory.get_multi(["a", "b", "c"])) == {"a": 1, "c": 3}


def test_ttl_expiry(memory, clock):
    """Test that a positive ttl expires and zero never does."""
    asyncio.run(memory.set("short", 1, 10))
    asyncio.run(memory.set("forever", 2, 0))

    clock.advance(9)
    assert asyncio.run(memory.get("short")) == 1

    clock.advance(1)
    assert asyncio.run(memory.get("short")) is MISSING
    assert asyncio.run(memory.get("forever")) == 2
    assert memory.keys() == ["forever"]


def test_touch_extends_expiry(memory, clock):
    """Test that touch resets the expiry without changing the value."""
    asyncio.run(memory.set("k", "v", 10))
    clock.advance(8)

    assert asyncio.run(memory.command(Command.touch("k", 10))) is True

    clock.advance(8)
    assert asyncio.run(memory.get("k")) == "v"


def test_touch_zero_removes_expiry(memory, clock):
    """Test that touching with ttl 0 makes the key permanent."""
    asyncio.run(memory.set("k", "v", 5))
    asyncio.run(memory.command(Command.touch("k", 0)))

    clock.advance(1000)
    assert asyncio.run(memory.get("k")) == "v"


def test_touch_missing_key(memory):
    """Test that touching an absent key raises KeyNotFoundError."""
    with pytest.raises(KeyNotFoundError):
        asyncio.run(memory.command(Command.touch("ghost", 5)))


def test_unsupported_command(memory):
    """Test that verbs other than touch are rejected."""
    command = Command(command_text="incr k 1", key="k", kind=OperationKind.SET)

    with pytest.raises(BackingStoreError, match="Unsupported"):
        asyncio.run(memory.command(command))


def test_negative_ttl_rejected(memory):
    """Test that a negative ttl is a store error."""
    with pytest.raises(BackingStoreError):
        asyncio.run(memory.set("k", "v", -1))


def test_keys_sorted_and_clear(memory):
    """Test that keys are listed in order and clear empties the store."""
    for key in ["b", "c", "a"]:
        asyncio.run(memory.set(key, key, 0))

    assert memory.keys() == ["a", "b", "c"]
    assert len(memory) == 3

    memory.clear()
    assert len(memory) == 0


def test_touch_key_with_spaces(memory, clock):
    """Test that a key containing spaces can be touched."""
    asyncio.run(memory.set("a b", "v", 5))

    assert asyncio.run(memory.command(Command.touch("a b", 60))) is True

    clock.advance(30)
    assert asyncio.run(memory.get("a b")) == "v"


def test_touch_key_with_spaces_through_transaction(memory, clock):
    """Test that committing a touch on a spaced key reaches the store."""
    asyncio.run(memory.set("a b", "v", 5))
    tx = Transaction(memory)
    tx.touch("a b", 60)

    assert asyncio.run(tx.commit()) is True

    clock.advance(30)
    assert asyncio.run(memory.get("a b")) == "v"
