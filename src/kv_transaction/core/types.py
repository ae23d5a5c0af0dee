"""Common type definitions for the transaction layer.

Defines keys, values, the absent-value marker, pending operation records
and the low-level command descriptor sent to the backing store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

# Core primitive types
Key = str
Value = Any
TTL = int


class Missing:
    """Marker for a key that does not exist.

    Distinct from every storable value, ``None`` included.
    """

    _instance: Missing | None = None

    def __new__(cls) -> Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (Missing, ())


MISSING = Missing()


class OperationKind(Enum):
    """Kinds of mutation a transaction can queue."""

    SET = "set"
    DELETE = "delete"
    TOUCH = "touch"


@dataclass
class SetOperation:
    """Store ``value`` under ``key`` with an optional expiry."""

    key: Key
    value: Value
    ttl: TTL | None = None
    kind: OperationKind = OperationKind.SET


@dataclass
class DeleteOperation:
    """Remove ``key`` from the backing store."""

    key: Key
    kind: OperationKind = OperationKind.DELETE


@dataclass
class TouchOperation:
    """Refresh the expiry of ``key`` without changing its value."""

    key: Key
    ttl: TTL | None = None
    kind: OperationKind = OperationKind.TOUCH


PendingOperation = Union[SetOperation, DeleteOperation, TouchOperation]


@dataclass(frozen=True)
class Command:
    """Low-level command descriptor for verbs without a dedicated method.

    Attributes:
        command_text: Text line the store client encodes on the wire
        key: Key the command applies to
        kind: Operation kind the command carries out
    """

    command_text: str
    key: Key
    kind: OperationKind

    @classmethod
    def touch(cls, key: Key, ttl: TTL) -> Command:
        return cls(command_text=f"touch {key} {ttl}", key=key, kind=OperationKind.TOUCH)

    @property
    def verb(self) -> str:
        return self.command_text.split(" ", 1)[0]

    @property
    def args(self) -> list[str]:
        return self.command_text.split()[1:]
