"""kv_transaction - read-your-writes transactions over a remote key-value store."""

from .components.memory_store import MemoryStore
from .components.sync_adapter import SyncStoreAdapter
from .core.config import CommitMode, TransactionConfig
from .core.errors import (
    TransactionError,
    BackingStoreError,
    KeyNotFoundError,
    UnknownOperationError,
    CommitError,
)
from .core.transaction import Transaction
from .core.types import (
    MISSING,
    Command,
    DeleteOperation,
    Key,
    Missing,
    OperationKind,
    PendingOperation,
    SetOperation,
    TouchOperation,
    Value,
)
from .interfaces.store import BackingStore

__all__ = [
    "Transaction",
    "TransactionConfig",
    "CommitMode",
    "BackingStore",
    "MemoryStore",
    "SyncStoreAdapter",
    "TransactionError",
    "BackingStoreError",
    "KeyNotFoundError",
    "UnknownOperationError",
    "CommitError",
    "MISSING",
    "Missing",
    "Command",
    "OperationKind",
    "PendingOperation",
    "SetOperation",
    "DeleteOperation",
    "TouchOperation",
    "Key",
    "Value",
]
