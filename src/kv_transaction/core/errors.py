"""Exception hierarchy for the transaction layer.

Defines all custom exceptions raised by transactions and store implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Key


class TransactionError(Exception):
    """Base exception for all transaction errors."""
    pass


class BackingStoreError(TransactionError):
    """Raised by a backing store when a read, write or command fails."""
    pass


class KeyNotFoundError(BackingStoreError):
    """Raised when a command targets a key the store does not hold."""
    pass


class UnknownOperationError(TransactionError):
    """Raised when a queued operation is not a set, delete or touch."""
    pass


class CommitError(TransactionError):
    """Raised when one or more operations of a batched commit fail.

    Attributes:
        failures: (key, exception) pairs in commit order
        applied: Keys whose operation reached the store successfully
        not_attempted: Keys never sent to the store
    """

    def __init__(
        self,
        failures: list[tuple[Key, BaseException]],
        applied: list[Key],
        not_attempted: list[Key] | None = None,
    ):
        self.failures = failures
        self.applied = applied
        self.not_attempted = not_attempted or []
        key, error = failures[0]
        super().__init__(
            f"Commit failed on {len(failures)} operation(s), first at key {key!r}: {error}"
        )

    @property
    def key(self) -> Key:
        """Key of the first failed operation."""
        return self.failures[0][0]
