"""Configuration for transactions.

Defines the tracing, dry-run and commit replay options of a Transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

TraceSink = Callable[[str], None]


class CommitMode(Enum):
    """How a commit with several queued operations is replayed."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


@dataclass
class TransactionConfig:
    """Configuration parameters for a Transaction.

    Attributes:
        debug: False to disable tracing, True to trace to the module logger at
            INFO, or a callable receiving each trace line
        simulate: Report commit operations without contacting the store
        commit_mode: Replay strategy for commits with more than one operation
        default_ttl: Expiry used when an operation carries no ttl
    """

    debug: bool | TraceSink = False
    simulate: bool = False
    commit_mode: CommitMode = CommitMode.SEQUENTIAL
    default_ttl: int = 0  # no expiry

    def __post_init__(self) -> None:
        if not isinstance(self.debug, bool) and not callable(self.debug):
            raise ValueError(f"debug must be a bool or a callable, got {self.debug!r}")  # noqa: TRY003
        if self.default_ttl < 0:
            raise ValueError(f"default_ttl must be >= 0, got {self.default_ttl}")  # noqa: TRY003
        if isinstance(self.commit_mode, str):
            self.commit_mode = CommitMode(self.commit_mode)

    def trace_sink(self, logger: logging.Logger) -> TraceSink | None:
        """Resolve the debug option to a sink, or None when tracing is off."""
        if self.debug is True:
            return logger.info
        if self.debug is False:
            return None
        return self.debug
