"""Transaction core."""

from .transaction import Transaction

__all__ = ["Transaction"]
