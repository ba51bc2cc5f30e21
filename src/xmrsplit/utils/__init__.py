"""Utility modules for xmrsplit."""

from xmrsplit.utils.locks import LockTimeoutError, operation_lock

__all__ = ["LockTimeoutError", "operation_lock"]
