"""Keyed asyncio locks for operations that must not overlap.

Used to serialise payments (consolidate-then-send must not interleave) and
to serialise wallet server calls against a single monero-wallet-rpc process,
which only keeps one wallet open at a time.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

logger = logging.getLogger(__name__)

# Global lock registry: key -> asyncio.Lock
_locks: dict[str, asyncio.Lock] = {}
_registry_lock = asyncio.Lock()


async def get_lock(key: str) -> asyncio.Lock:
    """Get or create the lock for a key."""
    async with _registry_lock:
        if key not in _locks:
            _locks[key] = asyncio.Lock()
        return _locks[key]


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


@asynccontextmanager
async def operation_lock(
    key: str,
    timeout: Optional[float] = 30.0,
    operation: str = "operation",
):
    """Hold the lock for ``key`` for the duration of the block.

    Args:
        key: Lock key (e.g. "payments", an RPC URL)
        timeout: Maximum time to wait for lock (None = wait forever)
        operation: Description for logging

    Example:
        async with operation_lock("payments", operation="pay"):
            ...
    """
    lock = await get_lock(key)

    try:
        if timeout:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        else:
            await lock.acquire()
    except asyncio.TimeoutError:
        logger.warning(f"Lock timeout for {key} after {timeout}s: {operation}")
        raise LockTimeoutError(f"Could not acquire lock {key} within {timeout}s")

    logger.debug(f"Lock acquired for {key}: {operation}")
    try:
        yield
    finally:
        lock.release()
        logger.debug(f"Lock released for {key}: {operation}")


def clear_locks() -> None:
    """Clear all locks (useful for testing)."""
    _locks.clear()
