"""Tests for keyed operation locks."""

import asyncio

import pytest

from xmrsplit.utils.locks import LockTimeoutError, clear_locks, get_lock, operation_lock


class TestOperationLock:
    """Tests for the keyed lock registry."""

    @pytest.fixture(autouse=True)
    def setup(self):
        """Clear locks before each test."""
        clear_locks()

    @pytest.mark.asyncio
    async def test_same_key_same_lock(self):
        """Test that get_lock returns one lock per key."""
        lock1 = await get_lock("payments")
        lock2 = await get_lock("payments")
        assert lock1 is lock2

    @pytest.mark.asyncio
    async def test_different_keys_different_locks(self):
        assert await get_lock("a") is not await get_lock("b")

    @pytest.mark.asyncio
    async def test_lock_held_inside_block(self):
        """The lock is held inside the block and released after."""
        async with operation_lock("payments", operation="test"):
            lock = await get_lock("payments")
            assert lock.locked()
        assert not lock.locked()

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        with pytest.raises(RuntimeError):
            async with operation_lock("payments"):
                raise RuntimeError("boom")
        assert not (await get_lock("payments")).locked()

    @pytest.mark.asyncio
    async def test_timeout(self):
        """A second holder times out while the first holds the lock."""
        async with operation_lock("wallet-rpc"):
            with pytest.raises(LockTimeoutError):
                async with operation_lock("wallet-rpc", timeout=0.05):
                    pass

    @pytest.mark.asyncio
    async def test_serialises_concurrent_operations(self):
        """Test that the lock prevents interleaving."""
        events = []

        async def operation(name):
            async with operation_lock("payments"):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(operation("a"), operation("b"))

        assert events in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )
