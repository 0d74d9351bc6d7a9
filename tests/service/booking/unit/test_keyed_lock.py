import anyio
import pytest

from src.platform.exception.exceptions import LockTimeoutError
from src.platform.state.keyed_lock import KeyedLock


@pytest.mark.unit
class TestKeyedLock:
    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self):
        lock = KeyedLock()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with lock.hold('seat:1:11', timeout=1):
                order.append(f'{name}-in')
                await anyio.sleep(0.01)
                order.append(f'{name}-out')

        async with anyio.create_task_group() as tg:
            tg.start_soon(worker, 'a')
            tg.start_soon(worker, 'b')

        assert order in (
            ['a-in', 'a-out', 'b-in', 'b-out'],
            ['b-in', 'b-out', 'a-in', 'a-out'],
        )

    @pytest.mark.asyncio
    async def test_disjoint_keys_do_not_wait(self):
        lock = KeyedLock()

        async with lock.hold('seat:1:11', timeout=1):
            async with lock.hold('seat:1:12', timeout=0.05):
                assert lock.is_locked('seat:1:11')
                assert lock.is_locked('seat:1:12')

    @pytest.mark.asyncio
    async def test_busy_key_times_out(self):
        """
        Given: a key held by another task
        When: a second caller waits longer than its timeout
        Then: LockTimeoutError is raised and nothing stays locked afterwards
        """
        lock = KeyedLock()
        held = anyio.Event()
        done = anyio.Event()

        async def holder() -> None:
            async with lock.hold('txn:T1', timeout=1):
                held.set()
                await done.wait()

        async with anyio.create_task_group() as tg:
            tg.start_soon(holder)
            await held.wait()
            with pytest.raises(LockTimeoutError):
                async with lock.hold('txn:T1', timeout=0.05):
                    pass
            done.set()

        assert not lock.is_locked('txn:T1')
        assert lock._locks == {}

    @pytest.mark.asyncio
    async def test_partial_acquire_is_rolled_back_on_timeout(self):
        """
        Given: key 'b' held by another task
        When: a caller asks for 'a' and 'b' and times out on 'b'
        Then: 'a' is released again and the key map is empty once the holder leaves
        """
        lock = KeyedLock()
        held = anyio.Event()
        done = anyio.Event()

        async def holder() -> None:
            async with lock.hold('b', timeout=1):
                held.set()
                await done.wait()

        async with anyio.create_task_group() as tg:
            tg.start_soon(holder)
            await held.wait()
            with pytest.raises(LockTimeoutError):
                async with lock.hold('a', 'b', timeout=0.05):
                    pass
            assert not lock.is_locked('a')
            assert lock.is_locked('b')
            done.set()

        assert lock._locks == {}

    @pytest.mark.asyncio
    async def test_duplicate_keys_are_collapsed(self):
        lock = KeyedLock()

        async with lock.hold('a', 'a', timeout=0.05):
            assert lock.is_locked('a')
        assert not lock.is_locked('a')
