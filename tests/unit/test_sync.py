"""Unit tests for the debounced saver"""

import asyncio

from fiscops.domain.exceptions import StorageError
from fiscops.domain.models import SyncResult
from fiscops.infrastructure.sync import DebouncedSaver


async def test_burst_collapses_into_one_write_of_the_final_state():
    state = {"value": 0}
    writes = []

    async def save() -> SyncResult:
        writes.append(state["value"])
        return SyncResult(ok=True, backend="local")

    saver = DebouncedSaver(save, delay=0.05)
    for value in range(1, 6):
        state["value"] = value
        saver.schedule()
        await asyncio.sleep(0.01)

    assert saver.pending
    await asyncio.sleep(0.2)

    assert writes == [5]
    assert not saver.pending
    assert saver.last_result.ok


async def test_flush_writes_now_and_drops_the_timer():
    writes = []

    async def save() -> SyncResult:
        writes.append(1)
        return SyncResult(ok=True, backend="local", written=3)

    saver = DebouncedSaver(save, delay=0.05)
    saver.schedule()

    result = await saver.flush()
    await asyncio.sleep(0.1)

    assert result.written == 3
    assert len(writes) == 1


async def test_writes_never_overlap():
    active = 0
    max_active = 0

    async def save() -> SyncResult:
        nonlocal active, max_active
        active += 1
        max_active = max(max_active, active)
        await asyncio.sleep(0.02)
        active -= 1
        return SyncResult(ok=True, backend="remote")

    saver = DebouncedSaver(save, delay=0)
    await asyncio.gather(saver.flush(), saver.flush(), saver.flush())

    assert max_active == 1


async def test_storage_error_becomes_a_failed_result():
    async def save() -> SyncResult:
        raise StorageError("disk full")

    saver = DebouncedSaver(save, delay=0, backend="local")
    result = await saver.flush()

    assert result.ok is False
    assert result.error == "disk full"
    assert saver.last_result is result
