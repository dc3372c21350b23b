import pytest
import asyncio
from respool.worker import PeriodicWorker


@pytest.mark.asyncio
async def test_worker():
    calls = []

    def foo():
        calls.append(1)
        if len(calls) == 2:
            raise Exception("bad")

    worker = PeriodicWorker(foo, interval=0.05)
    assert "PeriodicWorker" in repr(worker)
    await asyncio.sleep(0.22)
    assert worker.running
    await worker.stop()
    assert not worker.running
    n = len(calls)
    assert n >= 3
    assert worker.ticks == n
    await asyncio.sleep(0.1)
    assert len(calls) == n


@pytest.mark.asyncio
async def test_worker_async_handler():
    event = asyncio.Event()

    async def foo():
        await asyncio.sleep(0)
        event.set()

    worker = PeriodicWorker(foo, interval=60, name="Maintainer")
    assert "Maintainer" in repr(worker)
    await asyncio.wait_for(event.wait(), 1)
    assert worker.ticks == 1
    await worker.stop()


def test_worker_interval():
    with pytest.raises(ValueError):
        PeriodicWorker(lambda: None, interval=0)
