import sys
import time
import random
import asyncio
import logging
from respool import Pool, ConstructionError
logging.basicConfig(stream=sys.stdout, level=logging.INFO)


class Connection:
    def __init__(self):
        self.uses = 0

    def test_health(self):
        return self.uses < 50 and random.random() > 0.01


def connect():
    if random.random() < 0.05:
        raise ConstructionError("connection refused")
    return Connection()


async def client(pool, done):
    n = 0
    while not done.is_set():
        conn = await pool.acquire(0.1)
        if conn is None:
            continue
        conn.uses += 1
        await asyncio.sleep(0.001)
        if random.random() < 0.01:
            # dropped without release, the pool reclaims the slot
            continue
        await pool.release(conn)
        n += 1
    return n


async def show(pool, done):
    while not done.is_set():
        await asyncio.sleep(1)
        print(repr(pool))


async def go():
    done = asyncio.Event()
    async with Pool(connect, maxsize=20, interval=1.0) as pool:
        fut = asyncio.ensure_future(show(pool, done))
        clients = [asyncio.ensure_future(client(pool, done)) for _ in range(100)]
        start_time = time.time()
        await asyncio.sleep(10)
        done.set()
        counts = await asyncio.gather(*clients)
        await fut
        cost = time.time() - start_time
        print(f"{sum(counts)} acquire/release pairs in {cost:.1f} seconds")


if __name__ == "__main__":
    asyncio.run(go())
