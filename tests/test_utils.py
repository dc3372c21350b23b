import pytest
from respool.pool import Pool, PoolTimeout
from respool.utils import format_params


class Connection:
    def test_health(self):
        return True

    def query(self, x):
        return x * 2

    async def aquery(self, x):
        return x * 3


def test_format_params():
    assert format_params({"maxsize": 2, "interval": 1.0}) == "maxsize=2, interval=1.0"


@pytest.mark.asyncio
async def test_proxy():
    async with Pool(Connection, maxsize=1, interval=60) as pool:
        query = pool.proxy("query")
        assert "query" in repr(query)
        assert await query(3) == 6
        assert await pool.proxy("aquery")(3) == 9
        assert pool.freesize == 1
        conn = await pool.acquire(0)
        with pytest.raises(PoolTimeout):
            await pool.proxy("query", timeout=0)(1)
        await pool.release(conn)
