import time
import asyncio
import weakref
import collections
import async_timeout
from typing import Optional, Protocol, runtime_checkable
from .worker import PeriodicWorker
from . import utils
logger = utils.logger


@runtime_checkable
class Resource(Protocol):
    def test_health(self) -> bool:
        ...


class ResourceFactory(Protocol):
    def __call__(self) -> Resource:
        ...


class ConstructionError(Exception):
    """Raised by a resource factory when it cannot build a resource."""


class PoolClosed(RuntimeError):
    pass


class PoolTimeout(asyncio.TimeoutError):
    pass


class Pool:
    """
    Pool keeps up to ``maxsize`` resources built by ``factory``.

    Resources must provide ``test_health() -> bool``. A resource is checked
    before every handout, idle resources are checked on every maintenance
    tick, and the pool is topped back up to ``maxsize`` on every tick. With
    ``track_abandoned`` the in-use resources are held through weak references,
    so a resource whose caller drops it without releasing stops counting
    against capacity once it is garbage collected.
    """

    def __init__(
        self,
        factory: ResourceFactory,
        maxsize: int = 10,
        *,
        interval: float = 1.0,
        track_abandoned: bool = True,
        name: str = "Pool"
    ):
        if not isinstance(maxsize, int) or maxsize <= 0:
            raise ValueError(f"maxsize must be a positive integer, got {maxsize!r}")
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self.factory = factory
        self.maxsize = maxsize
        self.name = name
        self.track_abandoned = track_abandoned
        self._pool = collections.deque(maxlen=maxsize)
        self._cond = asyncio.Condition(asyncio.Lock())
        self._using = weakref.WeakSet() if track_abandoned else set()
        self._acquiring = 0
        self._close_state = asyncio.Event()
        for _ in range(maxsize):
            self._add_new()
        logger.info(f"{self!r} created")
        self.worker = PeriodicWorker(
            self.maintain, interval=interval, name=f"{name}Worker"
        )

    def __repr__(self):
        params = {"size": self.size, "free": self.freesize, "using": self.usingsize}
        return f"<{self.name}: {utils.format_params(params)}>"

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_value, tb):
        await self.close()

    @property
    def size(self) -> int:
        return self.freesize + self.usingsize + self._acquiring

    @property
    def freesize(self) -> int:
        return len(self._pool)

    @property
    def usingsize(self) -> int:
        return len(self._using)

    @property
    def closed(self) -> bool:
        return self._close_state.is_set()

    async def clear(self) -> None:
        async with self._cond:
            n = len(self._pool)
            self._pool.clear()
        await utils.info(f"{self!r}: dropped {n} idle resources")

    async def close(self) -> None:
        if self._close_state.is_set():
            return
        self._close_state.set()
        await self.worker.stop()
        async with self._cond:
            self._pool.clear()
            self._using.clear()
            self._cond.notify_all()
        await utils.info(f"{self!r} closed")

    async def acquire(self, timeout: Optional[float] = 0):
        """
        Take a healthy resource out of the pool.

        Waits up to ``timeout`` seconds (forever if ``None``) for an idle
        resource and returns ``None`` if there is none by then. An unhealthy
        resource is discarded and replaced from the factory; the replacement
        attempts stop at the same deadline.
        """
        if self.closed:
            raise PoolClosed(f"{self!r} is closed")
        deadline = None if timeout is None else time.monotonic() + max(timeout, 0)
        try:
            resource = await self._take(timeout)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and hasattr(task, "uncancel"):
                task.uncancel()
            await utils.info(f"{self!r}: acquire cancelled while waiting")
            return None
        if resource is None:
            return None
        if not self._test(resource):
            await utils.info(f"{self!r}: discarding unhealthy {resource!r}")
            resource = await self._replace(deadline)
            if resource is None:
                return None
        assert resource not in self._using, (resource, self._using)
        self._using.add(resource)
        return resource

    async def release(self, resource) -> None:
        async with self._cond:
            if self.closed:
                await utils.warning(f"{self!r}: release of {resource!r} after close")
                return
            if resource not in self._using or resource in self._pool:
                await utils.warning(
                    f"{self!r}: {resource!r} was not acquired from this pool "
                    "or has already been released"
                )
                return
            self._using.discard(resource)
            if self._put(resource):
                self._cond.notify()

    async def maintain(self) -> None:
        """Replace unhealthy idle resources and top the pool up to maxsize."""
        if self.closed:
            return
        async with self._cond:
            replaced = self._sweep()
            added = self._fill()
            if replaced + added:
                self._cond.notify(replaced + added)
        if replaced:
            await utils.info(f"{self!r}: replaced {replaced} unhealthy idle resources")
        if added:
            await utils.info(f"{self!r}: created {added} resources to fill the pool")

    async def auto_release(self, resource, coro):
        try:
            return await coro
        finally:
            await self.release(resource)

    def get(self, timeout: Optional[float] = None):
        return PooledResourceContextManager(self, timeout)

    def proxy(self, name: str, timeout: Optional[float] = None):
        return utils.ResourceMethodProxy(self, name, timeout)

    def _available(self) -> bool:
        return bool(self._pool) or self.closed

    async def _take(self, timeout: Optional[float]):
        async with self._cond:
            if not self._available() and (timeout is None or timeout > 0):
                try:
                    async with async_timeout.timeout(timeout):
                        await self._cond.wait_for(self._available)
                except asyncio.TimeoutError:
                    pass
                except asyncio.CancelledError:
                    # pass on a wake-up this waiter may have consumed
                    if self._pool:
                        self._cond.notify()
                    raise
            if self._pool:
                return self._pool.popleft()
            return None

    async def _replace(self, deadline: Optional[float]):
        # the discarded resource's slot stays reserved until a replacement is handed out
        self._acquiring += 1
        try:
            while True:
                resource = self._create()
                if resource is not None and self._test(resource):
                    return resource
                if deadline is not None and time.monotonic() >= deadline:
                    await utils.warning(
                        f"{self!r}: no healthy replacement before the deadline"
                    )
                    return None
                if self.closed:
                    return None
                await asyncio.sleep(0)
        finally:
            self._acquiring -= 1

    def _test(self, resource) -> bool:
        try:
            return bool(resource.test_health())
        except Exception as e:
            logger.exception(f"health check of {resource!r} failed: {e}")
            return False

    def _create(self):
        try:
            resource = self.factory()
        except Exception as e:
            logger.exception(f"{self.name}: failed to create a resource: {e}")
            return None
        if resource is None:
            logger.error(f"{self.name}: factory returned None")
            return None
        if self.track_abandoned:
            try:
                weakref.ref(resource)
            except TypeError:
                logger.error(
                    f"{self.name}: {type(resource).__name__} does not support weak "
                    "references, create the pool with track_abandoned=False"
                )
                return None
        return resource

    def _put(self, resource) -> bool:
        if len(self._pool) >= self.maxsize:
            logger.error(f"{self!r}: idle set is full, dropping {resource!r}")
            return False
        self._pool.append(resource)
        return True

    def _add_new(self) -> bool:
        resource = self._create()
        if resource is None:
            return False
        return self._put(resource)

    def _sweep(self) -> int:
        unhealthy = [resource for resource in list(self._pool) if not self._test(resource)]
        replaced = 0
        for resource in unhealthy:
            try:
                self._pool.remove(resource)
            except ValueError:
                # already taken by someone else
                continue
            if self._add_new():
                replaced += 1
        return replaced

    def _fill(self) -> int:
        added = 0
        for _ in range(self.maxsize - self.size):
            if self._add_new():
                added += 1
        return added


class PooledResourceContextManager:
    __slots__ = ("_pool", "_resource", "_timeout")

    def __init__(self, pool, timeout=None):
        self._pool = pool
        self._resource = None
        self._timeout = timeout

    async def __aenter__(self):
        self._resource = await self._pool.acquire(self._timeout)
        if self._resource is None:
            self._pool = None
            raise PoolTimeout(f"no resource available within {self._timeout} seconds")
        return self._resource

    async def __aexit__(self, exc_type, exc_value, tb):
        try:
            await self._pool.release(self._resource)
        finally:
            self._pool = None
            self._resource = None
