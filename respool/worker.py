import asyncio
import async_timeout
from . import utils


class PeriodicWorker:
    """
    PeriodicWorker calls a handler once right away and then every few seconds until stopped.
    """

    def __init__(self, handler, *, interval: float = 1.0, name: str = "PeriodicWorker"):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self.handler = handler
        self.interval = interval
        self.name = name
        self.ticks = 0
        self.quit_event = asyncio.Event()
        self.fut = None
        self.start()

    def __repr__(self):
        return "<{}: interval={}, ticks={}>".format(self.name, self.interval, self.ticks)

    @property
    def running(self) -> bool:
        return self.fut is not None and not self.fut.done()

    def start(self) -> None:
        self.fut = asyncio.ensure_future(self.run())

    async def stop(self) -> None:
        await utils.info(f"Stopping {self!r}")
        self.quit_event.set()
        if self.fut:
            await self.fut

    async def _sleep(self) -> bool:
        try:
            async with async_timeout.timeout(self.interval):
                await self.quit_event.wait()
        except asyncio.TimeoutError:
            return False
        return True

    async def run(self) -> None:
        await utils.info(f"Starting {self!r}")
        while not self.quit_event.is_set():
            await self.handle()
            if await self._sleep():
                break

    async def handle(self) -> None:
        self.ticks += 1
        try:
            result = self.handler()
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            await utils.handle_exc(e)
