import inspect
import logging
logger = logging.getLogger(__package__)


def format_params(params: dict) -> str:
    return ", ".join(f"{k}={v}" for k, v in params.items())


class ResourceMethodProxy:
    def __init__(self, pool, name: str, timeout=None):
        self._pool = pool
        self.name = name
        self.timeout = timeout

    def __repr__(self):
        return f"<{self.__class__.__name__}: {self.name}, pool={self._pool!r}>"

    async def __call__(self, *args, **kw):
        async with self._pool.get(self.timeout) as resource:
            result = getattr(resource, self.name)(*args, **kw)
            if inspect.isawaitable(result):
                result = await result
            return result


async def handle_exc(e):
    logger.exception(str(e))


async def info(s):
    logger.info(s)


async def warning(s):
    logger.warning(s)
