from .pool import (
    Pool,
    Resource,
    ResourceFactory,
    ConstructionError,
    PoolClosed,
    PoolTimeout,
)
from .worker import PeriodicWorker

__version__ = "0.1.0"
__all__ = [
    "Pool",
    "Resource",
    "ResourceFactory",
    "ConstructionError",
    "PoolClosed",
    "PoolTimeout",
    "PeriodicWorker",
]
