"""
In-process caches
TTLCache holds many keyed aggregator responses; SingleFlightCache holds one
loaded value and collapses concurrent loads into a single call.
"""
import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TTLCache:
    """
    Keyed cache with lazy expiry.

    An entry is stale once now - timestamp > ttl; it is evicted on the read
    that discovers it. No capacity bound.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    @staticmethod
    def make_key(endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
        return f"{endpoint}:{json.dumps(params or {}, separators=(',', ':'), default=str)}"

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        data, timestamp = entry
        if self._clock() - timestamp > self.ttl_seconds:
            del self._entries[key]
            return None

        return data

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = (data, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        return {"size": len(self._entries), "keys": list(self._entries.keys())}

    def __len__(self) -> int:
        return len(self._entries)


class SingleFlightCache:
    """
    One cached value plus at most one in-flight load.

    Concurrent callers that miss share the same load task. A failed load
    reaches every waiter and leaves the previous value in place. clear()
    starts a new generation; a load begun before it still answers its own
    waiters but is never stored.
    """

    def __init__(
        self,
        loader: Callable[[], Awaitable[Any]],
        ttl_seconds: float,
        clock: Clock = time.monotonic,
        name: str = "cache",
    ):
        self.loader = loader
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self.data: Any = None
        self.timestamp: Optional[float] = None
        self.pending: Optional[asyncio.Task] = None
        self._generation = 0

    def is_fresh(self) -> bool:
        return (
            self.data is not None
            and self.timestamp is not None
            and self._clock() - self.timestamp < self.ttl_seconds
        )

    async def get(self, force_refresh: bool = False) -> Any:
        if not force_refresh and self.is_fresh():
            return self.data

        if self.pending is None:
            self.pending = asyncio.ensure_future(self._load(self._generation))

        # shield so one cancelled waiter does not cancel the shared load
        return await asyncio.shield(self.pending)

    async def _load(self, generation: int) -> Any:
        try:
            data = await self.loader()
            if generation == self._generation:
                self.data = data
                self.timestamp = self._clock()
                logger.info(f"[CACHE] {self.name} refreshed")
            else:
                logger.info(f"[CACHE] {self.name} cleared during load, result not stored")
            return data
        except Exception as e:
            logger.warning(f"[CACHE] {self.name} load failed: {e}")
            raise
        finally:
            if generation == self._generation:
                self.pending = None

    def clear(self) -> None:
        self._generation += 1
        self.data = None
        self.timestamp = None
        self.pending = None

    def stats(self) -> Dict[str, Any]:
        age = self._clock() - self.timestamp if self.timestamp is not None else None
        return {
            "cached": self.data is not None,
            "size": len(self.data) if isinstance(self.data, (list, dict)) else int(self.data is not None),
            "age_seconds": round(age, 1) if age is not None else None,
            "loading": self.pending is not None,
        }
