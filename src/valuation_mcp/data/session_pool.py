"""Process-wide pool of HTTP sessions leased to one provider task at a time."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import requests

from valuation_mcp.config import SESSION_MAX_AGE, SESSION_MAX_USES, SESSION_POOL_SIZE
from valuation_mcp.errors import ProviderError, ServerShuttingDownError

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0 Safari/537.36"
)


def default_session_factory() -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept": "text/html,application/xhtml+xml",
            "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.5",
        }
    )
    return session


@dataclass
class PooledSession:
    """A session plus the bookkeeping used by the health check."""

    session: requests.Session
    created_at: float = field(default_factory=time.monotonic)
    uses: int = 0
    broken: bool = False


class SessionPool:
    """
    Bounded pool of requests.Session objects.

    - Lazy: sessions are created on first demand, never at import
    - Health-checked: a broken, over-used or expired session is closed
      instead of being handed out again
    - Exclusive: a leased session belongs to exactly one holder until it
      is released, so concurrent provider tasks never share one
    - Explicit teardown: close() closes idle sessions and refuses new
      leases; sessions still leased are closed on release

    max_size bounds leased sessions, not HTTP requests in flight. When a
    provider times out its lease ends and the session is closed, but the
    executor thread may still be inside session.get until the socket gives
    up. Those stragglers are bounded by PROVIDER_MAX_WORKERS instead.
    """

    def __init__(
        self,
        max_size: int = SESSION_POOL_SIZE,
        max_uses: int = SESSION_MAX_USES,
        max_age: float = SESSION_MAX_AGE,
        factory: Callable[[], requests.Session] = default_session_factory,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.max_uses = max_uses
        self.max_age = max_age
        self._factory = factory
        self._idle: list[PooledSession] = []
        self._leased: dict[int, PooledSession] = {}
        self._semaphore = asyncio.Semaphore(max_size)
        self._closed = False
        self.created_count = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def stats(self) -> dict[str, int]:
        return {
            "idle": len(self._idle),
            "leased": len(self._leased),
            "created": self.created_count,
            "max_size": self.max_size,
        }

    def is_healthy(self, pooled: PooledSession) -> bool:
        if pooled.broken:
            return False
        if pooled.uses >= self.max_uses:
            return False
        return (time.monotonic() - pooled.created_at) < self.max_age

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[requests.Session]:
        """
        Lease a session for the duration of the block.

        A session whose block raised (other than ProviderError, which means
        the page was fine but unusable) is marked broken and discarded. That
        includes cancellation: a timed-out request may still be running on
        an executor thread, so its session must not be handed out again.
        """
        if self._closed:
            raise ServerShuttingDownError("Session pool is closed")

        async with self._semaphore:
            pooled = self._acquire()
            try:
                yield pooled.session
            except ProviderError:
                raise
            except BaseException:
                pooled.broken = True
                raise
            finally:
                self._release(pooled)

    def _acquire(self) -> PooledSession:
        while self._idle:
            candidate = self._idle.pop()
            if self.is_healthy(candidate):
                pooled = candidate
                break
            self._discard(candidate, "failed health check")
        else:
            pooled = PooledSession(session=self._factory())
            self.created_count += 1
            logger.debug(f"session pool: created session #{self.created_count}")

        pooled.uses += 1
        self._leased[id(pooled)] = pooled
        return pooled

    def _release(self, pooled: PooledSession) -> None:
        self._leased.pop(id(pooled), None)
        if self._closed or not self.is_healthy(pooled):
            self._discard(pooled, "closed pool" if self._closed else "unhealthy on release")
            return
        self._idle.append(pooled)

    def _discard(self, pooled: PooledSession, why: str) -> None:
        logger.debug(f"session pool: discarding session ({why}, uses={pooled.uses})")
        try:
            pooled.session.close()
        except Exception as e:
            logger.warning(f"session pool: error closing session: {e}")

    async def close(self) -> None:
        """Close idle sessions and refuse new leases."""
        self._closed = True
        idle, self._idle = self._idle, []
        for pooled in idle:
            self._discard(pooled, "pool shutdown")
        logger.info(f"session pool closed ({len(idle)} idle sessions, {len(self._leased)} leased)")


# Global instance
session_pool = SessionPool()
