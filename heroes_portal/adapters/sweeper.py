"""
Expired-token sweeper - Background maintenance for the validation-token table.

Runs TokenStore.sweep() on a fixed interval as an asyncio task started by the
application lifespan. Each run is a single DELETE executed in a worker thread,
so it holds a pooled connection only for that statement. Failures are logged
and the loop carries on.
"""

import asyncio
import logging

from heroes_portal.domain.ports import TokenStore

logger = logging.getLogger(__name__)


class TokenSweeper:
    """Periodic purge of expired validation tokens."""

    def __init__(self, tokens: TokenStore, interval_seconds: float = 3600) -> None:
        self._tokens = tokens
        self._interval = interval_seconds

    def sweep_once(self) -> int:
        """Delete expired tokens once. Returns the number removed, 0 on failure."""
        try:
            removed = self._tokens.sweep()
        except Exception as e:
            logger.error("Expired token cleanup failed: %s", e)
            return 0
        if removed:
            logger.info("Cleaned up %d expired validation token(s)", removed)
        return removed

    async def run(self) -> None:
        """Sweep forever, sleeping ``interval_seconds`` between runs, until cancelled."""
        while True:
            await asyncio.to_thread(self.sweep_once)
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task[None]:
        return asyncio.create_task(self.run(), name="token-sweeper")
