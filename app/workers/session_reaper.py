"""Background task that ends live sessions nobody has touched for a while.

Disabled unless LIVE_SESSION_IDLE_TIMEOUT_SECONDS > 0.
"""

import asyncio
import contextlib

from loguru import logger

from app.domain.live.session.session_registry import SessionRegistry


class SessionReaper:
    def __init__(
        self,
        registry: SessionRegistry,
        idle_timeout_seconds: float,
        interval_seconds: float = 60.0,
    ):
        self.registry = registry
        self.idle_timeout_seconds = float(idle_timeout_seconds)
        self.interval_seconds = max(1.0, float(interval_seconds))
        self._task: asyncio.Task | None = None

    @property
    def enabled(self) -> bool:
        return self.idle_timeout_seconds > 0

    def run_once(self) -> list[str]:
        return self.registry.reap_idle(self.idle_timeout_seconds)

    def start(self) -> None:
        if not self.enabled:
            logger.info("Session reaper disabled (idle timeout is 0)")
            return
        if self._task and not self._task.done():
            return

        async def _loop():
            while True:
                try:
                    await asyncio.sleep(self.interval_seconds)
                except asyncio.CancelledError:
                    return

                try:
                    reaped = self.run_once()
                except Exception as e:
                    logger.error("Session reaper sweep failed: error={}", str(e))
                    continue

                if reaped:
                    logger.info("Session reaper removed {} idle session(s)", len(reaped))

        logger.info(
            "Session reaper started: idle_timeout={}s interval={}s",
            self.idle_timeout_seconds,
            self.interval_seconds,
        )
        self._task = asyncio.create_task(_loop(), name="live-session-reaper")

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
