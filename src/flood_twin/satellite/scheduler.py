"""Background timers for token renewal and cache sweeping."""

import logging
from collections.abc import Callable
from threading import Event, Thread
from typing import Any

from .auth import TokenManager
from .cache import ResultCache

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs an action every ``interval_seconds`` on a daemon thread until stopped."""

    def __init__(self, name: str, interval_seconds: float, action: Callable[[], Any]) -> None:
        self.name = name
        self.interval_seconds = interval_seconds
        self._action = action
        self._stop_event = Event()
        self._thread: Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> None:
        try:
            self._action()
        except Exception as exc:
            logger.warning("Background task %s failed: %s", self.name, exc)

    def _worker(self) -> None:
        while not self._stop_event.wait(timeout=self.interval_seconds):
            self.run_once()

    def start(self) -> None:
        if self.running:
            return

        self._stop_event.clear()
        self._thread = Thread(target=self._worker, daemon=True, name=f"flood-twin-{self.name}")
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None


class BackgroundTasks:
    """Owns the token-renewal and cache-sweep timers."""

    def __init__(
        self,
        token_manager: TokenManager,
        cache: ResultCache,
        *,
        token_renew_seconds: float,
        cache_sweep_seconds: float,
    ) -> None:
        self.token_manager = token_manager
        self.cache = cache
        self.token_renewal = PeriodicTask("token-renewal", token_renew_seconds, self._renew_token)
        self.cache_sweep = PeriodicTask("cache-sweep", cache_sweep_seconds, self._sweep_cache)

    def _renew_token(self) -> None:
        if not self.token_manager.configured:
            logger.debug("Skipping token renewal, Sentinel Hub credentials not configured")
            return
        self.token_manager.renew()

    def _sweep_cache(self) -> None:
        removed = self.cache.sweep()
        logger.info("Removed %d old cache entries", removed)

    def start(self) -> None:
        self.token_renewal.start()
        self.cache_sweep.start()

    def stop(self) -> None:
        self.token_renewal.stop()
        self.cache_sweep.stop()
