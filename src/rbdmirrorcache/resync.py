"""Periodic resync of the mirror cache on a background thread."""

__all__ = ("ResyncDriver",)

import threading
from typing import Any

import structlog

from rbdmirrorcache.cache import MirrorCache


class ResyncDriver:
    """Call `MirrorCache.resync` every ``interval`` seconds until stopped.

    The first sweep runs one interval after `start`, since the store is
    populated by the initial listing of CephBlockPools.
    """

    def __init__(
        self, cache: MirrorCache, interval: float, logger: Any | None = None
    ) -> None:
        self.cache = cache
        self.interval = interval
        self.logger = logger or structlog.getLogger(__name__)
        self._shutdown_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._shutdown_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="rbd-mirror-resync", daemon=True
        )
        self._thread.start()
        self.logger.info(
            f"Started rbd mirror resync every {self.interval} seconds"
        )

    def stop(self, timeout: float | None = 5) -> None:
        self._shutdown_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._shutdown_event.wait(self.interval):
            try:
                self.cache.resync()
            except Exception:
                self.logger.exception("Unexpected error during resync")
        self.logger.info("Stopped rbd mirror resync")
