"""Observer tracking — tear the pools down when nothing is watching."""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class ObserverTracker:
    """Counts live observers and fires ``on_idle`` when the last one goes.

    The embedding application calls ``observer_started()`` when a screen,
    window, or client attaches and ``observer_stopped()`` when it goes
    away.  ``on_idle`` is typically ``Shell.reset``.
    """

    def __init__(self, on_idle: Callable[[], None]) -> None:
        self._on_idle = on_idle
        self._count = 0
        self._lock = threading.Lock()

    def observer_started(self) -> None:
        with self._lock:
            self._count += 1

    def observer_stopped(self) -> None:
        with self._lock:
            self._count -= 1
            idle = self._count <= 0
            if idle:
                self._count = 0
        if idle:
            logger.info("No observers left, tearing down shells")
            self._on_idle()

    @property
    def count(self) -> int:
        with self._lock:
            return self._count
