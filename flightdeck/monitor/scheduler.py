"""
Periodic Task — Cancellable Fixed-Interval Background Work

One daemon thread per task, stopped through a threading.Event.
Ticks are fire-and-forget: an exception is logged and the next tick
still runs.
"""

import logging
import threading
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs `func` every `interval_seconds` until cancelled.

    A task runs at most once: after cancel(), build a new one.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[], object],
        interval_seconds: float,
        run_immediately: bool = True,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.func = func
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop_event.is_set()
        )

    def start(self) -> bool:
        """Start the background thread. Returns False if already started."""
        with self._lock:
            if self._thread is not None:
                return False
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._thread.start()
            return True

    def cancel(self, timeout: float = 2.0) -> None:
        """Signal the thread to stop and wait briefly for it."""
        self._stop_event.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _tick(self) -> None:
        try:
            self.func()
        except Exception as e:
            logger.error(f"[{self.name}] tick failed: {e}")

    def _run(self) -> None:
        if self.run_immediately:
            self._tick()
        while not self._stop_event.wait(self.interval_seconds):
            self._tick()
