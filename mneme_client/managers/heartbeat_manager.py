"""
Mneme Sync Client - Heartbeat Manager

Keeps a held lease alive for the rest of a work session by renewing it on
a background daemon thread. The thread never keeps the process alive and
stops itself the first time a renewal fails.
"""

import logging
import threading
from typing import Callable, Optional

from ..models import OperationResult

# Configure logging
logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL_SECONDS = 300


def effective_heartbeat_interval(interval_seconds: float, lock_ttl_seconds: Optional[float] = None) -> float:
    """
    Clamp the heartbeat interval to at most half the lease TTL.

    One missed heartbeat must not lose the lease; several in a row will.
    """
    interval = float(interval_seconds) if interval_seconds and interval_seconds > 0 \
        else float(DEFAULT_HEARTBEAT_INTERVAL_SECONDS)
    if lock_ttl_seconds and lock_ttl_seconds > 0:
        ceiling = lock_ttl_seconds / 2
        if interval > ceiling:
            logger.warning(f"Heartbeat interval {interval}s exceeds half the lease TTL; using {ceiling}s")
            interval = ceiling
    return interval


class HeartbeatScheduler:
    """
    Renews a lease at a fixed interval while a session holds it.

    Responsibilities:
    - Run at most one heartbeat worker at a time (start is a no-op while running)
    - Stop itself on the first failed renewal
    - Provide an idempotent stop() that is safe when nothing is running

    One scheduler is owned by each SyncOperations instance, so separate
    sessions in one process never share heartbeat state.
    """

    def __init__(self, heartbeat: Callable[[], OperationResult], interval_seconds: float,
                 join_timeout_seconds: float = 1.0):
        """
        Initialize heartbeat scheduler.

        Args:
            heartbeat: Callable that renews the lease and reports success
            interval_seconds: Delay between renewals
            join_timeout_seconds: How long stop() waits for the worker to exit
        """
        self.heartbeat = heartbeat
        self.interval_seconds = interval_seconds
        self.join_timeout_seconds = join_timeout_seconds
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None
        self.tick_count = 0

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """
        Start the heartbeat worker.

        Returns:
            True if a worker was started, False if one was already running
        """
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                logger.debug("Heartbeat already running")
                return False

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="mneme-heartbeat",
                daemon=True
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()

        logger.info(f"Heartbeat started (every {self.interval_seconds}s)")
        return True

    def stop(self):
        """Stop the heartbeat worker. Safe to call repeatedly or when not running."""
        with self._lock:
            thread = self._thread
            stop_event = self._stop_event
            self._thread = None
            self._stop_event = None

        if stop_event is None:
            return

        stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(self.join_timeout_seconds)
        logger.info("Heartbeat stopped")

    def _run(self, stop_event: threading.Event):
        while not stop_event.wait(self.interval_seconds):
            self.tick_count += 1
            try:
                result = self.heartbeat()
                succeeded = result.success
            except Exception as e:
                logger.error(f"Heartbeat raised unexpectedly: {e}")
                succeeded = False

            if not succeeded:
                # Lost the lease; the session carries on with local data only
                logger.warning("[mneme-sync] Lost lock, stopping heartbeat")
                self._stop_from_worker(stop_event)
                return

    def _stop_from_worker(self, stop_event: threading.Event):
        stop_event.set()
        with self._lock:
            if self._stop_event is stop_event:
                self._thread = None
                self._stop_event = None
