"""Background thread that keeps an idle session from timing out."""

import threading
from collections.abc import Callable

from .auth.sid import SessionState
from .config import KEEPALIVE_RETRY_DELAY, SESSION_TIMEOUT
from .exceptions import AhaError
from .logging_setup import log


class KeepAliveLoop:
    """
    Probes the gateway shortly before its inactivity timeout elapses.

    The wake-up time is ``last_activity + interval`` and is recomputed
    after every sleep, so ordinary requests keep pushing it back.  One
    instance belongs to one client; :meth:`start` is called after login
    and :meth:`stop` on logoff.
    """

    def __init__(
        self,
        state: SessionState,
        probe: Callable[[], object],
        interval: float = SESSION_TIMEOUT,
        retry_delay: float = KEEPALIVE_RETRY_DELAY,
    ) -> None:
        self.state = state
        self.probe = probe
        self.interval = interval
        self.retry_delay = retry_delay
        self._lock = threading.Lock()
        self._thread: "threading.Thread | None" = None
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        """Start the loop unless it is already running."""
        with self._lock:
            if self.running and not self._stop_event.is_set():
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="fritzbox-aha-keepalive",
                daemon=True,
            )
            self._thread.start()
        log.debug("Keep-alive started (interval %.0fs)", self.interval)

    def cancel(self) -> None:
        """Signal the loop to end without waiting for it."""
        with self._lock:
            self._stop_event.set()

    def stop(self, timeout: "float | None" = None) -> None:
        """Cancel the pending wait and wait for the thread to finish."""
        with self._lock:
            self._stop_event.set()
            thread = self._thread
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        log.debug("Keep-alive stopped")

    def _run(self, stop: threading.Event) -> None:
        while not stop.is_set():
            delay = self.state.last_activity + self.interval - self.state.now()
            if delay > 0:
                if stop.wait(delay):
                    break
                # Activity during the sleep moves the deadline
                continue
            if stop.is_set():
                break

            log.debug("Preventing session timeout")
            try:
                self.probe()
            except AhaError as exc:
                log.warning("Keep-alive probe failed: %s", exc)

            if self.state.last_activity + self.interval <= self.state.now():
                # The probe never reached the gateway
                if stop.wait(self.retry_delay):
                    break
        log.debug("Keep-alive loop finished")
