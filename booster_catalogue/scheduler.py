"""Background scheduling of catalogue indexing runs."""

from __future__ import annotations

import threading
import time
import typing as typ

from .logging import get_logger, log_exception, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)


class RefreshScheduler:
    """Drive indexing runs on a single background worker thread.

    The worker runs ``run`` immediately after :meth:`start`. With a positive
    period it runs again every ``period_s`` seconds; otherwise it only runs
    again when :meth:`request_refresh` is called. Because one thread executes
    every run, runs never overlap. Requests that arrive while a run is in
    progress coalesce into a single pending run.

    Parameters
    ----------
    run
        Callable performing one indexing run.
    period_s
        Seconds between scheduled runs; ``0`` runs once at startup.
    name
        Name given to the worker thread.

    """

    def __init__(
        self,
        run: cabc.Callable[[], object],
        period_s: float = 0.0,
        *,
        name: str = "booster-catalogue-indexer",
    ) -> None:
        """Configure the run callable and the refresh period."""
        self._run = run
        self.period_s = period_s
        self._name = name
        self._wake = threading.Event()
        self._stopping = threading.Event()
        self._indexing = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self.completed_runs = 0

    @property
    def is_running(self) -> bool:
        """Return True while the worker thread is alive."""
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def is_indexing(self) -> bool:
        """Return True while a run is in progress."""
        return self._indexing.is_set()

    def start(self) -> None:
        """Start the worker; the first run begins immediately."""
        with self._lock:
            if self.is_running:
                return
            self._stopping.clear()
            self._wake.set()
            self._thread = threading.Thread(
                target=self._loop, name=self._name, daemon=True
            )
            self._thread.start()
        if self.period_s > 0:
            log_info(logger, "Indexing every %s seconds", self.period_s)

    def request_refresh(self) -> None:
        """Ask for another run as soon as the worker is idle."""
        self._wake.set()

    def stop(self, *, wait: bool = False, timeout: float | None = None) -> None:
        """Cancel pending runs; an in-flight run is allowed to finish.

        Parameters
        ----------
        wait
            Block until the worker thread exits.
        timeout
            Upper bound in seconds on the wait.

        """
        self._stopping.set()
        self._wake.set()
        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _loop(self) -> None:
        next_due = time.monotonic()
        while True:
            timeout = None
            if self.period_s > 0:
                # Event.wait raises OverflowError beyond TIMEOUT_MAX.
                timeout = min(
                    max(0.0, next_due - time.monotonic()), threading.TIMEOUT_MAX
                )
            woken = self._wake.wait(timeout)
            if self._stopping.is_set():
                return
            if not woken and time.monotonic() < next_due:
                continue
            self._wake.clear()
            started = time.monotonic()
            self._run_once()
            # Fixed rate: the next run is due one period after this one began.
            next_due = started + self.period_s

    def _run_once(self) -> None:
        self._indexing.set()
        try:
            self._run()
        except Exception as exc:  # noqa: BLE001 - the worker must survive failed runs
            log_exception(logger, "Scheduled catalogue indexing failed", exc)
        finally:
            self._indexing.clear()
            self.completed_runs += 1


__all__ = ["RefreshScheduler"]
