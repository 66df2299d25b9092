"""Sync scheduler that runs fetch cycles on a QTimer and on demand."""

import logging

from PySide6.QtCore import QObject, QThread, QTimer, Signal

from smartschool.config import Config
from smartschool.sync.state_store import StateStore

logger = logging.getLogger(__name__)


class FetchWorker(QThread):
    """Runs a single fetch cycle off the event-loop thread."""

    cycle_done = Signal(object, bool)  # worker, success

    def __init__(self, store: StateStore):
        super().__init__()
        self.store = store

    def run(self):
        self.cycle_done.emit(self, self.store.fetch_cycle())


class SyncScheduler(QObject):
    """Triggers fetch cycles immediately, periodically, and manually.

    Cycles are never cancelled; a manual refresh while a cycle is in
    flight starts another one and the store discards whichever result
    turns out to be stale.
    """

    sync_started = Signal()
    sync_finished = Signal(bool, str)  # success, last_synced or error text

    def __init__(self, store: StateStore, interval_minutes: int | None = None,
                 parent=None):
        super().__init__(parent)
        self.store = store
        self._interval_minutes = (
            Config.SYNC_INTERVAL_MINUTES if interval_minutes is None
            else interval_minutes
        )
        self._timer: QTimer | None = None
        self._workers: set[FetchWorker] = set()

    @property
    def interval_ms(self) -> int:
        """Polling interval in milliseconds (minimum 1 minute)."""
        return max(self._interval_minutes, 1) * 60 * 1000

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def start(self):
        """Fetch now, then every interval."""
        if self._timer is None:
            self._timer = QTimer(self)
            self._timer.timeout.connect(self.refresh)
        self._timer.start(self.interval_ms)
        logger.info(
            "Sync scheduler started (every %d min)", self._interval_minutes
        )
        self.refresh()

    def stop(self):
        """Cancel the periodic timer; in-flight cycles still complete."""
        if self._timer is not None:
            self._timer.stop()

    def refresh(self):
        """Start a fetch cycle in a worker thread."""
        worker = FetchWorker(self.store)
        worker.cycle_done.connect(self._on_cycle_done)
        self._workers.add(worker)
        self.sync_started.emit()
        worker.start()

    def is_running(self) -> bool:
        return bool(self._workers)

    def wait_for_idle(self, timeout_ms: int = 30000) -> bool:
        """Block until every in-flight worker has finished."""
        return all(w.wait(timeout_ms) for w in list(self._workers))

    def _on_cycle_done(self, worker: FetchWorker, ok: bool):
        # run() emits as its last statement, so this returns at once
        worker.wait()
        self._workers.discard(worker)
        status = self.store.status
        if ok:
            detail = status.last_synced or ""
        else:
            detail = status.sync_error or ""
        self.sync_finished.emit(ok, detail)
