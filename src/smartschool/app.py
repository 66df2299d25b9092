"""Application entry point: runs the headless sync service."""

import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from smartschool.config import Config
from smartschool.storage.local_store import LocalStore
from smartschool.storage.remote_store import RemoteStore
from smartschool.sync.scheduler import SyncScheduler
from smartschool.sync.state_store import StateStore
from smartschool.utils.constants import APP_NAME, APP_ORGANIZATION
from smartschool.utils.formatters import format_sync_status

logger = logging.getLogger(__name__)


def _configure_logging():
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_store() -> StateStore:
    """Wire the local and remote stores from Config."""
    local = LocalStore.from_config()
    remote = RemoteStore.from_config() if Config.is_remote_configured() else None
    if remote is None:
        logger.warning("SUPABASE_URL/SUPABASE_KEY not set; running local-only")
    return StateStore(
        local, remote, propagate_all_deletes=Config.PROPAGATE_ALL_DELETES
    )


def main():
    """Launch the sync service and block until interrupted."""
    _configure_logging()

    app = QCoreApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_ORGANIZATION)

    store = build_store()
    scheduler = SyncScheduler(store)

    def _log_status(ok: bool, detail: str):
        status = store.status
        logger.info(format_sync_status(
            status.is_syncing, status.sync_error, status.last_synced
        ))

    scheduler.sync_finished.connect(_log_status)

    # Let Ctrl+C reach Python while the Qt loop is running
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    heartbeat = QTimer()
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(500)

    scheduler.start()
    code = app.exec()

    scheduler.stop()
    scheduler.wait_for_idle()
    store.close()
    if store.remote is not None:
        store.remote.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
