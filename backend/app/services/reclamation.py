# app/services/reclamation.py

"""Background sweep that removes expired vaults and their files."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, ContextManager, Optional

from sqlalchemy.orm import Session

from app.core.expiry import utcnow
from app.models.content import Content, ContentKind
from app.services.file_store import FileStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


@dataclass
class ReclamationReport:
    deleted_records: int = 0
    deleted_files: int = 0


def remove_expired_content(db: Session, store: FileStore, now: Optional[datetime] = None) -> ReclamationReport:
    now = now or utcnow()
    expired = (
        db.query(Content.id, Content.kind, Content.storage_ref)
        .filter(Content.expires_at <= now)
        .all()
    )
    if not expired:
        return ReclamationReport()

    deleted_files = 0
    for content_id, kind, storage_ref in expired:
        if kind != ContentKind.FILE or not storage_ref:
            continue
        try:
            if store.remove(storage_ref):
                deleted_files += 1
        except OSError:
            # One bad file must not keep the rest of the batch alive
            logger.warning("Failed to delete expired file %s of vault %s", storage_ref, content_id, exc_info=True)

    ids = [row[0] for row in expired]
    deleted_records = (
        db.query(Content)
        .filter(Content.id.in_(ids))
        .delete(synchronize_session=False)
    )
    db.commit()

    return ReclamationReport(deleted_records=deleted_records or 0, deleted_files=deleted_files)


class ReclamationScheduler:
    """
    Runs ``remove_expired_content`` now and then every ``interval_seconds``.

    A tick that fires while the previous run is still going is dropped, not
    queued. A failed run is logged and the next tick runs as usual.
    """

    def __init__(
        self,
        session_scope: Callable[[], ContextManager[Session]],
        store: FileStore,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self.session_scope = session_scope
        self.store = store
        self.interval_seconds = interval_seconds
        self._running = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._run_thread: Optional[threading.Thread] = None

    def run_once(self) -> Optional[ReclamationReport]:
        if not self._running.acquire(blocking=False):
            logger.debug("Cleanup still running, skipping tick")
            return None
        try:
            with self.session_scope() as db:
                report = remove_expired_content(db, self.store)
            if report.deleted_records or report.deleted_files:
                logger.info(
                    "Removed %d expired records and %d expired files",
                    report.deleted_records,
                    report.deleted_files,
                )
            return report
        except Exception:
            logger.exception("Expired content cleanup failed")
            return None
        finally:
            self._running.release()

    def _tick(self) -> None:
        # Runs off the timer thread so a slow sweep cannot shift the cadence
        if self._run_thread and self._run_thread.is_alive():
            logger.debug("Cleanup still running, skipping tick")
            return
        self._run_thread = threading.Thread(target=self.run_once, name="vault-cleanup-run", daemon=True)
        self._run_thread.start()

    def _loop(self) -> None:
        self._tick()
        while not self._stop.wait(self.interval_seconds):
            self._tick()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="vault-cleanup", daemon=True)
        self._thread.start()
        logger.info("Expired content cleanup every %ss", self.interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
        # The loop is gone, so no further run can start after this one
        if self._run_thread:
            self._run_thread.join(timeout)
            self._run_thread = None
