import io
import threading
import time
from contextlib import contextmanager
from datetime import timedelta

from app.core import content as vaults
from app.core.content import FileUpload
from app.core.expiry import utcnow
from app.core.forms import ContentDraft
from app.infra.postgres import db_session
from app.models.content import Content, ContentKind
from app.services.file_store import FileStore
from app.services.reclamation import ReclamationScheduler, remove_expired_content


def make_text(db, store, owner, now, minutes=10):
    return vaults.create_content(db, store, ContentDraft(kind=ContentKind.TEXT, text="t", expiry_minutes=minutes), owner, now=now)


def make_file(db, store, owner, now, name="notes.txt", minutes=10):
    upload = FileUpload(filename=name, mime_type="text/plain", stream=io.BytesIO(b"hello"))
    return vaults.create_content(db, store, ContentDraft(kind=ContentKind.FILE, expiry_minutes=minutes), owner, upload, now=now)


def test_removes_expired_records_and_files(db, store, owner):
    past = utcnow() - timedelta(hours=1)
    old_text = make_text(db, store, owner, past)
    old_file = make_file(db, store, owner, past)
    live = make_file(db, store, owner, utcnow())
    old_path = store.path_for(old_file.storage_ref)

    report = remove_expired_content(db, store)

    assert report.deleted_records == 2
    assert report.deleted_files == 1
    assert not old_path.exists()
    assert store.path_for(live.storage_ref).exists()
    db.expire_all()
    assert db.get(Content, old_text.id) is None
    assert db.get(Content, live.id) is not None

    again = remove_expired_content(db, store)
    assert again.deleted_records == 0
    assert again.deleted_files == 0


def test_missing_file_does_not_block_batch(db, store, owner):
    past = utcnow() - timedelta(hours=1)
    gone = make_file(db, store, owner, past, name="a.txt")
    present = make_file(db, store, owner, past, name="b.txt")
    store.remove(gone.storage_ref)

    report = remove_expired_content(db, store)

    assert report.deleted_records == 2
    assert report.deleted_files == 1
    assert not store.path_for(present.storage_ref).exists()


class BrokenStore(FileStore):
    def __init__(self, root, broken_ref):
        super().__init__(root)
        self.broken_ref = broken_ref

    def remove(self, ref):
        if ref == self.broken_ref:
            raise PermissionError("read-only volume")
        return super().remove(ref)


def test_file_errors_are_logged_and_skipped(db, store, owner):
    past = utcnow() - timedelta(hours=1)
    stuck = make_file(db, store, owner, past, name="a.txt")
    other = make_file(db, store, owner, past, name="b.txt")

    report = remove_expired_content(db, BrokenStore(store.root, stuck.storage_ref))

    assert report.deleted_records == 2
    assert report.deleted_files == 1
    assert not store.path_for(other.storage_ref).exists()


def test_expiry_boundary_is_inclusive(db, store, owner):
    now = utcnow()
    record = make_text(db, store, owner, now - timedelta(minutes=10))

    assert remove_expired_content(db, store, now=now).deleted_records == 1
    db.expire_all()
    assert db.get(Content, record.id) is None


def test_scheduler_run_once(db, store, owner):
    make_text(db, store, owner, utcnow() - timedelta(hours=1))
    scheduler = ReclamationScheduler(db_session, store)

    assert scheduler.run_once().deleted_records == 1
    assert scheduler.run_once().deleted_records == 0


def test_scheduler_skips_overlapping_run(db, store, owner):
    make_text(db, store, owner, utcnow() - timedelta(hours=1))
    scheduler = ReclamationScheduler(db_session, store)

    scheduler._running.acquire()
    try:
        assert scheduler.run_once() is None
    finally:
        scheduler._running.release()

    assert scheduler.run_once().deleted_records == 1


def test_scheduler_survives_failed_run(store):
    calls = []

    @contextmanager
    def flaky_scope():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("database unreachable")
        with db_session() as session:
            yield session

    scheduler = ReclamationScheduler(flaky_scope, store)

    assert scheduler.run_once() is None
    assert scheduler.run_once().deleted_records == 0


def test_scheduler_thread_reclaims_in_background(db, store, owner):
    record = make_file(db, store, owner, utcnow() - timedelta(hours=1))
    path = store.path_for(record.storage_ref)
    scheduler = ReclamationScheduler(db_session, store, interval_seconds=0.05)

    scheduler.start()
    try:
        # Watch the disk only; the database is shared with the worker thread
        deadline = time.monotonic() + 5
        while path.exists() and time.monotonic() < deadline:
            time.sleep(0.05)
    finally:
        scheduler.stop()

    # Wait for an in-flight run to finish before touching the database
    assert scheduler._running.acquire(timeout=5)
    scheduler._running.release()

    assert not path.exists()
    db.expire_all()
    assert db.get(Content, record.id) is None


def test_stop_waits_for_in_flight_run(store):
    entered = threading.Event()
    release = threading.Event()

    @contextmanager
    def slow_scope():
        entered.set()
        release.wait(5)
        with db_session() as session:
            yield session

    scheduler = ReclamationScheduler(slow_scope, store, interval_seconds=60)
    scheduler.start()
    assert entered.wait(5)
    run_thread = scheduler._run_thread

    threading.Timer(0.1, release.set).start()
    scheduler.stop()

    assert not run_thread.is_alive()
    assert scheduler._run_thread is None
