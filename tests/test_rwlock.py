"""Tests for quill.content._rwlock — shared/exclusive guard."""

from __future__ import annotations

import threading
import time

from quill.content._rwlock import RWLock


class TestRWLock:
    def test_many_readers(self) -> None:
        lock = RWLock()
        lock.acquire_read()
        lock.acquire_read()
        lock.release_read()
        lock.release_read()
        assert lock.acquire_write(timeout=0.1) is True
        lock.release_write()

    def test_writer_excluded_by_reader(self) -> None:
        lock = RWLock()
        with lock.read():
            assert lock.acquire_write(timeout=0.05) is False
        assert lock.acquire_write(timeout=0.05) is True
        lock.release_write()

    def test_writer_excludes_writer(self) -> None:
        lock = RWLock()
        assert lock.acquire_write() is True
        result: list[bool] = []
        t = threading.Thread(target=lambda: result.append(lock.acquire_write(timeout=0.05)))
        t.start()
        t.join()
        assert result == [False]
        lock.release_write()

    def test_reader_waits_for_writer(self) -> None:
        lock = RWLock()
        lock.acquire_write()
        entered = threading.Event()

        def read() -> None:
            with lock.read():
                entered.set()

        t = threading.Thread(target=read)
        t.start()
        assert not entered.wait(0.05)
        lock.release_write()
        assert entered.wait(1.0)
        t.join()

    def test_timed_out_writer_unblocks_readers(self) -> None:
        """A writer that gave up must not leave new readers parked."""
        lock = RWLock()
        lock.acquire_read()
        writer = threading.Thread(target=lambda: lock.acquire_write(timeout=0.05))
        writer.start()
        time.sleep(0.01)
        entered = threading.Event()

        def read() -> None:
            with lock.read():
                entered.set()

        reader = threading.Thread(target=read)
        reader.start()
        writer.join()
        assert entered.wait(1.0)
        reader.join()
        lock.release_read()
