"""Per-yard mutual exclusion and the unit of work built on it"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List

from sqlalchemy.orm import Session

from moto_fleet.infrastructure.database.repositories import storage_errors


class YardLockRegistry:
    """
    Process-wide registry of one lock per yard name.

    hold() takes every requested yard lock in sorted order, so a transfer
    from A to B and a concurrent transfer from B to A cannot deadlock.
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, yard_name: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(yard_name)
            if lock is None:
                lock = threading.Lock()
                self._locks[yard_name] = lock
            return lock

    @contextmanager
    def hold(self, *yard_names: str) -> Iterator[List[str]]:
        """Hold the locks of all distinct, non-empty yard names for the block"""
        names = sorted({name for name in yard_names if name})
        acquired: List[threading.Lock] = []
        try:
            for name in names:
                lock = self._lock_for(name)
                lock.acquire()
                acquired.append(lock)
            yield names
        finally:
            for lock in reversed(acquired):
                lock.release()


@contextmanager
def unit_of_work(db: Session, locks: YardLockRegistry, *yard_names: str) -> Iterator[None]:
    """
    Hold the yard locks and one transaction for the block.

    Commits when the block finishes, rolls back on any exception (cancellation
    included) so no partial slot change is ever committed. The commit happens
    before the locks are released.
    """
    with locks.hold(*yard_names):
        try:
            yield
            with storage_errors("commit"):
                db.commit()
        except BaseException:
            db.rollback()
            raise
