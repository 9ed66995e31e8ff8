# Overview: Locking helpers for check-then-act sequences (daily allowance, clock-in).

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager

from ..extensions import db


_registry_lock = threading.Lock()
# Entries vanish once no thread holds or waits on the lock
_key_locks: weakref.WeakValueDictionary[tuple, threading.Lock] = weakref.WeakValueDictionary()


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def _lock_for(key: tuple) -> threading.Lock:
    with _registry_lock:
        lock = _key_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _key_locks[key] = lock
        return lock


@contextmanager
def serialized(*key):
    """
    Serialize a critical section per key within this process.

    Pair with lock_for_update() on a row that identifies the same key so
    that separate worker processes are serialized by the database as well.
    """
    lock = _lock_for(key)
    with lock:
        yield


@contextmanager
def atomic():
    """
    Commit on success, roll back on any exception.

    All writes of one service operation go through a single atomic() block
    so a failure never leaves partial state behind.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
