# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
In-process lock strategy with atomic check-and-set.
"""

import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

from kvlock.client.log import logger
from kvlock.core.lock.base import LockStrategy
from kvlock.core.lock.utils import LockRecord
from kvlock.util.exceptions import LockFailed


@dataclass
class MemoryRecord:
    record: LockRecord
    timer: Optional[threading.Timer] = None

    def cancel(self):
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class MemoryLockStore:
    """Lock records of one process, guarded by a mutex.

    Every read-check-write sequence runs under ``_mutex``, so the store behaves
    like a compare-and-swap register and never needs a settle delay.
    """

    def __init__(self):
        self._records: Dict[str, MemoryRecord] = {}
        self._mutex = threading.Lock()

    def __len__(self):
        with self._mutex:
            return len(self._records)

    def __contains__(self, key: str):
        with self._mutex:
            return key in self._records

    def reset(self):
        """Cancel every expiry timer and drop all records."""
        with self._mutex:
            for entry in self._records.values():
                entry.cancel()
            self._records.clear()

    def _expire(self, key: str, entry: MemoryRecord):
        with self._mutex:
            # A renewal may have replaced the record since the timer was armed.
            if self._records.get(key) is entry:
                del self._records[key]
                logger.debug("Lock '%s' of %s expired", key, entry.record.holder_id)


_DEFAULT_STORE = MemoryLockStore()


def get_default_store() -> MemoryLockStore:
    """The store used by every MemoryStrategy constructed without one."""
    return _DEFAULT_STORE


class MemoryStrategy(LockStrategy):
    """Stores locks in the memory of this process. It is fully atomic.

    Example:
        >>> lock1 = Lock("jobs", strategy=MemoryStrategy())
        >>> lock2 = Lock("jobs", strategy=MemoryStrategy())
        >>> lock1.acquire(1.0)
        >>> lock2.acquire(1.0)  # Raises LockFailed, both share the default store

    Args:
        store: Where records live. Defaults to the process-wide store.
    """

    def __init__(self, store: Optional[MemoryLockStore] = None):
        self.store = store if store is not None else get_default_store()

    def acquire(self, key: str, holder_id: str, ttl: Optional[float]) -> None:
        self.validate_ttl(ttl)
        store = self.store
        with store._mutex:
            current = store._records.get(key)
            if current is not None and current.record.is_held():
                if current.record.holder_id != holder_id:
                    raise LockFailed(f"Lock '{key}' is already held", key=key)
            if current is not None:
                current.cancel()

            entry = MemoryRecord(LockRecord.create(holder_id, ttl))
            if ttl is not None:
                entry.timer = threading.Timer(ttl, store._expire, args=(key, entry))
                entry.timer.daemon = True
                entry.timer.start()
            store._records[key] = entry

    def release(self, key: str, holder_id: str, force: bool = False) -> None:
        store = self.store
        with store._mutex:
            current = store._records.get(key)
            if current is None:
                return
            if force or current.record.holder_id == holder_id or not current.record.is_held():
                current.cancel()
                del store._records[key]

    def holder(self, key: str) -> Optional[str]:
        with self.store._mutex:
            current = self.store._records.get(key)
            if current is not None and current.record.is_held(time.time()):
                return current.record.holder_id
            return None
