# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# This file was originally part of Hub (now Deep Lake) project: https://github.com/activeloopai/deeplake/tree/release/2.8.5
# Commit: https://github.com/activeloopai/deeplake/tree/94c5e100292c164b80132baf741ef233dd41f3d7
# Source: https://github.com/activeloopai/deeplake/blob/94c5e100292c164b80132baf741ef233dd41f3d7/hub/core/lock.py
#
# Modifications Copyright (c) 2026 Xueling Lin

"""
Lock strategy over a shared, non-atomic storage provider.
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Optional, Tuple

import kvlock
from kvlock.client.log import logger
from kvlock.core.lock.base import LockStrategy
from kvlock.core.lock.utils import (
    LockRecord,
    _get_record_bytes,
    _parse_record_bytes,
    get_gc_state,
)
from kvlock.core.storage import StorageProvider
from kvlock.util.exceptions import LockConfigurationError, LockFailed, LockRecordCorrupted

# Held while a lock write lifts and restores read-only mode. Shared by every
# strategy in the process.
_WRITABLE_LOCK = threading.Lock()


class StorageStrategy(LockStrategy):
    """Keeps lock records in a storage provider shared by many lock users.

    The provider has no compare-and-swap, so a successful write does not prove
    ownership: two writers can interleave. After writing its record the
    strategy waits ``settle_delay`` seconds and reads the record back; if
    another holder's record is there by then, the acquire fails. This makes a
    double acquire unlikely, not impossible: a writer landing after the
    verification read still wins.

    Records of crashed holders are removed by a garbage collection sweep run
    when a strategy is constructed, at most once per
    ``kvlock.constants.GARBAGE_COLLECTION_INTERVAL`` per process.

    Example:
        >>> storage = LocalProvider("/tmp/locks")
        >>> lock = Lock("reports", strategy=StorageStrategy(storage))
        >>> lock.whilst(build_report, ttl=5.0)

    Args:
        storage: The storage provider holding lock records.
        prefix: Prepended to every lock key so records do not collide with
            other data in the same storage.
        settle_delay: Seconds between the write and the verification read.
            0 trusts the write without verifying it.
    """

    def __init__(
        self,
        storage: StorageProvider,
        prefix: Optional[str] = None,
        settle_delay: Optional[float] = None,
    ):
        self.storage = storage
        self.prefix = kvlock.constants.STORAGE_LOCK_PREFIX if prefix is None else prefix
        self.settle_delay = (
            kvlock.constants.LOCK_SETTLE_DELAY if settle_delay is None else settle_delay
        )
        if self.settle_delay < 0:
            raise LockConfigurationError(f"The settle delay may not be negative (got {self.settle_delay})")
        self._release_timers: Dict[Tuple[str, str], threading.Timer] = {}
        self._timers_lock = threading.Lock()

        # Collect garbage every once in a while so locks of holders that died
        # without releasing do not stay orphaned forever.
        gc_state = get_gc_state(StorageStrategy)
        if gc_state.last_run + kvlock.constants.GARBAGE_COLLECTION_INTERVAL <= time.time():
            self.garbage_collect()

    def validate_ttl(self, ttl: Optional[float]) -> None:
        super().validate_ttl(ttl)
        if ttl is not None and ttl < self.settle_delay:
            raise LockConfigurationError(
                f"The lock TTL may not be less than the settle delay of {self.settle_delay}s (got {ttl})"
            )

    def acquire(self, key: str, holder_id: str, ttl: Optional[float]) -> None:
        """Acquire the lock with a write followed by a verification read.

        Args:
            key: The lock key, stored under ``prefix + key``.
            holder_id: Identity of the claiming Lock instance.
            ttl: Lease duration in seconds, None for no expiry.

        Raises:
            LockFailed: If the key is held by another holder, or another holder
                overwrote our record during the settle delay.
            LockConfigurationError: If ``ttl`` is shorter than the settle delay.
            LockRecordCorrupted: If the stored record cannot be decoded.
        """
        self.validate_ttl(ttl)
        self._cancel_release_timer(key, holder_id)

        current = self._read_record(key)
        if current is not None and current.is_held() and current.holder_id != holder_id:
            raise LockFailed(f"Lock '{key}' is already held", key=key)

        self._write_record(key, LockRecord.create(holder_id, ttl))
        if self.settle_delay == 0:
            self._schedule_release(key, holder_id, ttl)
            return

        time.sleep(self.settle_delay)
        if self.holder(key) != holder_id:
            logger.debug("Lost the race for lock '%s' during the settle delay", key)
            raise LockFailed(f"Failed to acquire lock '{key}'", key=key)
        self._schedule_release(key, holder_id, ttl)

    def release(self, key: str, holder_id: str, force: bool = False) -> None:
        """Release the lock if it is ours, free, or ``force`` is set.

        This method is safe to call even if the lock is not held.
        """
        self._cancel_release_timer(key, holder_id)
        if not force:
            current = self._read_record(key)
            if current is not None and current.is_held() and current.holder_id != holder_id:
                return
        self._delete_record(key)

    def holder(self, key: str) -> Optional[str]:
        record = self._read_record(key)
        if record is not None and record.is_held():
            return record.holder_id
        return None

    def garbage_collect(self) -> int:
        """Remove every expired or undecodable record under ``prefix``.

        Returns:
            The number of records removed.
        """
        removed = 0
        for storage_key in self.storage.keys_with_prefix(self.prefix):
            key = storage_key[len(self.prefix):]
            try:
                record = self._read_record(key)
            except LockRecordCorrupted as e:
                logger.warning("Removing corrupted lock record: %s", e)
            else:
                # Gone already, or a live lease.
                if record is None or record.is_held():
                    continue
            self._delete_record(key)
            removed += 1

        get_gc_state(StorageStrategy).last_run = time.time()
        if removed:
            logger.info("Garbage collected %d expired lock record(s) under '%s'", removed, self.prefix)
        return removed

    def _storage_key(self, key: str) -> str:
        return self.prefix + key

    def _read_record(self, key: str) -> Optional[LockRecord]:
        storage_key = self._storage_key(key)
        try:
            byts = self.storage[storage_key]
        except KeyError:
            return None
        if not byts:
            return None
        return _parse_record_bytes(byts, storage_key)

    def _write_record(self, key: str, record: LockRecord):
        with self._writable():
            self.storage[self._storage_key(key)] = _get_record_bytes(record)

    def _delete_record(self, key: str):
        with self._writable():
            try:
                del self.storage[self._storage_key(key)]
            except KeyError:
                pass

    @contextmanager
    def _writable(self):
        """Lift the storage's read-only mode for the duration of a lock write."""
        storage = self.storage
        with _WRITABLE_LOCK:
            read_only = storage.read_only
            try:
                storage.disable_readonly()
                yield storage
            finally:
                if read_only:
                    storage.enable_readonly()

    def _schedule_release(self, key: str, holder_id: str, ttl: Optional[float]):
        """Drop the record at the end of its lease unless renewed or released before."""
        if ttl is None:
            return
        timer = threading.Timer(ttl, self._expire, args=(key, holder_id))
        timer.daemon = True
        with self._timers_lock:
            previous = self._release_timers.pop((key, holder_id), None)
            if previous is not None:
                previous.cancel()
            self._release_timers[key, holder_id] = timer
        timer.start()

    def _cancel_release_timer(self, key: str, holder_id: str):
        with self._timers_lock:
            timer = self._release_timers.pop((key, holder_id), None)
        if timer is not None:
            timer.cancel()

    def _expire(self, key: str, holder_id: str):
        with self._timers_lock:
            if self._release_timers.get((key, holder_id)) is threading.current_thread():
                del self._release_timers[key, holder_id]
        try:
            record = self._read_record(key)
            # A renewed record has a later expiry and survives.
            if record is not None and record.holder_id == holder_id and not record.is_held():
                self._delete_record(key)
                logger.debug("Lock '%s' of %s expired", key, holder_id)
        except Exception as e:  # The timer thread has nobody to report to.
            logger.warning("Could not remove expired lock '%s': %s", key, e)
