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
Lock keyed by name, with blocking acquisition and automatic lease renewal.
"""

import threading
import time
from enum import Enum
from typing import Callable, Optional, TypeVar

import kvlock
from kvlock.client.log import logger
from kvlock.core.lock.base import LockStrategy
from kvlock.core.lock.memory_strategy import MemoryStrategy
from kvlock.core.lock.redis_strategy import RedisStrategy
from kvlock.core.lock.storage_strategy import StorageStrategy
from kvlock.core.lock.utils import generate_holder_id
from kvlock.util.exceptions import LockConfigurationError, LockFailed

T = TypeVar("T")


class LockState(Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    HELD = "held"
    MAINTAINING = "maintaining"


class Lock:
    """Mutual exclusion on a single key, coordinated through a LockStrategy.

    The instance gets its holder identity once, at construction, and keeps it
    across any number of acquire/release cycles. All ownership checks are
    made against that identity, so construct one Lock per lock user and reuse
    it.

    A Lock instance must be driven by one thread at a time: issuing two
    acquires concurrently on the same instance is not supported. Use one
    instance per thread to contend for a key from several threads.

    Example:
        >>> lock = Lock("invoices", strategy=StorageStrategy(LocalProvider("/tmp/locks")))
        >>> lock.acquire(5.0)          # Raises LockFailed if someone holds "invoices"
        >>> lock.release()
        >>> total = lock.whilst(lambda: compute_totals(), ttl=2.0)

    Args:
        key: Name of the lock.
        strategy: Where lock records are kept (default: a MemoryStrategy).
        retry_interval: Seconds between two attempts of must_acquire()
            (default: kvlock.constants.DEFAULT_RETRY_INTERVAL).
    """

    def __init__(
        self,
        key: str,
        strategy: Optional[LockStrategy] = None,
        retry_interval: Optional[float] = None,
    ):
        self.key = key
        self.holder_id = generate_holder_id()
        self.strategy = strategy if strategy is not None else MemoryStrategy()
        self.retry_interval = (
            kvlock.constants.DEFAULT_RETRY_INTERVAL if retry_interval is None else retry_interval
        )
        self.state = LockState.IDLE
        self._maintenance_thread: Optional[threading.Thread] = None
        self._stop_maintenance: Optional[threading.Event] = None

    def __repr__(self):
        return f"Lock(key={self.key!r}, holder_id={self.holder_id!r}, state={self.state.value})"

    def __enter__(self):
        """Context manager entry - blocks until the lock is held, then keeps it alive."""
        ttl = kvlock.constants.DEFAULT_TTL
        self.must_acquire(ttl)
        self.maintain(ttl)
        return self

    def __exit__(self, *args, **kwargs):
        """Context manager exit - releases the lock."""
        self.release()

    def acquire(self, ttl: Optional[float]) -> None:
        """Attempts to lock the key, once.

        The lock stays in place for ``ttl`` seconds or until released. Calling
        it again while holding the lock extends the lease.

        Args:
            ttl: Lease duration in seconds. None means the lock never expires.

        Raises:
            LockFailed: If the lock cannot be made at this time.
        """
        if self.state is LockState.IDLE:
            self.state = LockState.ACQUIRING
        try:
            self.strategy.acquire(self.key, self.holder_id, ttl)
        except Exception:
            # A failed renewal leaves a held lock in its current state.
            if self.state is LockState.ACQUIRING:
                self.state = LockState.IDLE
            raise
        if self.state is LockState.ACQUIRING:
            self.state = LockState.HELD
        logger.debug("Acquired lock '%s' as %s", self.key, self.holder_id)

    def must_acquire(self, ttl: Optional[float], timeout: Optional[float] = None) -> None:
        """Retries acquire() every ``retry_interval`` seconds until it succeeds or times out.

        Only LockFailed is retried; any other error is raised immediately.

        Args:
            ttl: Lease duration in seconds. None means the lock never expires.
            timeout: Seconds to keep trying, measured from the first attempt
                (default: kvlock.constants.DEFAULT_ACQUIRE_TIMEOUT). Pass
                ``math.inf`` to wait forever.

        Raises:
            LockFailed: If the lock could not be acquired before the timeout.
        """
        if timeout is None:
            timeout = kvlock.constants.DEFAULT_ACQUIRE_TIMEOUT
        started_at = time.monotonic()
        while True:
            if time.monotonic() - started_at >= timeout:
                raise LockFailed(f"Timed out trying to acquire lock '{self.key}'", key=self.key)
            try:
                self.acquire(ttl)
                return
            except LockFailed:
                time.sleep(self.retry_interval)

    def release(self, force: bool = False) -> None:
        """Releases the lock, if we're holding it.

        Stops the maintenance loop first, so no renewal can land after the
        release. Safe to call any number of times, held or not.

        Args:
            force: Remove the lock even if another instance holds it.
        """
        self._stop_maintenance_loop()
        self.strategy.release(self.key, self.holder_id, force=force)
        self.state = LockState.IDLE

    def maintain(self, ttl: Optional[float]) -> None:
        """Renew the lease every ``ttl / 2`` seconds until release().

        Renewal failures are logged and otherwise ignored: if the lease is lost
        the critical section carries on, a risk this locking scheme accepts.
        """
        self._stop_maintenance_loop()
        if ttl is None:
            return
        stop = threading.Event()
        thread = threading.Thread(
            target=self._maintenance_loop,
            args=(ttl, stop),
            name=f"kvlock-maintain-{self.key}",
            daemon=True,
        )
        self._stop_maintenance = stop
        self._maintenance_thread = thread
        self.state = LockState.MAINTAINING
        thread.start()

    def whilst(
        self,
        fn: Callable[[], T],
        ttl: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """Holds and maintains the lock for as long as ``fn`` runs.

        Blocks in must_acquire(), renews the lease in the background while
        ``fn`` runs, and releases the lock however ``fn`` ends.

        Example:
            >>> result = lock.whilst(lambda: do_some_transaction())

        Args:
            fn: The critical section.
            ttl: Lease duration in seconds (default: kvlock.constants.DEFAULT_TTL).
            timeout: Passed to must_acquire().

        Returns:
            Whatever ``fn`` returns. Exceptions raised by ``fn`` propagate
            after the lock is released, even if the release fails as well.
        """
        if ttl is None:
            ttl = kvlock.constants.DEFAULT_TTL
        self.must_acquire(ttl, timeout)
        try:
            self.maintain(ttl)
            result = fn()
        except BaseException:
            # fn's error is the one the caller sees.
            try:
                self.release()
            except Exception as e:
                logger.warning("Releasing lock '%s' after a failed critical section failed: %s", self.key, e)
            raise
        self.release()
        return result

    def locked_by(self) -> Optional[str]:
        """Holder identity of the live lock on this key, or None if it is free."""
        return self.strategy.holder(self.key)

    def is_held(self) -> bool:
        """Whether this instance holds a live lock on its key."""
        return self.locked_by() == self.holder_id

    def _maintenance_loop(self, ttl: float, stop: threading.Event):
        """Background thread that periodically renews the lease."""
        while not stop.wait(ttl / 2):
            try:
                self.strategy.acquire(self.key, self.holder_id, ttl)
            except Exception as e:  # Renewal is best effort.
                logger.debug("Renewing lock '%s' failed: %s", self.key, e)

    def _stop_maintenance_loop(self):
        thread, stop = self._maintenance_thread, self._stop_maintenance
        self._maintenance_thread = None
        self._stop_maintenance = None
        if stop is not None:
            stop.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join()


def create_strategy(
    strategy_type: Optional[str] = None,
    storage=None,
    redis_client=None,
    **kwargs,
) -> LockStrategy:
    """Factory function to create the lock strategy a configuration asks for.

    Args:
        strategy_type: "memory", "storage" or "redis". Uses
            kvlock.constants.LOCK_STRATEGY if None.
        storage: The storage provider (required for "storage").
        redis_client: Redis client instance. For "redis", one is built from
            the kvlock.constants.REDIS_LOCK_* settings when omitted.
        **kwargs: Passed on to the strategy's constructor.

    Returns:
        A LockStrategy instance.

    Raises:
        LockConfigurationError: If the type is unknown or required parameters are missing.
    """
    if strategy_type is None:
        strategy_type = kvlock.constants.LOCK_STRATEGY

    if strategy_type == "memory":
        return MemoryStrategy(**kwargs)
    if strategy_type == "storage":
        if storage is None:
            raise LockConfigurationError("storage is required for StorageStrategy")
        return StorageStrategy(storage, **kwargs)
    if strategy_type == "redis":
        if redis_client is None:
            import redis
            redis_client = redis.Redis(
                host=kvlock.constants.REDIS_LOCK_HOST,
                port=kvlock.constants.REDIS_LOCK_PORT,
                db=kvlock.constants.REDIS_LOCK_DB,
                password=kvlock.constants.REDIS_LOCK_PASSWORD,
            )
        return RedisStrategy(redis_client, **kwargs)
    raise LockConfigurationError(f"Unknown lock strategy type: {strategy_type!r}")
