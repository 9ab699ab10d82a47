# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Redis-based lock strategy.
"""

from typing import Optional

import kvlock
from kvlock.client.log import logger
from kvlock.core.lock.base import LockStrategy
from kvlock.util.exceptions import LockFailed

# Lua script for atomic release - only delete if the holder matches
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

# Lua script for atomic renewal - only extend if the holder matches.
# ARGV[2] is the new TTL in milliseconds, or 0 to drop the expiry.
RENEW_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    if tonumber(ARGV[2]) > 0 then
        return redis.call("pexpire", KEYS[1], ARGV[2])
    else
        redis.call("persist", KEYS[1])
        return 1
    end
else
    return 0
end
"""


class RedisStrategy(LockStrategy):
    """Redis-based lock strategy.

    Redis executes SET with NX and PX atomically, so unlike StorageStrategy
    there is no race to verify, and Redis expires the keys itself: no expiry
    timers and no garbage collection are needed. Renewal and release go
    through Lua scripts that check the holder first.

    Example:
        >>> import redis
        >>> client = redis.Redis(host='localhost', port=6379, db=0)
        >>> lock = Lock("nightly-export", strategy=RedisStrategy(client))
        >>> with lock:
        ...     # Critical section
        ...     pass

    Args:
        redis_client: A Redis client instance.
        prefix: Prefix for the lock keys (default: "kvlock:").
    """

    def __init__(self, redis_client, prefix: Optional[str] = None):
        self.redis_client = redis_client
        self.prefix = kvlock.constants.REDIS_LOCK_PREFIX if prefix is None else prefix
        self._release_script = None
        self._renew_script = None

    def _get_release_script(self):
        """Get or register the release Lua script."""
        if self._release_script is None:
            self._release_script = self.redis_client.register_script(RELEASE_SCRIPT)
        return self._release_script

    def _get_renew_script(self):
        """Get or register the renewal Lua script."""
        if self._renew_script is None:
            self._renew_script = self.redis_client.register_script(RENEW_SCRIPT)
        return self._renew_script

    def _lock_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def acquire(self, key: str, holder_id: str, ttl: Optional[float]) -> None:
        self.validate_ttl(ttl)
        lock_key = self._lock_key(key)
        ttl_ms = None if ttl is None else max(1, int(ttl * 1000))

        # SET key value NX [PX milliseconds]
        if self.redis_client.set(lock_key, holder_id, nx=True, px=ttl_ms):
            return

        # Already ours: extend the lease
        renew_script = self._get_renew_script()
        if renew_script(keys=[lock_key], args=[holder_id, ttl_ms or 0]):
            return

        logger.debug("Lock '%s' is held in Redis by another holder", key)
        raise LockFailed(f"Lock '{key}' is already held", key=key)

    def release(self, key: str, holder_id: str, force: bool = False) -> None:
        lock_key = self._lock_key(key)
        if force:
            self.redis_client.delete(lock_key)
            return
        release_script = self._get_release_script()
        release_script(keys=[lock_key], args=[holder_id])

    def holder(self, key: str) -> Optional[str]:
        value = self.redis_client.get(self._lock_key(key))
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value
