# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Tests for RedisStrategy.

TestRedisStrategyCalls runs against a mocked client; TestRedisStrategy needs a
Redis server on localhost and is skipped without one.
"""

import time
from unittest.mock import MagicMock

import pytest

from kvlock.core.lock import Lock, RedisStrategy
from kvlock.core.lock.redis_strategy import RELEASE_SCRIPT, RENEW_SCRIPT
from kvlock.util.exceptions import LockConfigurationError, LockFailed


@pytest.fixture
def mock_client():
    client = MagicMock()
    scripts = {RELEASE_SCRIPT: MagicMock(return_value=1), RENEW_SCRIPT: MagicMock(return_value=0)}
    client.register_script.side_effect = lambda source: scripts[source]
    client.scripts = scripts
    return client


class TestRedisStrategyCalls:
    """Tests for the Redis commands the strategy issues."""

    def test_acquire_sets_nx_px(self, mock_client):
        """Test that acquire is a single SET NX PX when the key is free."""
        mock_client.set.return_value = True
        RedisStrategy(mock_client).acquire("job", "me", 1.5)

        mock_client.set.assert_called_once_with("kvlock:job", "me", nx=True, px=1500)
        mock_client.scripts[RENEW_SCRIPT].assert_not_called()

    def test_acquire_without_ttl(self, mock_client):
        """Test that a TTL of None sets no expiry."""
        mock_client.set.return_value = True
        RedisStrategy(mock_client).acquire("job", "me", None)

        mock_client.set.assert_called_once_with("kvlock:job", "me", nx=True, px=None)

    def test_acquire_renews_own_lock(self, mock_client):
        """Test that a taken key held by us is renewed through the script."""
        mock_client.set.return_value = None
        mock_client.scripts[RENEW_SCRIPT].return_value = 1

        RedisStrategy(mock_client).acquire("job", "me", 2)
        mock_client.scripts[RENEW_SCRIPT].assert_called_once_with(keys=["kvlock:job"], args=["me", 2000])

    def test_acquire_fails_when_held(self, mock_client):
        """Test that a key held by someone else raises LockFailed."""
        mock_client.set.return_value = None

        with pytest.raises(LockFailed):
            RedisStrategy(mock_client).acquire("job", "me", 1)

    def test_invalid_ttl(self, mock_client):
        """Test that non-positive TTLs are rejected before talking to Redis."""
        with pytest.raises(LockConfigurationError):
            RedisStrategy(mock_client).acquire("job", "me", 0)
        mock_client.set.assert_not_called()

    def test_release_checks_holder(self, mock_client):
        """Test that release goes through the holder-checking script."""
        RedisStrategy(mock_client).release("job", "me")

        mock_client.scripts[RELEASE_SCRIPT].assert_called_once_with(keys=["kvlock:job"], args=["me"])
        mock_client.delete.assert_not_called()

    def test_forced_release_deletes(self, mock_client):
        """Test that a forced release deletes the key outright."""
        RedisStrategy(mock_client, prefix="custom:").release("job", "me", force=True)

        mock_client.delete.assert_called_once_with("custom:job")

    def test_holder_decodes_bytes(self, mock_client):
        """Test that holder() returns a str whatever the client's decoding."""
        strategy = RedisStrategy(mock_client)

        mock_client.get.return_value = b"me"
        assert strategy.holder("job") == "me"
        mock_client.get.return_value = "me"
        assert strategy.holder("job") == "me"
        mock_client.get.return_value = None
        assert strategy.holder("job") is None

    def test_scripts_registered_once(self, mock_client):
        """Test that Lua scripts are registered lazily and reused."""
        strategy = RedisStrategy(mock_client)
        strategy.release("a", "me")
        strategy.release("b", "me")

        assert mock_client.register_script.call_count == 1


class TestRedisStrategy:
    """Tests for RedisStrategy against a live server."""

    def test_acquire_release_basic(self, redis_client):
        """Test basic acquire and release flow."""
        lock1 = Lock("test_basic", strategy=RedisStrategy(redis_client))
        lock2 = Lock("test_basic", strategy=RedisStrategy(redis_client))

        lock1.acquire(1.0)
        with pytest.raises(LockFailed):
            lock2.acquire(1.0)
        lock1.release()
        lock2.acquire(1.0)
        lock2.release()

    def test_unlocks_after_ttl(self, redis_client):
        """Test that Redis expires the key at the end of the lease."""
        lock1 = Lock("test_ttl", strategy=RedisStrategy(redis_client))
        lock2 = Lock("test_ttl", strategy=RedisStrategy(redis_client))

        lock1.acquire(0.3)
        with pytest.raises(LockFailed):
            lock2.acquire(1.0)
        time.sleep(0.4)
        lock2.acquire(1.0)
        lock2.release()

    def test_renewal_extends_ttl(self, redis_client):
        """Test that re-acquiring as the holder extends the key's TTL."""
        lock = Lock("test_renew", strategy=RedisStrategy(redis_client))

        lock.acquire(5.0)
        time.sleep(0.5)
        lock.acquire(5.0)

        assert redis_client.pttl("kvlock:test_renew") > 4500
        lock.release()

    def test_does_not_release_anothers_lock(self, redis_client):
        """Test that release only deletes if we own the lock."""
        lock1 = Lock("test_atomic_release", strategy=RedisStrategy(redis_client))
        lock2 = Lock("test_atomic_release", strategy=RedisStrategy(redis_client))

        lock1.acquire(5.0)
        lock2.release()
        assert redis_client.exists("kvlock:test_atomic_release")
        assert lock2.locked_by() == lock1.holder_id

        lock2.release(force=True)
        assert not redis_client.exists("kvlock:test_atomic_release")

    def test_whilst(self, redis_client):
        """Test lock-scoped execution with renewal past the TTL."""
        lock = Lock("test_whilst", strategy=RedisStrategy(redis_client))

        def transaction():
            time.sleep(0.5)
            return lock.is_held()

        assert lock.whilst(transaction, ttl=0.2)
        assert not redis_client.exists("kvlock:test_whilst")
