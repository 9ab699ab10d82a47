# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import tempfile

import pytest

from kvlock.core.lock import MemoryLockStore, get_default_store, reset_gc_state
from kvlock.core.storage import LocalProvider, MemoryProvider


@pytest.fixture(autouse=True)
def isolated_lock_state():
    """Every test starts with an empty default memory store and garbage collection not yet run."""
    reset_gc_state()
    get_default_store().reset()
    yield
    get_default_store().reset()
    reset_gc_state()


@pytest.fixture
def temp_storage():
    """Create a temporary directory with LocalProvider."""
    with tempfile.TemporaryDirectory() as temp_dir:
        storage = LocalProvider(temp_dir)
        yield storage


@pytest.fixture
def memory_storage():
    """Create a MemoryProvider storage."""
    return MemoryProvider()


@pytest.fixture
def memory_store():
    """A private MemoryLockStore, reset after the test."""
    store = MemoryLockStore()
    yield store
    store.reset()


@pytest.fixture
def redis_client():
    """Create a Redis client, skip if Redis is not available."""
    try:
        import redis
        client = redis.Redis(host='localhost', port=6379, db=15)
        # Test connection
        client.ping()
    except Exception:
        pytest.skip("Redis is not available")
    yield client
    # Cleanup: delete all test keys
    for key in client.scan_iter("kvlock:test_*"):
        client.delete(key)
