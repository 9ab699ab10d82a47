# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import time

import pytest

from kvlock.core.lock import MemoryStrategy, get_default_store
from kvlock.util.exceptions import LockFailed


class TestMemoryStrategy:
    """Tests for the in-process strategy."""

    def test_default_store_is_shared(self):
        """Test that strategies built without a store see each other's locks."""
        strategy1 = MemoryStrategy()
        strategy2 = MemoryStrategy()
        assert strategy1.store is strategy2.store is get_default_store()

        strategy1.acquire("asdf", "one", 1.0)
        with pytest.raises(LockFailed):
            strategy2.acquire("asdf", "two", 1.0)
        assert strategy2.holder("asdf") == "one"

    def test_separate_stores_are_independent(self, memory_store):
        """Test that an explicit store is isolated from the default one."""
        MemoryStrategy().acquire("asdf", "one", 1.0)
        MemoryStrategy(memory_store).acquire("asdf", "two", 1.0)

        assert MemoryStrategy(memory_store).holder("asdf") == "two"

    def test_record_removed_at_expiry(self, memory_store):
        """Test that the expiry timer deletes the record."""
        strategy = MemoryStrategy(memory_store)

        strategy.acquire("asdf", "one", 0.2)
        assert "asdf" in memory_store
        time.sleep(0.35)
        assert "asdf" not in memory_store
        assert strategy.holder("asdf") is None

    def test_renewal_replaces_timer(self, memory_store):
        """Test that re-acquiring as the holder cancels the old expiry timer."""
        strategy = MemoryStrategy(memory_store)

        strategy.acquire("asdf", "one", 0.3)
        time.sleep(0.2)
        strategy.acquire("asdf", "one", 0.3)
        time.sleep(0.2)

        assert strategy.holder("asdf") == "one"
        time.sleep(0.2)
        assert strategy.holder("asdf") is None

    def test_release_by_other_holder_is_ignored(self, memory_store):
        """Test that only the holder, or a forced release, removes the record."""
        strategy = MemoryStrategy(memory_store)

        strategy.acquire("asdf", "one", 1.0)
        strategy.release("asdf", "two")
        assert strategy.holder("asdf") == "one"

        strategy.release("asdf", "two", force=True)
        assert strategy.holder("asdf") is None
        assert len(memory_store) == 0

    def test_release_missing_key(self, memory_store):
        """Test that releasing an unknown key is a no-op."""
        MemoryStrategy(memory_store).release("missing", "one")

    def test_no_expiry(self, memory_store):
        """Test that a TTL of None arms no timer."""
        strategy = MemoryStrategy(memory_store)

        strategy.acquire("asdf", "one", None)
        assert memory_store._records["asdf"].timer is None
        assert strategy.holder("asdf") == "one"

    def test_reset(self, memory_store):
        """Test that reset drops every record."""
        strategy = MemoryStrategy(memory_store)
        strategy.acquire("a", "one", 10.0)
        strategy.acquire("b", "one", 10.0)

        memory_store.reset()
        assert len(memory_store) == 0
        strategy.acquire("a", "two", 1.0)
