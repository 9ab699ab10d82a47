# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Lock module for kvlock.

Provides the Lock orchestrator and the strategies it can store locks with:
in-process memory (MemoryStrategy), any shared storage provider
(StorageStrategy) and Redis (RedisStrategy).
"""

from kvlock.core.lock.base import LockStrategy
from kvlock.core.lock.lock import Lock, LockState, create_strategy
from kvlock.core.lock.memory_strategy import MemoryLockStore, MemoryStrategy, get_default_store
from kvlock.core.lock.redis_strategy import RedisStrategy
from kvlock.core.lock.storage_strategy import StorageStrategy
from kvlock.core.lock.utils import (
    LockRecord,
    generate_holder_id,
    reset_gc_state,
    _get_record_bytes,
    _parse_record_bytes,
)

__all__ = [
    "LockStrategy",
    "Lock",
    "LockState",
    "create_strategy",
    "MemoryLockStore",
    "MemoryStrategy",
    "get_default_store",
    "RedisStrategy",
    "StorageStrategy",
    "LockRecord",
    "generate_holder_id",
    "reset_gc_state",
]
