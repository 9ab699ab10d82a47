# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import os

# All durations are in seconds.

# Default lease used by Lock.whilst() and the context manager.
DEFAULT_TTL = 1.0

# How long Lock.must_acquire() keeps retrying before giving up.
DEFAULT_ACQUIRE_TIMEOUT = 10.0

# Pause between two attempts of Lock.must_acquire().
DEFAULT_RETRY_INTERVAL = 0.02

# Strategy built by create_strategy() when no type is given: "memory", "storage" or "redis".
LOCK_STRATEGY = os.getenv("KVLOCK_STRATEGY", "memory").lower()

# Wait between the optimistic write of a lock record and its verification.
# 0 disables the verification read.
LOCK_SETTLE_DELAY = float(os.getenv("KVLOCK_SETTLE_DELAY", "0.005"))

# Garbage collection of expired lock records runs at most once per interval per process.
GARBAGE_COLLECTION_INTERVAL = float(os.getenv("KVLOCK_GC_INTERVAL", "60"))

# Lock records with no expiry carry this timestamp.
NEVER_EXPIRES = 0

STORAGE_LOCK_PREFIX = "kvlock-"

REDIS_LOCK_PREFIX = "kvlock:"
REDIS_LOCK_HOST = os.getenv("KVLOCK_REDIS_HOST", "localhost")
REDIS_LOCK_PORT = int(os.getenv("KVLOCK_REDIS_PORT", "6379"))
REDIS_LOCK_DB = int(os.getenv("KVLOCK_REDIS_DB", "0"))
REDIS_LOCK_PASSWORD = os.getenv("KVLOCK_REDIS_PASSWORD")
