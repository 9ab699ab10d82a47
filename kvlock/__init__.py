# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""kvlock - named locks over shared key/value storage, with leases and renewal."""

from kvlock import constants
from kvlock.core.lock import (
    Lock,
    LockState,
    LockStrategy,
    MemoryStrategy,
    RedisStrategy,
    StorageStrategy,
    create_strategy,
)
from kvlock.core.storage import LocalProvider, MemoryProvider, StorageProvider
from kvlock.util.exceptions import LockConfigurationError, LockFailed, LockRecordCorrupted

__version__ = "0.1.0"

__all__ = [
    "Lock",
    "LockState",
    "LockStrategy",
    "MemoryStrategy",
    "StorageStrategy",
    "RedisStrategy",
    "create_strategy",
    "StorageProvider",
    "MemoryProvider",
    "LocalProvider",
    "LockFailed",
    "LockConfigurationError",
    "LockRecordCorrupted",
]
