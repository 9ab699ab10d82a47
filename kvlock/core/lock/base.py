# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

"""
Abstract base class for lock strategies.
"""

from abc import ABC, abstractmethod
from typing import Optional

from kvlock.util.exceptions import LockConfigurationError


class LockStrategy(ABC):
    """Abstract base class for the storage behind a Lock.

    A strategy is the only component that reads and writes lock records. It is
    handed a key, the identity of the would-be holder and a TTL, and either
    records the holder or raises LockFailed. Any backend implementing this
    interface can be plugged into a Lock.

    Strategies are shared: many Lock instances, in this process or others, may
    go through the same strategy or through the same storage, so every
    destructive write must check ownership first.
    """

    @abstractmethod
    def acquire(self, key: str, holder_id: str, ttl: Optional[float]) -> None:
        """Claim ``key`` for ``holder_id``.

        Re-acquiring a key already held by ``holder_id`` succeeds and extends
        the lease.

        Args:
            key: The lock key.
            holder_id: Identity of the claiming Lock instance.
            ttl: Lease duration in seconds. None means the record never expires.

        Raises:
            LockFailed: If another holder has a live record for the key, or a
                concurrent writer won the race for it.
            LockConfigurationError: If the TTL is not usable with this strategy.
        """

    @abstractmethod
    def release(self, key: str, holder_id: str, force: bool = False) -> None:
        """Clear the record for ``key`` if it is free or held by ``holder_id``.

        Releasing someone else's lock is a silent no-op unless ``force`` is set.
        """

    @abstractmethod
    def holder(self, key: str) -> Optional[str]:
        """Return the identity holding a live record for ``key``, or None."""

    def validate_ttl(self, ttl: Optional[float]) -> None:
        if ttl is not None and ttl <= 0:
            raise LockConfigurationError(f"The lock TTL must be positive (got {ttl})")
