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
Lock records, holder identities and garbage collection bookkeeping.
"""

import itertools
import json
import threading
import time
import uuid
from dataclasses import dataclass
from os import getpid
from typing import Dict, Optional, Type

from kvlock.constants import NEVER_EXPIRES
from kvlock.util.exceptions import LockRecordCorrupted

_HOLDER_COUNTER = itertools.count(1)


def generate_holder_id() -> str:
    """Generate an identity for a Lock instance.

    Combines the node ID, the process ID, a process-wide counter and a random
    UUID, so two live instances never share an identity.
    """
    return f"{uuid.getnode()}:{getpid()}:{next(_HOLDER_COUNTER)}:{uuid.uuid4().hex}"


@dataclass(frozen=True)
class LockRecord:
    """Who holds a key and until when (epoch seconds, NEVER_EXPIRES for no expiry)."""

    holder_id: str
    expires_at: float

    @classmethod
    def create(cls, holder_id: str, ttl: Optional[float]) -> "LockRecord":
        if ttl is None:
            return cls(holder_id, NEVER_EXPIRES)
        return cls(holder_id, time.time() + ttl)

    def is_held(self, now: Optional[float] = None) -> bool:
        """Whether the record still counts: its expiry is strictly in the future, or it never expires."""
        if self.expires_at == NEVER_EXPIRES:
            return True
        if now is None:
            now = time.time()
        return self.expires_at > now


def _get_record_bytes(record: LockRecord) -> bytes:
    """Serialize a lock record for shared storage.

    Args:
        record: The record to encode.

    Returns:
        UTF-8 encoded JSON of the form {"id": ..., "expiresAt": ...}.
    """
    return json.dumps({"id": record.holder_id, "expiresAt": record.expires_at}).encode("utf-8")


def _parse_record_bytes(byts, key: str = "") -> LockRecord:
    """Parse lock record bytes written by _get_record_bytes.

    Args:
        byts: Raw bytes read from storage.
        key: Storage key the bytes came from, for the error message.

    Returns:
        The decoded LockRecord.

    Raises:
        LockRecordCorrupted: If the bytes do not hold a lock record.
    """
    try:
        value = json.loads(bytes(byts).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise LockRecordCorrupted(key, str(e)) from e
    if not isinstance(value, dict):
        raise LockRecordCorrupted(key, "expected a JSON object")
    holder_id = value.get("id")
    expires_at = value.get("expiresAt")
    if not isinstance(holder_id, str) or isinstance(expires_at, bool) \
            or not isinstance(expires_at, (int, float)):
        raise LockRecordCorrupted(key, "missing or invalid 'id'/'expiresAt'")
    return LockRecord(holder_id, float(expires_at))


@dataclass
class GarbageCollectionState:
    """When a backend class last swept its storage for expired records.

    ``last_run`` starts at 0.0, meaning a sweep has never run in this process.
    """

    last_run: float = 0.0


# One entry per backend class, shared by all its instances in this process.
_GC_STATES: Dict[type, GarbageCollectionState] = {}
_GC_STATES_LOCK = threading.Lock()


def get_gc_state(cls: Type) -> GarbageCollectionState:
    with _GC_STATES_LOCK:
        state = _GC_STATES.get(cls)
        if state is None:
            state = _GC_STATES[cls] = GarbageCollectionState()
        return state


def reset_gc_state(cls: Optional[Type] = None) -> None:
    """Forget when garbage collection last ran, for ``cls`` or for every backend.

    The next backend constructed afterwards collects garbage again.
    """
    with _GC_STATES_LOCK:
        if cls is None:
            _GC_STATES.clear()
        else:
            _GC_STATES.pop(cls, None)
