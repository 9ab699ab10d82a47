# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin


class LockFailed(Exception):
    """The lock could not be acquired or retained.

    Raised when the key is held by someone else, when a concurrent writer won
    the race during verification, or when a blocking acquire timed out.
    Callers may retry, back off or give up.
    """

    def __init__(self, message: str = "Failed to acquire the lock", key=None):
        super().__init__(message)
        self.key = key


class LockConfigurationError(ValueError):
    """Invalid lock or strategy configuration, e.g. a TTL shorter than the settle delay."""


class LockRecordCorrupted(ValueError):
    """A lock record read from shared storage could not be decoded."""

    def __init__(self, key: str, reason: str = ""):
        message = f"Corrupted lock record at '{key}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.key = key


class ReadOnlyModeError(Exception):
    def __init__(self, custom_message: str = None):
        if custom_message is None:
            custom_message = "Modification when in read-only mode is not supported!"
        super().__init__(custom_message)


class FileAtPathException(Exception):
    def __init__(self, path):
        super().__init__(
            f"Expected a directory at path {path} but found a file instead."
        )


class DirectoryAtPathException(Exception):
    def __init__(self):
        super().__init__(
            "The provided path is incorrect for this operation, expected a file path but received a directory path."
        )
