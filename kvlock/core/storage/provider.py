# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# This file was originally part of Hub (now Deep Lake) project: https://github.com/activeloopai/deeplake/tree/release/2.8.5
# Commit: https://github.com/activeloopai/deeplake/tree/94c5e100292c164b80132baf741ef233dd41f3d7
# Source: https://github.com/activeloopai/deeplake/blob/94c5e100292c164b80132baf741ef233dd41f3d7/hub/core/storage/provider.py
#
# Modifications Copyright (c) 2026 Bingyu Liu

from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import Iterator, Set

from kvlock.util.exceptions import ReadOnlyModeError


class StorageProvider(ABC, MutableMapping):
    """Key/value storage shared by every lock that points at it.

    Providers give no atomicity guarantee beyond a single read or write of one
    key, which is why lock records written through them need verifying.
    """

    read_only = False
    root = ""

    @abstractmethod
    def __getitem__(self, key: str) -> bytes:
        """Gets the object present at the path.

        Args:
            key (str): The path relative to the root of the provider.

        Returns:
            bytes: The bytes of the object present at the path.

        Raises:
            KeyError: If an object is not found at the path.
        """

    @abstractmethod
    def __setitem__(self, key: str, value: bytes):
        """Sets the object present at the path with the value

        Args:
            key (str): the path relative to the root of the provider.
            value (bytes): the value to be assigned at the path.
        """

    @abstractmethod
    def __delitem__(self, key: str):
        """Function to delete the object present at the path.

        Args:
            key (str): the path to the object relative to the root of the provider.

        Raises:
            KeyError: an object is not found at the path.
        """

    @abstractmethod
    def __len__(self):
        """Function to returns the number of files present inside the root of the provider.
        """

    @abstractmethod
    def __iter__(self) -> Iterator[str]:
        """Function to generator function that iterates over the keys of the provider.
        """

    @abstractmethod
    def clear(self, prefix=""):
        """Delete the contents of the provider."""

    @abstractmethod
    def _all_keys(self) -> Set[str]:
        """Generator function that iterates over the keys of the provider.

        Returns:
            set: set of all keys present at the root of the provider.
        """

    def keys_with_prefix(self, prefix: str) -> Set[str]:
        return {key for key in self._all_keys() if key.startswith(prefix)}

    def enable_readonly(self):
        """Enables read-only mode for the provider."""
        self.read_only = True

    def check_readonly(self):
        """Raises an exception if the provider is in read-only mode."""
        if self.read_only:
            raise ReadOnlyModeError()

    def disable_readonly(self):
        """Disables read-only mode for the provider."""
        self.read_only = False
