# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# This file was originally part of Hub (now Deep Lake) project: https://github.com/activeloopai/deeplake/tree/release/2.8.5
# Commit: https://github.com/activeloopai/deeplake/tree/94c5e100292c164b80132baf741ef233dd41f3d7
# Source: https://github.com/activeloopai/deeplake/blob/94c5e100292c164b80132baf741ef233dd41f3d7/hub/core/storage/memory.py
#
# Modifications Copyright (c) 2026 Bingyu Liu

from typing import Dict, Set

from kvlock.core.storage.provider import StorageProvider


class MemoryProvider(StorageProvider):
    """Provider class for using the memory.

    Every thread of the process that holds a reference to the same provider
    sees the same keys, which makes it the in-process stand-in for a shared
    key/value store.
    """

    def __init__(self, root: str = ""):
        self.dict: Dict[str, bytes] = {}
        self.root = root

    def __getitem__(self, key: str):
        """Gets the object present at the path.

        Example:

            >>> memory_provider = MemoryProvider("xyz")
            >>> my_data = memory_provider["abc.txt"]

        Args:
            key (str): The path relative to the root of the provider.

        Returns:
            bytes: The bytes of the object present at the path.

        Raises:
            KeyError: If an object is not found at the path.
        """
        return self.dict[key]

    def __setitem__(self, key: str, value: bytes):
        """Sets the object present at the path with the value

        Example:

            >>> memory_provider = MemoryProvider("xyz")
            >>> memory_provider["abc.txt"] = b"abcd"

        Args:
            key (str): the path relative to the root of the provider.
            value (bytes): the value to be assigned at the path.

        Raises:
            ReadOnlyModeError: If the provider is in read-only mode.
        """
        self.check_readonly()
        self.dict[key] = value

    def __iter__(self):
        """Generator function that iterates over the keys of the provider.

        Yields:
            str: the path of the object that it is iterating over, relative to the root of the provider.
        """
        yield from list(self.dict)

    def __delitem__(self, key: str):
        """Delete the object present at the path.

        Example:

            >>> memory_provider = MemoryProvider("xyz")
            >>> del memory_provider["abc.txt"]

        Args:
            key (str): the path to the object relative to the root of the provider.

        Raises:
            KeyError: If an object is not found at the path.
            ReadOnlyModeError: If the provider is in read-only mode.
        """
        self.check_readonly()
        del self.dict[key]

    def __len__(self):
        return len(self.dict)

    def clear(self, prefix=""):
        """Clears the provider."""
        self.check_readonly()
        if prefix:
            self.dict = {k: v for k, v in self.dict.items() if not k.startswith(prefix)}
        else:
            self.dict = {}

    def _all_keys(self) -> Set[str]:
        """Lists all the objects present at the root of the Provider.

        Returns:
            set: set of all the objects found at the root of the Provider.
        """
        return set(self.dict.keys())
