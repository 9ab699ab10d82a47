# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# This file was originally part of Hub (now Deep Lake) project: https://github.com/activeloopai/deeplake/tree/release/2.8.5
# Commit: https://github.com/activeloopai/deeplake/tree/94c5e100292c164b80132baf741ef233dd41f3d7
# Source: https://github.com/activeloopai/deeplake/blob/94c5e100292c164b80132baf741ef233dd41f3d7/hub/core/storage/local.py
#
# Modifications Copyright (c) 2026 Bingyu Liu

import os
import pathlib
import posixpath
import shutil
import tempfile
from typing import Set

from kvlock.core.storage.provider import StorageProvider
from kvlock.util.exceptions import DirectoryAtPathException, FileAtPathException

# Suffix of the scratch files a write goes through before being renamed into place.
_TMP_SUFFIX = ".kvlock-tmp"


class LocalProvider(StorageProvider):
    """Provider class for using the local filesystem.

    Every key is a file below ``root``. Several processes pointing at the same
    directory share the keys, so this is the provider to use for locks that
    coordinate processes on one machine.
    """

    def __init__(self, root: str):
        """Initializes the Local Provider.

        Example:

            >>> local_provider = LocalProvider("/tmp/kvlock/")

        Args:
            root (str): The root of the provider. All read/write request keys will be appended to root.

        Raises:
            FileAtPathException: If the root is a file instead of a directory.
        """
        if os.path.isfile(root):
            raise FileAtPathException(root)
        self.root = root

    def __getitem__(self, key: str):
        try:
            full_path = self._check_is_file(key)
            with open(full_path, "rb") as file:
                return file.read()
        except DirectoryAtPathException:
            raise
        except FileNotFoundError as e:
            raise KeyError(key) from e

    def __setitem__(self, key: str, value: bytes):
        """Writes the value next to its destination and renames it into place,
        so a concurrent reader sees either the old or the new content, never a
        partial one.
        """
        self.check_readonly()
        full_path = self._check_is_file(key)
        directory = os.path.dirname(full_path)
        if os.path.isfile(directory):
            raise FileAtPathException(directory)
        if not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=_TMP_SUFFIX)
        try:
            with os.fdopen(fd, "wb") as file:
                file.write(value)
            os.replace(tmp_path, full_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def __delitem__(self, key: str):
        """Delete the object present at the path.

        Args:
            key (str): the path to the object relative to the root of the provider.

        Raises:
            KeyError: If an object is not found at the path.
            DirectoryAtPathException: If a directory is found at the path.
            ReadOnlyModeError: If the provider is in read-only mode.
        """
        self.check_readonly()
        try:
            full_path = self._check_is_file(key)
            os.remove(full_path)
        except DirectoryAtPathException:
            raise
        except FileNotFoundError as e:
            raise KeyError(key) from e

    def __iter__(self):
        yield from self._all_keys()

    def __len__(self):
        return len(self._all_keys())

    def clear(self, prefix=""):
        """Deletes ALL data with keys having given prefix on the local machine (under self.root). Exercise caution!"""
        self.check_readonly()
        if prefix:
            for key in self.keys_with_prefix(prefix):
                try:
                    del self[key]
                except KeyError:
                    pass
            return
        full_path = os.path.expanduser(self.root)
        if os.path.exists(full_path):
            shutil.rmtree(full_path)

    def _all_keys(self) -> Set[str]:
        """Lists all the objects present at the root of the Provider.

        The directory is walked on every call: other processes add and remove
        keys behind our back.

        Returns:
            set: set of all the objects found at the root of the Provider.
        """
        key_set = set()
        full_path = os.path.expanduser(self.root)
        for root, _, files in os.walk(full_path):
            for file_name in files:
                if file_name.endswith(_TMP_SUFFIX):
                    continue
                key_set.add(
                    posixpath.relpath(
                        posixpath.join(pathlib.Path(root).as_posix(), file_name),
                        pathlib.Path(full_path).as_posix(),
                    )
                )
        return key_set

    def _check_is_file(self, key: str):
        """Checks if the path is a file. Returns the full_path to file if True.

        Args:
            key (str): the path to the object relative to the root of the provider.

        Returns:
            str: the full path to the requested file.

        Raises:
            DirectoryAtPathException: If a directory is found at the path.
        """
        fpath = posixpath.join(self.root, key)
        fpath = os.path.expanduser(fpath)
        fpath = str(pathlib.Path(fpath))
        if os.path.isdir(fpath):
            raise DirectoryAtPathException
        return fpath
