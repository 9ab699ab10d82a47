# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Bingyu Liu

import os
import re

from setuptools import find_packages, setup


project_name = "kvlock"
this_directory = os.path.abspath(os.path.dirname(__file__))


def get_version():
    """Read __version__ from the package without importing it."""
    init_file = os.path.join(this_directory, project_name, "__init__.py")
    with open(init_file, encoding="utf-8") as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
    if match is None:
        raise RuntimeError(f"Unable to find __version__ in {init_file}")
    return match.group(1)


setup(
    name=project_name,
    version=get_version(),
    description="Named locks over shared key/value storage, with leases, verification and renewal.",
    license="MPL-2.0",
    python_requires=">=3.8",
    packages=find_packages(include=[project_name, f"{project_name}.*"]),
    install_requires=[
        "redis>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
)
