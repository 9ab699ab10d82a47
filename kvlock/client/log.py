# SPDX-License-Identifier: MPL-2.0
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
#
# Copyright (c) 2026 Xueling Lin

import logging
import sys

LOGGER_NAME = "kvlock"

logger = logging.getLogger(LOGGER_NAME)


def configure_logger(level: int = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Library code only logs through ``logger``; applications that want the
    output on stderr without configuring logging themselves call this once.
    """
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(name)s %(levelname)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
