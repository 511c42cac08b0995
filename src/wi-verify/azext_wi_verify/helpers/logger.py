# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

import logging

from knack.log import get_logger

logger = get_logger()


def is_verbose():
    """Returns True if the CLI was invoked with --verbose or --debug"""
    # the log file handler is always at DEBUG, only the console level follows the flags
    return any(handler.level <= logging.INFO for handler in logger.handlers
               if not isinstance(handler, logging.FileHandler))
