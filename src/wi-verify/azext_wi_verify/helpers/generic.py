# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module contains helper functions for the az wi-verify extension.
"""

from collections.abc import Mapping
from types import MappingProxyType


def is_empty(value):
    """Returns bool if value is absent, an empty string or an empty collection"""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, set, frozenset, Mapping)):
        return len(value) == 0
    return False


def freeze(value):
    """Returns an immutable copy of lists, sets and dicts so captured values can't be mutated"""
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(item) for item in value)
    if isinstance(value, dict):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    return value


def display_value(value):
    """Returns the text shown for an observed value, empty for absent values"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return " ".join(display_value(item) for item in value)
    return str(value)


def contains_any(values, tokens):
    """Returns the tokens found as case-sensitive substrings of any of the values"""
    return [token for token in tokens if any(token in value for value in values)]
