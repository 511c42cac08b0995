# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

from .engine import VerificationEngine, run, select_rules, validate_rules
from .rules import Check, Equals, ExcludesAny, Info, NotEmpty, Query, Ref, Result, Rule, RunSummary, Status

__all__ = [
    "Check",
    "Equals",
    "ExcludesAny",
    "Info",
    "NotEmpty",
    "Query",
    "Ref",
    "Result",
    "Rule",
    "RunSummary",
    "Status",
    "VerificationEngine",
    "run",
    "select_rules",
    "validate_rules",
]
