# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Declarative verification rules.

A Rule observes one fact, either by running a Query against an external system or
by reading the value captured by an earlier rule through a Ref, and evaluates it
with a Check. Rules are immutable and their order is meaningful: a Ref may only
point to a rule defined before it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from azext_wi_verify.helpers.generic import contains_any, display_value, is_empty


class Status(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    INFO = "info"
    SKIP = "skip"


@dataclass(frozen=True)
class Ref:
    """Back-reference to the value captured by an earlier rule"""

    rule: str


@dataclass(frozen=True)
class Query:
    """
    Deferred call to an external system.
    fetch is called with args (Refs resolved) and a timeout keyword, field is applied to its result.
    """

    target: str
    resource: str
    fetch: Callable[..., Any]
    args: tuple = ()
    field: Callable[[Any], Any] | None = None

    def references(self):
        return [arg.rule for arg in self.args if isinstance(arg, Ref)]


class Check:
    """Base predicate. Gating checks decide whether a run succeeds."""

    gating = True

    @property
    def expected(self):
        return None

    def references(self):
        return [self.expected.rule] if isinstance(self.expected, Ref) else []

    def evaluate(self, observed, expected):
        raise NotImplementedError


@dataclass(frozen=True)
class Equals(Check):
    """Exact equality against a literal or a captured value"""

    value: Any

    @property
    def expected(self):
        return self.value

    def evaluate(self, observed, expected):
        if observed is None or expected is None:
            return False
        return observed == expected


@dataclass(frozen=True)
class NotEmpty(Check):
    """Passes when something was observed"""

    def evaluate(self, observed, expected):
        return not is_empty(observed)


@dataclass(frozen=True)
class ExcludesAny(Check):
    """Passes when none of the observed strings contains any of the tokens"""

    tokens: tuple[str, ...]

    def evaluate(self, observed, expected):
        if observed is None:
            return True
        values = [observed] if isinstance(observed, str) else [display_value(item) for item in observed]
        return not contains_any(values, self.tokens)


@dataclass(frozen=True)
class Info(Check):
    """Reports the observed value without affecting the run's outcome"""

    gating = False

    def evaluate(self, observed, expected):
        return True


@dataclass(frozen=True)
class Rule:
    name: str
    message: str
    observe: Query | Ref
    check: Check = field(default_factory=NotEmpty)
    failure: str = ""
    hint: str = ""
    section: str = ""
    requires: tuple[str, ...] = ()

    @property
    def gating(self):
        return self.check.gating

    @property
    def failure_message(self):
        return self.failure or self.message

    def references(self):
        """Names of the earlier rules this rule reads from"""
        names = list(self.requires)
        if isinstance(self.observe, Ref):
            names.append(self.observe.rule)
        else:
            names.extend(self.observe.references())
        names.extend(self.check.references())
        return names


@dataclass(frozen=True)
class Result:
    rule: str
    status: Status
    observed: Any = None
    message: str = ""
    detail: str = ""
    section: str = ""
    error: str = ""

    def to_dict(self):
        return {
            "rule": self.rule,
            "section": self.section,
            "status": self.status.value,
            "observed": display_value(self.observed),
            "message": self.message,
            "detail": self.detail,
            "error": self.error,
        }


@dataclass(frozen=True)
class RunSummary:
    results: tuple[Result, ...]

    @property
    def passed(self):
        return sum(1 for result in self.results if result.status is Status.PASS)

    @property
    def failed(self):
        return sum(1 for result in self.results if result.status is Status.FAIL)

    @property
    def success(self):
        return self.failed == 0

    @property
    def exit_code(self):
        return 0 if self.success else 1

    def statuses(self):
        return {result.rule: result.status for result in self.results}

    def to_dict(self):
        return {
            "passed": self.passed,
            "failed": self.failed,
            "success": self.success,
            "results": [result.to_dict() for result in self.results],
        }
