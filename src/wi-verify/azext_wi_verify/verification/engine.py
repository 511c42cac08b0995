# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Runs an ordered list of rules against live systems and collects their results.
"""

from types import MappingProxyType

from azext_wi_verify.actions.render_template import compile_template, render_builtin_jinja_template, template_variables
from azext_wi_verify.helpers.errors import QueryFailure, RuleDefinitionError
from azext_wi_verify.helpers.generic import freeze
from azext_wi_verify.helpers.logger import logger

from .rules import Ref, Result, RunSummary, Status


HINT_VARIABLES = frozenset(("observed", "expected", "captured"))


def validate_rules(rules, context_names=()):
    """
    Checks names are unique, every reference points to an earlier rule and
    every hint only reads observed, expected, captured or a context_names entry.
    Returns the compiled remediation hints by rule name.
    Raises RuleDefinitionError on the first problem found.
    """
    seen = set()
    hints = {}
    for rule in rules:
        if rule.name in seen:
            raise RuleDefinitionError(f"Duplicate rule name '{rule.name}'")
        for reference in rule.references():
            if reference not in seen:
                raise RuleDefinitionError(
                    f"Rule '{rule.name}' references '{reference}' which is not defined before it")
        hints[rule.name] = None
        if rule.hint:
            unknown = template_variables(rule.hint, rule.name) - HINT_VARIABLES - set(context_names)
            if unknown:
                raise RuleDefinitionError(
                    f"Hint of rule '{rule.name}' reads undefined {', '.join(sorted(unknown))}")
            hints[rule.name] = compile_template(rule.hint, rule.name)
        seen.add(rule.name)
    return hints


def select_rules(rules, names=None, sections=None):
    """
    Returns the rules named or in the given sections, plus every rule they depend on,
    keeping the original order.
    """
    rules = list(rules)
    if not names and not sections:
        return rules
    by_name = {rule.name: rule for rule in rules}
    unknown = [name for name in names or () if name not in by_name]
    if unknown:
        raise RuleDefinitionError(f"Unknown check(s): {', '.join(unknown)}")
    known_sections = {rule.section for rule in rules}
    unknown = [section for section in sections or () if section not in known_sections]
    if unknown:
        raise RuleDefinitionError(f"Unknown section(s): {', '.join(unknown)}")

    wanted = set(names or ())
    wanted.update(rule.name for rule in rules if rule.section in (sections or ()))
    pending = list(wanted)
    while pending:
        for reference in by_name[pending.pop()].references():
            if reference in by_name and reference not in wanted:
                wanted.add(reference)
                pending.append(reference)
    return [rule for rule in rules if rule.name in wanted]


class VerificationEngine:
    """
    Executes rules one after another. A failing rule never stops the run.
    Args:
    context: extra values available to remediation hints, e.g. settings
    timeout: seconds passed to every query
    """

    def __init__(self, rules, context=None, timeout=None):
        self.rules = tuple(rules)
        self.context = dict(context or {})
        self.timeout = timeout
        self._hints = validate_rules(self.rules, self.context)

    def run(self):
        captured = {}
        results = {}
        cache = {}
        view = MappingProxyType(captured)
        for rule in self.rules:
            result, value = self._run_rule(rule, view, results, cache)
            captured[rule.name] = value
            results[rule.name] = result
            logger.info("Check %s: %s", rule.name, result.status.value)
        summary = RunSummary(tuple(results.values()))
        logger.info("Verification finished: %d passed, %d failed", summary.passed, summary.failed)
        return summary

    def _run_rule(self, rule, captured, results, cache):
        unmet = [name for name in rule.requires if results[name].status is not Status.PASS]
        if unmet:
            detail = f"Skipped because {', '.join(unmet)} did not pass"
            return Result(rule.name, Status.SKIP, message=rule.message, detail=detail, section=rule.section), None

        error = ""
        try:
            observed = self._observe(rule, captured, cache)
        except QueryFailure as err:
            logger.warning("Check %s observed nothing: %s", rule.name, err.message)
            observed, error = None, err.message

        expected = _resolve(rule.check.expected, captured)
        if not rule.gating:
            status, message = Status.INFO, rule.message
        elif rule.check.evaluate(observed, expected):
            status, message = Status.PASS, rule.message
        else:
            status, message = Status.FAIL, rule.failure_message

        detail = ""
        if status is Status.FAIL and self._hints[rule.name] is not None:
            args = dict(self.context, observed=observed, expected=expected, captured=captured)
            detail = render_builtin_jinja_template(self._hints[rule.name], args, rule.name)
        return Result(rule.name, status, observed, message, detail, rule.section, error), observed

    def _observe(self, rule, captured, cache):
        if isinstance(rule.observe, Ref):
            return captured[rule.observe.rule]

        query = rule.observe
        args = tuple(_resolve(arg, captured) for arg in query.args)
        missing = [arg.rule for arg, value in zip(query.args, args) if isinstance(arg, Ref) and value is None]
        if missing:
            raise QueryFailure(f"{query.resource} not queried: {', '.join(missing)} captured no value")

        key = (query.fetch, args)
        try:
            hash(key)
        except TypeError:
            key = None
        if key is not None and key in cache:
            response = cache[key]
        else:
            logger.info("Querying %s %s", query.target, query.resource)
            try:
                response = query.fetch(*args, timeout=self.timeout)
            except QueryFailure as err:
                response = err
            except Exception as err:  # pylint: disable=broad-except
                response = _unexpected(query, err)
            if key is not None:
                cache[key] = response
        if isinstance(response, QueryFailure):
            raise response

        if query.field is None:
            return freeze(response)
        try:
            value = query.field(response)
        except QueryFailure:
            raise
        except Exception as err:  # pylint: disable=broad-except
            raise _unexpected(query, err) from err
        return freeze(value)


def _unexpected(query, err):
    failure = QueryFailure(f"{query.resource} could not be read: {err.__class__.__name__}: {err}")
    failure.__cause__ = err
    return failure


def _resolve(value, captured):
    return captured[value.rule] if isinstance(value, Ref) else value


def run(rules, context=None, timeout=None):
    """Validates and runs rules, returning a RunSummary"""
    return VerificationEngine(rules, context, timeout).run()
