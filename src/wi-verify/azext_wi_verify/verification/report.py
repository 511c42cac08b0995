# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Terminal report of a verification run.
"""

from azure.cli.core.style import Style, print_styled_text
from knack.output import format_json
from knack.util import CommandResultItem

from azext_wi_verify.actions.render_template import render_builtin_jinja_template
from azext_wi_verify.helpers.constants import SECTIONS, TROUBLESHOOTING_TIPS
from azext_wi_verify.helpers.generic import display_value

from .rules import Status

RULER = "=" * 40

_MARKERS = {
    Status.PASS: (Style.SUCCESS, "✓ PASS"),
    Status.FAIL: (Style.ERROR, "✗ FAIL"),
    Status.INFO: (Style.HIGHLIGHT, "ℹ INFO"),
    Status.SKIP: (Style.SECONDARY, "- SKIP"),
}


def section_title(section):
    if section in SECTIONS:
        return f"[{list(SECTIONS).index(section) + 1}] {SECTIONS[section]}"
    return f"[{section}]" if section else ""


def _result_segments(result):
    style, marker = _MARKERS[result.status]
    text = result.message
    if result.status is Status.INFO:
        text = f"{result.message}: {display_value(result.observed)}"
    segments = [(style, marker), (Style.PRIMARY, f" - {text}\n")]
    if result.status is Status.FAIL and result.detail:
        segments.append((Style.WARNING, f"  → {result.detail}\n"))
    if result.status is Status.SKIP:
        segments.append((Style.SECONDARY, f"  {result.detail}\n"))
    if result.error and result.status in (Status.FAIL, Status.INFO):
        segments.append((Style.SECONDARY, f"  query: {result.error}\n"))
    return segments


def build_report(summary, settings=None):
    """
    Returns the report as (Style, text) segments for print_styled_text
    """
    segments = [
        (Style.IMPORTANT, f"{RULER}\nAzure Workload Identity Verification\n{RULER}\n"),
    ]
    section = None
    for result in summary.results:
        if result.section != section:
            section = result.section
            segments.append((Style.IMPORTANT, f"\n{section_title(section)}\n\n"))
        segments.extend(_result_segments(result))

    segments.extend([
        (Style.IMPORTANT, f"\n{RULER}\nVerification Summary\n{RULER}\n\n"),
        (Style.SUCCESS, f"Passed: {summary.passed}\n"),
        (Style.ERROR, f"Failed: {summary.failed}\n\n"),
    ])
    if summary.success:
        segments.append((Style.SUCCESS, "All checks passed! Azure Workload Identity is properly configured.\n"))
        return segments

    segments.append((Style.WARNING, "Some checks failed. Review the output above for details.\n"))
    if settings is not None:
        tips = render_builtin_jinja_template(TROUBLESHOOTING_TIPS, {"settings": settings}, "troubleshooting tips")
        segments.append((Style.PRIMARY, "\nTroubleshooting tips:\n"))
        for number, tip in enumerate(tips.splitlines(), start=1):
            segments.append((Style.ACTION, f"{number}. {tip}\n"))
    return segments


def print_report(summary, settings=None):
    print_styled_text(build_report(summary, settings))


def print_json_report(summary):
    """
    Prints the result records with the formatter behind -o json.
    Printed, not returned: the command raises afterwards when a check failed.
    """
    print(format_json(CommandResultItem(summary.to_dict())), end="")
