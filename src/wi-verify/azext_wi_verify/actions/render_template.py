# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module renders remediation hints and report text with Jinja.
"""

from jinja2 import Environment, StrictUndefined, meta
from jinja2.exceptions import TemplateSyntaxError, UndefinedError

from azext_wi_verify.helpers.errors import RuleDefinitionError
from azext_wi_verify.helpers.generic import display_value
from azext_wi_verify.helpers.logger import logger

_environment = Environment(auto_reload=False, undefined=StrictUndefined, autoescape=False)
_environment.filters["display"] = display_value


def compile_template(source, name="template"):
    """
    Compiles a template string.
    Raises RuleDefinitionError if the template isn't valid Jinja.
    """
    try:
        return _environment.from_string(source)
    except TemplateSyntaxError as err:
        raise RuleDefinitionError(f"Invalid template for {name}: {err.message}") from err


def template_variables(source, name="template"):
    """
    Returns the names a template string reads from its render arguments.
    Raises RuleDefinitionError if the template isn't valid Jinja.
    """
    try:
        return meta.find_undeclared_variables(_environment.parse(source))
    except TemplateSyntaxError as err:
        raise RuleDefinitionError(f"Invalid template for {name}: {err.message}") from err


def render_builtin_jinja_template(template, args, name="template"):
    """
    Renders a compiled template (or a template string) with args
    """
    if isinstance(template, str):
        template = compile_template(template, name)
    try:
        return template.render(args)
    except UndefinedError as err:
        logger.debug("Template %s rendered with: %s", name, sorted(args))
        raise RuleDefinitionError(f"Could not render {name}: {err.message}") from err
