# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Exceptions raised while defining and running verification rules.
"""


class RuleDefinitionError(Exception):
    """
    Malformed rule list: duplicate name, forward reference or bad hint template.
    Raised before any query runs.
    """

    def __init__(self, message="Malformed verification rule list") -> None:
        self.message = message
        super().__init__(message)


ConfigurationError = RuleDefinitionError


class QueryFailure(Exception):
    """An external query could not complete."""

    def __init__(self, message="Query failed", command=None) -> None:
        self.message = message
        self.command = command
        super().__init__(message)


class MalformedResponse(QueryFailure):
    """An external query answered with data that does not fit the expected shape."""
