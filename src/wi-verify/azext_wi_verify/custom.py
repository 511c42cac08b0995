# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module contains the command functions of the az wi-verify extension.
"""

from azure.cli.core.azclierror import InvalidArgumentValueError, UnclassifiedUserFault

from azext_wi_verify.actions.verify_workload_identity import build_workload_identity_rules
from azext_wi_verify.helpers.argument import load_settings
from azext_wi_verify.helpers.errors import RuleDefinitionError
from azext_wi_verify.helpers.logger import logger
from azext_wi_verify.verification import VerificationEngine, select_rules
from azext_wi_verify.verification.report import print_json_report, print_report


def verify_workload_identity(  # pylint: disable=unused-argument,too-many-arguments,too-many-locals
        cmd,
        resource_group=None,
        cluster_name=None,
        key_vault_name=None,
        identity_name=None,
        namespace=None,
        service_account_name=None,
        federated_credential_name=None,
        secret_name=None,
        deployment_name=None,
        service_name=None,
        app_label=None,
        kube_context=None,
        timeout=None,
        checks=None,
        sections=None,
        report="text"):
    try:
        settings = load_settings(
            resource_group=resource_group,
            cluster_name=cluster_name,
            key_vault_name=key_vault_name,
            identity_name=identity_name,
            namespace=namespace,
            service_account_name=service_account_name,
            federated_credential_name=federated_credential_name,
            secret_name=secret_name,
            deployment_name=deployment_name,
            service_name=service_name,
            app_label=app_label,
            kube_context=kube_context,
            timeout=timeout)
    except ValueError as err:
        raise InvalidArgumentValueError(f"Invalid timeout: {err}") from err
    rules = build_workload_identity_rules(settings)
    try:
        rules = select_rules(rules, checks, sections)
    except RuleDefinitionError as err:
        raise InvalidArgumentValueError(err.message) from err

    logger.info("Running %d workload identity checks", len(rules))
    engine = VerificationEngine(rules, context={"settings": settings}, timeout=settings.timeout)
    summary = engine.run()

    if report == "json":
        print_json_report(summary)
    else:
        print_report(summary, settings)
    if not summary.success:
        raise UnclassifiedUserFault(f"{summary.failed} workload identity check(s) failed")


def list_checks(cmd):  # pylint: disable=unused-argument
    """
    Lists the workload identity checks in the order they run, named from the configured defaults
    """
    settings = load_settings()
    return [
        {
            "name": rule.name,
            "section": rule.section,
            "description": rule.message,
            "gating": rule.gating,
            "dependsOn": list(dict.fromkeys(rule.references())),
        }
        for rule in build_workload_identity_rules(settings)
    ]
