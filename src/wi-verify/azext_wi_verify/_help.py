# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

from knack.help_files import helps  # pylint: disable=unused-import


helps["workload-identity"] = """
    type: group
    short-summary: Verify Azure Workload Identity configurations.
"""

helps["workload-identity verify"] = """
    type: command
    short-summary: Check an AKS workload identity setup end to end.
    long-summary: |
        Queries the AKS cluster, Key Vault, managed identity, federated credential and Kubernetes
        resources, probes the deployed API and reports every misconfiguration found.
        Names not passed as arguments are read from AZURE_WI_VERIFY_* environment variables or the
        [wi_verify] section of the az config. The command fails if any check fails.
    examples:
      - name: Verify the default setup.
        text: az workload-identity verify
      - name: Verify only the federated credential, as JSON records.
        text: az workload-identity verify -g my-rg --identity-name my-mi --sections federation --report json
"""

helps["workload-identity list-checks"] = """
    type: command
    short-summary: List the checks run by 'az workload-identity verify'.
"""
