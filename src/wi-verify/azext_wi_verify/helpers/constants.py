# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

CONFIG_SECTION = "wi_verify"

WORKLOAD_IDENTITY_AUDIENCE = "api://AzureADTokenExchange"
WORKLOAD_IDENTITY_CLIENT_ID_ANNOTATION = "azure.workload.identity/client-id"
WORKLOAD_IDENTITY_USE_LABEL = "azure.workload.identity/use"
KEY_VAULT_SECRETS_USER_ROLE = "Key Vault Secrets User"

PROBE_SECRET_FIELD = "secretValue"
SECRET_ENV_TOKENS = ("SECRET", "KEY", "PASSWORD")

REPORT_FORMATS = ("text", "json")

SECTIONS = {
    "cluster": "Checking AKS Cluster Configuration",
    "keyvault": "Checking Azure Key Vault",
    "identity": "Checking Managed Identity",
    "rbac": "Checking RBAC Permissions",
    "federation": "Checking Federated Identity Credential",
    "kubernetes": "Checking Kubernetes Resources",
    "deployment": "Checking Application Deployment",
    "functional": "Functional Testing",
    "security": "Security Verification",
}

TROUBLESHOOTING_TIPS = """\
Check pod logs: kubectl logs -l {{ settings.app_selector }} -n {{ settings.namespace }}
Describe pod: kubectl describe pod -l {{ settings.app_selector }} -n {{ settings.namespace }}
Check events: kubectl get events -n {{ settings.namespace }} --sort-by='.lastTimestamp'
Review the checklist: WORKLOAD_IDENTITY_CHECKLIST.md
"""
