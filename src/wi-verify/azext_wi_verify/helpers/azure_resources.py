# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module contains read-only Azure resource queries for the az wi-verify extension.
"""

from azext_wi_verify.models import (
    FederatedCredential,
    KeyVault,
    KeyVaultSecret,
    ManagedCluster,
    ManagedIdentity,
    RoleAssignmentList,
    parse_model,
)

from .run_command import run_json_command


def show_aks_cluster(resource_group, cluster_name, timeout=None):
    """
    Shows an AKS managed cluster
    """
    command = ["az", "aks", "show", "--resource-group", resource_group, "--name", cluster_name,
               "--output", "json"]
    return parse_model(ManagedCluster, run_json_command(command, timeout), "az aks show")


def show_key_vault(resource_group, keyvault_name, timeout=None):
    """
    Shows an Azure Key Vault
    """
    command = ["az", "keyvault", "show", "--name", keyvault_name, "--resource-group", resource_group,
               "--output", "json"]
    return parse_model(KeyVault, run_json_command(command, timeout), "az keyvault show")


def show_key_vault_secret(keyvault_name, secret_name, timeout=None):
    """
    Shows an Azure Key Vault secret, including its value
    """
    command = ["az", "keyvault", "secret", "show", "--vault-name", keyvault_name, "--name", secret_name,
               "--output", "json"]
    return parse_model(KeyVaultSecret, run_json_command(command, timeout), "az keyvault secret show")


def show_managed_identity(resource_group, identity_name, timeout=None):
    """
    Shows a user-assigned managed identity
    """
    command = ["az", "identity", "show", "--resource-group", resource_group, "--name", identity_name,
               "--output", "json"]
    return parse_model(ManagedIdentity, run_json_command(command, timeout), "az identity show")


def list_role_assignments(principal_id, scope, timeout=None):
    """
    Lists role assignments of a principal at a scope
    """
    command = ["az", "role", "assignment", "list", "--assignee", principal_id, "--scope", scope,
               "--output", "json"]
    assignments = run_json_command(command, timeout)
    return parse_model(RoleAssignmentList, {"assignments": assignments}, "az role assignment list")


def show_federated_credential(resource_group, identity_name, credential_name, timeout=None):
    """
    Shows a federated identity credential of a managed identity
    """
    command = ["az", "identity", "federated-credential", "show", "--name", credential_name,
               "--identity-name", identity_name, "--resource-group", resource_group, "--output", "json"]
    return parse_model(FederatedCredential, run_json_command(command, timeout),
                       "az identity federated-credential show")
