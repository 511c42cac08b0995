# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module contains the Azure Workload Identity checklist.

Checks are grouped in sections and run in order:
1. AKS cluster has the OIDC issuer and workload identity enabled
2. Key Vault exists, uses RBAC and holds the test secret
3. Managed identity exists and exposes client and principal IDs
4. Managed identity is granted the secrets role on the Key Vault
5. Federated credential trusts the cluster issuer for the service account
6. Namespace and annotated service account exist
7. Deployment runs with the service account and workload identity label
8. The deployed API returns the Key Vault secret
9. No secrets are passed through environment variables
"""

from azext_wi_verify.helpers import azure_resources, kubernetes, network
from azext_wi_verify.helpers.constants import (
    PROBE_SECRET_FIELD,
    SECRET_ENV_TOKENS,
    WORKLOAD_IDENTITY_CLIENT_ID_ANNOTATION,
    WORKLOAD_IDENTITY_USE_LABEL,
)
from azext_wi_verify.verification import Equals, ExcludesAny, Info, NotEmpty, Query, Ref, Rule

MISMATCH_HINT = "Expected: {{ expected | display }}, Got: {{ observed | display }}"


def build_workload_identity_rules(settings, azure=azure_resources, kube=kubernetes, http=network):
    """
    Returns the ordered checklist for settings.
    azure, kube and http provide the query functions, they default to the helper modules.
    """
    return (
        _cluster_rules(settings, azure)
        + _key_vault_rules(settings, azure)
        + _identity_rules(settings, azure)
        + _rbac_rules(settings, azure)
        + _federated_credential_rules(settings, azure)
        + _kubernetes_rules(settings, kube)
        + _deployment_rules(settings, kube)
        + _functional_rules(settings, http)
        + _security_rules(settings, kube)
    )


def _cluster_rules(settings, azure):
    def cluster(field):
        return Query("azure", f"aks/{settings.cluster_name}", azure.show_aks_cluster,
                     (settings.resource_group, settings.cluster_name), field)

    section = "cluster"
    return [
        Rule("oidc-issuer-enabled", "OIDC Issuer is enabled",
             cluster(lambda aks: aks.oidc_issuer_enabled), Equals(True),
             failure="OIDC Issuer is not enabled",
             hint="Enable with: az aks update --resource-group {{ settings.resource_group }} "
                  "--name {{ settings.cluster_name }} --enable-oidc-issuer",
             section=section),
        Rule("oidc-issuer-url", "OIDC Issuer URL is configured",
             cluster(lambda aks: aks.oidc_issuer_url), NotEmpty(),
             failure="OIDC Issuer URL not found", hint="Check AKS cluster configuration", section=section),
        Rule("oidc-issuer", "Issuer", Ref("oidc-issuer-url"), Info(),
             section=section, requires=("oidc-issuer-url",)),
        Rule("workload-identity-enabled", "Workload Identity is enabled",
             cluster(lambda aks: aks.workload_identity_enabled), Equals(True),
             failure="Workload Identity is not enabled",
             hint="Enable with: az aks update --resource-group {{ settings.resource_group }} "
                  "--name {{ settings.cluster_name }} --enable-workload-identity",
             section=section),
    ]


def _key_vault_rules(settings, azure):
    vault = f"keyvault/{settings.key_vault_name}"
    secret = f"{vault}/secrets/{settings.secret_name}"
    section = "keyvault"
    return [
        Rule("key-vault-exists", "Key Vault exists",
             Query("azure", vault, azure.show_key_vault,
                   (settings.resource_group, settings.key_vault_name), lambda kv: kv.name),
             Equals(settings.key_vault_name),
             failure="Key Vault not found",
             hint="Create Key Vault: az keyvault create --name {{ settings.key_vault_name }} "
                  "--resource-group {{ settings.resource_group }}",
             section=section),
        Rule("key-vault-rbac", "Key Vault uses RBAC authorization",
             Query("azure", vault, azure.show_key_vault,
                   (settings.resource_group, settings.key_vault_name), lambda kv: kv.rbac_authorization),
             Equals(True),
             failure="Key Vault is not using RBAC",
             hint="This may use Access Policies instead (also valid)",
             section=section),
        Rule("key-vault-secret-exists", f"Test secret '{settings.secret_name}' exists",
             Query("azure", secret, azure.show_key_vault_secret,
                   (settings.key_vault_name, settings.secret_name), lambda s: s.name),
             Equals(settings.secret_name),
             failure=f"Test secret '{settings.secret_name}' not found",
             hint="Create secret: az keyvault secret set --vault-name {{ settings.key_vault_name }} "
                  "--name {{ settings.secret_name }} --value 'test'",
             section=section),
        Rule("key-vault-secret-value", "Secret value",
             Query("azure", secret, azure.show_key_vault_secret,
                   (settings.key_vault_name, settings.secret_name), lambda s: s.value),
             Info(), section=section, requires=("key-vault-secret-exists",)),
    ]


def _identity_rules(settings, azure):
    def identity(field):
        return Query("azure", f"identity/{settings.identity_name}", azure.show_managed_identity,
                     (settings.resource_group, settings.identity_name), field)

    section = "identity"
    return [
        Rule("identity-exists", "Managed Identity exists",
             identity(lambda mi: mi.name), Equals(settings.identity_name),
             failure="Managed Identity not found",
             hint="Create: az identity create --name {{ settings.identity_name }} "
                  "--resource-group {{ settings.resource_group }}",
             section=section),
        Rule("identity-client-id", "Managed Identity Client ID retrieved",
             identity(lambda mi: mi.client_id), NotEmpty(),
             failure="Could not retrieve Managed Identity Client ID",
             hint="Check Managed Identity configuration", section=section),
        Rule("identity-client-id-info", "Client ID", Ref("identity-client-id"), Info(),
             section=section, requires=("identity-client-id",)),
        Rule("identity-principal-id", "Managed Identity Principal ID retrieved",
             identity(lambda mi: mi.principal_id), NotEmpty(),
             failure="Could not retrieve Managed Identity Principal ID",
             hint="Check Managed Identity configuration", section=section),
    ]


def _rbac_rules(settings, azure):
    section = "rbac"
    return [
        Rule("key-vault-id", "Key Vault scope",
             Query("azure", f"keyvault/{settings.key_vault_name}", azure.show_key_vault,
                   (settings.resource_group, settings.key_vault_name), lambda kv: kv.id),
             Info(), section=section),
        Rule("key-vault-role-assignment", f"Managed Identity has '{settings.role_name}' role",
             Query("azure", "role assignments", azure.list_role_assignments,
                   (Ref("identity-principal-id"), Ref("key-vault-id")),
                   lambda assignments: assignments.role_named(settings.role_name)),
             Equals(settings.role_name),
             failure=f"Managed Identity does not have {settings.role_name} role",
             hint="Grant access: az role assignment create --role '{{ settings.role_name }}' "
                  "--assignee-object-id {{ captured.get('identity-principal-id') | display }} "
                  "--scope {{ captured.get('key-vault-id') | display }}",
             section=section),
    ]


def _federated_credential_rules(settings, azure):
    def credential(field):
        return Query("azure", f"identity/{settings.identity_name}/federated-credentials/"
                              f"{settings.federated_credential_name}",
                     azure.show_federated_credential,
                     (settings.resource_group, settings.identity_name, settings.federated_credential_name), field)

    section = "federation"
    return [
        Rule("federated-credential-exists", "Federated credential exists",
             credential(lambda fic: fic.name), Equals(settings.federated_credential_name),
             failure="Federated credential not found",
             hint="Create federated credential: az identity federated-credential create "
                  "--name {{ settings.federated_credential_name }} --identity-name {{ settings.identity_name }} "
                  "--resource-group {{ settings.resource_group }} "
                  "--issuer {{ captured.get('oidc-issuer-url') | display }} "
                  "--subject {{ settings.expected_subject }} --audience {{ settings.audience }}",
             section=section),
        Rule("federated-credential-issuer", "Federated credential issuer matches AKS OIDC issuer",
             credential(lambda fic: fic.issuer), Equals(Ref("oidc-issuer-url")),
             failure="Federated credential issuer mismatch", hint=MISMATCH_HINT, section=section),
        Rule("federated-credential-subject", "Federated credential subject is correct",
             credential(lambda fic: fic.subject), Equals(settings.expected_subject),
             failure="Federated credential subject mismatch", hint=MISMATCH_HINT, section=section),
        Rule("federated-credential-audience", "Federated credential audience is correct",
             credential(lambda fic: fic.audience), Equals(settings.audience),
             failure="Federated credential audience incorrect", hint=MISMATCH_HINT, section=section),
    ]


def _kubernetes_rules(settings, kube):
    def service_account(field):
        return Query("kubernetes", f"{settings.namespace}/serviceaccount/{settings.service_account_name}",
                     kube.get_service_account,
                     (settings.namespace, settings.service_account_name, settings.kube_context), field)

    section = "kubernetes"
    return [
        Rule("namespace-exists", f"Namespace '{settings.namespace}' exists",
             Query("kubernetes", f"namespace/{settings.namespace}", kube.get_namespace,
                   (settings.namespace, settings.kube_context), lambda ns: ns.metadata.name),
             NotEmpty(),
             failure=f"Namespace '{settings.namespace}' not found",
             hint="Create: kubectl create namespace {{ settings.namespace }}", section=section),
        Rule("service-account-exists", f"Service Account '{settings.service_account_name}' exists",
             service_account(lambda sa: sa.metadata.name), NotEmpty(),
             failure=f"Service Account '{settings.service_account_name}' not found",
             hint="Create service account with workload identity annotation", section=section),
        Rule("service-account-annotation", "Service Account has workload identity annotation",
             service_account(lambda sa: sa.annotation(WORKLOAD_IDENTITY_CLIENT_ID_ANNOTATION)), NotEmpty(),
             failure="Service Account missing workload identity annotation",
             hint=f"Add annotation: {WORKLOAD_IDENTITY_CLIENT_ID_ANNOTATION}="
                  "{{ captured.get('identity-client-id') | display }}",
             section=section),
        Rule("service-account-client-id", "Service Account annotation matches Managed Identity Client ID",
             Ref("service-account-annotation"), Equals(Ref("identity-client-id")),
             failure="Service Account annotation mismatch",
             hint="SA: {{ observed | display }}, MI: {{ expected | display }}",
             section=section, requires=("service-account-annotation",)),
    ]


def _deployment_rules(settings, kube):
    def deployment(field):
        return Query("kubernetes", f"{settings.namespace}/deployment/{settings.deployment_name}",
                     kube.get_deployment, (settings.namespace, settings.deployment_name, settings.kube_context),
                     field)

    def service(field):
        return Query("kubernetes", f"{settings.namespace}/service/{settings.service_name}",
                     kube.get_service, (settings.namespace, settings.service_name, settings.kube_context), field)

    section = "deployment"
    return [
        Rule("deployment-exists", f"Deployment '{settings.deployment_name}' exists",
             deployment(lambda d: d.metadata.name), NotEmpty(),
             failure=f"Deployment '{settings.deployment_name}' not found", hint="Deploy application",
             section=section),
        Rule("deployment-service-account", "Deployment uses correct service account",
             deployment(lambda d: d.service_account_name), Equals(settings.service_account_name),
             failure="Deployment service account mismatch", hint=MISMATCH_HINT, section=section),
        Rule("deployment-workload-identity-label", "Deployment has workload identity label",
             deployment(lambda d: d.template_label(WORKLOAD_IDENTITY_USE_LABEL)), Equals("true"),
             failure="Deployment missing workload identity label",
             hint=f"Add label: {WORKLOAD_IDENTITY_USE_LABEL}=true", section=section),
        Rule("pod-running", "Pod is running",
             Query("kubernetes", f"{settings.namespace}/pods/{settings.app_selector}", kube.list_pods,
                   (settings.namespace, settings.app_selector, settings.kube_context),
                   lambda pods: pods.first_phase),
             Equals("Running"),
             failure="Pod is not running",
             hint="Status: {{ observed | display }}. Check: kubectl describe pod -l {{ settings.app_selector }} "
                  "-n {{ settings.namespace }}",
             section=section),
        Rule("service-exists", f"Service '{settings.service_name}' exists",
             service(lambda svc: svc.metadata.name), NotEmpty(),
             failure=f"Service '{settings.service_name}' not found", hint="Create service", section=section),
        Rule("service-external-ip", "Service has external IP assigned",
             service(lambda svc: svc.external_ip), NotEmpty(),
             failure="Service does not have external IP", hint="Wait for LoadBalancer provisioning",
             section=section),
        Rule("external-ip", "External IP", Ref("service-external-ip"), Info(),
             section=section, requires=("service-external-ip",)),
    ]


def _functional_rules(settings, http):
    def probe(field):
        return Query("http", "api", http.probe_endpoint, (Ref("service-external-ip"),), field)

    section = "functional"
    return [
        Rule("api-reachable", "API is reachable",
             probe(lambda response: response.body), NotEmpty(),
             failure="API is not reachable",
             hint="Check pod logs: kubectl logs -l {{ settings.app_selector }} -n {{ settings.namespace }}",
             section=section, requires=("service-external-ip",)),
        Rule("api-secret-value", "API returns secret value",
             probe(lambda response: response.json_field(PROBE_SECRET_FIELD)), NotEmpty(),
             failure="API response does not contain secret value",
             hint="Response: {{ captured.get('api-reachable') | display }}",
             section=section, requires=("api-reachable",)),
        Rule("api-secret", "API Secret", Ref("api-secret-value"), Info(),
             section=section, requires=("api-secret-value",)),
        Rule("api-secret-matches-key-vault", "API secret matches Key Vault secret",
             Ref("api-secret-value"), Equals(Ref("key-vault-secret-value")),
             failure="Secret value mismatch",
             hint="API: {{ observed | display }}, KV: {{ expected | display }}",
             section=section, requires=("api-secret-value",)),
    ]


def _security_rules(settings, kube):
    section = "security"
    return [
        Rule("config-maps", "ConfigMaps in namespace",
             Query("kubernetes", f"{settings.namespace}/configmaps", kube.list_config_maps,
                   (settings.namespace, settings.kube_context), lambda maps: len(maps.items)),
             Info(), section=section),
        Rule("deployment-env-secrets", "No obvious secrets in environment variables",
             Query("kubernetes", f"{settings.namespace}/deployment/{settings.deployment_name}",
                   kube.get_deployment, (settings.namespace, settings.deployment_name, settings.kube_context),
                   lambda d: d.env_names()),
             ExcludesAny(SECRET_ENV_TOKENS),
             failure="Potential secrets in environment variables",
             hint="Review: {{ observed | display }}",
             section=section, requires=("deployment-exists",)),
    ]
