# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

from dataclasses import dataclass, fields

from azure.cli.core import get_default_cli

from .constants import (
    CONFIG_SECTION,
    KEY_VAULT_SECRETS_USER_ROLE,
    WORKLOAD_IDENTITY_AUDIENCE,
)


def get_config_cli():
    """
    Gets config CLI Object
    """
    return get_default_cli().config


# Setting default values, highest -> lowest
# Hierarchy: value in parameter -> env variable -> config value -> static value
# The config object reads AZURE_WI_VERIFY_<NAME> env variables before the config file
def get_default_arg_from_config(arg_name, fallback):
    """
    Gets wi_verify default argument value
    """
    config = get_config_cli()
    return config.get(CONFIG_SECTION, arg_name, fallback)


def get_default_arg(arg_name):
    """
    Hierarchy: passed argument value -> env variable -> config value -> static value
    """
    ALLOWED_DEFAULT_ARGUMENTS = {
        "resource_group": "rg-appointment",
        "cluster_name": "aks-appointment",
        "key_vault_name": "kv-appointment",
        "identity_name": "mi-appointment",
        "namespace": "nsp-appointment",
        "service_account_name": "svc-appointment",
        "federated_credential_name": "aks-federated-credential",
        "secret_name": "ApiKey",
        "deployment_name": "keyvault-api",
        "service_name": "keyvault-api-service",
        "app_label": "keyvault-api",
        "role_name": KEY_VAULT_SECRETS_USER_ROLE,
        "audience": WORKLOAD_IDENTITY_AUDIENCE,
        "kube_context": None,
        "timeout": "30",
    }
    if arg_name in ALLOWED_DEFAULT_ARGUMENTS:
        return get_default_arg_from_config(arg_name, ALLOWED_DEFAULT_ARGUMENTS[arg_name])
    raise NoAllowedGetDefaultArgument(f"{arg_name} argument doesn't have an allowed default value")


@dataclass(frozen=True)
class VerifySettings:
    """Names of the resources a verification run looks at"""

    resource_group: str
    cluster_name: str
    key_vault_name: str
    identity_name: str
    namespace: str
    service_account_name: str
    federated_credential_name: str
    secret_name: str
    deployment_name: str
    service_name: str
    app_label: str
    role_name: str
    audience: str
    kube_context: str | None = None
    timeout: float | None = None

    @property
    def expected_subject(self):
        return f"system:serviceaccount:{self.namespace}:{self.service_account_name}"

    @property
    def app_selector(self):
        return f"app={self.app_label}"


def load_settings(**overrides):
    """
    Builds VerifySettings, filling every argument left as None from its default
    """
    values = {}
    for field in fields(VerifySettings):
        value = overrides.get(field.name)
        if value is None:
            value = get_default_arg(field.name)
        values[field.name] = value
    if values["timeout"] is not None:
        values["timeout"] = float(values["timeout"])
    return VerifySettings(**values)


class NoAllowedGetDefaultArgument(Exception):

    def __init__(self, message="No allowed to get default argument value") -> None:
        self.message = message
        super().__init__()
