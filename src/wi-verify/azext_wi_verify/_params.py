# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

from azure.cli.core.commands.parameters import get_enum_type

from azext_wi_verify.helpers.constants import REPORT_FORMATS, SECTIONS


def load_arguments(self, _):
    with self.argument_context("workload-identity") as c:
        c.argument("resource_group", options_list=["--resource-group", "-g"],
                   help="Resource group holding the cluster, Key Vault and managed identity.")
        c.argument("cluster_name", options_list=["--cluster-name", "-c"], help="AKS cluster name.")
        c.argument("key_vault_name", options_list=["--key-vault-name"], help="Key Vault name.")
        c.argument("identity_name", options_list=["--identity-name"], help="User-assigned managed identity name.")
        c.argument("namespace", options_list=["--namespace", "-n"], help="Kubernetes namespace of the workload.")
        c.argument("service_account_name", options_list=["--service-account-name"],
                   help="Kubernetes service account linked to the managed identity.")
        c.argument("federated_credential_name", options_list=["--federated-credential-name"],
                   help="Federated identity credential name on the managed identity.")
        c.argument("secret_name", options_list=["--secret-name"], help="Key Vault secret the workload reads.")
        c.argument("deployment_name", options_list=["--deployment-name"], help="Kubernetes deployment name.")
        c.argument("service_name", options_list=["--service-name"], help="Kubernetes LoadBalancer service name.")
        c.argument("app_label", options_list=["--app-label"], help="Value of the app label selecting the pods.")
        c.argument("kube_context", options_list=["--kube-context"], help="kubeconfig context to query.")

    with self.argument_context("workload-identity verify") as c:
        c.argument("timeout", type=float, help="Seconds to wait for each query.")
        c.argument("checks", nargs="+", help="Only run these checks (and the checks they depend on).")
        c.argument("sections", nargs="+", help=f"Only run these sections: {', '.join(SECTIONS)}.")
        c.argument("report", arg_type=get_enum_type(REPORT_FORMATS), default="text",
                   help="Report format. json prints the result records for automation.")
