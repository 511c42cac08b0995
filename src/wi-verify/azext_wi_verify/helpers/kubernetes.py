# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module contains read-only kubectl queries for the az wi-verify extension.
"""

from azext_wi_verify.models import ConfigMapList, Deployment, KubeObject, PodList, Service, ServiceAccount, parse_model

from .run_command import run_json_command


def kubectl_get(resource, name=None, namespace=None, selector=None, context=None, timeout=None):
    """
    Runs kubectl get and returns the decoded JSON
    """
    command = ["kubectl", "get", resource]
    if name:
        command += [name]
    if namespace:
        command += ["--namespace", namespace]
    if selector:
        command += ["--selector", selector]
    if context:
        command += ["--context", context]
    command += ["--output", "json"]
    return run_json_command(command, timeout)


def get_namespace(name, context=None, timeout=None):
    return parse_model(KubeObject, kubectl_get("namespace", name, context=context, timeout=timeout),
                       "kubectl get namespace")


def get_service_account(namespace, name, context=None, timeout=None):
    data = kubectl_get("serviceaccount", name, namespace=namespace, context=context, timeout=timeout)
    return parse_model(ServiceAccount, data, "kubectl get serviceaccount")


def get_deployment(namespace, name, context=None, timeout=None):
    data = kubectl_get("deployment", name, namespace=namespace, context=context, timeout=timeout)
    return parse_model(Deployment, data, "kubectl get deployment")


def list_pods(namespace, selector, context=None, timeout=None):
    data = kubectl_get("pods", namespace=namespace, selector=selector, context=context, timeout=timeout)
    return parse_model(PodList, data, "kubectl get pods")


def get_service(namespace, name, context=None, timeout=None):
    data = kubectl_get("service", name, namespace=namespace, context=context, timeout=timeout)
    return parse_model(Service, data, "kubectl get service")


def list_config_maps(namespace, context=None, timeout=None):
    data = kubectl_get("configmap", namespace=namespace, context=context, timeout=timeout)
    return parse_model(ConfigMapList, data, "kubectl get configmap")
