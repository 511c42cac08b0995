# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
Typed views over the JSON returned by az, kubectl and the probed HTTP endpoint.
Only the fields read by the verification checks are modelled, everything else is ignored.
"""

import json

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from azext_wi_verify.helpers.errors import MalformedResponse


class ResourceModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")


def parse_model(model, data, source=""):
    """
    Validates decoded JSON against a model.
    Raises MalformedResponse if the data doesn't fit.
    """
    try:
        return model.model_validate(data)
    except ValidationError as err:
        name = source or model.__name__
        raise MalformedResponse(f"Unexpected response shape from {name}: {err.error_count()} error(s)") from err


# Azure resource manager

class OidcIssuerProfile(ResourceModel):
    enabled: bool | None = None
    issuer_url: str | None = None


class WorkloadIdentityProfile(ResourceModel):
    enabled: bool | None = None


class SecurityProfile(ResourceModel):
    workload_identity: WorkloadIdentityProfile | None = None


class ManagedCluster(ResourceModel):
    """az aks show"""

    id: str | None = None
    name: str | None = None
    oidc_issuer_profile: OidcIssuerProfile | None = None
    security_profile: SecurityProfile | None = None

    @property
    def oidc_issuer_enabled(self):
        return self.oidc_issuer_profile.enabled if self.oidc_issuer_profile else None

    @property
    def oidc_issuer_url(self):
        return self.oidc_issuer_profile.issuer_url if self.oidc_issuer_profile else None

    @property
    def workload_identity_enabled(self):
        profile = self.security_profile
        if profile is None or profile.workload_identity is None:
            return None
        return profile.workload_identity.enabled


class KeyVaultProperties(ResourceModel):
    enable_rbac_authorization: bool | None = None
    vault_uri: str | None = None


class KeyVault(ResourceModel):
    """az keyvault show"""

    id: str | None = None
    name: str | None = None
    properties: KeyVaultProperties | None = None

    @property
    def rbac_authorization(self):
        return self.properties.enable_rbac_authorization if self.properties else None


class KeyVaultSecret(ResourceModel):
    """az keyvault secret show"""

    id: str | None = None
    name: str | None = None
    value: str | None = None


class ManagedIdentity(ResourceModel):
    """az identity show"""

    id: str | None = None
    name: str | None = None
    client_id: str | None = None
    principal_id: str | None = None
    tenant_id: str | None = None


class RoleAssignment(ResourceModel):
    principal_id: str | None = None
    role_definition_name: str | None = None
    scope: str | None = None


class RoleAssignmentList(ResourceModel):
    """az role assignment list"""

    assignments: list[RoleAssignment] = []

    def role_named(self, role_name):
        """Returns role_name if an assignment grants it, else None"""
        for assignment in self.assignments:
            if assignment.role_definition_name == role_name:
                return assignment.role_definition_name
        return None


class FederatedCredential(ResourceModel):
    """az identity federated-credential show"""

    name: str | None = None
    issuer: str | None = None
    subject: str | None = None
    audiences: list[str] = []

    @property
    def audience(self):
        return self.audiences[0] if self.audiences else None


# Kubernetes API

class ObjectMeta(ResourceModel):
    name: str | None = None
    namespace: str | None = None
    labels: dict[str, str] = {}
    annotations: dict[str, str] = {}


class KubeObject(ResourceModel):
    kind: str | None = None
    metadata: ObjectMeta = ObjectMeta()


class ServiceAccount(KubeObject):
    def annotation(self, key):
        return self.metadata.annotations.get(key)


class EnvVar(ResourceModel):
    name: str


class Container(ResourceModel):
    name: str | None = None
    image: str | None = None
    env: list[EnvVar] = []


class PodSpec(ResourceModel):
    service_account_name: str | None = None
    containers: list[Container] = []


class PodTemplate(ResourceModel):
    metadata: ObjectMeta = ObjectMeta()
    spec: PodSpec = PodSpec()


class DeploymentSpec(ResourceModel):
    template: PodTemplate = PodTemplate()


class Deployment(KubeObject):
    spec: DeploymentSpec = DeploymentSpec()

    @property
    def service_account_name(self):
        return self.spec.template.spec.service_account_name

    def template_label(self, key):
        return self.spec.template.metadata.labels.get(key)

    def env_names(self):
        """Environment variable names of the first container"""
        containers = self.spec.template.spec.containers
        if not containers:
            return ()
        return tuple(var.name for var in containers[0].env)


class PodStatus(ResourceModel):
    phase: str | None = None


class Pod(KubeObject):
    status: PodStatus = PodStatus()


class PodList(ResourceModel):
    items: list[Pod] = []

    @property
    def first_phase(self):
        return self.items[0].status.phase if self.items else None


class LoadBalancerIngress(ResourceModel):
    ip: str | None = None
    hostname: str | None = None


class LoadBalancerStatus(ResourceModel):
    ingress: list[LoadBalancerIngress] = []


class ServiceStatus(ResourceModel):
    load_balancer: LoadBalancerStatus = LoadBalancerStatus()


class Service(KubeObject):
    status: ServiceStatus = ServiceStatus()

    @property
    def external_ip(self):
        ingress = self.status.load_balancer.ingress
        return ingress[0].ip if ingress else None


class ConfigMapList(ResourceModel):
    items: list[KubeObject] = []


# HTTP probe

class ProbeResponse(ResourceModel):
    url: str
    status_code: int
    body: str = ""

    def json_field(self, name):
        """
        Returns a top-level field of the JSON body.
        Raises MalformedResponse if the body isn't a JSON object or lacks the field.
        """
        try:
            document = json.loads(self.body)
        except json.JSONDecodeError as err:
            raise MalformedResponse(f"Response from {self.url} is not JSON") from err
        if not isinstance(document, dict) or name not in document:
            raise MalformedResponse(f"Response from {self.url} does not contain '{name}'")
        return document[name]
