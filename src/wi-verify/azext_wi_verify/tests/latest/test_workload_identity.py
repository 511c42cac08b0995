# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

import copy
import json
import unittest

from azext_wi_verify.actions.verify_workload_identity import build_workload_identity_rules
from azext_wi_verify.helpers.constants import SECTIONS
from azext_wi_verify.helpers.errors import RuleDefinitionError
from azext_wi_verify.verification import Status, VerificationEngine, select_rules

from .fakes import CLIENT_ID, EXTERNAL_IP, HEALTHY, ISSUER, KEY_VAULT_ID, PRINCIPAL_ID, FakeEnvironment, make_settings


def verify(environment, settings=None, checks=None, sections=None):
    settings = settings or make_settings()
    rules = build_workload_identity_rules(settings, azure=environment, kube=environment, http=environment)
    rules = select_rules(rules, checks, sections)
    return VerificationEngine(rules, context={"settings": settings}, timeout=settings.timeout).run()


def result_of(summary, name):
    return next(result for result in summary.results if result.rule == name)


class WorkloadIdentityChecklistTest(unittest.TestCase):

    def test_rule_list_is_well_formed(self):
        settings = make_settings()
        rules = build_workload_identity_rules(settings, FakeEnvironment(), FakeEnvironment(), FakeEnvironment())
        VerificationEngine(rules, context={"settings": settings})
        self.assertEqual([section for section in SECTIONS],
                         list(dict.fromkeys(rule.section for rule in rules)))

    def test_hints_need_settings(self):
        environment = FakeEnvironment()
        rules = build_workload_identity_rules(make_settings(), environment, environment, environment)
        with self.assertRaises(RuleDefinitionError):
            VerificationEngine(rules)
        self.assertEqual(environment.calls, [])

    def test_healthy_setup_passes_every_check(self):
        environment = FakeEnvironment()
        summary = verify(environment)
        failing = [(r.rule, r.detail, r.error) for r in summary.results if r.status is not Status.PASS
                   and r.status is not Status.INFO]
        self.assertEqual(failing, [])
        self.assertTrue(summary.success)
        gating = [r for r in build_workload_identity_rules(make_settings(), environment, environment, environment)
                  if r.gating]
        self.assertEqual(summary.passed, len(gating))

    def test_info_values(self):
        summary = verify(FakeEnvironment())
        self.assertEqual(result_of(summary, "oidc-issuer").observed, ISSUER)
        self.assertEqual(result_of(summary, "identity-client-id-info").observed, CLIENT_ID)
        self.assertEqual(result_of(summary, "key-vault-secret-value").observed, "abc123")
        self.assertEqual(result_of(summary, "external-ip").observed, EXTERNAL_IP)
        self.assertEqual(result_of(summary, "config-maps").observed, 1)

    def test_shared_queries_run_once(self):
        environment = FakeEnvironment()
        verify(environment)
        self.assertEqual(environment.count("show_aks_cluster"), 1)
        self.assertEqual(environment.count("show_key_vault"), 1)
        self.assertEqual(environment.count("show_federated_credential"), 1)
        self.assertEqual(environment.count("get_deployment"), 1)
        self.assertEqual(environment.count("probe_endpoint"), 1)

    def test_captured_values_feed_later_queries(self):
        environment = FakeEnvironment()
        verify(environment, make_settings(kube_context="aks-ctx"))
        self.assertIn(("list_role_assignments", (PRINCIPAL_ID, KEY_VAULT_ID)), environment.calls)
        self.assertIn(("probe_endpoint", (EXTERNAL_IP,)), environment.calls)
        self.assertIn(("get_namespace", ("nsp-appointment", "aks-ctx")), environment.calls)

    def test_issuer_match(self):
        summary = verify(FakeEnvironment())
        self.assertEqual(result_of(summary, "federated-credential-issuer").status, Status.PASS)

    def test_issuer_mismatch_hint_shows_both_values(self):
        credential = copy.deepcopy(HEALTHY["federated_credential"])
        credential["issuer"] = "https://issuer.example/xyz/"
        summary = verify(FakeEnvironment(federated_credential=credential))
        result = result_of(summary, "federated-credential-issuer")
        self.assertEqual(result.status, Status.FAIL)
        self.assertIn("https://issuer.example/abc/", result.detail)
        self.assertIn("https://issuer.example/xyz/", result.detail)
        self.assertFalse(summary.success)

    def test_missing_annotation_fails_and_skips_client_id_match(self):
        account = copy.deepcopy(HEALTHY["service_account"])
        account["metadata"]["annotations"] = {}
        summary = verify(FakeEnvironment(service_account=account))
        annotation = result_of(summary, "service-account-annotation")
        self.assertEqual(annotation.status, Status.FAIL)
        self.assertIn(f"azure.workload.identity/client-id={CLIENT_ID}", annotation.detail)
        self.assertEqual(result_of(summary, "service-account-client-id").status, Status.SKIP)

    def test_annotation_for_another_identity(self):
        account = copy.deepcopy(HEALTHY["service_account"])
        account["metadata"]["annotations"]["azure.workload.identity/client-id"] = "other-client"
        summary = verify(FakeEnvironment(service_account=account))
        result = result_of(summary, "service-account-client-id")
        self.assertEqual(result.status, Status.FAIL)
        self.assertEqual(result.detail, f"SA: other-client, MI: {CLIENT_ID}")

    def test_api_secret_matches_key_vault(self):
        summary = verify(FakeEnvironment(probe=json.dumps({"secretValue": "abc123"})))
        self.assertEqual(result_of(summary, "api-secret-matches-key-vault").status, Status.PASS)

        summary = verify(FakeEnvironment(probe=json.dumps({"secretValue": "zzz"})))
        result = result_of(summary, "api-secret-matches-key-vault")
        self.assertEqual(result.status, Status.FAIL)
        self.assertEqual(result.detail, "API: zzz, KV: abc123")

    def test_probe_body_without_secret_field(self):
        summary = verify(FakeEnvironment(probe='{"status": "ok"}'))
        result = result_of(summary, "api-secret-value")
        self.assertEqual(result.status, Status.FAIL)
        self.assertIn("secretValue", result.error)
        self.assertIn('{"status": "ok"}', result.detail)
        self.assertEqual(result_of(summary, "api-secret-matches-key-vault").status, Status.SKIP)

    def test_no_external_ip_skips_functional_checks(self):
        service = copy.deepcopy(HEALTHY["service"])
        service["status"] = {"loadBalancer": {}}
        environment = FakeEnvironment(service=service)
        summary = verify(environment)
        self.assertEqual(result_of(summary, "service-external-ip").status, Status.FAIL)
        for name in ("api-reachable", "api-secret-value", "api-secret", "api-secret-matches-key-vault"):
            self.assertEqual(result_of(summary, name).status, Status.SKIP)
        self.assertEqual(environment.count("probe_endpoint"), 0)

    def test_unreachable_cloud_degrades_to_failures(self):
        summary = verify(FakeEnvironment(cluster=None, vault=None, identity=None, federated_credential=None))
        self.assertEqual(len(summary.results), len(build_workload_identity_rules(
            make_settings(), FakeEnvironment(), FakeEnvironment(), FakeEnvironment())))
        for name in ("oidc-issuer-enabled", "oidc-issuer-url", "key-vault-exists", "identity-exists",
                     "key-vault-role-assignment", "federated-credential-issuer"):
            self.assertEqual(result_of(summary, name).status, Status.FAIL, name)
        self.assertEqual(result_of(summary, "oidc-issuer").status, Status.SKIP)
        hint = result_of(summary, "key-vault-role-assignment").detail
        self.assertIn("--role 'Key Vault Secrets User'", hint)

    def test_disabled_features(self):
        cluster = copy.deepcopy(HEALTHY["cluster"])
        cluster["oidcIssuerProfile"]["enabled"] = False
        del cluster["securityProfile"]
        vault = copy.deepcopy(HEALTHY["vault"])
        vault["properties"]["enableRbacAuthorization"] = False
        summary = verify(FakeEnvironment(cluster=cluster, vault=vault))
        self.assertEqual(result_of(summary, "oidc-issuer-enabled").status, Status.FAIL)
        self.assertEqual(result_of(summary, "workload-identity-enabled").status, Status.FAIL)
        self.assertIn("--enable-workload-identity", result_of(summary, "workload-identity-enabled").detail)
        self.assertEqual(result_of(summary, "key-vault-rbac").status, Status.FAIL)

    def test_missing_role_assignment(self):
        summary = verify(FakeEnvironment(role_assignments=[HEALTHY["role_assignments"][0]]))
        result = result_of(summary, "key-vault-role-assignment")
        self.assertEqual(result.status, Status.FAIL)
        self.assertIn(f"--assignee-object-id {PRINCIPAL_ID}", result.detail)
        self.assertIn(f"--scope {KEY_VAULT_ID}", result.detail)

    def test_wrong_subject_and_audience(self):
        credential = copy.deepcopy(HEALTHY["federated_credential"])
        credential["subject"] = "system:serviceaccount:default:default"
        credential["audiences"] = []
        summary = verify(FakeEnvironment(federated_credential=credential))
        subject = result_of(summary, "federated-credential-subject")
        self.assertEqual(subject.status, Status.FAIL)
        self.assertEqual(subject.detail, "Expected: system:serviceaccount:nsp-appointment:svc-appointment, "
                                         "Got: system:serviceaccount:default:default")
        self.assertEqual(result_of(summary, "federated-credential-audience").status, Status.FAIL)

    def test_deployment_problems(self):
        deployment = copy.deepcopy(HEALTHY["deployment"])
        template = deployment["spec"]["template"]
        template["spec"]["serviceAccountName"] = "default"
        template["metadata"]["labels"] = {"app": "keyvault-api"}
        template["spec"]["containers"][0]["env"].append({"name": "API_SECRET"})
        pods = {"items": [{"metadata": {"name": "keyvault-api-7d9f"}, "status": {"phase": "Pending"}}]}
        summary = verify(FakeEnvironment(deployment=deployment, pods=pods))
        for name in ("deployment-service-account", "deployment-workload-identity-label", "pod-running",
                     "deployment-env-secrets"):
            self.assertEqual(result_of(summary, name).status, Status.FAIL, name)
        self.assertTrue(result_of(summary, "pod-running").detail.startswith("Status: Pending."))
        self.assertIn("API_SECRET", result_of(summary, "deployment-env-secrets").detail)

    def test_missing_deployment_skips_env_check(self):
        summary = verify(FakeEnvironment(deployment=None))
        self.assertEqual(result_of(summary, "deployment-exists").status, Status.FAIL)
        self.assertEqual(result_of(summary, "deployment-env-secrets").status, Status.SKIP)

    def test_idempotent(self):
        environment = FakeEnvironment(probe=json.dumps({"secretValue": "zzz"}))
        first = verify(environment)
        second = verify(environment)
        self.assertEqual(first.statuses(), second.statuses())
        self.assertEqual((first.passed, first.failed), (second.passed, second.failed))

    def test_partial_verification(self):
        environment = FakeEnvironment()
        summary = verify(environment, checks=["federated-credential-issuer"])
        self.assertEqual([r.rule for r in summary.results], ["oidc-issuer-url", "federated-credential-issuer"])
        self.assertTrue(summary.success)
        self.assertEqual(environment.count("show_managed_identity"), 0)

    def test_partial_section_pulls_in_issuer(self):
        environment = FakeEnvironment(federated_credential=None)
        summary = verify(environment, sections=["federation"])
        self.assertEqual(result_of(summary, "oidc-issuer-url").status, Status.PASS)
        result = result_of(summary, "federated-credential-exists")
        self.assertEqual(result.status, Status.FAIL)
        self.assertIn("--issuer https://issuer.example/abc/", result.detail)

    def test_hint_reading_unselected_check(self):
        summary = verify(FakeEnvironment(federated_credential=None), checks=["federated-credential-exists"])
        self.assertEqual(len(summary.results), 1)
        self.assertIn("--identity-name mi-appointment", summary.results[0].detail)


if __name__ == "__main__":
    unittest.main()
