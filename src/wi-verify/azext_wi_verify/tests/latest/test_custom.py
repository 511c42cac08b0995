# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

import unittest
from unittest.mock import MagicMock, patch

from azure.cli.core.azclierror import InvalidArgumentValueError, UnclassifiedUserFault

from azext_wi_verify.actions.verify_workload_identity import build_workload_identity_rules
from azext_wi_verify.custom import list_checks, verify_workload_identity

from .fakes import FakeEnvironment, make_settings


class VerifyCommandTest(unittest.TestCase):

    def setUp(self):
        self.cmd = MagicMock()
        self.environment = FakeEnvironment()
        self.settings = make_settings()

        load = patch("azext_wi_verify.custom.load_settings", return_value=self.settings)
        self.load_settings = load.start()
        self.addCleanup(load.stop)

        build = patch("azext_wi_verify.custom.build_workload_identity_rules",
                      side_effect=lambda settings: build_workload_identity_rules(
                          settings, self.environment, self.environment, self.environment))
        build.start()
        self.addCleanup(build.stop)

        text = patch("azext_wi_verify.custom.print_report")
        self.print_report = text.start()
        self.addCleanup(text.stop)

        json_report = patch("azext_wi_verify.custom.print_json_report")
        self.print_json_report = json_report.start()
        self.addCleanup(json_report.stop)

    def test_healthy_run_returns_nothing(self):
        self.assertIsNone(verify_workload_identity(self.cmd, namespace="nsp-appointment"))
        self.load_settings.assert_called_once()
        self.assertEqual(self.load_settings.call_args.kwargs["namespace"], "nsp-appointment")
        summary, settings = self.print_report.call_args[0]
        self.assertTrue(summary.success)
        self.assertIs(settings, self.settings)
        self.print_json_report.assert_not_called()

    def test_failed_check_raises_after_report(self):
        self.environment.state["identity"] = None
        with self.assertRaises(UnclassifiedUserFault) as context:
            verify_workload_identity(self.cmd)
        self.print_report.assert_called_once()
        summary = self.print_report.call_args[0][0]
        self.assertIn(f"{summary.failed} workload identity check(s) failed", str(context.exception))

    def test_json_report(self):
        verify_workload_identity(self.cmd, report="json")
        self.print_json_report.assert_called_once()
        self.print_report.assert_not_called()

    def test_failed_json_run_prints_then_raises(self):
        self.environment.state["vault"] = None
        with self.assertRaises(UnclassifiedUserFault):
            verify_workload_identity(self.cmd, report="json")
        summary = self.print_json_report.call_args[0][0]
        self.assertFalse(summary.success)

    def test_selected_checks(self):
        verify_workload_identity(self.cmd, checks=["identity-client-id-info"])
        summary = self.print_report.call_args[0][0]
        self.assertEqual([result.rule for result in summary.results],
                         ["identity-client-id", "identity-client-id-info"])
        self.assertEqual(self.environment.count("show_aks_cluster"), 0)

    def test_unknown_check(self):
        with self.assertRaises(InvalidArgumentValueError):
            verify_workload_identity(self.cmd, checks=["does-not-exist"])
        self.print_report.assert_not_called()

    def test_invalid_timeout(self):
        self.load_settings.side_effect = ValueError("could not convert string to float: 'soon'")
        with self.assertRaises(InvalidArgumentValueError):
            verify_workload_identity(self.cmd, timeout="soon")


class ListChecksTest(unittest.TestCase):

    @patch("azext_wi_verify.custom.load_settings")
    def test_list_checks(self, mock_load_settings):
        mock_load_settings.return_value = make_settings()
        checks = list_checks(MagicMock())
        by_name = {check["name"]: check for check in checks}
        self.assertEqual(checks[0]["name"], "oidc-issuer-enabled")
        self.assertEqual(by_name["oidc-issuer"]["gating"], False)
        self.assertEqual(by_name["federated-credential-issuer"]["dependsOn"], ["oidc-issuer-url"])
        self.assertEqual(by_name["deployment-env-secrets"]["section"], "security")


if __name__ == "__main__":
    unittest.main()
