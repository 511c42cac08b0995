# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

import unittest
from unittest.mock import MagicMock, patch

from azext_wi_verify.helpers.argument import NoAllowedGetDefaultArgument, get_default_arg, load_settings


def config_with(values):
    config = MagicMock()
    config.get.side_effect = lambda section, name, fallback: values.get(name, fallback)
    return config


class DefaultArgumentTest(unittest.TestCase):

    @patch("azext_wi_verify.helpers.argument.get_config_cli")
    def test_static_default(self, mock_config):
        mock_config.return_value = config_with({})
        self.assertEqual(get_default_arg("key_vault_name"), "kv-appointment")
        mock_config.return_value.get.assert_called_once_with("wi_verify", "key_vault_name", "kv-appointment")

    @patch("azext_wi_verify.helpers.argument.get_config_cli")
    def test_config_value(self, mock_config):
        mock_config.return_value = config_with({"namespace": "team-a"})
        self.assertEqual(get_default_arg("namespace"), "team-a")

    def test_unknown_argument(self):
        with self.assertRaises(NoAllowedGetDefaultArgument):
            get_default_arg("subscription")


class LoadSettingsTest(unittest.TestCase):

    @patch("azext_wi_verify.helpers.argument.get_config_cli")
    def test_defaults(self, mock_config):
        mock_config.return_value = config_with({})
        settings = load_settings()
        self.assertEqual(settings.resource_group, "rg-appointment")
        self.assertEqual(settings.role_name, "Key Vault Secrets User")
        self.assertEqual(settings.audience, "api://AzureADTokenExchange")
        self.assertIsNone(settings.kube_context)
        self.assertEqual(settings.timeout, 30.0)
        self.assertEqual(settings.expected_subject, "system:serviceaccount:nsp-appointment:svc-appointment")
        self.assertEqual(settings.app_selector, "app=keyvault-api")

    @patch("azext_wi_verify.helpers.argument.get_config_cli")
    def test_argument_beats_config(self, mock_config):
        mock_config.return_value = config_with({"namespace": "team-a", "service_account_name": "sa-a",
                                                "timeout": "12"})
        settings = load_settings(namespace="team-b", resource_group=None)
        self.assertEqual(settings.namespace, "team-b")
        self.assertEqual(settings.service_account_name, "sa-a")
        self.assertEqual(settings.resource_group, "rg-appointment")
        self.assertEqual(settings.timeout, 12.0)
        self.assertEqual(settings.expected_subject, "system:serviceaccount:team-b:sa-a")

    @patch("azext_wi_verify.helpers.argument.get_config_cli")
    def test_bad_timeout(self, mock_config):
        mock_config.return_value = config_with({"timeout": "soon"})
        with self.assertRaises(ValueError):
            load_settings()


if __name__ == "__main__":
    unittest.main()
