# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------


def load_command_table(self, _):
    with self.command_group("workload-identity", is_preview=True) as g:
        g.custom_command("verify", "verify_workload_identity")
        g.custom_command("list-checks", "list_checks")
