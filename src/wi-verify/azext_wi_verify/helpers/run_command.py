# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

import json
import subprocess

from .errors import MalformedResponse, QueryFailure
from .logger import logger, is_verbose


def run_shell_command(command, exception=None, timeout=None):
    """
    Runs a CLI command via subprocess module.
    Args:
    exception: custom exception to be raised if command fails
    timeout: seconds to wait before the command is killed
    """
    # if --verbose, don't capture stderr
    stderr = None if is_verbose() else subprocess.PIPE
    try:
        output = subprocess.check_output(command, universal_newlines=True, stderr=stderr, timeout=timeout)
        logger.info("%s returned:\n%s", " ".join(command), output)
        return output
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError, UnicodeDecodeError) as err:
        if exception is not None:
            raise exception from err
        raise


def run_json_command(command, timeout=None):
    """
    Runs a read-only query command and decodes its JSON output.
    Raises QueryFailure if the command fails and MalformedResponse if output isn't JSON.
    """
    try:
        output = run_shell_command(command, timeout=timeout)
    except subprocess.CalledProcessError as err:
        stderr = (err.stderr or "").strip()
        msg = f"{command[0]} exited with code {err.returncode}"
        if stderr:
            msg += f": {stderr.splitlines()[-1]}"
        raise QueryFailure(msg, command) from err
    except subprocess.TimeoutExpired as err:
        raise QueryFailure(f"{command[0]} timed out after {timeout} seconds", command) from err
    except FileNotFoundError as err:
        raise QueryFailure(f"{command[0]} is not installed or not on PATH", command) from err
    except OSError as err:
        raise QueryFailure(f"{command[0]} could not be run: {err.strerror or err}", command) from err
    except UnicodeDecodeError as err:
        raise MalformedResponse(f"{command[0]} returned output that is not valid text", command) from err
    try:
        return json.loads(output)
    except json.JSONDecodeError as err:
        raise MalformedResponse(f"{command[0]} returned output that is not JSON", command) from err
