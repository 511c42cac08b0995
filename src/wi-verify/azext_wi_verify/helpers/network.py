# --------------------------------------------------------------------------------------------
# Copyright (c) Microsoft Corporation. All rights reserved.
# Licensed under the MIT License. See License.txt in the project root for license information.
# --------------------------------------------------------------------------------------------

"""
This module contains the HTTP probe used by the functional checks.
"""
from urllib.parse import urlparse

import requests

from azext_wi_verify.models import ProbeResponse

from .errors import QueryFailure
from .logger import logger


def build_probe_url(address, path="/"):
    """Returns an http URL for a bare IP/hostname, or the address itself if it is already a URL"""
    if urlparse(address).scheme:
        return address
    return f"http://{address}{path}"


def probe_endpoint(address, timeout=None):
    """
    Sends an unauthenticated GET to the address.
    Raises QueryFailure if the endpoint can't be reached or answers with an error status.
    """
    url = build_probe_url(address)
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as err:
        raise QueryFailure(f"Could not reach {url}: {err.__class__.__name__}", ["GET", url]) from err
    logger.info("GET %s returned %s:\n%s", url, response.status_code, response.text)
    if not response.ok:
        raise QueryFailure(f"GET {url} returned HTTP {response.status_code}", ["GET", url])
    return ProbeResponse(url=url, status_code=response.status_code, body=response.text)
