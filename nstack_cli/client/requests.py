"""
Authenticated Request Builder.

Turns a call name and encoded body into a signed httpx.Request ready
to be sent to the NStack server.
"""

from uuid import UUID

import httpx

from nstack_cli.client.auth import sign_request
from nstack_cli.core.config import AuthSettings

INSTALL_ID_COOKIE = "NSTACKINSTANCEID"


def with_install_id(request: httpx.Request, install_id: UUID | None) -> httpx.Request:
    """Tag request with this installation's id, if one is set."""
    if install_id is not None:
        request.headers["Cookie"] = f"{INSTALL_ID_COOKIE}={install_id}"
    return request


def build_request(
    http: httpx.AsyncClient,
    base_url: str,
    call_name: bytes,
    body: bytes,
    auth: AuthSettings,
    install_id: UUID | None = None,
) -> httpx.Request:
    """
    Build a signed POST for one call.

    Args:
        http: Client whose defaults (headers, cookies) seed the request
        base_url: Server URL ending in '/'
        call_name: Call descriptor name, appended to base_url
        body: Encoded argument, sent as the raw body
        auth: Signing key pair
        install_id: Optional installation id sent as a cookie

    Raises:
        httpx.InvalidURL: If base_url and call_name do not form a valid URL
    """
    request = http.build_request("POST", base_url + call_name.decode("ascii"), content=body)
    request = with_install_id(request, install_id)
    return sign_request(request, auth)
