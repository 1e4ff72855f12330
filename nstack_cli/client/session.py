"""
Client Session.

Builds the single httpx client used for the lifetime of one CLI
invocation. Certificate validation follows the explicit
tls.disable_certificate_validation setting and is loudly reported
whenever it is off.
"""

import httpx

from nstack_cli import __version__
from nstack_cli.client.transport import REQUEST_TIMEOUT_SECONDS
from nstack_cli.core.config import ClientConfig
from nstack_cli.core.logging import get_logger, log_with_source

logger = get_logger(__name__)


def create_http_client(config: ClientConfig, **kwargs) -> httpx.AsyncClient:
    """
    Create the HTTP client for NStack server calls.

    Args:
        config: Resolved client configuration
        **kwargs: Extra httpx.AsyncClient arguments (tests pass transport=)

    Returns:
        An unopened httpx.AsyncClient; use it with 'async with'
    """
    if not config.verify_tls:
        # TODO: verify against an NStack root certificate shipped with the CLI
        # once server certificates are signed by it.
        log_with_source(
            logger,
            "transport",
            "warning",
            "TLS certificate validation is DISABLED "
            "(tls.disable_certificate_validation=true); the server's identity is not verified",
            base_url=config.base_url,
        )

    return httpx.AsyncClient(
        verify=config.verify_tls,
        timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS),
        headers={"User-Agent": f"nstack-cli/{__version__}"},
        **kwargs,
    )
