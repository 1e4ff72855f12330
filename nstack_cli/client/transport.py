"""
Transport.

Executes one NStack server call per invocation and reports every outcome
as a Result. No exception escapes Transport.call():

    no credentials          → ClientError, no request is sent
    unencodable argument    → ClientError, no request is sent
    HTTP/TLS/timeout fault  → ClientError
    200, undecodable body   → ClientError
    200, Left(message)      → ServerError
    200, Right(value)       → Success
    any other status        → ServerError with the status line

Nothing is retried.

Usage:
    async with create_http_client(config) as http:
        transport = Transport(http, config)
        result = await transport.call(calls.GC, None)
"""

from typing import TypeVar

import httpx

from nstack_cli.client.calls import CallDescriptor
from nstack_cli.client.codec import ENCODE_ERRORS, DecodeError, Left
from nstack_cli.client.requests import build_request
from nstack_cli.client.result import ClientError, Result, ServerError, Success
from nstack_cli.core.config import ClientConfig
from nstack_cli.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

A = TypeVar("A")
B = TypeVar("B")

# Builds can take a long time server-side.
REQUEST_TIMEOUT_SECONDS = 15 * 60

MISSING_CREDENTIALS = (
    "Missing or invalid credentials. "
    "Please run the 'set-server' configuration command."
)


class Transport:
    """
    Calls the NStack server over HTTPS.

    Args:
        http: Client used for every round trip; owned by the caller
        config: Server address and credentials, resolved once at startup
    """

    def __init__(self, http: httpx.AsyncClient, config: ClientConfig) -> None:
        self._http = http
        self._config = config

    async def call(self, descriptor: CallDescriptor[A, B], argument: A) -> Result[B]:
        """Send one call and return its outcome."""
        auth = self._config.credentials.auth
        if auth is None:
            return ClientError(MISSING_CREDENTIALS)

        call_name = descriptor.name.decode("ascii")
        try:
            body = descriptor.encode_argument(argument)
        except ENCODE_ERRORS as e:
            log_with_source(
                logger, "transport", "warning", "Argument encoding failed",
                call=call_name, error=repr(e),
            )
            return ClientError(f"Cannot encode argument: {_describe(e)}")

        try:
            request = build_request(
                self._http,
                self._config.base_url,
                descriptor.name,
                body,
                auth,
                self._config.credentials.install_id,
            )
            request.extensions["timeout"] = httpx.Timeout(REQUEST_TIMEOUT_SECONDS).as_dict()

            log_with_source(
                logger, "transport", "debug", "API request",
                call=call_name, url=str(request.url), body_bytes=len(body),
            )
            response = await self._http.send(request)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log_with_source(
                logger, "transport", "warning", "API request failed",
                call=call_name, error=repr(e),
            )
            return ClientError(f"Exception sending HTTP request: {_describe(e)}")

        log_with_source(
            logger, "transport", "debug", "API response",
            call=call_name, status_code=response.status_code,
        )

        if response.status_code != httpx.codes.OK:
            return ServerError(f"{response.status_code} {response.reason_phrase}".rstrip())

        decoded = descriptor.decode_result(response.content)
        if isinstance(decoded, DecodeError):
            return ClientError(f"Cannot decode return value: {decoded.message}")
        if isinstance(decoded, Left):
            return ServerError(decoded.message)
        return Success(decoded.value)


def _describe(error: Exception) -> str:
    """Exception class and message; httpx messages can be empty."""
    message = str(error)
    name = type(error).__name__
    return f"{name}: {message}" if message else name
