"""
Unit Test Fixtures.

The network is replaced by httpx.MockTransport: FakeServer records every
request it receives and answers with a canned response.
"""

from typing import Any, Callable
from uuid import UUID

import httpx
import pytest

from nstack_cli.client import codec
from nstack_cli.core.config import AuthSettings, ClientConfig, Credentials

INSTALL_ID = UUID("6f1c2f6e-8f0b-4b8e-9d7a-3c2b1a0f9e8d")


class FakeServer:
    """
    Stand-in for the NStack server.

    Usage:
        server = FakeServer()
        server.respond_with_value([], list[str])
        async with server.client() as http:
            ...
        assert len(server.requests) == 1
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responder: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(500)
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def respond(self, status_code: int, content: bytes = b"") -> None:
        self._responder = lambda request: httpx.Response(status_code, content=content)

    def respond_with_value(self, value: Any, type_: Any) -> None:
        self.respond(200, codec.encode_server_return(codec.Right(value), type_))

    def respond_with_error(self, message: str) -> None:
        self.respond(200, codec.encode_server_return(codec.Left(message), str))

    def respond_by_call(self, bodies: dict[str, bytes]) -> None:
        """Answer 200 with a different body per call name."""
        self._responder = lambda request: httpx.Response(
            200, content=bodies[request.url.path.lstrip("/")]
        )

    def raise_error(self, error: Exception) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            raise error

        self._responder = responder


@pytest.fixture
def fake_server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def auth() -> AuthSettings:
    return AuthSettings(user_id="user-42", secret_key="test-secret-key")


@pytest.fixture
def client_config(auth: AuthSettings) -> ClientConfig:
    """Config with credentials and an install id."""
    return ClientConfig(
        base_url="https://nstack.test:8443/",
        credentials=Credentials(auth=auth, install_id=INSTALL_ID),
    )


@pytest.fixture
def anonymous_config() -> ClientConfig:
    """Config with no credentials at all."""
    return ClientConfig(base_url="https://nstack.test:8443/", credentials=Credentials())
