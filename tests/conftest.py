import json
from typing import Any

import httpx
import pytest

from authlink.models.configuration import (
    AuthorizationServiceConfiguration,
    AuthorizationServiceDiscovery,
)
from authlink.primitives.connection import PermissiveConnectionBuilder

ISSUER = "https://auth.example.com"


class FakeAuthorizationServer:
    """Scripted stand-in for an authorization server behind httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, Any] = {}

    def respond(
        self,
        path: str,
        status_code: int = 200,
        json_body: Any = None,
        text: str | None = None,
    ) -> None:
        if text is None:
            text = json.dumps(json_body)
        self._routes[path] = (status_code, text)

    def fail(self, path: str, error: Exception) -> None:
        self._routes[path] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self._routes.get(request.url.path)
        if outcome is None:
            return httpx.Response(404, json={"error": "not_found"})
        if isinstance(outcome, Exception):
            raise outcome
        status_code, text = outcome
        return httpx.Response(
            status_code, text=text, headers={"Content-Type": "application/json"}
        )

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def form_of(self, request: httpx.Request) -> dict[str, str]:
        return dict(httpx.QueryParams(request.content.decode()))


@pytest.fixture
def server() -> FakeAuthorizationServer:
    return FakeAuthorizationServer()


@pytest.fixture
def connection_builder(server) -> PermissiveConnectionBuilder:
    return PermissiveConnectionBuilder(transport=server.transport())


@pytest.fixture
def discovery() -> AuthorizationServiceDiscovery:
    return AuthorizationServiceDiscovery(
        issuer=ISSUER,
        authorization_endpoint=f"{ISSUER}/authorize",
        token_endpoint=f"{ISSUER}/token",
        registration_endpoint=f"{ISSUER}/register",
        jwks_uri=f"{ISSUER}/jwks",
        response_types_supported=["code"],
        subject_types_supported=["public"],
        id_token_signing_alg_values_supported=["RS256", "HS256"],
    )


@pytest.fixture
def configuration(discovery) -> AuthorizationServiceConfiguration:
    return AuthorizationServiceConfiguration.from_discovery(discovery)
