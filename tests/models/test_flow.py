"""Tests for authorization request URI construction and redirect handling."""

from urllib.parse import parse_qs, urlparse

import pytest

from authlink.models.configuration import AuthorizationServiceConfiguration
from authlink.models.errors import (
    AuthorizationException,
    AuthorizationRequestErrors,
)
from authlink.models.flow import AuthorizationRequest, AuthorizationResponse
from authlink.primitives.pkce import derive_code_challenge


def query_of(uri: str) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlparse(uri).query).items()}


class TestAuthorizationRequestUri:
    def test_uri_contains_all_set_parameters(self, configuration):
        # Arrange
        request = AuthorizationRequest(
            configuration=configuration,
            client_id="client-1",
            redirect_uri="com.example.app:/callback",
            scope="openid email",
            state="state-1",
            nonce="nonce-1",
            login_hint="user@example.com",
            additional_parameters={"ui_locales": "nl"},
        )

        # Act
        uri = request.to_uri()

        # Assert
        assert uri.startswith("https://auth.example.com/authorize?")
        assert query_of(uri) == {
            "client_id": "client-1",
            "redirect_uri": "com.example.app:/callback",
            "response_type": "code",
            "scope": "openid email",
            "state": "state-1",
            "nonce": "nonce-1",
            "login_hint": "user@example.com",
            "ui_locales": "nl",
        }

    def test_uri_is_deterministic(self, configuration):
        request = AuthorizationRequest(
            configuration=configuration,
            client_id="client-1",
            redirect_uri="https://app.example.com/cb",
            state="s",
        )

        assert request.to_uri() == request.to_uri()

    def test_existing_endpoint_query_is_preserved(self):
        configuration = AuthorizationServiceConfiguration(
            authorization_endpoint="https://auth.example.com/authorize?tenant=a",
            token_endpoint="https://auth.example.com/token",
        )
        request = AuthorizationRequest(
            configuration=configuration,
            client_id="client-1",
            redirect_uri="https://app.example.com/cb",
        )

        query = query_of(request.to_uri())

        assert query["tenant"] == "a"
        assert query["client_id"] == "client-1"

    def test_additional_parameters_cannot_override_built_ins(self, configuration):
        with pytest.raises(ValueError, match="state"):
            AuthorizationRequest(
                configuration=configuration,
                client_id="client-1",
                redirect_uri="https://app.example.com/cb",
                additional_parameters={"state": "forged"},
            )

    def test_create_generates_state_nonce_and_pkce(self, configuration):
        request = AuthorizationRequest.create(
            configuration, "client-1", "https://app.example.com/cb"
        )

        assert request.state and request.nonce
        assert request.scope == "openid"
        assert request.code_challenge_method == "S256"
        assert request.code_challenge == derive_code_challenge(request.code_verifier)
        assert "code_verifier" not in query_of(request.to_uri())


class TestAuthorizationResponse:
    def setup_method(self):
        self.configuration = AuthorizationServiceConfiguration(
            authorization_endpoint="https://auth.example.com/authorize",
            token_endpoint="https://auth.example.com/token",
        )
        self.request = AuthorizationRequest.create(
            self.configuration,
            "client-1",
            "https://app.example.com/cb",
            state="expected-state",
            nonce="expected-nonce",
        )

    def test_successful_redirect_yields_token_exchange_request(self):
        # Act
        response = AuthorizationResponse.from_redirect_uri(
            self.request,
            "https://app.example.com/cb?code=auth-code&state=expected-state",
        )
        token_request = response.create_token_exchange_request()

        # Assert
        assert response.code == "auth-code"
        assert token_request.code == "auth-code"
        assert token_request.code_verifier == self.request.code_verifier
        assert token_request.nonce == "expected-nonce"
        assert "nonce" not in token_request.get_request_parameters()

    def test_state_mismatch_raises_state_mismatch_error(self):
        with pytest.raises(AuthorizationException) as exc_info:
            AuthorizationResponse.from_redirect_uri(
                self.request, "https://app.example.com/cb?code=c&state=forged"
            )

        assert exc_info.value == AuthorizationException.from_template(
            AuthorizationRequestErrors.STATE_MISMATCH
        )

    def test_error_redirect_raises_oauth_error(self):
        with pytest.raises(AuthorizationException) as exc_info:
            AuthorizationResponse.from_redirect_uri(
                self.request,
                "https://app.example.com/cb?error=access_denied&state=expected-state",
            )

        assert exc_info.value.code == AuthorizationRequestErrors.ACCESS_DENIED.code

    def test_error_in_fragment_raises_oauth_error(self):
        with pytest.raises(AuthorizationException) as exc_info:
            AuthorizationResponse.from_redirect_uri(
                self.request,
                "https://app.example.com/cb#error=temporarily_unavailable"
                "&error_description=Try+later",
            )

        assert exc_info.value.code == (
            AuthorizationRequestErrors.TEMPORARILY_UNAVAILABLE.code
        )
        assert exc_info.value.error_description == "Try later"

    def test_fragment_parameters_are_read(self):
        response = AuthorizationResponse.from_redirect_uri(
            self.request,
            "https://app.example.com/cb#id_token=abc&state=expected-state",
        )

        assert response.id_token == "abc"
        assert response.code is None
        with pytest.raises(ValueError):
            response.create_token_exchange_request()
