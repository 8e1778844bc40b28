"""Tests for dynamic client registration request/response models."""

import pytest

from authlink.models.errors import MissingArgumentError
from authlink.models.registration import RegistrationRequest, RegistrationResponse


class TestRegistrationModels:
    def test_request_serializes_set_fields_only(self, configuration):
        request = RegistrationRequest(
            configuration=configuration,
            redirect_uris=["com.example.app:/callback"],
            token_endpoint_auth_method="client_secret_basic",
        )

        assert request.to_json() == {
            "redirect_uris": ["com.example.app:/callback"],
            "application_type": "native",
            "token_endpoint_auth_method": "client_secret_basic",
        }

    def test_response_with_secret(self, configuration):
        request = RegistrationRequest(
            configuration=configuration, redirect_uris=["https://app.example.com/cb"]
        )

        response = RegistrationResponse.from_response_document(
            request,
            {
                "client_id": "client-1",
                "client_secret": "s3cret",
                "client_secret_expires_at": 0,
                "client_name": "App",
            },
        )

        assert response.client_id == "client-1"
        assert response.client_secret == "s3cret"
        assert not response.has_client_secret_expired()
        assert response.additional_parameters == {"client_name": "App"}

    @pytest.mark.parametrize(
        "document, missing",
        [
            ({"client_name": "App"}, "client_id"),
            ({"client_id": "c", "client_secret": "s"}, "client_secret_expires_at"),
            (
                {"client_id": "c", "registration_access_token": "t"},
                "registration_client_uri",
            ),
        ],
    )
    def test_required_fields(self, configuration, document, missing):
        request = RegistrationRequest(
            configuration=configuration, redirect_uris=["https://app.example.com/cb"]
        )

        with pytest.raises(MissingArgumentError) as exc_info:
            RegistrationResponse.from_response_document(request, document)

        assert exc_info.value.missing_field == missing
