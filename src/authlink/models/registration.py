"""Dynamic client registration models (RFC 7591, OIDC Dynamic Registration).

Registration requests are sent as JSON documents, not form-encoded.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from authlink.models.configuration import AuthorizationServiceConfiguration
from authlink.models.errors import MissingArgumentError

APPLICATION_TYPE_NATIVE = "native"


@dataclass(frozen=True)
class RegistrationRequest:
    """Client metadata to register with the authorization server."""

    configuration: AuthorizationServiceConfiguration
    redirect_uris: list[str]
    application_type: str = APPLICATION_TYPE_NATIVE
    response_types: list[str] | None = None
    grant_types: list[str] | None = None
    subject_type: str | None = None
    token_endpoint_auth_method: str | None = None
    additional_parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.redirect_uris:
            raise ValueError("At least one redirect URI is required")

    def to_json(self) -> dict[str, Any]:
        """Client metadata document, omitting unset fields."""
        document: dict[str, Any] = {
            "redirect_uris": list(self.redirect_uris),
            "application_type": self.application_type,
        }

        optional = {
            "response_types": self.response_types,
            "grant_types": self.grant_types,
            "subject_type": self.subject_type,
            "token_endpoint_auth_method": self.token_endpoint_auth_method,
        }
        document.update({key: value for key, value in optional.items() if value})
        document.update(self.additional_parameters)
        return document

    def to_json_string(self) -> str:
        return json.dumps(self.to_json())


class _RegistrationResponseDocument(BaseModel):
    model_config = ConfigDict(extra="allow")

    client_id: str
    client_id_issued_at: int | None = None
    client_secret: str | None = None
    client_secret_expires_at: int | None = None
    registration_access_token: str | None = None
    registration_client_uri: str | None = None
    token_endpoint_auth_method: str | None = None


class RegistrationResponse(BaseModel):
    """Client information returned by a successful registration."""

    model_config = ConfigDict(frozen=True)

    request: InstanceOf[RegistrationRequest]
    client_id: str
    client_id_issued_at: int | None = None
    client_secret: str | None = Field(default=None, repr=False)
    client_secret_expires_at: int | None = None
    registration_access_token: str | None = Field(default=None, repr=False)
    registration_client_uri: str | None = None
    token_endpoint_auth_method: str | None = None
    additional_parameters: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_response_document(
        cls, request: RegistrationRequest, document: dict[str, Any]
    ) -> RegistrationResponse:
        """Build a response from the registration endpoint's JSON document.

        RFC 7591 Section 3.2.1 requires client_id, requires
        client_secret_expires_at whenever a secret is issued, and requires the
        registration access token and client URI to appear together.

        Raises:
            MissingArgumentError: If a required field is absent
            pydantic.ValidationError: If a field has the wrong type
        """
        if "client_id" not in document:
            raise MissingArgumentError("client_id")
        if "client_secret" in document and "client_secret_expires_at" not in document:
            raise MissingArgumentError("client_secret_expires_at")
        if ("registration_access_token" in document) != (
            "registration_client_uri" in document
        ):
            missing = (
                "registration_client_uri"
                if "registration_access_token" in document
                else "registration_access_token"
            )
            raise MissingArgumentError(missing)

        parsed = _RegistrationResponseDocument.model_validate(document)
        return cls(
            request=request,
            additional_parameters=dict(parsed.model_extra or {}),
            **parsed.model_dump(exclude=set(parsed.model_extra or {})),
        )

    def has_client_secret_expired(self) -> bool:
        """Check if the issued client secret has expired (0 means never)."""
        if not self.client_secret_expires_at:
            return False
        return time.time() >= self.client_secret_expires_at
