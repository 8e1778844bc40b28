"""Token request and response models (RFC 6749 Sections 4.1.3, 5 and 6).

Requests are immutable and know their own wire form; responses are built
from the token endpoint's JSON document together with the request that
produced them.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from authlink.models.configuration import AuthorizationServiceConfiguration
from authlink.models.errors import MissingArgumentError

GRANT_TYPE_AUTHORIZATION_CODE = "authorization_code"
GRANT_TYPE_REFRESH_TOKEN = "refresh_token"
GRANT_TYPE_CLIENT_CREDENTIALS = "client_credentials"

_BUILT_IN_PARAMS = frozenset(
    {
        "client_id",
        "code",
        "code_verifier",
        "grant_type",
        "redirect_uri",
        "refresh_token",
        "scope",
    }
)


@dataclass(frozen=True)
class TokenRequest:
    """Token endpoint request parameters.

    The nonce is never sent to the token endpoint; it rides along so the ID
    token in the response can be checked against the authorization request
    that started the flow.
    """

    configuration: AuthorizationServiceConfiguration
    client_id: str
    grant_type: str = GRANT_TYPE_AUTHORIZATION_CODE
    code: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    redirect_uri: str | None = None
    scope: str | None = None
    code_verifier: str | None = field(default=None, repr=False)
    nonce: str | None = None
    additional_parameters: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.grant_type == GRANT_TYPE_AUTHORIZATION_CODE:
            if not self.code:
                raise ValueError("authorization_code grant requires a code")
            if not self.redirect_uri:
                raise ValueError("authorization_code grant requires a redirect_uri")
        if self.grant_type == GRANT_TYPE_REFRESH_TOKEN and not self.refresh_token:
            raise ValueError("refresh_token grant requires a refresh_token")

        overridden = _BUILT_IN_PARAMS.intersection(self.additional_parameters)
        if overridden:
            raise ValueError(
                "Built-in parameters cannot be set as additional parameters: "
                f"{', '.join(sorted(overridden))}"
            )

    @classmethod
    def for_refresh(
        cls,
        configuration: AuthorizationServiceConfiguration,
        client_id: str,
        refresh_token: str,
        scope: str | None = None,
        nonce: str | None = None,
    ) -> TokenRequest:
        """Create a refresh token request (RFC 6749 Section 6)."""
        return cls(
            configuration=configuration,
            client_id=client_id,
            grant_type=GRANT_TYPE_REFRESH_TOKEN,
            refresh_token=refresh_token,
            scope=scope,
            nonce=nonce,
        )

    def get_request_parameters(self) -> dict[str, str]:
        """Return a fresh dict of form parameters for the token endpoint.

        Token requests must use form encoding, not JSON (RFC 6749 Section 4.1.3).
        """
        params = {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
        }

        optional = {
            "redirect_uri": self.redirect_uri,
            "code": self.code,
            "refresh_token": self.refresh_token,
            "code_verifier": self.code_verifier,
            "scope": self.scope,
        }
        params.update({key: value for key, value in optional.items() if value})
        params.update(self.additional_parameters)
        return params


class _TokenResponseDocument(BaseModel):
    """Shape of a successful token endpoint document (RFC 6749 Section 5.1)."""

    model_config = ConfigDict(extra="allow")

    token_type: str
    access_token: str | None = None
    expires_in: int | None = None
    id_token: str | None = None
    refresh_token: str | None = None
    scope: str | None = None


class TokenResponse(BaseModel):
    """Successful token response, paired with the request that produced it."""

    model_config = ConfigDict(frozen=True)

    request: InstanceOf[TokenRequest]
    token_type: str
    access_token: str | None = None
    access_token_expiration_time: float | None = None  # Unix timestamp
    id_token: str | None = None
    refresh_token: str | None = None
    scope: str | None = None
    additional_parameters: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_response_document(
        cls,
        request: TokenRequest,
        document: dict[str, Any],
        clock: Callable[[], float] = time.time,
    ) -> TokenResponse:
        """Build a response from the token endpoint's JSON document.

        Raises:
            MissingArgumentError: If token_type is absent
            pydantic.ValidationError: If a field has the wrong type
            OverflowError: If expires_in is too large to form an expiry time
        """
        if "token_type" not in document:
            raise MissingArgumentError("token_type")

        parsed = _TokenResponseDocument.model_validate(document)

        expiration_time = None
        if parsed.expires_in is not None:
            expiration_time = clock() + parsed.expires_in

        return cls(
            request=request,
            token_type=parsed.token_type,
            access_token=parsed.access_token,
            access_token_expiration_time=expiration_time,
            id_token=parsed.id_token,
            refresh_token=parsed.refresh_token,
            scope=parsed.scope,
            additional_parameters=dict(parsed.model_extra or {}),
        )

    def has_expired(self, clock: Callable[[], float] = time.time) -> bool:
        """Check whether the access token's expiry time has passed."""
        if self.access_token_expiration_time is None:
            return False
        return clock() >= self.access_token_expiration_time
