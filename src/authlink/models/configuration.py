"""Authorization server configuration models.

Contains the OpenID Connect discovery document (OpenID Connect Discovery 1.0
Section 3) and the endpoint configuration every request model carries.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class AuthorizationServiceDiscovery(BaseModel):
    """OpenID Provider metadata returned from /.well-known/openid-configuration."""

    model_config = ConfigDict(extra="allow", frozen=True)

    # Required by OpenID Connect Discovery
    issuer: str
    authorization_endpoint: str
    jwks_uri: str
    response_types_supported: list[str] = Field(min_length=1)
    subject_types_supported: list[str] = Field(min_length=1)
    id_token_signing_alg_values_supported: list[str] = Field(min_length=1)

    token_endpoint: str | None = None
    userinfo_endpoint: str | None = None
    registration_endpoint: str | None = None
    end_session_endpoint: str | None = None
    scopes_supported: list[str] | None = None
    grant_types_supported: list[str] = Field(
        default=["authorization_code", "implicit"]
    )
    token_endpoint_auth_methods_supported: list[str] = Field(
        default=["client_secret_basic"]
    )
    code_challenge_methods_supported: list[str] | None = None
    claims_supported: list[str] | None = None


@dataclass(frozen=True)
class AuthorizationServiceConfiguration:
    """Endpoints of an authorization server.

    Built directly from known endpoint URLs, or from a discovery document
    when the server publishes one. The key-set endpoint used for ID token
    validation is only available through the discovery document.
    """

    authorization_endpoint: str
    token_endpoint: str
    registration_endpoint: str | None = None
    discovery_doc: AuthorizationServiceDiscovery | None = None

    @classmethod
    def from_discovery(
        cls, discovery_doc: AuthorizationServiceDiscovery
    ) -> AuthorizationServiceConfiguration:
        """Create a configuration from a parsed discovery document.

        Raises:
            ValueError: If the document does not name a token endpoint
        """
        if discovery_doc.token_endpoint is None:
            raise ValueError("Discovery document does not define a token endpoint")

        return cls(
            authorization_endpoint=discovery_doc.authorization_endpoint,
            token_endpoint=discovery_doc.token_endpoint,
            registration_endpoint=discovery_doc.registration_endpoint,
            discovery_doc=discovery_doc,
        )

    @property
    def jwks_uri(self) -> str | None:
        if self.discovery_doc is None:
            return None
        return self.discovery_doc.jwks_uri
