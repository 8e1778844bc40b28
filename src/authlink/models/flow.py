"""Authorization flow models.

Contains the authorization request sent through the user's browser and the
response parsed from the redirect that completes it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlencode, urlparse

from authlink.models.configuration import AuthorizationServiceConfiguration
from authlink.models.errors import (
    PARAM_ERROR,
    AuthorizationException,
    AuthorizationRequestErrors,
    StateValidationError,
)
from authlink.models.tokens import GRANT_TYPE_AUTHORIZATION_CODE, TokenRequest
from authlink.primitives.pkce import PKCEManager
from authlink.primitives.security import generate_nonce, generate_state, validate_state

RESPONSE_TYPE_CODE = "code"
SCOPE_OPENID = "openid"

_BUILT_IN_PARAMS = frozenset(
    {
        "client_id",
        "code_challenge",
        "code_challenge_method",
        "display",
        "login_hint",
        "nonce",
        "prompt",
        "redirect_uri",
        "response_mode",
        "response_type",
        "scope",
        "state",
    }
)


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request (RFC 6749 Section 4.1.1, OIDC Core 3.1.2.1).

    Owned by the caller; the service only reads it to build the request URI.
    """

    configuration: AuthorizationServiceConfiguration
    client_id: str
    redirect_uri: str
    response_type: str = RESPONSE_TYPE_CODE
    scope: str | None = None
    state: str | None = None
    nonce: str | None = None
    code_verifier: str | None = field(default=None, repr=False)
    code_challenge: str | None = None
    code_challenge_method: str | None = None
    display: str | None = None
    login_hint: str | None = None
    prompt: str | None = None
    response_mode: str | None = None
    additional_parameters: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        overridden = _BUILT_IN_PARAMS.intersection(self.additional_parameters)
        if overridden:
            raise ValueError(
                "Built-in parameters cannot be set as additional parameters: "
                f"{', '.join(sorted(overridden))}"
            )
        if self.code_verifier is not None and self.code_challenge is None:
            raise ValueError("code_challenge is required when code_verifier is set")

    @classmethod
    def create(
        cls,
        configuration: AuthorizationServiceConfiguration,
        client_id: str,
        redirect_uri: str,
        response_type: str = RESPONSE_TYPE_CODE,
        scope: str | None = SCOPE_OPENID,
        **kwargs,
    ) -> AuthorizationRequest:
        """Create a request with generated state, nonce and S256 PKCE values.

        Any of the generated values can be overridden through kwargs.
        """
        pkce = PKCEManager().generate_parameters()
        kwargs.setdefault("state", generate_state())
        kwargs.setdefault("nonce", generate_nonce())
        kwargs.setdefault("code_verifier", pkce.code_verifier)
        kwargs.setdefault("code_challenge", pkce.code_challenge)
        kwargs.setdefault("code_challenge_method", pkce.code_challenge_method)
        return cls(
            configuration=configuration,
            client_id=client_id,
            redirect_uri=redirect_uri,
            response_type=response_type,
            scope=scope,
            **kwargs,
        )

    def get_request_parameters(self) -> dict[str, str]:
        params = {
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "response_type": self.response_type,
        }

        optional = {
            "state": self.state,
            "nonce": self.nonce,
            "scope": self.scope,
            "login_hint": self.login_hint,
            "prompt": self.prompt,
            "display": self.display,
            "response_mode": self.response_mode,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
        }
        params.update({key: value for key, value in optional.items() if value})
        params.update(self.additional_parameters)
        return params

    def to_uri(self) -> str:
        """Build the authorization request URI on the authorization endpoint."""
        endpoint = self.configuration.authorization_endpoint
        separator = "&" if urlparse(endpoint).query else "?"
        return f"{endpoint}{separator}{urlencode(self.get_request_parameters())}"


@dataclass(frozen=True)
class AuthorizationResponse:
    """Successful authorization response parsed from the redirect URI."""

    request: AuthorizationRequest
    state: str | None = None
    code: str | None = None
    token_type: str | None = None
    access_token: str | None = None
    id_token: str | None = None
    scope: str | None = None
    additional_parameters: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_redirect_uri(
        cls, request: AuthorizationRequest, redirect_uri: str
    ) -> AuthorizationResponse:
        """Parse the redirect that completed an authorization request.

        Parameters are read from the query and, for implicit-style responses,
        the fragment.

        Raises:
            AuthorizationException: If the redirect carries an OAuth error or
                its state does not match the request's
        """
        parsed = urlparse(redirect_uri)
        params = {
            key: values[0]
            for key, values in parse_qs(parsed.fragment).items()
            if values
        }
        params.update(
            {key: values[0] for key, values in parse_qs(parsed.query).items() if values}
        )

        if PARAM_ERROR in params:
            raise AuthorizationException.from_oauth_redirect(redirect_uri)

        try:
            validate_state(request.state, params.get("state"))
        except StateValidationError as e:
            raise AuthorizationException.from_template(
                AuthorizationRequestErrors.STATE_MISMATCH, e
            ) from e

        known = {"state", "code", "token_type", "access_token", "id_token", "scope"}
        return cls(
            request=request,
            state=params.get("state"),
            code=params.get("code"),
            token_type=params.get("token_type"),
            access_token=params.get("access_token"),
            id_token=params.get("id_token"),
            scope=params.get("scope"),
            additional_parameters={
                key: value for key, value in params.items() if key not in known
            },
        )

    def create_token_exchange_request(
        self, additional_parameters: Mapping[str, str] | None = None
    ) -> TokenRequest:
        """Create the token request that exchanges this response's code.

        The request's nonce travels along so the resulting ID token can be
        validated against it.

        Raises:
            ValueError: If the response carries no authorization code
        """
        if self.code is None:
            raise ValueError("Authorization response does not contain a code")

        return TokenRequest(
            configuration=self.request.configuration,
            client_id=self.request.client_id,
            grant_type=GRANT_TYPE_AUTHORIZATION_CODE,
            code=self.code,
            redirect_uri=self.request.redirect_uri,
            code_verifier=self.request.code_verifier,
            nonce=self.request.nonce,
            additional_parameters=dict(additional_parameters or {}),
        )
