"""Exception hierarchy and canonical error taxonomy for OAuth 2.0 / OIDC.

Every remote or parsing failure is reported as an AuthorizationException built
from one of the error templates below. Misuse of the service itself (calling
into a disposed service, no launcher configured) raises the operational errors
at the bottom of this module synchronously instead.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any
from urllib.parse import parse_qs, urlparse

PARAM_ERROR = "error"
PARAM_ERROR_DESCRIPTION = "error_description"
PARAM_ERROR_URI = "error_uri"


class OAuth2Error(Exception):
    """Base exception for all OAuth 2.0 related errors."""

    pass


class ErrorType(IntEnum):
    """Category of an AuthorizationException.

    RESOURCE_SERVER_AUTHORIZATION is reserved for errors reported by resource
    servers; nothing in this package produces it.
    """

    GENERAL = 0
    OAUTH_AUTHORIZATION = 1
    OAUTH_TOKEN = 2
    RESOURCE_SERVER_AUTHORIZATION = 3
    OAUTH_REGISTRATION = 4


@dataclass(frozen=True)
class ErrorTemplate:
    """Prototype for an AuthorizationException of a known type and code."""

    type: ErrorType
    code: int
    error: str | None = None
    error_description: str | None = None


def _general(code: int, description: str) -> ErrorTemplate:
    return ErrorTemplate(ErrorType.GENERAL, code, None, description)


class GeneralErrors:
    """Errors not defined by the OAuth protocol: transport, parsing, flow state.

    INVALID_DISCOVERY_DOCUMENT, USER_CANCELED_AUTH_FLOW, PROGRAM_CANCELED_AUTH_FLOW
    and SERVER_ERROR complete the code space for launchers and discovery
    fetchers built on this package; the request services never raise them.
    """

    INVALID_DISCOVERY_DOCUMENT = _general(0, "Invalid discovery document")
    USER_CANCELED_AUTH_FLOW = _general(1, "User cancelled flow")
    PROGRAM_CANCELED_AUTH_FLOW = _general(2, "Flow cancelled programmatically")
    NETWORK_ERROR = _general(3, "Network error")
    SERVER_ERROR = _general(4, "Server error")
    JSON_DESERIALIZATION_ERROR = _general(5, "JSON deserialization error")
    TOKEN_RESPONSE_CONSTRUCTION_ERROR = _general(
        6, "Token response construction error"
    )
    INVALID_REGISTRATION_RESPONSE = _general(7, "Invalid registration response")


class _OAuthVocabulary:
    """Maps wire error codes to templates for one OAuth endpoint.

    Subclasses list their templates as class attributes and name the
    fallback used for codes the vocabulary does not know.
    """

    OTHER: ErrorTemplate

    @classmethod
    def templates(cls) -> list[ErrorTemplate]:
        return [
            value
            for name, value in vars(cls).items()
            if isinstance(value, ErrorTemplate) and not name.startswith("_")
        ]

    @classmethod
    def by_string(cls, error: str | None) -> ErrorTemplate:
        """Return the template for a wire error code, or OTHER if unknown."""
        for template in cls.templates():
            if template.error is not None and template.error == error:
                return template
        return cls.OTHER


def _oauth(error_type: ErrorType, code: int, error: str | None) -> ErrorTemplate:
    return ErrorTemplate(error_type, code, error, None)


class AuthorizationRequestErrors(_OAuthVocabulary):
    """Errors returned to the redirect URI of an authorization request."""

    INVALID_REQUEST = _oauth(ErrorType.OAUTH_AUTHORIZATION, 1000, "invalid_request")
    UNAUTHORIZED_CLIENT = _oauth(
        ErrorType.OAUTH_AUTHORIZATION, 1001, "unauthorized_client"
    )
    ACCESS_DENIED = _oauth(ErrorType.OAUTH_AUTHORIZATION, 1002, "access_denied")
    UNSUPPORTED_RESPONSE_TYPE = _oauth(
        ErrorType.OAUTH_AUTHORIZATION, 1003, "unsupported_response_type"
    )
    INVALID_SCOPE = _oauth(ErrorType.OAUTH_AUTHORIZATION, 1004, "invalid_scope")
    SERVER_ERROR = _oauth(ErrorType.OAUTH_AUTHORIZATION, 1005, "server_error")
    TEMPORARILY_UNAVAILABLE = _oauth(
        ErrorType.OAUTH_AUTHORIZATION, 1006, "temporarily_unavailable"
    )
    CLIENT_ERROR = _oauth(ErrorType.OAUTH_AUTHORIZATION, 1007, None)
    OTHER = _oauth(ErrorType.OAUTH_AUTHORIZATION, 1008, None)
    STATE_MISMATCH = ErrorTemplate(
        ErrorType.GENERAL, 9, None, "Response state param did not match request state"
    )


class TokenRequestErrors(_OAuthVocabulary):
    """Errors returned by the token endpoint (RFC 6749 Section 5.2)."""

    INVALID_REQUEST = _oauth(ErrorType.OAUTH_TOKEN, 2000, "invalid_request")
    INVALID_CLIENT = _oauth(ErrorType.OAUTH_TOKEN, 2001, "invalid_client")
    INVALID_GRANT = _oauth(ErrorType.OAUTH_TOKEN, 2002, "invalid_grant")
    UNAUTHORIZED_CLIENT = _oauth(ErrorType.OAUTH_TOKEN, 2003, "unauthorized_client")
    UNSUPPORTED_GRANT_TYPE = _oauth(
        ErrorType.OAUTH_TOKEN, 2004, "unsupported_grant_type"
    )
    INVALID_SCOPE = _oauth(ErrorType.OAUTH_TOKEN, 2005, "invalid_scope")
    OTHER = _oauth(ErrorType.OAUTH_TOKEN, 2006, None)
    CLIENT_ERROR = _oauth(ErrorType.OAUTH_TOKEN, 2007, None)


class RegistrationRequestErrors(_OAuthVocabulary):
    """Errors returned by the registration endpoint (RFC 7591 Section 3.2.2)."""

    INVALID_REQUEST = _oauth(ErrorType.OAUTH_REGISTRATION, 4000, "invalid_request")
    INVALID_REDIRECT_URI = _oauth(
        ErrorType.OAUTH_REGISTRATION, 4001, "invalid_redirect_uri"
    )
    INVALID_CLIENT_METADATA = _oauth(
        ErrorType.OAUTH_REGISTRATION, 4002, "invalid_client_metadata"
    )
    OTHER = _oauth(ErrorType.OAUTH_REGISTRATION, 4003, None)
    CLIENT_ERROR = _oauth(ErrorType.OAUTH_REGISTRATION, 4004, None)


class AuthorizationException(OAuth2Error):
    """Canonical error delivered for every failed OAuth operation.

    Two exceptions are equal when their type and code match; the free-text
    fields carry whatever the server (or the failing layer) reported.
    """

    def __init__(
        self,
        type: ErrorType,
        code: int,
        error: str | None = None,
        error_description: str | None = None,
        error_uri: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(error_description or error or f"error {code}")
        self.type = ErrorType(type)
        self.code = code
        self.error = error
        self.error_description = error_description
        self.error_uri = error_uri
        self.__cause__ = cause

    @classmethod
    def from_template(
        cls, template: ErrorTemplate, cause: BaseException | None = None
    ) -> AuthorizationException:
        """Create an exception from a template, wrapping a lower-level cause."""
        return cls(
            template.type,
            template.code,
            template.error,
            template.error_description,
            None,
            cause,
        )

    @classmethod
    def from_oauth_template(
        cls,
        template: ErrorTemplate,
        error: str | None,
        error_description: str | None,
        error_uri: str | None,
    ) -> AuthorizationException:
        """Create an exception for an OAuth error payload.

        The template decides type and code; the server's values win for the
        textual fields, falling back to the template's.
        """
        return cls(
            template.type,
            template.code,
            error or template.error,
            error_description or template.error_description,
            error_uri,
        )

    @classmethod
    def from_error_document(
        cls, document: dict[str, Any], vocabulary: type[_OAuthVocabulary]
    ) -> AuthorizationException:
        """Classify an endpoint's JSON error document.

        The error code is looked up in the endpoint's vocabulary; unknown codes
        map to its OTHER entry. A document whose error fields are not strings
        is reported as a deserialization error instead.
        """
        error = document.get(PARAM_ERROR)
        description = document.get(PARAM_ERROR_DESCRIPTION)
        error_uri = document.get(PARAM_ERROR_URI)

        for name, value in (
            (PARAM_ERROR, error),
            (PARAM_ERROR_DESCRIPTION, description),
            (PARAM_ERROR_URI, error_uri),
        ):
            if value is not None and not isinstance(value, str):
                return cls.from_template(
                    GeneralErrors.JSON_DESERIALIZATION_ERROR,
                    ValueError(f"Field {name!r} must be a string, got {value!r}"),
                )
        if error is None:
            return cls.from_template(
                GeneralErrors.JSON_DESERIALIZATION_ERROR,
                ValueError("Field 'error' must not be null"),
            )

        return cls.from_oauth_template(
            vocabulary.by_string(error), error, description, error_uri or None
        )

    @classmethod
    def from_oauth_redirect(cls, redirect_uri: str) -> AuthorizationException:
        """Create an exception from an authorization redirect carrying an error.

        Error parameters are read from the fragment and the query; the query
        wins when both carry the same key.
        """
        parsed = urlparse(redirect_uri)
        params: dict[str, str] = {}
        for component in (parsed.fragment, parsed.query):
            params.update(
                {key: values[0] for key, values in parse_qs(component).items()}
            )

        error = params.get(PARAM_ERROR)
        return cls.from_oauth_template(
            AuthorizationRequestErrors.by_string(error),
            error,
            params.get(PARAM_ERROR_DESCRIPTION),
            params.get(PARAM_ERROR_URI),
        )

    @property
    def is_oauth_error(self) -> bool:
        return self.type != ErrorType.GENERAL

    def to_json(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict. The cause is not preserved."""
        data: dict[str, Any] = {"type": int(self.type), "code": self.code}
        if self.error is not None:
            data["error"] = self.error
        if self.error_description is not None:
            data["errorDescription"] = self.error_description
        if self.error_uri is not None:
            data["errorUri"] = self.error_uri
        return data

    def to_json_string(self) -> str:
        return json.dumps(self.to_json())

    @classmethod
    def from_json(cls, data: dict[str, Any] | str) -> AuthorizationException:
        """Reconstruct an exception produced by to_json or to_json_string."""
        if isinstance(data, str):
            data = json.loads(data)
        try:
            return cls(
                ErrorType(data["type"]),
                int(data["code"]),
                data.get("error"),
                data.get("errorDescription"),
                data.get("errorUri"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid AuthorizationException JSON: {e}") from e

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthorizationException):
            return NotImplemented
        return self.type == other.type and self.code == other.code

    def __hash__(self) -> int:
        return hash((self.type, self.code))

    def __repr__(self) -> str:
        return (
            f"AuthorizationException(type={self.type.name}, code={self.code}, "
            f"error={self.error!r}, error_description={self.error_description!r})"
        )


class MissingArgumentError(OAuth2Error):
    """Raised when a response document lacks a field the protocol requires."""

    def __init__(self, missing_field: str):
        super().__init__(f"Missing mandatory response field: {missing_field}")
        self.missing_field = missing_field


class StateValidationError(OAuth2Error):
    """Raised when the state of an authorization redirect does not match."""

    pass


class PKCEError(OAuth2Error):
    """Raised when PKCE parameter generation or validation fails."""

    pass


class ServiceDisposedError(OAuth2Error):
    """Raised when a disposed AuthorizationService is used."""

    def __init__(self) -> None:
        super().__init__("Service has been disposed and rendered inoperable")


class NoLauncherAvailableError(OAuth2Error):
    """Raised when no launcher is configured to open an authorization request."""

    pass
