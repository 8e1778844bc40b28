"""Client authentication methods for token endpoint requests.

Implements the client authentication methods of RFC 6749 Section 2.3.1.
Each method contributes headers and/or form parameters to a token request;
none of them modify the request they augment.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import quote_plus


class ClientAuthentication(Protocol):
    """Protocol for authenticating a client to the token endpoint.

    Implement this protocol to support methods beyond the built-in ones
    (for example private_key_jwt).
    """

    def get_request_headers(self, client_id: str) -> dict[str, str] | None:
        """Headers to add to the token request, or None."""
        ...

    def get_request_parameters(self, client_id: str) -> dict[str, str] | None:
        """Form parameters to add to the token request, or None."""
        ...


@dataclass(frozen=True)
class NoClientAuthentication:
    """Public clients send no credentials beyond their client_id."""

    def get_request_headers(self, client_id: str) -> dict[str, str] | None:
        return None

    def get_request_parameters(self, client_id: str) -> dict[str, str] | None:
        return None


@dataclass(frozen=True)
class ClientSecretBasic:
    """HTTP Basic authentication with the client secret (client_secret_basic)."""

    client_secret: str = field(repr=False)

    def get_request_headers(self, client_id: str) -> dict[str, str] | None:
        # RFC 6749 Section 2.3.1 form-encodes both parts before base64
        credentials = f"{quote_plus(client_id)}:{quote_plus(self.client_secret)}"
        encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        return {"Authorization": f"Basic {encoded}"}

    def get_request_parameters(self, client_id: str) -> dict[str, str] | None:
        return None


@dataclass(frozen=True)
class ClientSecretPost:
    """Client secret sent in the request body (client_secret_post)."""

    client_secret: str = field(repr=False)

    def get_request_headers(self, client_id: str) -> dict[str, str] | None:
        return None

    def get_request_parameters(self, client_id: str) -> dict[str, str] | None:
        return {"client_secret": self.client_secret}
