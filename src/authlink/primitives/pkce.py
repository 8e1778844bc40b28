"""PKCE (Proof Key for Code Exchange) parameter generation.

Implements RFC 7636 code verifier and S256 code challenge generation.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

from authlink.models.errors import PKCEError
from authlink.models.security import CODE_CHALLENGE_METHOD_S256, PKCEParameters

_VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"


class PKCEManager:
    """Generates PKCE parameters for authorization requests.

    Uses the S256 code challenge method exclusively; the plain method is
    accepted on requests built by hand but never generated here.
    """

    def __init__(self, verifier_length: int = 64):
        if not (43 <= verifier_length <= 128):
            raise PKCEError("Code verifier length must be 43-128 characters")
        self.verifier_length = verifier_length

    def generate_parameters(self) -> PKCEParameters:
        """Generate a fresh verifier and its S256 challenge.

        Raises:
            PKCEError: If parameter generation fails
        """
        try:
            code_verifier = self.generate_code_verifier()
            return PKCEParameters(
                code_verifier=code_verifier,
                code_challenge=derive_code_challenge(code_verifier),
                code_challenge_method=CODE_CHALLENGE_METHOD_S256,
            )
        except ValueError as e:
            raise PKCEError(f"Failed to generate PKCE parameters: {e}") from e

    def generate_code_verifier(self) -> str:
        """Generate a random verifier of unreserved characters (RFC 7636 4.1)."""
        return "".join(
            secrets.choice(_VERIFIER_ALPHABET) for _ in range(self.verifier_length)
        )


def derive_code_challenge(code_verifier: str) -> str:
    """BASE64URL-ENCODE(SHA256(ASCII(code_verifier))) without padding."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
