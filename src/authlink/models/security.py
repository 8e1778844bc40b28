"""Security-related models for OAuth 2.0 authorization requests."""

from __future__ import annotations

from dataclasses import dataclass, field

CODE_CHALLENGE_METHOD_S256 = "S256"
CODE_CHALLENGE_METHOD_PLAIN = "plain"


@dataclass(frozen=True)
class PKCEParameters:
    """PKCE (Proof Key for Code Exchange) parameters (RFC 7636).

    Immutable parameters generated once per authorization request. The
    verifier stays with the client until the token exchange; only the
    challenge is sent in the authorization request.
    """

    code_verifier: str = field(repr=False)
    code_challenge: str = field()
    code_challenge_method: str = field(default=CODE_CHALLENGE_METHOD_S256)

    def __post_init__(self) -> None:
        """Validate PKCE parameters meet RFC 7636 requirements."""
        if not (43 <= len(self.code_verifier) <= 128):
            raise ValueError("code_verifier must be 43-128 characters")
        if self.code_challenge_method not in (
            CODE_CHALLENGE_METHOD_S256,
            CODE_CHALLENGE_METHOD_PLAIN,
        ):
            raise ValueError(
                f"Unsupported code challenge method: {self.code_challenge_method}"
            )
