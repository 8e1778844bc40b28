"""Random parameter generation and checks for authorization flows."""

from __future__ import annotations

import secrets
import string

from authlink.models.errors import StateValidationError

_ALPHABET = string.ascii_letters + string.digits + "-_"


def generate_state() -> str:
    """Generate an unguessable state parameter for CSRF protection."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(32))


def generate_nonce() -> str:
    """Generate a nonce binding an ID token to its authorization request."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(32))


def validate_state(expected: str | None, actual: str | None) -> None:
    """Validate the state returned in a redirect matches the request's.

    Raises:
        StateValidationError: If the states don't match
    """
    if expected is None and actual is None:
        return
    if expected is None or actual is None:
        raise StateValidationError("State parameter missing from request or response")
    if not secrets.compare_digest(expected, actual):
        raise StateValidationError("State parameter mismatch - possible CSRF attack")
