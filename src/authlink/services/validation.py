"""ID token validation against the authorization server's key set.

Checks an ID token's header against the published keys and its claims against
the request that produced it. The token's signature is NOT verified: callers
needing cryptographic assurance must add a JOSE verification step on top.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import jwt

from authlink.models.errors import PARAM_ERROR
from authlink.models.tokens import TokenResponse
from authlink.primitives.executor import RequestExecutor

logger = logging.getLogger(__name__)


class TokenValidator:
    """Decides whether an ID token is acceptable for a token response.

    A token is valid only when all of the following hold:
    - the key set is not an error document
    - a key whose ``alg`` contains the token header's ``alg`` exists
      (the first such key is used)
    - that key's ``kid`` equals the header's ``kid``
    - the ``aud`` claim equals the requesting client's id
    - the ``exp`` claim lies in the future
    - the ``nonce`` claim equals the nonce of the originating request

    Any failed check, and any decoding problem, yields False.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def is_valid(self, key_set: dict[str, Any], token_response: TokenResponse) -> bool:
        id_token = token_response.id_token
        if not id_token:
            logger.debug("Token response carries no ID token")
            return False

        try:
            header = jwt.get_unverified_header(id_token)
            claims = jwt.decode(id_token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            logger.debug(f"ID token could not be decoded: {e}")
            return False

        if key_set.get(PARAM_ERROR):
            return False

        key = self._select_key(key_set, header.get("alg"))
        if key is None:
            logger.debug(f"No key in key set matches alg {header.get('alg')!r}")
            return False

        request = token_response.request
        checks = (
            header.get("kid") is not None and key.get("kid") == header.get("kid"),
            claims.get("aud") == request.client_id,
            self._expires_in_future(claims.get("exp")),
            request.nonce is not None and claims.get("nonce") == request.nonce,
        )
        return all(checks)

    def _select_key(
        self, key_set: dict[str, Any], alg: Any
    ) -> dict[str, Any] | None:
        keys = key_set.get("keys")
        if not isinstance(alg, str) or not alg or not isinstance(keys, list):
            return None

        for key in keys:
            if not isinstance(key, dict):
                continue
            key_alg = key.get("alg")
            if isinstance(key_alg, str) and alg in key_alg:
                return key
        return None

    def _expires_in_future(self, exp: Any) -> bool:
        if isinstance(exp, bool):
            return False
        try:
            return float(exp) > self._clock()
        except (TypeError, ValueError, OverflowError):
            return False


class OAuth2KeySetFetcher:
    """Retrieves the JSON Web Key Set published at the jwks_uri."""

    def __init__(self, executor: RequestExecutor):
        self._executor = executor

    async def fetch_key_set(self, jwks_uri: str) -> dict[str, Any]:
        """Fetch the key set document.

        Raises:
            AuthorizationException: NETWORK_ERROR or JSON_DESERIALIZATION_ERROR
        """
        logger.debug(f"Fetching key set from {jwks_uri}")
        return await self._executor.get(jwks_uri)
