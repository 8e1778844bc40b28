"""Token endpoint exchange service.

Implements RFC 6749 token endpoint interactions: authorization code exchange
(Section 4.1.3) and refresh (Section 6), with client authentication applied
per Section 2.3.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from authlink.models.client_auth import ClientAuthentication
from authlink.models.errors import (
    PARAM_ERROR,
    AuthorizationException,
    GeneralErrors,
    MissingArgumentError,
    TokenRequestErrors,
)
from authlink.models.tokens import TokenRequest, TokenResponse
from authlink.primitives.executor import RequestExecutor

logger = logging.getLogger(__name__)


class OAuth2TokenManager:
    """Sends token requests and maps the endpoint's answer to a TokenResponse.

    Uses application/x-www-form-urlencoded encoding as required by RFC 6749.
    """

    def __init__(self, executor: RequestExecutor):
        self._executor = executor

    def build_form_data(
        self, request: TokenRequest, client_auth: ClientAuthentication
    ) -> dict[str, str]:
        """Merge the request's parameters with the client authentication's.

        Parameters from the client authentication win on key collision.
        """
        form_data = request.get_request_parameters()
        auth_params = client_auth.get_request_parameters(request.client_id)
        if auth_params:
            form_data.update(auth_params)
        return form_data

    async def perform_token_request(
        self, request: TokenRequest, client_auth: ClientAuthentication
    ) -> TokenResponse:
        """Exchange a grant at the token endpoint.

        Returns:
            TokenResponse: Parsed successful response

        Raises:
            AuthorizationException: Network, parsing, OAuth token error, or
                TOKEN_RESPONSE_CONSTRUCTION_ERROR for an incomplete response
        """
        token_endpoint = request.configuration.token_endpoint
        form_data = self.build_form_data(request, client_auth)
        headers = client_auth.get_request_headers(request.client_id)

        logger.debug(
            f"Token request: grant_type={request.grant_type}, "
            f"client_id={request.client_id}, endpoint={token_endpoint}"
        )

        document = await self._executor.post_form(token_endpoint, form_data, headers)

        if PARAM_ERROR in document:
            ex = AuthorizationException.from_error_document(
                document, TokenRequestErrors
            )
            logger.warning(
                f"Token request to {token_endpoint} failed: "
                f"{ex.error} - {ex.error_description}"
            )
            raise ex

        try:
            response = TokenResponse.from_response_document(request, document)
        except MissingArgumentError as e:
            logger.warning(f"Incomplete token response from {token_endpoint}: {e}")
            raise AuthorizationException.from_template(
                GeneralErrors.TOKEN_RESPONSE_CONSTRUCTION_ERROR, e
            ) from e
        except (ValidationError, OverflowError) as e:
            raise AuthorizationException.from_template(
                GeneralErrors.JSON_DESERIALIZATION_ERROR, e
            ) from e

        logger.info(f"Token exchange with {token_endpoint} completed")
        return response
