"""Dynamic client registration service.

Implements RFC 7591 (OAuth 2.0 Dynamic Client Registration Protocol). No
client authentication is applied: registration endpoints are open or
protected by means outside this request.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from authlink.models.errors import (
    PARAM_ERROR,
    AuthorizationException,
    GeneralErrors,
    MissingArgumentError,
    RegistrationRequestErrors,
)
from authlink.models.registration import RegistrationRequest, RegistrationResponse
from authlink.primitives.executor import RequestExecutor

logger = logging.getLogger(__name__)


class OAuth2Registration:
    """Registers clients and maps the endpoint's answer to a RegistrationResponse."""

    def __init__(self, executor: RequestExecutor):
        self._executor = executor

    async def register_client(
        self, request: RegistrationRequest
    ) -> RegistrationResponse:
        """Register a new client with the authorization server.

        Returns:
            RegistrationResponse: Issued client information

        Raises:
            AuthorizationException: Network, parsing, OAuth registration error,
                or INVALID_REGISTRATION_RESPONSE for an incomplete response
            ValueError: If the configuration has no registration endpoint
        """
        registration_endpoint = request.configuration.registration_endpoint
        if registration_endpoint is None:
            raise ValueError("Configuration does not define a registration endpoint")

        logger.debug(f"Registering client at {registration_endpoint}")
        document = await self._executor.post_json(
            registration_endpoint, request.to_json()
        )

        if PARAM_ERROR in document:
            ex = AuthorizationException.from_error_document(
                document, RegistrationRequestErrors
            )
            logger.error(
                f"Client registration failed: {ex.error} - {ex.error_description}"
            )
            raise ex

        try:
            response = RegistrationResponse.from_response_document(request, document)
        except MissingArgumentError as e:
            logger.error(f"Malformed registration response: {e}")
            raise AuthorizationException.from_template(
                GeneralErrors.INVALID_REGISTRATION_RESPONSE, e
            ) from e
        except ValidationError as e:
            raise AuthorizationException.from_template(
                GeneralErrors.JSON_DESERIALIZATION_ERROR, e
            ) from e

        logger.info(
            f"Successfully registered client {response.client_id} "
            f"at {registration_endpoint}"
        )
        return response
