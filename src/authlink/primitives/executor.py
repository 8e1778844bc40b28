"""Single request/response cycle against an authorization server endpoint.

Every call reads the response body whatever the HTTP status, because OAuth
servers put machine-readable errors in 4xx bodies. Transport failures,
malformed endpoint URLs and unparseable bodies are raised as classified
AuthorizationExceptions.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from authlink.models.errors import AuthorizationException, GeneralErrors
from authlink.primitives.connection import ConnectionBuilder

logger = logging.getLogger(__name__)

CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"
CONTENT_TYPE_JSON = "application/json"


class RequestExecutor:
    """Performs POST (form or JSON) and GET requests returning JSON documents."""

    def __init__(self, connection_builder: ConnectionBuilder):
        self._connection_builder = connection_builder

    async def post_form(
        self,
        url: str,
        form_data: dict[str, str],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST form-encoded parameters and return the parsed JSON body.

        Raises:
            AuthorizationException: NETWORK_ERROR or JSON_DESERIALIZATION_ERROR
        """
        request_headers = {"Content-Type": CONTENT_TYPE_FORM}
        request_headers.update(headers or {})
        return await self._execute("POST", url, request_headers, data=form_data)

    async def post_json(
        self,
        url: str,
        document: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST a JSON document and return the parsed JSON body.

        Raises:
            AuthorizationException: NETWORK_ERROR or JSON_DESERIALIZATION_ERROR
        """
        request_headers = {"Content-Type": CONTENT_TYPE_JSON}
        request_headers.update(headers or {})
        return await self._execute("POST", url, request_headers, json=document)

    async def get(
        self, url: str, headers: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """GET a JSON document.

        Raises:
            AuthorizationException: NETWORK_ERROR or JSON_DESERIALIZATION_ERROR
        """
        return await self._execute("GET", url, dict(headers or {}))

    async def _execute(
        self, method: str, url: str, headers: dict[str, str], **kwargs: Any
    ) -> dict[str, Any]:
        headers.setdefault("Accept", CONTENT_TYPE_JSON)

        try:
            async with self._connection_builder.open_connection(url) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError) as e:
            logger.debug(f"{method} {url} failed: {e}", exc_info=True)
            raise AuthorizationException.from_template(
                GeneralErrors.NETWORK_ERROR, e
            ) from e

        logger.debug(f"{method} {url} returned {response.status_code}")
        return self._parse_document(response)

    def _parse_document(self, response: httpx.Response) -> dict[str, Any]:
        """Parse the body as a JSON object, whatever the status code."""
        try:
            document = response.json()
        except ValueError as e:
            logger.debug(f"Response from {response.url} is not JSON: {e}")
            raise AuthorizationException.from_template(
                GeneralErrors.JSON_DESERIALIZATION_ERROR, e
            ) from e

        if not isinstance(document, dict):
            cause = ValueError(
                f"Expected a JSON object, got {type(document).__name__}"
            )
            raise AuthorizationException.from_template(
                GeneralErrors.JSON_DESERIALIZATION_ERROR, cause
            ) from cause

        return document
