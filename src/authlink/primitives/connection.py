"""Connection construction for authorization server requests.

A ConnectionBuilder turns an endpoint URL into an open httpx client. TLS,
proxy and timeout policy live here so the request code never has to care.
"""

from __future__ import annotations

from typing import Protocol
from urllib.parse import urlparse

import httpx

DEFAULT_CONNECT_TIMEOUT = 15.0
DEFAULT_READ_TIMEOUT = 10.0


class ConnectionBuilder(Protocol):
    """Protocol for opening HTTP connections to OAuth endpoints."""

    def open_connection(self, url: str) -> httpx.AsyncClient:
        """Return a client for the URL. The caller closes it."""
        ...


class DefaultConnectionBuilder:
    """Opens HTTPS-only connections with conservative timeouts.

    Plain http URLs are refused with httpx.UnsupportedProtocol, which the
    request executor reports as a network error.
    """

    def __init__(
        self,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._transport = transport

    def open_connection(self, url: str) -> httpx.AsyncClient:
        if urlparse(url).scheme != "https":
            raise httpx.UnsupportedProtocol(
                f"Only https connections are permitted: {url}"
            )
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)


class PermissiveConnectionBuilder(DefaultConnectionBuilder):
    """Allows plain http as well, for local development servers and tests."""

    def open_connection(self, url: str) -> httpx.AsyncClient:
        if urlparse(url).scheme not in ("http", "https"):
            raise httpx.UnsupportedProtocol(f"Unsupported URL scheme: {url}")
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
