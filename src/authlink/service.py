"""Dispatches requests to an OAuth 2.0 / OpenID Connect authorization server.

Composes the token, registration and validation services behind one facade
that owns the disposal state and guarantees exactly one completion callback
per operation.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from authlink.models.client_auth import ClientAuthentication, NoClientAuthentication
from authlink.models.errors import (
    AuthorizationException,
    NoLauncherAvailableError,
    ServiceDisposedError,
)
from authlink.models.flow import AuthorizationRequest
from authlink.models.registration import RegistrationRequest, RegistrationResponse
from authlink.models.tokens import TokenRequest, TokenResponse
from authlink.primitives.connection import ConnectionBuilder, DefaultConnectionBuilder
from authlink.primitives.delivery import ResultDelivery, direct_delivery
from authlink.primitives.executor import RequestExecutor
from authlink.services.launcher import (
    AuthorizationLauncher,
    CancelTarget,
    CompletionTarget,
    LaunchOptions,
)
from authlink.services.registration import OAuth2Registration
from authlink.services.tokens import OAuth2TokenManager
from authlink.services.validation import OAuth2KeySetFetcher, TokenValidator

logger = logging.getLogger(__name__)

TokenResponseCallback = Callable[
    [TokenResponse | None, AuthorizationException | None], Any
]
RegistrationResponseCallback = Callable[
    [RegistrationResponse | None, AuthorizationException | None], Any
]
TokenValidationCallback = Callable[[bool, AuthorizationException | None], Any]


@dataclass(frozen=True)
class ServiceConfiguration:
    """Collaborators an AuthorizationService is built from.

    Args:
        connection_builder: Opens HTTP connections to the server's endpoints
        result_delivery: Decides where completion callbacks run
        launcher: Opens authorization URIs; None disables
            perform_authorization_request
    """

    connection_builder: ConnectionBuilder = field(
        default_factory=DefaultConnectionBuilder
    )
    result_delivery: ResultDelivery = direct_delivery
    launcher: AuthorizationLauncher | None = None


class AuthorizationService:
    """Dispatches authorization, token, registration and validation requests.

    Instances must be disposed when no longer required (see dispose()), which
    releases the launcher binding. Each perform_* method must be called from
    a running event loop; it starts one task for the request and returns it.
    Awaiting the task is optional: the callback is the result channel.
    """

    def __init__(self, configuration: ServiceConfiguration | None = None):
        self.configuration = configuration or ServiceConfiguration()
        self._deliver = self.configuration.result_delivery
        self._launcher = self.configuration.launcher
        self._disposed = False
        self._tasks: set[asyncio.Task] = set()

        executor = RequestExecutor(self.configuration.connection_builder)
        self._token_manager = OAuth2TokenManager(executor)
        self._registration = OAuth2Registration(executor)
        self._key_set_fetcher = OAuth2KeySetFetcher(executor)
        self._validator = TokenValidator()

        if self._launcher is not None:
            self._launcher.bind()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def prepare_authorization_request(self, request: AuthorizationRequest) -> str:
        """Return the authorization request URI without launching anything."""
        self._check_not_disposed()
        return request.to_uri()

    def perform_authorization_request(
        self,
        request: AuthorizationRequest,
        completion: CompletionTarget,
        cancel: CancelTarget | None = None,
        launch_options: LaunchOptions | None = None,
    ) -> None:
        """Hand the authorization request to the launcher.

        The launcher delivers the redirect URI to completion, or calls cancel
        if the user backs out. No network request is made here.

        Raises:
            ServiceDisposedError: If the service has been disposed
            NoLauncherAvailableError: If no launcher is configured
        """
        self._check_not_disposed()

        if self._launcher is None:
            raise NoLauncherAvailableError("No launcher is configured")

        uri = request.to_uri()
        options = dataclasses.replace(
            launch_options or LaunchOptions(), title_visible=False
        )

        logger.debug(
            f"Initiating authorization request to "
            f"{request.configuration.authorization_endpoint}"
        )
        self._launcher.launch(uri, completion, cancel, options)

    def perform_token_request(
        self,
        request: TokenRequest,
        callback: TokenResponseCallback,
        client_auth: ClientAuthentication | None = None,
    ) -> asyncio.Task:
        """Exchange a grant for tokens; the outcome goes to callback.

        Raises:
            ServiceDisposedError: If the service has been disposed
        """
        self._check_not_disposed()
        client_auth = client_auth or NoClientAuthentication()

        logger.debug(
            f"Initiating code exchange request to "
            f"{request.configuration.token_endpoint}"
        )
        return self._spawn(
            lambda: self._run_token_request(request, client_auth),
            callback,
            name="token_request",
        )

    def perform_registration_request(
        self,
        request: RegistrationRequest,
        callback: RegistrationResponseCallback,
    ) -> asyncio.Task:
        """Dynamically register a client; the outcome goes to callback.

        Raises:
            ServiceDisposedError: If the service has been disposed
            ValueError: If the configuration has no registration endpoint
        """
        self._check_not_disposed()

        registration_endpoint = request.configuration.registration_endpoint
        if registration_endpoint is None:
            raise ValueError("Configuration does not define a registration endpoint")

        logger.debug(f"Initiating dynamic client registration {registration_endpoint}")
        return self._spawn(
            lambda: self._run_registration_request(request),
            callback,
            name="registration_request",
        )

    def perform_token_validation(
        self,
        response: TokenResponse,
        callback: TokenValidationCallback,
        client_auth: ClientAuthentication | None = None,
    ) -> asyncio.Task:
        """Validate the response's ID token against the server's key set.

        The callback receives (is_valid, None), or (False, exception) when the
        key set could not be fetched. The client authentication is accepted
        for symmetry with token requests; the key set endpoint is public.

        Raises:
            ServiceDisposedError: If the service has been disposed
            ValueError: If the configuration has no discovery jwks_uri
        """
        self._check_not_disposed()

        jwks_uri = response.request.configuration.jwks_uri
        if jwks_uri is None:
            raise ValueError("Configuration has no discovery document with a jwks_uri")

        logger.debug(f"Initiating token validation against {jwks_uri}")
        return self._spawn(
            lambda: self._run_token_validation(jwks_uri, response),
            callback,
            name="token_validation",
        )

    def dispose(self) -> None:
        """Release the launcher binding and refuse further operations.

        Idempotent. Requests already in flight run to completion.
        """
        if self._disposed:
            return
        if self._launcher is not None:
            self._launcher.unbind()
        self._disposed = True

    def _check_not_disposed(self) -> None:
        if self._disposed:
            raise ServiceDisposedError()

    def _spawn(
        self,
        operation: Callable[[], Awaitable[tuple[Any, AuthorizationException | None]]],
        callback: Callable[..., Any],
        name: str,
    ) -> asyncio.Task:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._complete(operation(), callback), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _complete(
        self,
        operation: Awaitable[tuple[Any, AuthorizationException | None]],
        callback: Callable[..., Any],
    ) -> None:
        result, ex = await operation
        try:
            self._deliver(callback, result, ex)
        except Exception:
            logger.exception("Completion callback raised")

    async def _run_token_request(
        self, request: TokenRequest, client_auth: ClientAuthentication
    ) -> tuple[TokenResponse | None, AuthorizationException | None]:
        try:
            return await self._token_manager.perform_token_request(
                request, client_auth
            ), None
        except AuthorizationException as ex:
            return None, ex

    async def _run_registration_request(
        self, request: RegistrationRequest
    ) -> tuple[RegistrationResponse | None, AuthorizationException | None]:
        try:
            return await self._registration.register_client(request), None
        except AuthorizationException as ex:
            return None, ex

    async def _run_token_validation(
        self, jwks_uri: str, response: TokenResponse
    ) -> tuple[bool, AuthorizationException | None]:
        try:
            key_set = await self._key_set_fetcher.fetch_key_set(jwks_uri)
        except AuthorizationException as ex:
            return False, ex

        is_valid = self._validator.is_valid(key_set, response)
        logger.debug(f"Token validation with {jwks_uri} completed: valid={is_valid}")
        return is_valid, None
