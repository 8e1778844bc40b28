"""Launchers that take the user through the browser step of the flow.

The service only builds the authorization URI; a launcher opens it and later
reports the redirect (or the user's cancellation) to the targets it was given.
"""

from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from authlink.models.errors import NoLauncherAvailableError

logger = logging.getLogger(__name__)

CompletionTarget = Callable[[str], Any]
CancelTarget = Callable[[], Any]


@dataclass(frozen=True)
class LaunchOptions:
    """Presentation hints passed through to the launcher.

    Launchers ignore hints they cannot honour.
    """

    title_visible: bool = True
    extras: dict[str, Any] = field(default_factory=dict)


class AuthorizationLauncher(Protocol):
    """Protocol for opening authorization URIs in a browser or web view."""

    def bind(self) -> None:
        """Acquire whatever speeds up later launches (warm-up, sessions)."""
        ...

    def unbind(self) -> None:
        """Release what bind acquired."""
        ...

    def launch(
        self,
        uri: str,
        completion: CompletionTarget,
        cancel: CancelTarget | None,
        options: LaunchOptions,
    ) -> None:
        """Open the URI; deliver the redirect URI to completion later."""
        ...


class WebBrowserLauncher:
    """Opens authorization URIs with the standard library's webbrowser module.

    The redirect must be captured elsewhere (a loopback server, a custom
    scheme handler); whatever captures it calls complete() or cancel() to
    reach the targets of the pending launch.

    The webbrowser module has no presentation control, so LaunchOptions are
    not consulted.
    """

    def __init__(self, browser_name: str | None = None):
        self.browser_name = browser_name
        self._browser: webbrowser.BaseBrowser | None = None
        self._pending: tuple[CompletionTarget, CancelTarget | None] | None = None

    def bind(self) -> None:
        try:
            self._browser = webbrowser.get(self.browser_name)
        except webbrowser.Error as e:
            logger.warning(f"No browser available for authorization: {e}")
            self._browser = None

    def unbind(self) -> None:
        self._browser = None
        self._pending = None

    def launch(
        self,
        uri: str,
        completion: CompletionTarget,
        cancel: CancelTarget | None,
        options: LaunchOptions,
    ) -> None:
        if self._browser is None:
            raise NoLauncherAvailableError("No browser is bound to this launcher")

        self._pending = (completion, cancel)
        if not self._browser.open(uri, new=2):
            self._pending = None
            raise NoLauncherAvailableError(f"Browser refused to open {uri}")

    def complete(self, redirect_uri: str) -> None:
        """Deliver the redirect of the pending launch to its completion target."""
        if self._pending is None:
            raise RuntimeError("No authorization request is pending")
        completion, _ = self._pending
        self._pending = None
        completion(redirect_uri)

    def cancel(self) -> None:
        """Report the user's cancellation to the pending launch's cancel target."""
        if self._pending is None:
            return
        _, cancel = self._pending
        self._pending = None
        if cancel is not None:
            cancel()
