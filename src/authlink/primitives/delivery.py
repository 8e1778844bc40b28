"""Hooks deciding where completion callbacks run.

A result delivery is called as ``deliver(callback, *args)`` and must arrange
for ``callback(*args)`` to run exactly once on the context the caller acts on
results from.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

ResultDelivery = Callable[..., None]


def direct_delivery(callback: Callable[..., Any], *args: Any) -> None:
    """Run the callback immediately on the event loop that ran the request."""
    callback(*args)


class ThreadsafeDelivery:
    """Hand callbacks to another event loop, e.g. one owned by a UI thread."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop

    def __call__(self, callback: Callable[..., Any], *args: Any) -> None:
        self.loop.call_soon_threadsafe(callback, *args)
