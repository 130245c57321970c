"""Cancellation handles and the fingerprint-keyed abort registry."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

from precognition.config import RequestConfig

logger = logging.getLogger(__name__)


class AbortSignal:
    """Read side of an `AbortController`; awaited by the transport."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Any = None

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def _abort(self, reason: Any) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()


class AbortController:
    """Owns one `AbortSignal` and can trip it exactly once."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = "aborted") -> None:
        self.signal._abort(reason)


class AbortRegistry:
    """Maps request fingerprints to the controller of the live request."""

    def __init__(self) -> None:
        self._controllers: dict[str, AbortController] = {}

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)

    def get(self, fingerprint: str) -> AbortController | None:
        return self._controllers.get(fingerprint)

    def cancel_if_present(self, fingerprint: Any) -> None:
        """Abort and forget the controller holding `fingerprint`, if any."""
        if not isinstance(fingerprint, str):
            return
        controller = self._controllers.pop(fingerprint, None)
        if controller is None:
            return
        logger.debug("aborting superseded request", extra={"fingerprint": fingerprint})
        controller.abort(f"superseded: {fingerprint}")

    def register_if_needed(self, config: RequestConfig) -> RequestConfig:
        """Install a fresh controller for the request and attach its signal.

        Only string fingerprints are registered, and never when the caller
        brought their own `signal` or `cancel_token`.
        """
        if (
            not isinstance(config.fingerprint, str)
            or config.signal is not None
            or config.cancel_token is not None
        ):
            return config
        controller = AbortController()
        self._controllers[config.fingerprint] = controller
        return replace(config, signal=controller.signal)

    def release(self, config: RequestConfig) -> None:
        """Forget the request's controller once it settles.

        A successor that already took over the fingerprint is left in place.
        """
        if not isinstance(config.fingerprint, str) or config.signal is None:
            return
        controller = self._controllers.get(config.fingerprint)
        if controller is not None and controller.signal is config.signal:
            del self._controllers[config.fingerprint]
            logger.debug("released fingerprint", extra={"fingerprint": config.fingerprint})
