"""
Overlay registration.

While a wizard is open the host hides its other floating controls. The wizard
acquires a handle when it opens and releases it when it closes; releasing is
idempotent so every exit path can release without double counting.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class OverlayHandle(ABC):
    @abstractmethod
    def release(self) -> None:
        """Give the overlay slot back. Calling it more than once has no effect."""

    @property
    @abstractmethod
    def released(self) -> bool:
        ...


class OverlayRegistry(ABC):
    @abstractmethod
    def acquire(self) -> OverlayHandle:
        ...


class _CountingHandle(OverlayHandle):
    def __init__(self, registry: "CountingOverlayRegistry"):
        self._registry = registry
        self._released = False

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._registry._open_count -= 1
        logger.debug("Overlay released", extra={"open_overlays": self._registry._open_count})

    @property
    def released(self) -> bool:
        return self._released


class CountingOverlayRegistry(OverlayRegistry):
    """Tracks how many overlays are open; floating UI is hidden while any is."""

    def __init__(self):
        self._open_count = 0

    def acquire(self) -> OverlayHandle:
        self._open_count += 1
        logger.debug("Overlay acquired", extra={"open_overlays": self._open_count})
        return _CountingHandle(self)

    @property
    def open_count(self) -> int:
        return self._open_count

    @property
    def any_open(self) -> bool:
        return self._open_count > 0
