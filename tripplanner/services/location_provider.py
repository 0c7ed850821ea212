"""
Location providers supplying the traveller's home position to the trip wizard.
"""

from abc import ABC, abstractmethod
from typing import Optional

from tripplanner.config.settings import WizardSettings, get_settings
from tripplanner.models import Coordinates


class LocationPermissionDenied(Exception):
    """Raised by providers asked for a position without permission."""


class LocationProvider(ABC):
    """Device-location collaborator: one permission prompt, one position fix."""

    @abstractmethod
    async def request_permission(self) -> bool:
        """Ask for location access; True when granted."""

    @abstractmethod
    async def current_position(self) -> Coordinates:
        """One-shot position fix. May raise on provider failure."""


class StaticLocationProvider(LocationProvider):
    """Home position taken from configuration; denies access when none is configured."""

    def __init__(
        self,
        coordinates: Optional[Coordinates] = None,
        settings: Optional[WizardSettings] = None,
    ):
        if coordinates is None:
            settings = settings or get_settings().wizard
            if settings.home_latitude is not None and settings.home_longitude is not None:
                coordinates = Coordinates(settings.home_latitude, settings.home_longitude)
        self.coordinates = coordinates

    async def request_permission(self) -> bool:
        return self.coordinates is not None

    async def current_position(self) -> Coordinates:
        if self.coordinates is None:
            raise LocationPermissionDenied("No home location configured")
        return self.coordinates


class DeniedLocationProvider(LocationProvider):
    """Provider for hosts without location access."""

    async def request_permission(self) -> bool:
        return False

    async def current_position(self) -> Coordinates:
        raise LocationPermissionDenied("Location access is not available")
