# Route planning services and wizard collaborators

from .geo import distance_km, distance_between, EARTH_RADIUS_KM
from .transport_suggestion import (
    TransportSuggestionEngine,
    get_suggestion_engine,
    get_transport_suggestions,
)
from .route_model import RouteModel
from .geocoding_service import GeocodingService, NominatimGeocodingService
from .location_provider import (
    LocationProvider,
    StaticLocationProvider,
    DeniedLocationProvider,
    LocationPermissionDenied,
)
from .overlay import OverlayRegistry, OverlayHandle, CountingOverlayRegistry
from .trip_api_client import TripRepository, TripApiClient
from .wizard import MultiCityTripWizard, WizardStep, HomeLocationStatus, STEPS

__all__ = [
    "distance_km",
    "distance_between",
    "EARTH_RADIUS_KM",
    "TransportSuggestionEngine",
    "get_suggestion_engine",
    "get_transport_suggestions",
    "RouteModel",
    "GeocodingService",
    "NominatimGeocodingService",
    "LocationProvider",
    "StaticLocationProvider",
    "DeniedLocationProvider",
    "LocationPermissionDenied",
    "OverlayRegistry",
    "OverlayHandle",
    "CountingOverlayRegistry",
    "TripRepository",
    "TripApiClient",
    "MultiCityTripWizard",
    "WizardStep",
    "HomeLocationStatus",
    "STEPS",
]
