"""Great-circle distance helpers."""
import math
from typing import Optional

from tripplanner.core.validation import is_finite_number
from tripplanner.models import Coordinates

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1, lon1, lat2, lon2) -> Optional[float]:
    """
    Haversine distance in kilometres between two points.

    Returns None when any coordinate is missing or not a finite number, so
    callers can treat the distance as unknown instead of failing.
    """
    if not all(is_finite_number(v) for v in (lat1, lon1, lat2, lon2)):
        return None
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi, dlam = math.radians(lat2 - lat1), math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_between(a: Optional[Coordinates], b: Optional[Coordinates]) -> Optional[float]:
    if a is None or b is None:
        return None
    return distance_km(a.latitude, a.longitude, b.latitude, b.longitude)
