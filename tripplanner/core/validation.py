"""
Input validation utilities for coordinates, names and date ranges
"""
import math
from datetime import date
from typing import Optional

from tripplanner.core.exceptions import InvalidCoordinatesError, InvalidDateRangeError


def is_finite_number(value) -> bool:
    """True for real (non-bool) numbers that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_latitude(lat: float) -> float:
    """
    Validate latitude coordinate

    Args:
        lat: Latitude value

    Returns:
        Validated latitude

    Raises:
        InvalidCoordinatesError: If latitude is not finite or out of range
    """
    if not is_finite_number(lat) or not -90.0 <= lat <= 90.0:
        raise InvalidCoordinatesError(
            f"Latitude {lat} out of range (must be -90 to 90)",
            details={"latitude": lat},
        )

    return float(lat)


def validate_longitude(lon: float) -> float:
    """
    Validate longitude coordinate

    Args:
        lon: Longitude value

    Returns:
        Validated longitude

    Raises:
        InvalidCoordinatesError: If longitude is not finite or out of range
    """
    if not is_finite_number(lon) or not -180.0 <= lon <= 180.0:
        raise InvalidCoordinatesError(
            f"Longitude {lon} out of range (must be -180 to 180)",
            details={"longitude": lon},
        )

    return float(lon)


def is_blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


def validate_date_range(start: Optional[date], end: Optional[date]) -> None:
    """Raise InvalidDateRangeError when both dates are set and end precedes start."""
    if start is not None and end is not None and end < start:
        raise InvalidDateRangeError(start, end)
