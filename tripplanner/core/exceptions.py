"""
Custom exceptions for the trip route planner.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the application."""

    # Input errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_COORDINATES = "INVALID_COORDINATES"
    DUPLICATE_CITY = "DUPLICATE_CITY"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"

    # Persistence errors
    TRIP_API_ERROR = "TRIP_API_ERROR"
    TRIP_CREATION_FAILED = "TRIP_CREATION_FAILED"
    CITY_CREATION_FAILED = "CITY_CREATION_FAILED"

    # Generic errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class TripPlannerException(Exception):
    """Base exception for the trip route planner."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code


class InvalidCoordinatesError(TripPlannerException):
    """Raised when a latitude/longitude pair is out of range."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_COORDINATES,
            details=details,
            status_code=400
        )


class DuplicateCityError(TripPlannerException):
    """Raised when a city id is already part of the route."""

    def __init__(self, city_id: str):
        super().__init__(
            message=f"City '{city_id}' is already part of the route",
            error_code=ErrorCode.DUPLICATE_CITY,
            details={"city_id": city_id},
            status_code=409
        )


class InvalidDateRangeError(TripPlannerException):
    """Raised when an end date precedes its start date."""

    def __init__(self, start_date, end_date):
        super().__init__(
            message=f"End date {end_date} is before start date {start_date}",
            error_code=ErrorCode.INVALID_DATE_RANGE,
            details={"start_date": str(start_date), "end_date": str(end_date)},
            status_code=400
        )


class TripApiError(TripPlannerException):
    """Raised when the trip persistence API fails or is unreachable."""

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(
            message=message,
            error_code=ErrorCode.TRIP_API_ERROR,
            details=details,
            status_code=502
        )
        self.upstream_status = upstream_status


class TripCreationError(TripPlannerException):
    """Raised when the first save phase (creating the trip) fails. Nothing was persisted."""

    def __init__(self, message: str = "Trip could not be created", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.TRIP_CREATION_FAILED,
            details=details,
            status_code=502
        )


class CityCreationError(TripPlannerException):
    """
    Raised when the second save phase fails partway.

    The trip and the first ``created_count`` cities already exist upstream;
    nothing is rolled back.
    """

    def __init__(self, trip_id: str, created_count: int, total: int, failed_index: int, reason: str = ""):
        super().__init__(
            message=(
                f"Trip saved, but only {created_count} of {total} cities could be saved. "
                "Retry to save the rest."
            ),
            error_code=ErrorCode.CITY_CREATION_FAILED,
            details={
                "trip_id": trip_id,
                "created_count": created_count,
                "total": total,
                "failed_index": failed_index,
                "reason": reason,
            },
            status_code=502
        )
        self.trip_id = trip_id
        self.created_count = created_count
        self.total = total
        self.failed_index = failed_index
