"""
Geocoding result schemas.

Providers disagree on field names (``lat``/``lng``/``lon``/``Latitude``...);
everything is normalized here so the rest of the code only sees
``latitude``/``longitude``.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional

from tripplanner.models import CityCandidate, Coordinates


class GeocodeResult(BaseModel):
    """A place returned by a geocoding search"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1, validation_alias=AliasChoices("name", "Name", "fullName"))
    country: Optional[str] = Field(None, validation_alias=AliasChoices("country", "Country"))
    latitude: float = Field(
        ..., ge=-90, le=90,
        validation_alias=AliasChoices("latitude", "lat", "Latitude"),
    )
    longitude: float = Field(
        ..., ge=-180, le=180,
        validation_alias=AliasChoices("longitude", "lng", "lon", "Longitude"),
    )

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)

    def to_candidate(self) -> CityCandidate:
        return CityCandidate(
            name=self.name,
            country=self.country or None,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class ReverseGeocodeResult(BaseModel):
    """Place name for a tapped coordinate"""
    name: str
    country: Optional[str] = None
