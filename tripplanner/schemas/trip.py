"""
Trip and trip-city schemas exchanged with the trip persistence API.

The API speaks camelCase JSON; models accept either casing and dump with
``by_alias=True``.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import date, datetime
from typing import Optional

from tripplanner.models import TransportMode, parse_transport_mode


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class TripCreate(_ApiModel):
    """Payload for creating a trip"""
    name: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: float = Field(default=0, ge=0)
    budget_currency: str = "EUR"
    trip_type: str = "multi-city"


class TripCityCreate(_ApiModel):
    """Payload for creating one city of a trip"""
    name: str = Field(..., min_length=1, max_length=255)
    country: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    order_index: int = Field(..., ge=0)
    transport_mode: Optional[TransportMode] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TripCityRead(_ApiModel):
    """City record as returned by the API"""
    id: str
    trip_id: Optional[str] = None
    name: str
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    order_index: int = 0
    transport_mode: Optional[TransportMode] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("transport_mode", mode="before")
    @classmethod
    def normalize_transport_mode(cls, v):
        return parse_transport_mode(v)


class TripRead(_ApiModel):
    """Trip record as returned by the API"""
    id: Optional[str] = None
    name: str = ""
    destination: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    budget: Optional[float] = None
    budget_currency: Optional[str] = None
    trip_type: Optional[str] = None
    cities: list[TripCityRead] = Field(default_factory=list)
