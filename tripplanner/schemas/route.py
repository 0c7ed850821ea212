"""
Route preview schemas for the planner HTTP API.
"""
from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional, Union

from tripplanner.models import City, HomePoint, Leg, LegKey, TransportMode


class CityInput(BaseModel):
    """One destination of a route to preview"""
    id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=255)
    country: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    transport_mode: Optional[TransportMode] = Field(
        None, description="Chosen mode for the leg arriving at this city"
    )


class HomeInput(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class RoutePreviewRequest(BaseModel):
    """Cities in travel order, with an optional home location and home-leg modes"""
    cities: List[CityInput] = Field(..., min_length=1, max_length=100)
    home: Optional[HomeInput] = None
    home_overrides: Dict[LegKey, TransportMode] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_unique_ids(self):
        ids = [c.id for c in self.cities if c.id]
        if len(ids) != len(set(ids)):
            raise ValueError("city ids must be unique")
        return self


class PointRead(BaseModel):
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_home: bool = False

    @classmethod
    def from_point(cls, point: Union[City, HomePoint]) -> "PointRead":
        return cls(
            name=point.name,
            latitude=point.latitude,
            longitude=point.longitude,
            is_home=isinstance(point, HomePoint),
        )


class LegRead(BaseModel):
    key: str
    from_point: PointRead
    to_point: PointRead
    distance_km: Optional[float] = None
    transport_mode: TransportMode
    is_home_leg: bool = False
    is_override: bool = False
    suggestions: List[TransportMode] = Field(default_factory=list)

    @classmethod
    def from_leg(cls, leg: Leg) -> "LegRead":
        key = leg.key.value if isinstance(leg.key, LegKey) else str(leg.key)
        return cls(
            key=key,
            from_point=PointRead.from_point(leg.from_point),
            to_point=PointRead.from_point(leg.to_point),
            distance_km=round(leg.distance_km, 1) if leg.distance_km is not None else None,
            transport_mode=leg.transport_mode,
            is_home_leg=leg.is_home_leg,
            is_override=leg.is_override,
            suggestions=leg.suggestions,
        )


class RoutePreviewResponse(BaseModel):
    legs: List[LegRead]
    total_distance_km: float
    city_count: int


class TransportSuggestionsResponse(BaseModel):
    distance_km: Optional[float] = None
    default_mode: TransportMode
    suggestions: List[TransportMode]
