"""
Route planning endpoints - leg preview and transport suggestions
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from tripplanner.models import CityCandidate, Coordinates
from tripplanner.schemas.base import Envelope
from tripplanner.schemas.route import (
    LegRead,
    RoutePreviewRequest,
    RoutePreviewResponse,
    TransportSuggestionsResponse,
)
from tripplanner.services.route_model import RouteModel
from tripplanner.services.transport_suggestion import (
    TransportSuggestionEngine,
    get_suggestion_engine,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["routes"])


@router.post("/routes/preview", response_model=Envelope[RoutePreviewResponse])
async def preview_route(
    request: RoutePreviewRequest,
    engine: TransportSuggestionEngine = Depends(get_suggestion_engine),
):
    """
    Derive the legs of a route

    - **cities**: Destinations in travel order
    - **home**: Optional home location; adds the departure and return legs
    - **home_overrides**: Optional modes for the `homeToFirst` / `returnHome` legs
    """
    route = RouteModel(engine)
    for city in request.cities:
        route.add_city(
            CityCandidate(
                id=city.id,
                name=city.name,
                country=city.country,
                latitude=city.latitude,
                longitude=city.longitude,
                transport_mode=city.transport_mode,
            )
        )
    for key, mode in request.home_overrides.items():
        route.set_transport_mode(key, mode)

    home = Coordinates(request.home.latitude, request.home.longitude) if request.home else None
    legs = route.all_legs(home)
    logger.debug("Route preview computed", extra={"city_count": len(route), "leg_count": len(legs)})

    return Envelope(
        status="ok",
        data=RoutePreviewResponse(
            legs=[LegRead.from_leg(leg) for leg in legs],
            total_distance_km=round(route.total_distance_km(home), 1),
            city_count=len(route),
        ),
    )


@router.get("/transport/suggestions", response_model=Envelope[TransportSuggestionsResponse])
async def transport_suggestions(
    distance_km: Optional[float] = Query(None, ge=0, description="Leg distance; omit when unknown"),
    from_name: Optional[str] = Query(None, max_length=255),
    to_name: Optional[str] = Query(None, max_length=255),
    engine: TransportSuggestionEngine = Depends(get_suggestion_engine),
):
    """
    Rank transport modes for a single leg
    """
    suggestions = engine.suggest(distance_km, from_name, to_name)
    return Envelope(
        status="ok",
        data=TransportSuggestionsResponse(
            distance_km=distance_km,
            default_mode=suggestions[0],
            suggestions=suggestions,
        ),
    )
