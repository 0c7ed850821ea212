# API endpoints and routers

from .route_endpoints import router as route_router
from .health_endpoints import router as health_router

__all__ = [
    "route_router",
    "health_router",
]
