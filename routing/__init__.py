#Marks routing as a package.
#Re-exports the public routing APIs (geo types, OSRM client, routing provider,
#proximity oracle, ETA policy) so other modules import from routing without
#knowing internal file names.
#No business logic.

from .geo import GeoPoint, Polyline, InvalidCoordinatesError, haversine_m, project_onto_polyline
from .osrm_client import OSRMClient, OSRMError
from .route_service import (
    RouteLeg,
    RouteResult,
    RoutingProvider,
    RoutingProviderError,
    OSRMRoutingProvider,
)
from .geofence import GeoProximityOracle, GeoProximityError, PolylineProximityOracle
from .eta_service import estimate_eta_seconds

__all__ = [
    "GeoPoint",
    "Polyline",
    "InvalidCoordinatesError",
    "haversine_m",
    "project_onto_polyline",
    "OSRMClient",
    "OSRMError",
    "RouteLeg",
    "RouteResult",
    "RoutingProvider",
    "RoutingProviderError",
    "OSRMRoutingProvider",
    "GeoProximityOracle",
    "GeoProximityError",
    "PolylineProximityOracle",
    "estimate_eta_seconds",
]
