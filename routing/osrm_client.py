#Purpose: The OSRM "adapter/client".
#Sole responsibility: talk to OSRM via HTTP and return normalized outputs.
#Encapsulates OSRM-specific details:
#coordinate formatting (lng,lat)
#URL construction (/route, /trip)
#timeouts and error handling
#parsing response JSON into our internal shape
#It should not contain sequencing rules or precedence logic.


from dotenv import load_dotenv
import os
import logging
from typing import List, Dict, Any, Optional
import requests

from routing.geo import GeoPoint

# Read OSRM base URL from environment
# Example in .env:
# OSRM_BASE_URL=http://router.project-osrm.org
load_dotenv()
BASE_URL = os.getenv("OSRM_BASE_URL")

logger = logging.getLogger(__name__)


class OSRMError(Exception):
    """Raised for transport failures, HTTP errors and non-"Ok" OSRM codes."""
    pass


class OSRMClient:
    """
    OSRM Adapter / Client

    Sole responsibility:
    - Talk to OSRM via HTTP
    - Convert internal GeoPoint(lat, lng) → OSRM (lng,lat)
    - Return normalized outputs

    """
    def __init__(self, profile: str = "driving", timeout: int = 5, base_url: Optional[str] = None):
        self.base_url = (base_url or BASE_URL or "").rstrip("/")
        self.timeout = timeout #seconds to wait for OSRM before giving up
        self.profile = profile #the mode of transportation (driving, walking, cycling)

        if not self.base_url:
            raise ValueError("OSRM base URL not set. Please set OSRM_BASE_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    def format_coordinates(self, coords: List[GeoPoint]) -> str:
        """Convert list of GeoPoint to OSRM format 'lng,lat;lng,lat;...'"""
        return ';'.join([f"{point.lng},{point.lat}" for point in coords])

    def _get(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise OSRMError(f"OSRM request failed: {exc}") from exc
        except ValueError as exc:
            raise OSRMError("OSRM returned a non-JSON body") from exc

        if not isinstance(data, dict) or data.get("code") != "Ok":
            message = data.get("message", "Unknown error") if isinstance(data, dict) else "Unknown error"
            raise OSRMError(f"OSRM error: {message}")
        return data

    @staticmethod
    def _parse_geometry(route: Dict[str, Any]) -> List[GeoPoint]:
        geometry = route.get("geometry") or {}
        coordinates = geometry.get("coordinates") or []
        #GeoJSON is [lng, lat]
        return [GeoPoint(lat=float(lat), lng=float(lng)) for lng, lat in coordinates]

    #----------------
    # route service (fixed order)
    #----------------
    def compute_route(self, coordinates: List[GeoPoint], *, overview: bool = True) -> Dict[str, Any]:
        """
        Calls the OSRM /route endpoint with the waypoints in the given order.

        Returns:
            {
                "distance": float,            # meters
                "duration": float,            # seconds
                "geometry": List[GeoPoint],   # empty when overview=False
                "legs": [{"distance": float, "duration": float}, ...],
            }
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to compute a route.")

        url = f"{self.base_url}/route/v1/{self.profile}/{self.format_coordinates(coordinates)}"
        params = {
            "overview": "full" if overview else "false",
            "geometries": "geojson",
            "steps": "false",
        }
        data = self._get(url, params)

        routes = data.get("routes") or []
        if not routes:
            raise OSRMError("OSRM returned no routes")
        route = routes[0] #take the first route (OSRM may return alternatives)

        try:
            legs = [
                {"distance": float(leg["distance"]), "duration": float(leg["duration"])}
                for leg in route.get("legs", [])
            ]
            return {
                "distance": float(route["distance"]),
                "duration": float(route["duration"]),
                "geometry": self._parse_geometry(route) if overview else [],
                "legs": legs,
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise OSRMError(f"Malformed OSRM route response: {exc}") from exc

    #----------------
    # trip service (approximate TSP)
    #----------------
    def compute_trip(self, coordinates: List[GeoPoint]) -> List[int]:
        """
        Calls the OSRM /trip endpoint with source=first, destination=last,
        roundtrip=false and returns the visiting order as input indices.

        waypoints[i].waypoint_index is the position of input i in the trip,
        so the returned list maps position -> input index.
        """
        if len(coordinates) < 2:
            raise ValueError("At least two coordinates are required to optimize a trip.")

        url = f"{self.base_url}/trip/v1/{self.profile}/{self.format_coordinates(coordinates)}"
        params = {
            "source": "first",
            "destination": "last",
            "roundtrip": "false",
            "overview": "false",
        }
        data = self._get(url, params)

        waypoints = data.get("waypoints")
        if not waypoints or not data.get("trips") or len(waypoints) != len(coordinates):
            raise OSRMError("Malformed OSRM trip response: waypoint count mismatch")

        try:
            positions = [int(waypoint["waypoint_index"]) for waypoint in waypoints]
        except (KeyError, TypeError, ValueError) as exc:
            raise OSRMError(f"Malformed OSRM trip response: {exc}") from exc

        if sorted(positions) != list(range(len(coordinates))):
            raise OSRMError("Malformed OSRM trip response: waypoint indices are not a permutation")

        order = [0] * len(coordinates)
        for input_index, position in enumerate(positions):
            order[position] = input_index
        logger.debug("OSRM trip order for %d waypoints: %s", len(coordinates), order)
        return order
