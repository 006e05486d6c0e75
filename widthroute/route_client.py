import logging
import math
from typing import Any, Dict, List, Optional, Tuple

import polyline
import requests

from Route import Route
from geo_utils import LatLon, is_latlon
from nav_config import NavConfig, Vehicle, DEFAULT_VEHICLE, WIDE_VEHICLE_M
from nav_errors import RouteFetchFailure, RouteWarning

logger = logging.getLogger(__name__)

FetchResult = Tuple[Route, Optional[RouteWarning]]


# -------------------------
# response parsing
# -------------------------
def parse_route_response(data: Any) -> FetchResult:
    """
    Normalise a routing service response into a Route.

    Args:
        data: Decoded JSON body.

    Returns:
        (route, warning). warning is set when the service sent an `error`
        message together with a usable route.

    Raises:
        RouteFetchFailure: no `route` field, or points that are not (lat, lon) pairs.
    """
    if not isinstance(data, dict):
        raise RouteFetchFailure("Routing service returned an unexpected payload")

    raw = data.get("route")
    if raw is None:
        msg = data.get("error") or "Route calculation failed. Check coordinates or routing service status."
        raise RouteFetchFailure(str(msg))
    if not isinstance(raw, list) or not all(is_latlon(p) for p in raw):
        raise RouteFetchFailure("Routing service returned malformed route points")

    names = data.get("route_names") or ()
    route = Route.from_points(
        raw,
        distance_km=_number(data.get("distance_km")),
        duration_min=_number(data.get("duration_min")),
        num_nodes=data.get("num_nodes"),
        route_names=[str(n) for n in names],
    )

    warning = RouteWarning(str(data["error"])) if data.get("error") else None
    return route, warning


def _number(v: Any) -> float:
    # missing distance/duration are shown as 0
    try:
        f = float(v)
    except (TypeError, ValueError):
        return 0.0
    return f if math.isfinite(f) else 0.0


def display_minutes(route: Route, vehicle: Vehicle = DEFAULT_VEHICLE) -> float:
    extra = 9 if vehicle.width >= WIDE_VEHICLE_M else 4
    return route.duration_min + extra


def summary_dict(route: Route, vehicle: Vehicle = DEFAULT_VEHICLE,
                 warning: Optional[RouteWarning] = None) -> Dict[str, Any]:
    distance_km = route.distance_km
    if not distance_km and len(route) > 1:
        # service sent no distance, measure the geometry
        distance_km = route.path_length_m() / 1000.0
    return {
        "distance_km": round(distance_km, 1),
        "avg_time_min": display_minutes(route, vehicle),
        "num_nodes": route.num_nodes,
        "points": len(route),
        "route_names": list(route.route_names),
        "vehicle": {"label": vehicle.label, "width": vehicle.width},
        "warning": str(warning) if warning else None,
    }


# -------------------------
# clients
# -------------------------
class RouteClient:
    """Width-aware routing service: GET /route with start/end and vehicle clearance."""

    def __init__(self, config: Optional[NavConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or NavConfig()
        self.session = session or requests

    def fetch(self, start: LatLon, dest: LatLon, vehicle: Vehicle = DEFAULT_VEHICLE) -> FetchResult:
        params = {
            "start_lat": start[0],
            "start_lon": start[1],
            "end_lat": dest[0],
            "end_lon": dest[1],
            "vehicle_width": vehicle.clearance,
        }
        logger.info("Requesting route %s -> %s (%s, clearance %.2f m)",
                    start, dest, vehicle.label, vehicle.clearance)
        data = _get_json(self.session, self.config.route_url, params, self.config.request_timeout_s)
        route, warning = parse_route_response(data)
        logger.info("Route received: %d points, %.1f km", len(route), route.distance_km)
        if warning:
            logger.warning("Routing service warning: %s", warning)
        return route, warning


class OsrmRouteClient:
    """Plain OSRM backend. Knows nothing about vehicle width."""

    def __init__(self, config: Optional[NavConfig] = None, profile: str = "driving",
                 session: Optional[requests.Session] = None):
        self.config = config or NavConfig()
        self.profile = profile
        self.session = session or requests

    def fetch(self, start: LatLon, dest: LatLon, vehicle: Vehicle = DEFAULT_VEHICLE) -> FetchResult:
        logger.debug("OSRM ignores vehicle width (%s)", vehicle.label)
        coords = f"{start[1]},{start[0]};{dest[1]},{dest[0]}"
        url = f"{self.config.osrm_url.rstrip('/')}/route/v1/{self.profile}/{coords}"
        data = _get_json(self.session, url, {"overview": "full", "steps": "true"},
                         self.config.request_timeout_s)
        return parse_route_response(osrm_to_response(data))


def osrm_to_response(data: Dict[str, Any]) -> Dict[str, Any]:
    if data.get("code") != "Ok" or not data.get("routes"):
        return {"error": f"OSRM error: {data.get('message', data.get('code', 'Unknown error'))}"}

    route = data["routes"][0]
    points = [list(p) for p in polyline.decode(route["geometry"])]

    names: List[str] = []
    for leg in route.get("legs", []):
        for step in leg.get("steps", []):
            name = step.get("name")
            if name and (not names or names[-1] != name):
                names.append(name)

    return {
        "route": points,
        "distance_km": route.get("distance", 0.0) / 1000.0,
        "duration_min": round(route.get("duration", 0.0) / 60.0),
        "num_nodes": len(points),
        "route_names": names,
    }


def make_client(config: NavConfig):
    if config.backend == "osrm":
        return OsrmRouteClient(config)
    if config.backend == "width":
        return RouteClient(config)
    raise ValueError(f"Unknown routing backend: {config.backend}")


def _get_json(session, url: str, params: Dict[str, Any], timeout: float) -> Any:
    try:
        r = session.get(url, params=params, timeout=timeout)
    except requests.RequestException as e:
        raise RouteFetchFailure(f"Routing service unreachable: {e}") from e

    try:
        data = r.json()
    except ValueError as e:
        raise RouteFetchFailure(f"Routing service sent invalid JSON (HTTP {r.status_code})") from e

    if not r.ok:
        # error bodies still carry the service's own message
        msg = data.get("error") if isinstance(data, dict) else None
        raise RouteFetchFailure(msg or f"Routing service returned HTTP {r.status_code}")
    return data
