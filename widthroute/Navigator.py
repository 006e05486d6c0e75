import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from PlaybackController import PlaybackController, NavState
from Route import Endpoint, Route
from ViewSynchronizer import ViewSynchronizer
from geo_utils import LatLon
from nav_config import NavConfig, Vehicle, DEFAULT_VEHICLE, vehicle_by_label
from nav_errors import InvalidRoute, RouteFetchFailure, RouteWarning
from route_client import make_client, summary_dict

logger = logging.getLogger(__name__)

SUPERSEDED = "Superseded by a newer request"


class Navigator:
    """
    High-level route viewer facade.

    Typical lifecycle:
        nav = Navigator(config)
        nav.view.attach(surface)
        nav.on_location((31.63, 74.87))
        nav.set_end((31.65, 74.89))
        ok, msg = await nav.request_route()
        ok, msg = nav.start_navigation()
        ...
        nav.close()

    Args:
        config: Optional NavConfig; defaults to NavConfig().
        client: Object with fetch(start, dest, vehicle) -> (Route, warning).
        loop:   Event loop for the playback timer; the running loop if omitted.
    """

    def __init__(self, config: Optional[NavConfig] = None, client=None,
                 loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self.config = config or NavConfig()
        self.client = client or make_client(self.config)
        self.controller = PlaybackController(loop)
        self.view = ViewSynchronizer(self.controller, self.config)

        self.start: Optional[Endpoint] = None
        self.end: Optional[Endpoint] = None
        self.vehicle: Vehicle = DEFAULT_VEHICLE
        self.warning: Optional[RouteWarning] = None
        self.error: Optional[str] = None
        self.loading = False
        self._generation = 0

    @property
    def route(self) -> Optional[Route]:
        return self.controller.route

    # ------------------------------------------------------------------
    # Endpoints and vehicle
    # ------------------------------------------------------------------

    def set_start(self, pos: LatLon, label: str = "Start Point") -> None:
        self.start = Endpoint(pos, label)
        self.view.set_endpoints(self.start, self.end)

    def set_end(self, pos: LatLon, label: str = "Selected Point") -> None:
        self.end = Endpoint(pos, label)
        self.view.set_endpoints(self.start, self.end)

    def on_location(self, pos: LatLon) -> None:
        logger.info("Current location: %s", pos)
        self.set_start(pos, "Current Location")

    def on_location_error(self, message: str) -> None:
        # start stays unset, user picks it on the map
        logger.warning("Geolocation failed: %s", message)

    def select_vehicle(self, label: str) -> Vehicle:
        self.vehicle = vehicle_by_label(label)
        logger.info("Vehicle: %s (%.1f m)", self.vehicle.label, self.vehicle.width)
        return self.vehicle

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def request_route(self) -> Tuple[bool, str]:
        """
        Fetch a route for the current endpoints and vehicle.

        Only the newest request may replace the route; older responses that
        resolve later are dropped.

        Returns:
            (success, message)
        """
        if self.start is None or self.end is None:
            self.error = "Select start and end locations"
            return False, self.error

        self._generation += 1
        gen = self._generation
        self.loading = True
        self.error = None
        start, end, vehicle = self.start.pos, self.end.pos, self.vehicle

        try:
            route, warning = await asyncio.to_thread(self.client.fetch, start, end, vehicle)
        except RouteFetchFailure as e:
            if gen != self._generation:
                logger.info("Discarding failure of superseded request #%d", gen)
                return False, SUPERSEDED
            self.loading = False
            self.error = f"[Error] {e}"
            logger.error("Route request #%d failed: %s", gen, e)
            return False, self.error

        if gen != self._generation:
            logger.info("Discarding stale route from request #%d", gen)
            return False, SUPERSEDED

        self.loading = False
        self.warning = warning
        self.error = None
        self.controller.on_route_replaced(route)
        logger.info("Route ready: %d points, %.1f km", len(route), route.distance_km)
        return True, str(warning) if warning else f"Route ready. {len(route)} points."

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def start_navigation(self) -> Tuple[bool, str]:
        route = self.controller.route
        if route is None or len(route) == 0:
            self.error = "Please find a route first."
            return False, self.error
        try:
            self.controller.start(route)
        except InvalidRoute as e:
            logger.warning("Cannot start navigation: %s", e)
            self.error = str(e)
            return False, self.error
        return True, "Navigation started."

    def stop_navigation(self) -> None:
        self.controller.stop()

    def close(self) -> None:
        # late fetch results must not touch a closed navigator
        self._generation += 1
        self.controller.close()
        self.view.close()
        logger.debug("Navigator closed")

    # ------------------------------------------------------------------
    # Read-only views for the panel
    # ------------------------------------------------------------------

    def summary(self) -> Optional[Dict[str, Any]]:
        if self.route is None:
            return None
        return summary_dict(self.route, self.vehicle, self.warning)

    def status(self) -> Dict[str, Any]:
        ctl = self.controller
        return {
            "state": ctl.state.value,
            "cursor": ctl.cursor,
            "heading": round(ctl.heading(), 1) if ctl.state is NavState.NAVIGATING else None,
            "loading": self.loading,
            "has_route": self.route is not None,
            "start": list(self.start.pos) if self.start else None,
            "start_label": self.start.label if self.start else None,
            "end": list(self.end.pos) if self.end else None,
            "end_label": self.end.label if self.end else None,
            "vehicle": self.vehicle.label,
            "error": self.error,
        }
