from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional

from MapSurface import MapSurface, MarkerId, PathStyle, Padding, nav_arrow_icon, endpoint_icon
from PlaybackController import PlaybackController, NavState
from Route import Endpoint, Route
from geo_utils import LatLon
from nav_config import NavConfig
from nav_errors import SurfaceUnavailable

logger = logging.getLogger(__name__)


class SurfaceState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class ViewSynchronizer:
    """
    Turns (route, cursor, nav state) into map surface commands.

    While navigating, every cursor change moves and rotates the single direction
    marker and pans the camera. Otherwise the planning view is redrawn: endpoints,
    full path, and a viewport fit. Nothing here writes back to the controller.

    Args:
        controller: PlaybackController to follow.
        config:     NavConfig for padding, pan duration and path style.
    """

    def __init__(self, controller: PlaybackController, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._controller = controller
        self._surface: Optional[MapSurface] = None
        self._surface_state = SurfaceState.UNINITIALIZED
        self._nav_marker: Optional[MarkerId] = None
        self._start: Optional[Endpoint] = None
        self._end: Optional[Endpoint] = None
        controller.add_observer(self._on_playback)

    # -------------------------
    # surface lifecycle
    # -------------------------
    @property
    def surface_state(self) -> SurfaceState:
        return self._surface_state

    @property
    def nav_marker(self) -> Optional[MarkerId]:
        return self._nav_marker

    def attach(self, surface: MapSurface) -> None:
        self._surface = surface
        self._surface_state = SurfaceState.READY
        self._nav_marker = None
        logger.debug("Map surface attached")
        self.redraw()

    def detach(self) -> None:
        self._surface = None
        self._surface_state = SurfaceState.UNINITIALIZED
        self._nav_marker = None
        logger.debug("Map surface detached")

    def close(self) -> None:
        self._controller.remove_observer(self._on_playback)
        self.detach()

    # -------------------------
    # inputs
    # -------------------------
    def set_endpoints(self, start: Optional[Endpoint], end: Optional[Endpoint]) -> None:
        self._start = start
        self._end = end
        if not self._controller.is_navigating:
            self.refresh_planning()

    def _on_playback(self, state: NavState, cursor: Optional[int]) -> None:
        if state is NavState.NAVIGATING:
            self.update_navigation()
        else:
            self.refresh_planning()

    def heading(self) -> float:
        return self._controller.heading()

    # -------------------------
    # navigating
    # -------------------------
    def update_navigation(self) -> None:
        if not self._ready():
            return
        route = self._controller.route
        cursor = self._controller.cursor
        if route is None or cursor is None:
            return

        pos = route.point(cursor)
        icon = nav_arrow_icon(route.heading_at(cursor))
        if self._nav_marker is None:
            self._nav_marker = self._surface.place_marker(pos, icon)
        else:
            self._surface.move_marker(self._nav_marker, pos)
            self._surface.set_marker_icon(self._nav_marker, icon)
        self._surface.pan_to(pos, self.config.pan_duration_s)

    # -------------------------
    # planning
    # -------------------------
    def refresh_planning(self) -> None:
        if not self._ready():
            return
        surface = self._surface
        route: Optional[Route] = self._controller.route
        self._draw_static(route)

        fit_points: List[LatLon] = []
        if route is not None:
            fit_points.extend(route.geometry_latlon)
        fit_points.extend(e.pos for e in (self._start, self._end) if e is not None)

        if len(set(fit_points)) > 1:
            surface.fit_bounds(fit_points, self._padding())
        elif fit_points:
            # a lone point has no bounds: centre on it, keep zoom
            surface.set_view(fit_points[0], None)

        surface.invalidate_size()

    def redraw(self) -> None:
        # full repaint for a freshly attached surface, keeps the camera while navigating
        if not self._ready():
            return
        if self._controller.is_navigating:
            self._draw_static(self._controller.route)
            self.update_navigation()
            self._surface.invalidate_size()
        else:
            self.refresh_planning()

    def _draw_static(self, route: Optional[Route]) -> None:
        surface = self._surface
        # the direction marker lives in the same overlay set
        surface.clear_overlays()
        self._nav_marker = None

        if self._start is not None:
            surface.place_marker(self._start.pos, endpoint_icon("start"))
        if self._end is not None:
            surface.place_marker(self._end.pos, endpoint_icon("end"))
        if route is not None and len(route) > 1:
            surface.draw_path(list(route.geometry_latlon), self._path_style())

    # -------------------------
    # helpers
    # -------------------------
    @property
    def surface(self) -> MapSurface:
        if self._surface_state is not SurfaceState.READY or self._surface is None:
            raise SurfaceUnavailable("Map surface is not attached")
        return self._surface

    def _ready(self) -> bool:
        try:
            self.surface
        except SurfaceUnavailable:
            logger.debug("Map surface not ready, update deferred")
            return False
        return True

    def _padding(self) -> Padding:
        return Padding(
            top_left=tuple(self.config.fit_padding_top_left),
            bottom_right=tuple(self.config.fit_padding_bottom_right),
        )

    def _path_style(self) -> PathStyle:
        return PathStyle(**self.config.path_style)
