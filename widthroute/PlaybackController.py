from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from Route import Route
from geo_utils import is_latlon
from nav_errors import InvalidRoute

logger = logging.getLogger(__name__)

# one playback step, fixed drive animation rate
STEP_INTERVAL_S = 0.3


class NavState(Enum):
    IDLE = "idle"
    PLANNING = "planning"
    NAVIGATING = "navigating"


Observer = Callable[[NavState, Optional[int]], None]


def validate_route(route) -> None:
    if route is None or not hasattr(route, "geometry_latlon"):
        raise InvalidRoute("No route to play")
    if len(route.geometry_latlon) < 1:
        raise InvalidRoute("Route has no points")
    for i, p in enumerate(route.geometry_latlon):
        if not is_latlon(p):
            raise InvalidRoute(f"Route point {i} is not a (lat, lon) pair: {p!r}")


class PlaybackController:
    """
    Moves a cursor over the active route, one point every STEP_INTERVAL_S.

    Usage:
        ctl = PlaybackController()
        ctl.add_observer(lambda state, cursor: ...)
        ctl.on_route_replaced(route)
        ctl.start(route)

    The timer is a single loop.call_later handle that every tick re-arms or drops.
    Observers are called with (state, cursor) after each change.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._route: Optional[Route] = None
        self._state = NavState.IDLE
        self._cursor: Optional[int] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._observers: List[Observer] = []

    # -------------------------
    # read-only
    # -------------------------
    @property
    def state(self) -> NavState:
        return self._state

    @property
    def cursor(self) -> Optional[int]:
        return self._cursor

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def is_navigating(self) -> bool:
        return self._state is NavState.NAVIGATING

    @property
    def timer_armed(self) -> bool:
        return self._handle is not None

    def heading(self) -> float:
        if self._route is None or self._cursor is None:
            return 0.0
        return self._route.heading_at(self._cursor)

    # -------------------------
    # observers
    # -------------------------
    def add_observer(self, fn: Observer) -> None:
        self._observers.append(fn)

    def remove_observer(self, fn: Observer) -> None:
        if fn in self._observers:
            self._observers.remove(fn)

    def _notify(self) -> None:
        for fn in list(self._observers):
            try:
                fn(self._state, self._cursor)
            except Exception:
                # a broken view must not stall the drive
                logger.exception("Playback observer %r failed", fn)

    # -------------------------
    # control
    # -------------------------
    def start(self, route: Route) -> None:
        validate_route(route)

        if self._state is NavState.NAVIGATING and route is self._route:
            logger.debug("start() ignored, already playing this route")
            return

        # no loop means no timer, fail before touching state
        loop = self._loop or asyncio.get_running_loop()

        self._disarm()
        self._route = route
        self._cursor = 0
        self._state = NavState.NAVIGATING
        self._handle = loop.call_later(STEP_INTERVAL_S, self._tick)
        logger.info("Playback started (%d points)", len(route))
        self._notify()

    def stop(self) -> None:
        if self._halt():
            self._notify()

    def on_route_replaced(self, new_route: Optional[Route]) -> None:
        self._halt()
        self._route = new_route
        self._state = NavState.PLANNING if new_route is not None else NavState.IDLE
        self._notify()

    def _halt(self) -> bool:
        # returns True when state or cursor actually changed
        if self._state is NavState.NAVIGATING:
            logger.info("Playback stopped")
        self._disarm()
        new_state = NavState.PLANNING if self._route is not None else NavState.IDLE
        changed = new_state is not self._state or self._cursor is not None
        self._state = new_state
        self._cursor = None
        return changed

    def close(self) -> None:
        # drop observers first, a closing session is not repainted
        self._observers.clear()
        self._halt()

    def __enter__(self) -> "PlaybackController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -------------------------
    # timer
    # -------------------------
    def _arm(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(STEP_INTERVAL_S, self._tick)

    def _disarm(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        self._handle = None
        if self._cursor is None or self._route is None:
            return

        last = len(self._route) - 1
        if self._cursor + 1 <= last:
            self._cursor += 1
            if self._cursor < last:
                # next step is scheduled before anyone sees this one
                self._arm()
                self._notify()
                return
            self._notify()
        else:
            self._cursor = last
        self._finish()

    def _finish(self) -> None:
        logger.info("Playback reached the end of the route")
        self._state = NavState.PLANNING
        self._cursor = None
        self._notify()
