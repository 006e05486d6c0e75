import asyncio
import itertools
import logging
from typing import Any, Dict, Optional, Sequence

from aiohttp import web

from MapSurface import IconSpec, MarkerId, Padding, PathStyle
from geo_utils import LatLon

logger = logging.getLogger(__name__)

PUB_QUEUE_SIZE = 1024


def publish_nowait(q: asyncio.Queue, event: Dict[str, Any]) -> None:
    # drop the oldest event rather than block the loop
    if q.full():
        try:
            q.get_nowait()
            q.task_done()
            logger.warning("Publish queue full, dropped oldest event")
        except asyncio.QueueEmpty:
            pass
    q.put_nowait(event)


async def publish(app: web.Application, event: Dict[str, Any]) -> None:
    publish_nowait(app["pub_q"], event)


async def send_message(app: web.Application, level: str, text: str) -> None:
    await publish(app, {"type": "message", "level": level, "text": text})


async def broadcaster(app: web.Application) -> None:
    q: asyncio.Queue = app["pub_q"]
    while True:
        event = await q.get()
        try:
            for ws in list(app["sockets"]):
                if ws.closed:
                    continue
                try:
                    await ws.send_json(event)
                except ConnectionError as e:
                    logger.debug("Dropping event for closed socket: %s", e)
        finally:
            q.task_done()


class WebSocketSurface:
    """
    MapSurface that forwards every command to the connected browsers as a `map` event.

    The page applies them to its Leaflet map; marker and path ids are assigned here.
    """

    def __init__(self, q: asyncio.Queue) -> None:
        self._q = q
        self._ids = itertools.count(1)

    def _send(self, op: str, **args: Any) -> None:
        publish_nowait(self._q, {"type": "map", "op": op, **args})

    def place_marker(self, pos: LatLon, icon: IconSpec) -> MarkerId:
        marker_id = f"marker-{next(self._ids)}"
        self._send("place_marker", id=marker_id, pos=list(pos), icon=icon.to_dict())
        return marker_id

    def move_marker(self, marker_id: MarkerId, pos: LatLon) -> None:
        self._send("move_marker", id=marker_id, pos=list(pos))

    def set_marker_icon(self, marker_id: MarkerId, icon: IconSpec) -> None:
        self._send("set_marker_icon", id=marker_id, icon=icon.to_dict())

    def draw_path(self, points: Sequence[LatLon], style: PathStyle) -> str:
        path_id = f"path-{next(self._ids)}"
        self._send("draw_path", id=path_id, points=[list(p) for p in points], style=style.to_dict())
        return path_id

    def clear_overlays(self) -> None:
        self._send("clear_overlays")

    def pan_to(self, pos: LatLon, duration_s: float) -> None:
        self._send("pan_to", pos=list(pos), duration=duration_s)

    def fit_bounds(self, points: Sequence[LatLon], padding: Padding) -> None:
        self._send("fit_bounds", points=[list(p) for p in points], padding=padding.to_dict())

    def set_view(self, pos: LatLon, zoom: Optional[int]) -> None:
        self._send("set_view", pos=list(pos), zoom=zoom)

    def invalidate_size(self) -> None:
        self._send("invalidate_size")
