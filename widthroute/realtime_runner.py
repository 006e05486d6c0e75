import asyncio
import json
import logging
import sys
import time
import webbrowser
from pathlib import Path
from typing import Any, Dict, Optional

from aiohttp import web, WSMsgType

from Navigator import Navigator, SUPERSEDED
from geo_utils import LatLon
from nav_config import NavConfig, VEHICLES
from ws_bus import PUB_QUEUE_SIZE, WebSocketSurface, broadcaster, publish, publish_nowait, send_message

logger = logging.getLogger(__name__)


def _web_dir() -> Path:
    here = Path(__file__).resolve().parent / "web"
    if here.is_dir():
        return here
    # non-editable installs put the page under <prefix>/share
    return Path(sys.prefix) / "share" / "widthroute" / "web"


WEB_DIR = _web_dir()


# -------------------------
# events
# -------------------------
def status_event(nav: Navigator) -> Dict[str, Any]:
    return {"type": "status", **nav.status()}


def summary_event(nav: Navigator) -> Dict[str, Any]:
    return {"type": "summary", "summary": nav.summary()}


def init_event(config: NavConfig) -> Dict[str, Any]:
    return {
        "type": "init",
        "center": list(config.default_center),
        "zoom": config.default_zoom,
        "tile_url": config.tile_url,
        "attribution": config.tile_attribution,
        "vehicles": [{"label": v.label, "width": v.width} for v in VEHICLES],
    }


def parse_latlon(data: Dict[str, Any]) -> LatLon:
    lon = data.get("lon", data.get("lng"))
    return float(data["lat"]), float(lon)


# -------------------------
# message handling
# -------------------------
async def run_route_request(app: web.Application) -> None:
    nav: Navigator = app["navigator"]
    task = asyncio.current_task()
    try:
        await publish(app, status_event(nav))
        ok, msg = await nav.request_route()
        if ok:
            await publish(app, summary_event(nav))
            if nav.warning:
                await send_message(app, "warning", str(nav.warning))
        elif msg != SUPERSEDED:
            await send_message(app, "error", msg)
        await publish(app, status_event(nav))
    finally:
        app["tasks"].discard(task)


async def handle_message(app: web.Application, data: Dict[str, Any]) -> None:
    nav: Navigator = app["navigator"]
    kind = data.get("type")

    try:
        if kind == "location":
            nav.on_location(parse_latlon(data))
        elif kind == "location_error":
            nav.on_location_error(str(data.get("message", "unknown error")))
        elif kind == "set_start":
            nav.set_start(parse_latlon(data), data.get("name") or "Start Point")
        elif kind == "set_end":
            nav.set_end(parse_latlon(data), data.get("name") or "Selected Point")
        elif kind == "vehicle":
            nav.select_vehicle(str(data.get("label", "")))
            if nav.summary() is not None:
                await publish(app, summary_event(nav))
        elif kind == "find_route":
            task = asyncio.create_task(run_route_request(app))
            app["tasks"].add(task)
            return
        elif kind == "start":
            ok, msg = nav.start_navigation()
            if not ok:
                await send_message(app, "error", msg)
        elif kind == "stop":
            nav.stop_navigation()
        else:
            logger.warning("Unknown message type: %r", kind)
            await send_message(app, "error", f"Unknown message type: {kind}")
            return
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Bad %s message: %s", kind, e)
        await send_message(app, "error", f"Bad {kind} message: {e}")
        return

    await publish(app, status_event(nav))


async def ws_handler(request: web.Request) -> web.WebSocketResponse:
    app = request.app
    nav: Navigator = app["navigator"]
    ws = web.WebSocketResponse(heartbeat=30)
    await ws.prepare(request)

    await ws.send_json(init_event(app["config"]))
    app["sockets"].add(ws)
    # every new page repaints the whole session on every page
    nav.view.attach(app["surface"])
    await publish(app, status_event(nav))
    if nav.summary() is not None:
        await publish(app, summary_event(nav))

    try:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                try:
                    data = json.loads(msg.data)
                except ValueError:
                    await ws.send_json({"type": "message", "level": "error", "text": "invalid json"})
                    continue
                if not isinstance(data, dict):
                    await ws.send_json({"type": "message", "level": "error", "text": "expected an object"})
                    continue
                await handle_message(app, data)
            elif msg.type == WSMsgType.ERROR:
                logger.warning("Websocket closed with exception %s", ws.exception())
    finally:
        app["sockets"].discard(ws)
        if not app["sockets"]:
            nav.view.detach()
    return ws


async def index(request: web.Request) -> web.FileResponse:
    return web.FileResponse(WEB_DIR / "map.html", headers={
        "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    })


# -------------------------
# app lifecycle
# -------------------------
async def on_startup(app: web.Application) -> None:
    app["broadcaster"] = asyncio.create_task(broadcaster(app))


async def on_cleanup(app: web.Application) -> None:
    for task in list(app["tasks"]):
        task.cancel()
    app["broadcaster"].cancel()
    for ws in list(app["sockets"]):
        await ws.close()
    # no playback timer may outlive the app
    app["navigator"].close()


def create_app(config: Optional[NavConfig] = None, navigator: Optional[Navigator] = None) -> web.Application:
    config = config or NavConfig()
    app = web.Application()
    app["config"] = config
    app["pub_q"] = asyncio.Queue(maxsize=PUB_QUEUE_SIZE)
    app["sockets"] = set()
    app["tasks"] = set()
    app["surface"] = WebSocketSurface(app["pub_q"])

    nav = navigator or Navigator(config)
    app["navigator"] = nav
    nav.controller.add_observer(lambda state, cursor: publish_nowait(app["pub_q"], status_event(nav)))

    app.router.add_get("/", index)
    app.router.add_get("/ws", ws_handler)
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


def run(config: Optional[NavConfig] = None, open_browser: bool = False) -> None:
    config = config or NavConfig()
    app = create_app(config)

    if open_browser:
        url = f"http://{config.host}:{config.port}/?v={time.time()}"

        async def _open(app: web.Application) -> None:
            asyncio.get_running_loop().call_later(0.5, webbrowser.open, url)

        app.on_startup.append(_open)

    logger.info("Serving on http://%s:%d", config.host, config.port)
    web.run_app(app, host=config.host, port=config.port, print=None)
