# main.py
# Command line entry point: run the live web viewer, or fetch one route and preview it.

import argparse
import logging
import sys
import webbrowser
from pathlib import Path
from typing import List, Optional

from PlaybackController import PlaybackController
from ViewSynchronizer import ViewSynchronizer
from folium_surface import FoliumSurface
from geo_utils import LatLon
from nav_config import NavConfig, VEHICLES, vehicle_by_label
from nav_errors import RouteFetchFailure
from route_client import make_client, summary_dict
from Route import Endpoint

logger = logging.getLogger("widthroute")


def parse_latlon(text: str) -> LatLon:
    try:
        lat, lon = (float(x) for x in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {text!r}")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise argparse.ArgumentTypeError(f"coordinate out of range: {text!r}")
    return lat, lon


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="widthroute", description="Vehicle-width aware route viewer")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    p.add_argument("--env-file", default=None, help="dotenv file with WIDTHROUTE_* settings")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("serve", help="run the live map viewer")
    s.add_argument("--host", default=None)
    s.add_argument("--port", type=int, default=None)
    s.add_argument("--open", action="store_true", help="open the viewer in a browser")

    r = sub.add_parser("route", help="fetch one route and print its summary")
    r.add_argument("--start", type=parse_latlon, required=True, metavar="LAT,LON")
    r.add_argument("--end", type=parse_latlon, required=True, metavar="LAT,LON")
    r.add_argument("--vehicle", default="Car", choices=[v.label for v in VEHICLES])
    r.add_argument("--backend", choices=["width", "osrm"], default=None)
    r.add_argument("--html", default=None, metavar="FILE", help="write a map preview")
    r.add_argument("--open", action="store_true", help="open the preview in a browser")
    return p


def render_preview(config: NavConfig, route, start: LatLon, end: LatLon, path: str) -> None:
    surface = FoliumSurface(config)
    with PlaybackController() as ctl:
        view = ViewSynchronizer(ctl, config)
        view.attach(surface)
        view.set_endpoints(Endpoint(start, "Start"), Endpoint(end, "End"))
        ctl.on_route_replaced(route)
    surface.save(path)


def cmd_route(args, config: NavConfig) -> int:
    if args.backend:
        config.backend = args.backend
    vehicle = vehicle_by_label(args.vehicle)
    client = make_client(config)

    try:
        route, warning = client.fetch(args.start, args.end, vehicle)
    except RouteFetchFailure as e:
        logger.error("Route request failed: %s", e)
        print(f"[Error] {e}", file=sys.stderr)
        return 1

    s = summary_dict(route, vehicle, warning)
    if warning:
        print(f"[Warning] {warning}")
    print(f"Distance: {s['distance_km']:.1f} km")
    print(f"Avg time: {s['avg_time_min']:g} min")
    print(f"Path nodes: {s['num_nodes'] if s['num_nodes'] is not None else s['points']}"
          f" | Vehicle restriction: {vehicle.width} m")
    for name in s["route_names"]:
        print(f"  - {name}")

    if args.html:
        render_preview(config, route, args.start, args.end, args.html)
        if args.open:
            webbrowser.open(Path(args.html).resolve().as_uri())
    return 0


def cmd_serve(args, config: NavConfig) -> int:
    from realtime_runner import run

    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    run(config, open_browser=args.open)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = NavConfig.from_env(args.env_file)

    # Logging setup: configure once here, all modules inherit
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "serve":
        return cmd_serve(args, config)
    return cmd_route(args, config)


if __name__ == "__main__":
    sys.exit(main())
