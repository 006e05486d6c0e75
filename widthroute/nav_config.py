# nav_config.py
# All tuneable settings in one place. Pass a NavConfig to every module that needs them.

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

LatLon = Tuple[float, float]


# ---------------------------------------------------------------------------
# Vehicle profiles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Vehicle:
    label: str
    width: float  # metres

    @property
    def clearance(self) -> float:
        return round(self.width * WIDTH_SCALE, 3)


# the routing service expects road clearance, not the bare vehicle width
WIDTH_SCALE: float = 2.2

VEHICLES: Tuple[Vehicle, ...] = (
    Vehicle("Bike", 1.0),
    Vehicle("Car", 2.0),
    Vehicle("4-Seater", 2.2),
    Vehicle("7-Seater", 2.5),
    Vehicle("Truck", 3.0),
)

DEFAULT_VEHICLE: Vehicle = VEHICLES[1]

WIDE_VEHICLE_M: float = 3.0


def vehicle_by_label(label: str) -> Vehicle:
    for v in VEHICLES:
        if v.label.lower() == label.lower():
            return v
    raise KeyError(f"Unknown vehicle: {label}")


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Routing service
    api_base_url: str = "https://mapwidth-backend.onrender.com/"
    request_timeout_s: float = 60.0
    backend: str = "width"                   # "width" | "osrm"
    osrm_url: str = "https://router.project-osrm.org"

    # Map view
    default_center: LatLon = (31.6339, 74.8770)
    default_zoom: int = 14
    tile_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    tile_attribution: str = "&copy; OpenStreetMap contributors"
    pan_duration_s: float = 0.3
    # the side panel covers the left part of the map
    fit_padding_top_left: Tuple[int, int] = (400, 50)
    fit_padding_bottom_right: Tuple[int, int] = (50, 50)
    path_style: Dict[str, object] = field(default_factory=lambda: {
        "color": "#10b981",
        "weight": 6,
        "opacity": 0.8,
    })

    # Web viewer
    host: str = "127.0.0.1"
    port: int = 8000

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "NavConfig":
        load_dotenv(env_file)
        cfg = cls()
        cfg.api_base_url = os.getenv("WIDTHROUTE_API_URL", cfg.api_base_url)
        cfg.request_timeout_s = float(os.getenv("WIDTHROUTE_TIMEOUT", cfg.request_timeout_s))
        cfg.backend = os.getenv("WIDTHROUTE_BACKEND", cfg.backend)
        cfg.osrm_url = os.getenv("WIDTHROUTE_OSRM_URL", cfg.osrm_url)
        cfg.host = os.getenv("WIDTHROUTE_HOST", cfg.host)
        cfg.port = int(os.getenv("WIDTHROUTE_PORT", cfg.port))
        cfg.log_level = os.getenv("WIDTHROUTE_LOG_LEVEL", cfg.log_level).upper()
        return cfg

    @property
    def route_url(self) -> str:
        return self.api_base_url.rstrip("/") + "/route"
