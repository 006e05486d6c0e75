from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from geo_utils import LatLon

MarkerId = str


@dataclass(frozen=True)
class IconSpec:
    kind: str                       # "nav-arrow" | "start" | "end"
    html: str = ""
    class_name: str = ""
    size: Tuple[int, int] = (12, 12)
    anchor: Optional[Tuple[int, int]] = None
    rotation: float = 0.0
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PathStyle:
    color: str = "#10b981"
    weight: int = 6
    opacity: float = 0.8
    line_cap: str = "round"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Padding:
    top_left: Tuple[int, int] = (400, 50)
    bottom_right: Tuple[int, int] = (50, 50)

    def to_dict(self) -> Dict[str, Any]:
        return {"top_left": list(self.top_left), "bottom_right": list(self.bottom_right)}


class MapSurface(Protocol):
    def place_marker(self, pos: LatLon, icon: IconSpec) -> MarkerId: ...

    def move_marker(self, marker_id: MarkerId, pos: LatLon) -> None: ...

    def set_marker_icon(self, marker_id: MarkerId, icon: IconSpec) -> None: ...

    def draw_path(self, points: Sequence[LatLon], style: PathStyle) -> str: ...

    def clear_overlays(self) -> None: ...

    def pan_to(self, pos: LatLon, duration_s: float) -> None: ...

    def fit_bounds(self, points: Sequence[LatLon], padding: Padding) -> None: ...

    def set_view(self, pos: LatLon, zoom: Optional[int]) -> None: ...

    def invalidate_size(self) -> None: ...


# -------------------------
# icons
# -------------------------
def nav_arrow_icon(rotation: float = 0.0) -> IconSpec:
    html = (
        '<div style="width: 0; height: 0;'
        " border-left: 8px solid transparent;"
        " border-right: 8px solid transparent;"
        " border-bottom: 15px solid #0056D6;"
        f" transform: rotate({rotation:.1f}deg);"
        " transform-origin: 50% 100%;"
        ' filter: drop-shadow(0 0 4px rgba(0, 0, 0, 0.4));"></div>'
    )
    return IconSpec(
        kind="nav-arrow",
        html=html,
        class_name="nav-arrow-icon",
        size=(16, 20),
        anchor=(8, 20),
        rotation=rotation,
    )


def endpoint_icon(kind: str) -> IconSpec:
    if kind not in ("start", "end"):
        raise ValueError(f"Unknown endpoint kind: {kind}")
    color = "#22c55e" if kind == "start" else "#ef4444"
    html = (
        f'<div style="background: {color}; width: 12px; height: 12px; border-radius: 50%;'
        ' box-shadow: 0 0 0 4px #fff, 0 2px 6px rgba(0, 0, 0, 0.4);"></div>'
    )
    return IconSpec(
        kind=kind,
        html=html,
        class_name=f"endpoint-icon endpoint-{kind}",
        size=(12, 12),
        title="Start" if kind == "start" else "End",
    )
