from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from geo_utils import LatLon, heading_at, haversine_m


@dataclass(frozen=True)
class Endpoint:
    pos: LatLon
    label: str = "Selected Point"


@dataclass(frozen=True)
class Route:
    geometry_latlon: Tuple[LatLon, ...]
    distance_km: float = 0.0
    duration_min: float = 0.0
    num_nodes: Optional[int] = None
    route_names: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]], **meta) -> "Route":
        geometry = tuple((float(p[0]), float(p[1])) for p in points)
        names = tuple(meta.pop("route_names", None) or ())
        return cls(geometry_latlon=geometry, route_names=names, **meta)

    def __len__(self) -> int:
        return len(self.geometry_latlon)

    def point(self, idx: int) -> LatLon:
        return self.geometry_latlon[idx]

    def heading_at(self, idx: int) -> float:
        return heading_at(list(self.geometry_latlon), idx)

    def path_length_m(self) -> float:
        pts = self.geometry_latlon
        return sum(haversine_m(pts[i], pts[i + 1]) for i in range(len(pts) - 1))
