import itertools
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import folium

from MapSurface import IconSpec, MarkerId, Padding, PathStyle
from geo_utils import LatLon, bounds
from nav_config import NavConfig

logger = logging.getLogger(__name__)


class FoliumSurface:
    """
    MapSurface that keeps overlays in memory and renders them to a static folium map.

    Camera commands only change what the saved page opens on; there is nothing to animate.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._ids = itertools.count(1)
        self.markers: Dict[MarkerId, Tuple[LatLon, IconSpec]] = {}
        self.paths: Dict[str, Tuple[List[LatLon], PathStyle]] = {}
        self.center: LatLon = self.config.default_center
        self.zoom: int = self.config.default_zoom
        self.fit: Optional[Tuple[List[LatLon], Padding]] = None

    # -------------------------
    # MapSurface
    # -------------------------
    def place_marker(self, pos: LatLon, icon: IconSpec) -> MarkerId:
        marker_id = f"marker-{next(self._ids)}"
        self.markers[marker_id] = (pos, icon)
        return marker_id

    def move_marker(self, marker_id: MarkerId, pos: LatLon) -> None:
        _, icon = self.markers[marker_id]
        self.markers[marker_id] = (pos, icon)

    def set_marker_icon(self, marker_id: MarkerId, icon: IconSpec) -> None:
        pos, _ = self.markers[marker_id]
        self.markers[marker_id] = (pos, icon)

    def draw_path(self, points: Sequence[LatLon], style: PathStyle) -> str:
        path_id = f"path-{next(self._ids)}"
        self.paths[path_id] = (list(points), style)
        return path_id

    def clear_overlays(self) -> None:
        self.markers.clear()
        self.paths.clear()

    def pan_to(self, pos: LatLon, duration_s: float) -> None:
        self.center = pos
        self.fit = None

    def fit_bounds(self, points: Sequence[LatLon], padding: Padding) -> None:
        self.fit = (list(points), padding)

    def set_view(self, pos: LatLon, zoom: Optional[int]) -> None:
        self.center = pos
        if zoom is not None:
            self.zoom = zoom
        self.fit = None

    def invalidate_size(self) -> None:
        pass

    # -------------------------
    # output
    # -------------------------
    def render(self) -> folium.Map:
        m = folium.Map(
            location=list(self.center),
            zoom_start=self.zoom,
            tiles=self.config.tile_url,
            attr=self.config.tile_attribution,
        )

        for points, style in self.paths.values():
            folium.PolyLine(
                points,
                color=style.color,
                weight=style.weight,
                opacity=style.opacity,
                line_cap=style.line_cap,
            ).add_to(m)

        for pos, icon in self.markers.values():
            folium.Marker(
                list(pos),
                tooltip=icon.title or None,
                icon=folium.DivIcon(
                    html=icon.html,
                    class_name=icon.class_name,
                    icon_size=icon.size,
                    icon_anchor=icon.anchor,
                ),
            ).add_to(m)

        if self.fit is not None:
            points, padding = self.fit
            (s, w), (n, e) = bounds(points)
            m.fit_bounds(
                [[s, w], [n, e]],
                padding_top_left=padding.top_left,
                padding_bottom_right=padding.bottom_right,
            )
        return m

    def save(self, path: str) -> None:
        self.render().save(path)
        logger.info("Map written to %s", path)
