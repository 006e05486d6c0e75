import pytest

from MapSurface import Padding
from PlaybackController import PlaybackController, NavState, STEP_INTERVAL_S
from Route import Endpoint
from ViewSynchronizer import ViewSynchronizer, SurfaceState
from nav_config import NavConfig
from nav_errors import SurfaceUnavailable
from fakes import FakeLoop, RecordingSurface, SCENARIO, route_of

START = Endpoint((31.63, 74.87), "Current Location")
END = Endpoint((31.65, 74.89), "Selected Point")


def make(attach=True):
    loop = FakeLoop()
    ctl = PlaybackController(loop)
    view = ViewSynchronizer(ctl, NavConfig())
    surface = RecordingSurface()
    if attach:
        view.attach(surface)
        surface.calls.clear()
    return ctl, view, surface, loop


def test_updates_before_attach_are_noops():
    ctl, view, surface, loop = make(attach=False)
    assert view.surface_state is SurfaceState.UNINITIALIZED
    view.set_endpoints(START, END)
    ctl.on_route_replaced(route_of(SCENARIO))
    ctl.start(ctl.route)
    loop.advance(STEP_INTERVAL_S)
    view.refresh_planning()
    view.update_navigation()
    assert surface.calls == []
    assert ctl.cursor == 1


def test_attach_catches_up():
    ctl, view, surface, loop = make(attach=False)
    view.set_endpoints(START, END)
    ctl.on_route_replaced(route_of(SCENARIO))
    view.attach(surface)
    assert view.surface_state is SurfaceState.READY
    assert surface.overlay_kinds() == ["end", "start", "path"]
    assert len(surface.ops("fit_bounds")) == 1


def test_planning_fits_route_with_side_panel_padding():
    ctl, view, surface, loop = make()
    view.set_endpoints(START, END)
    surface.calls.clear()
    route = route_of(SCENARIO)
    ctl.on_route_replaced(route)

    (path, style), = surface.ops("draw_path")
    assert path == list(route.geometry_latlon)
    assert (style.color, style.weight, style.opacity) == ("#10b981", 6, 0.8)
    (points, padding), = surface.ops("fit_bounds")
    assert set(route.geometry_latlon) <= set(points)
    assert padding == Padding(top_left=(400, 50), bottom_right=(50, 50))
    assert surface.calls[-1] == ("invalidate_size", None)


def test_planning_update_is_idempotent():
    ctl, view, surface, loop = make()
    view.set_endpoints(START, END)
    ctl.on_route_replaced(route_of(SCENARIO))
    once = surface.overlay_kinds()

    view.refresh_planning()
    view.refresh_planning()
    assert surface.overlay_kinds() == once == ["end", "start", "path"]
    assert ctl.state is NavState.PLANNING
    assert ctl.cursor is None


def test_two_endpoints_without_route():
    ctl, view, surface, loop = make()
    view.set_endpoints(START, END)
    (points, padding), = surface.ops("fit_bounds")
    assert points == [START.pos, END.pos]
    assert surface.ops("draw_path") == []


def test_single_endpoint_centres_without_zoom_change():
    ctl, view, surface, loop = make()
    view.set_endpoints(START, None)
    assert surface.ops("fit_bounds") == []
    assert surface.ops("set_view") == [(START.pos, None)]


def test_single_point_route_has_no_path():
    ctl, view, surface, loop = make()
    ctl.on_route_replaced(route_of([[1.0, 2.0]]))
    assert surface.ops("draw_path") == []
    assert surface.ops("set_view") == [((1.0, 2.0), None)]


def test_navigation_moves_one_marker():
    ctl, view, surface, loop = make()
    view.set_endpoints(START, END)
    route = route_of(SCENARIO + [[31.66, 74.90]])
    ctl.on_route_replaced(route)
    surface.calls.clear()

    ctl.start(route)
    (pos, icon), = surface.ops("place_marker")
    assert pos == route.point(0)
    assert icon.kind == "nav-arrow"
    assert icon.rotation == pytest.approx(route.heading_at(0))
    marker = view.nav_marker

    loop.advance(STEP_INTERVAL_S)
    loop.advance(STEP_INTERVAL_S)
    assert len(surface.ops("place_marker")) == 1
    assert view.nav_marker == marker
    assert surface.ops("move_marker") == [(marker, route.point(1)), (marker, route.point(2))]
    rotations = [icon.rotation for _, icon in surface.ops("set_marker_icon")]
    assert rotations == [pytest.approx(route.heading_at(1)), pytest.approx(route.heading_at(2))]
    assert surface.ops("pan_to") == [(route.point(i), 0.3) for i in range(3)]
    assert surface.ops("fit_bounds") == []
    assert surface.ops("clear_overlays") == []


def test_last_point_heading_is_zero_then_planning_view_returns():
    ctl, view, surface, loop = make()
    view.set_endpoints(START, END)
    route = route_of(SCENARIO)
    ctl.on_route_replaced(route)
    ctl.start(route)
    surface.calls.clear()

    loop.advance(STEP_INTERVAL_S * 2)
    last_icon = surface.ops("set_marker_icon")[-1][1]
    assert last_icon.rotation == 0.0
    assert ctl.state is NavState.PLANNING
    # finishing drops the arrow and re-frames the whole route
    assert view.nav_marker is None
    assert surface.overlay_kinds() == ["end", "start", "path"]
    assert len(surface.ops("fit_bounds")) == 1


def test_stop_removes_marker():
    ctl, view, surface, loop = make()
    route = route_of(SCENARIO)
    ctl.on_route_replaced(route)
    ctl.start(route)
    assert view.nav_marker is not None
    ctl.stop()
    assert view.nav_marker is None
    assert "nav-arrow" not in surface.overlay_kinds()


def test_endpoint_change_while_navigating_does_not_refit():
    ctl, view, surface, loop = make()
    route = route_of(SCENARIO)
    ctl.on_route_replaced(route)
    ctl.start(route)
    surface.calls.clear()
    view.set_endpoints(START, END)
    assert surface.calls == []


def test_attach_mid_navigation_redraws_path_and_marker():
    ctl, view, surface, loop = make(attach=False)
    route = route_of(SCENARIO)
    ctl.on_route_replaced(route)
    ctl.start(route)
    loop.advance(STEP_INTERVAL_S)

    view.attach(surface)
    assert surface.overlay_kinds() == ["nav-arrow", "path"]
    assert surface.ops("pan_to") == [(route.point(1), 0.3)]
    assert surface.ops("fit_bounds") == []


def test_detach_stops_commands():
    ctl, view, surface, loop = make()
    route = route_of(SCENARIO)
    ctl.on_route_replaced(route)
    view.detach()
    surface.calls.clear()
    ctl.start(route)
    loop.advance(STEP_INTERVAL_S)
    assert surface.calls == []
    assert view.nav_marker is None


def test_surface_accessor_raises_when_detached():
    ctl, view, surface, loop = make(attach=False)
    with pytest.raises(SurfaceUnavailable):
        view.surface
    view.attach(surface)
    assert view.surface is surface
