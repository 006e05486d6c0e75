from dataclasses import dataclass


class WidthRouteError(Exception):
    pass


class InvalidRoute(WidthRouteError, ValueError):
    """Empty or malformed route handed to playback."""
    pass


class RouteFetchFailure(WidthRouteError):
    """Routing service call failed or returned no usable route."""
    pass


class SurfaceUnavailable(WidthRouteError):
    """Map surface is not attached yet."""
    pass


@dataclass(frozen=True)
class RouteWarning:
    # usable route came back together with a non-fatal service message
    message: str

    def __str__(self) -> str:
        return self.message
