from .errors import (
    InvalidRouteRequest,
    NoGlyphCoverage,
    NoStreetDataFound,
    RouteSynthesisError,
    StitchFailure,
    StreetDataUnavailable,
)
from .geo import GeoPoint
from .planner import RouteResult, TextRoutePlanner, synthesize_text_route

__all__ = [
    "GeoPoint",
    "InvalidRouteRequest",
    "NoGlyphCoverage",
    "NoStreetDataFound",
    "RouteResult",
    "RouteSynthesisError",
    "StitchFailure",
    "StreetDataUnavailable",
    "TextRoutePlanner",
    "synthesize_text_route",
]
