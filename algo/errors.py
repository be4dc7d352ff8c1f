"""Exception hierarchy for text route synthesis.

Only the fatal kinds below ever reach the caller. Connector gaps and distance
shortfalls are reported through result objects instead.
"""

from __future__ import annotations


class RouteSynthesisError(Exception):
    """Base exception for all route synthesis errors."""

    pass


class InvalidRouteRequest(RouteSynthesisError):
    """Arguments to the synthesis entry point are unusable."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid route request: {reason}")


class StreetDataError(RouteSynthesisError):
    """Errors related to the street-data query."""

    pass


class TransientFetchFailure(StreetDataError):
    """Rate limit, timeout or transport failure that may succeed on retry."""

    def __init__(self, reason: str, status: int | None = None) -> None:
        self.reason = reason
        self.status = status
        super().__init__(f"Transient street-data failure: {reason}")


class StreetDataUnavailable(StreetDataError):
    """Street-data query failed for good."""

    def __init__(self, reason: str, attempts: int = 1, status: int | None = None) -> None:
        self.reason = reason
        self.attempts = attempts
        self.status = status
        super().__init__(f"Street data unavailable after {attempts} attempt(s): {reason}")


class NoStreetDataFound(StreetDataError):
    """The query succeeded but returned no usable ways."""

    def __init__(self, center_lat: float, center_lng: float, radius_m: float) -> None:
        self.center_lat = center_lat
        self.center_lng = center_lng
        self.radius_m = radius_m
        super().__init__(
            f"No streets found within {radius_m:.0f} m of ({center_lat:.5f}, {center_lng:.5f}); "
            "pick a location inside a city or an area with roads"
        )


class NoGlyphCoverage(RouteSynthesisError):
    """No stroke of any character could be matched to a street."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"No street segment could be matched to any character of '{text}'")


class StitchFailure(RouteSynthesisError):
    """Stitching produced an empty path despite matched segments."""

    def __init__(self, segment_count: int) -> None:
        self.segment_count = segment_count
        super().__init__(f"Could not stitch {segment_count} matched segment(s) into a path")
