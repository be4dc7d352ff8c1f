"""Shared pytest fixtures for the text route test suite.

Fixtures:
    eight_pool_ways: one street way per stroke anchor of a single glyph cell
    eight_pool_segments: the same ways classified around (0, 0)
    straight_connector: connector returning the straight start→end line
    failing_connector: connector that never finds a route
"""

from typing import List, Optional, Sequence

import pytest

from algo.geo import GeoPoint
from algo.segments import RawWay, categorize_street_segments

M = 1 / 111000.0  # 1 m in degrees on the matcher's scale
HALF_LEN_M = 40.0


def horizontal_way(way_id, x_m: float, y_m: float, half_m: float = HALF_LEN_M) -> RawWay:
    lat = y_m * M
    return RawWay(way_id, (
        GeoPoint(lat, (x_m - half_m) * M),
        GeoPoint(lat, x_m * M),
        GeoPoint(lat, (x_m + half_m) * M),
    ))


def vertical_way(way_id, x_m: float, y_m: float, half_m: float = HALF_LEN_M) -> RawWay:
    lng = x_m * M
    return RawWay(way_id, (
        GeoPoint((y_m - half_m) * M, lng),
        GeoPoint(y_m * M, lng),
        GeoPoint((y_m + half_m) * M, lng),
    ))


def make_eight_pool(offset_x_m: float = 0.0, id_prefix: str = "") -> List[RawWay]:
    """One horizontal/vertical way placed exactly on each seven-segment anchor."""
    return [
        horizontal_way(f"{id_prefix}top", offset_x_m + 0, 100),
        horizontal_way(f"{id_prefix}middle", offset_x_m + 0, 0),
        horizontal_way(f"{id_prefix}bottom", offset_x_m + 0, -100),
        vertical_way(f"{id_prefix}top-left", offset_x_m - 50, 50),
        vertical_way(f"{id_prefix}top-right", offset_x_m + 50, 50),
        vertical_way(f"{id_prefix}bottom-left", offset_x_m - 50, -50),
        vertical_way(f"{id_prefix}bottom-right", offset_x_m + 50, -50),
    ]


class StraightConnector:
    """Returns the straight line between the two points and records every call."""

    def __init__(self):
        self.calls: List[tuple] = []

    def route(self, start: GeoPoint, end: GeoPoint) -> Optional[List[GeoPoint]]:
        self.calls.append((start, end))
        return [start, end]


class FailingConnector:
    def __init__(self):
        self.calls: List[tuple] = []

    def route(self, start: GeoPoint, end: GeoPoint) -> Optional[List[GeoPoint]]:
        self.calls.append((start, end))
        return None


class ScriptedConnector:
    """Answers calls from a list: a path, or None for a failure."""

    def __init__(self, answers: Sequence[Optional[List[GeoPoint]]]):
        self.answers = list(answers)
        self.calls: List[tuple] = []

    def route(self, start, end):
        self.calls.append((start, end))
        return self.answers.pop(0) if self.answers else None


class FakeStreetSource:
    def __init__(self, ways: Sequence[RawWay]):
        self.ways = list(ways)
        self.calls: List[tuple] = []

    def fetch_ways(self, center_lat, center_lng, radius_m):
        self.calls.append((center_lat, center_lng, radius_m))
        return list(self.ways)


class FixedChoice:
    """Stand-in for numpy Generator.integers that always picks the same index."""

    def __init__(self, value: int):
        self.value = value

    def integers(self, high):
        return self.value


def meridian_path(total_km: float, steps: int = 10, lat0: float = 25.0, lng: float = 121.5) -> List[GeoPoint]:
    """Points due north of (lat0, lng) spanning roughly total_km."""
    deg = total_km / 111.195  # haversine km per degree of latitude
    return [GeoPoint(lat0 + deg * i / steps, lng) for i in range(steps + 1)]


@pytest.fixture
def eight_pool_ways() -> List[RawWay]:
    return make_eight_pool()


@pytest.fixture
def eight_pool_segments(eight_pool_ways):
    return categorize_street_segments(eight_pool_ways, 0.0, 0.0)


@pytest.fixture
def straight_connector() -> StraightConnector:
    return StraightConnector()


@pytest.fixture
def failing_connector() -> FailingConnector:
    return FailingConnector()
