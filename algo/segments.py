# algo/segments.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Hashable, List, Sequence, Tuple
import structlog

from .geo import GeoPoint, haversine_km, path_length_km

logger = structlog.get_logger(__name__)

# 주 방향 판정 비율 (dLat < 0.3*dLng → 수평)
AXIS_RATIO = 0.3
MIN_SEARCH_RADIUS_M = 500.0
RADIUS_M_PER_KM = 250.0


class Direction(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL = "diagonal"


@dataclass(frozen=True)
class RawWay:
    id: Hashable
    geometry: Tuple[GeoPoint, ...]


@dataclass(frozen=True)
class StreetSegment:
    id: Hashable
    geometry: Tuple[GeoPoint, ...]
    direction: Direction
    length_km: float
    center_point: GeoPoint
    distance_from_center_km: float

    @property
    def start_point(self) -> GeoPoint:
        return self.geometry[0]

    @property
    def end_point(self) -> GeoPoint:
        return self.geometry[-1]


def classify_direction(geometry: Sequence[GeoPoint]) -> Direction:
    """
    시작점-끝점 좌표 차이로 수평/수직/대각 분류.
    경계값(정확히 0.3배)과 정사각형에 가까운 경우는 대각선.
    """
    start, end = geometry[0], geometry[-1]
    d_lat = abs(end.lat - start.lat)
    d_lng = abs(end.lng - start.lng)
    if d_lat < d_lng * AXIS_RATIO:
        return Direction.HORIZONTAL
    if d_lng < d_lat * AXIS_RATIO:
        return Direction.VERTICAL
    return Direction.DIAGONAL


def center_point(geometry: Sequence[GeoPoint]) -> GeoPoint:
    # 보간 없이 가운데 인덱스 점 (짝수 길이면 중앙 바로 다음 점)
    return geometry[len(geometry) // 2]


def build_segment(way: RawWay, center: GeoPoint) -> StreetSegment:
    geometry = tuple(way.geometry)
    mid = center_point(geometry)
    return StreetSegment(
        id=way.id,
        geometry=geometry,
        direction=classify_direction(geometry),
        length_km=path_length_km(geometry),
        center_point=mid,
        distance_from_center_km=haversine_km(center, mid),
    )


def categorize_street_segments(ways: Sequence[RawWay], center_lat: float, center_lng: float) -> List[StreetSegment]:
    """Classify raw ways into segments, nearest to the query center first."""
    center = GeoPoint(center_lat, center_lng)
    segments = [build_segment(w, center) for w in ways if len(w.geometry) >= 2]
    segments.sort(key=lambda s: s.distance_from_center_km)

    counts = {d.value: 0 for d in Direction}
    for s in segments:
        counts[s.direction.value] += 1
    logger.info("segments classified", ways=len(ways), segments=len(segments), **counts)
    return segments


def calculate_search_radius(min_km: float, max_km: float) -> float:
    """Street query radius in meters for a target distance window."""
    avg_km = (min_km + max_km) / 2
    return max(MIN_SEARCH_RADIUS_M, avg_km * RADIUS_M_PER_KM)
