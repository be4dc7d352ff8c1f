# algo/simplify.py
from __future__ import annotations
from typing import List, Sequence

from .geo import GeoPoint, haversine_km


def perpendicular_distance_km(point: GeoPoint, line_start: GeoPoint, line_end: GeoPoint) -> float:
    """
    현의 (lng, lat) 평면 위로 투영해 [0,1]로 자른 최근접점까지의 하버사인 거리(km).
    투영은 도 단위, 반환값은 km.
    """
    dx = line_end.lng - line_start.lng
    dy = line_end.lat - line_start.lat
    mag2 = dx * dx + dy * dy
    if mag2 == 0:
        return haversine_km(point, line_start)

    u = ((point.lng - line_start.lng) * dx + (point.lat - line_start.lat) * dy) / mag2
    if u < 0:
        closest = line_start
    elif u > 1:
        closest = line_end
    else:
        closest = GeoPoint(lat=line_start.lat + u * dy, lng=line_start.lng + u * dx)
    return haversine_km(point, closest)


def douglas_peucker(points: Sequence[GeoPoint], tolerance: float) -> List[GeoPoint]:
    """Douglas-Peucker reduction; first and last points are always kept."""
    if len(points) <= 2:
        return list(points)

    start, end = points[0], points[-1]
    max_dist, max_idx = 0.0, 0
    for i in range(1, len(points) - 1):
        d = perpendicular_distance_km(points[i], start, end)
        if d > max_dist:
            max_dist, max_idx = d, i

    if max_dist > tolerance:
        left = douglas_peucker(points[:max_idx + 1], tolerance)
        right = douglas_peucker(points[max_idx:], tolerance)
        return left[:-1] + right
    return [start, end]
