# algo/geo.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple
import math

R_EARTH_KM = 6371.0
KM_PER_DEG = 111.0  # 위도 1도 ≈ 111km (우회 지점 계산용 근사치)


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    @classmethod
    def from_lonlat(cls, lon: float, lat: float) -> "GeoPoint":
        return cls(lat=float(lat), lng=float(lon))

    def as_lnglat(self) -> Tuple[float, float]:
        return (self.lng, self.lat)


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in km between two WGS84 points."""
    dlat = math.radians(b.lat - a.lat)
    dlon = math.radians(b.lng - a.lng)
    s = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(dlon / 2) ** 2)
    return 2 * R_EARTH_KM * math.atan2(math.sqrt(s), math.sqrt(1 - s))


def path_length_km(points: Sequence[GeoPoint]) -> float:
    if len(points) < 2:
        return 0.0
    total = 0.0
    for p, q in zip(points[:-1], points[1:]):
        total += haversine_km(p, q)
    return total


def offset_point(origin: GeoPoint, north_km: float = 0.0, east_km: float = 0.0) -> GeoPoint:
    """
    원점에서 북/동 방향으로 km 만큼 떨어진 점.
    dLat = d/111, dLng = d/(111*cos(lat)) 근사 사용.
    """
    dlat = north_km / KM_PER_DEG
    dlng = east_km / (KM_PER_DEG * math.cos(math.radians(origin.lat)))
    return GeoPoint(lat=origin.lat + dlat, lng=origin.lng + dlng)


def points_from_lnglat(coords: Iterable[Sequence[float]]) -> List[GeoPoint]:
    return [GeoPoint(lat=float(c[1]), lng=float(c[0])) for c in coords]
