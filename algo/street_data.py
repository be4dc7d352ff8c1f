# algo/street_data.py
"""Street network queries.

`OverpassStreetSource` talks to the Overpass API directly and owns the bounded
retry loop. `OsmnxStreetSource` goes through osmnx (and its HTTP cache) for the
same ways. Both return `RawWay` objects ready for segment classification.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence
import time
import osmnx as ox
import requests
import structlog
from osmnx._errors import InsufficientResponseError, ResponseStatusCodeError
from shapely.geometry import LineString

from .errors import StreetDataUnavailable, TransientFetchFailure
from .geo import GeoPoint
from .segments import RawWay

logger = structlog.get_logger(__name__)

# 408 요청 시간초과 / 429 요청 제한 / 503 과부하 / 504 게이트웨이 시간초과
TRANSIENT_STATUS = frozenset({408, 429, 503, 504})


class StreetSource(Protocol):
    def fetch_ways(self, center_lat: float, center_lng: float, radius_m: float) -> List[RawWay]:
        ...


def build_overpass_query(center_lat: float, center_lng: float, radius_m: float,
                         highway_types: Sequence[str], timeout_s: int = 25) -> str:
    pattern = "|".join(highway_types)
    return (
        f"[out:json][timeout:{int(timeout_s)}];\n"
        f"(\n"
        f'  way["highway"~"^({pattern})$"](around:{radius_m:.0f},{center_lat},{center_lng});\n'
        f");\n"
        f"out geom;"
    )


def parse_overpass_ways(payload: Dict[str, Any]) -> List[RawWay]:
    ways: List[RawWay] = []
    for el in payload.get("elements") or []:
        if el.get("type", "way") != "way":
            continue
        geometry = tuple(
            GeoPoint(lat=float(node["lat"]), lng=float(node["lon"]))
            for node in el.get("geometry") or []
            if node is not None
        )
        ways.append(RawWay(id=el.get("id"), geometry=geometry))
    return ways


def _is_runtime_timeout(payload: Dict[str, Any]) -> bool:
    # Overpass는 200 응답에 remark로 서버측 시간초과를 알리기도 함
    remark = str(payload.get("remark") or "").lower()
    return "runtime error" in remark and "timed out" in remark


class OverpassStreetSource:
    """Overpass API client with a bounded, fixed-delay retry on transient failures."""

    def __init__(
        self,
        url: str,
        highway_types: Sequence[str],
        *,
        query_timeout_s: int = 25,
        request_timeout_s: float = 60.0,
        max_attempts: int = 3,
        retry_delay_s: float = 2.0,
        session: Optional[requests.Session] = None,
        user_agent: Optional[str] = None,
    ):
        self.url = url
        self.highway_types = list(highway_types)
        self.query_timeout_s = query_timeout_s
        self.request_timeout_s = request_timeout_s
        self.max_attempts = max_attempts
        self.retry_delay_s = retry_delay_s
        self._owns_session = session is None
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers.update({"User-Agent": user_agent})

    def close(self) -> None:
        # 외부에서 받은 세션은 호출자가 닫는다
        if self._owns_session:
            self.session.close()

    def _query_once(self, query: str) -> List[RawWay]:
        """One POST; raises TransientFetchFailure or StreetDataUnavailable on failure."""
        try:
            resp = self.session.post(self.url, data={"data": query}, timeout=self.request_timeout_s)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TransientFetchFailure(f"transport error: {e}") from e
        except requests.RequestException as e:
            raise StreetDataUnavailable(f"request error: {e}") from e

        if resp.status_code in TRANSIENT_STATUS:
            raise TransientFetchFailure(f"HTTP {resp.status_code}", status=resp.status_code)
        if not resp.ok:
            raise StreetDataUnavailable(f"HTTP {resp.status_code}", status=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            raise StreetDataUnavailable("response is not valid JSON", status=resp.status_code) from e
        if _is_runtime_timeout(payload):
            raise TransientFetchFailure(f"server timeout: {payload.get('remark')}", status=504)
        return parse_overpass_ways(payload)

    def fetch_ways(self, center_lat: float, center_lng: float, radius_m: float) -> List[RawWay]:
        query = build_overpass_query(center_lat, center_lng, radius_m, self.highway_types, self.query_timeout_s)
        last_failure: Optional[TransientFetchFailure] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                ways = self._query_once(query)
            except TransientFetchFailure as e:
                last_failure = e
                if attempt < self.max_attempts:
                    logger.warning("street query failed, retrying", reason=e.reason,
                                   attempt=attempt, max_attempts=self.max_attempts, delay_s=self.retry_delay_s)
                    time.sleep(self.retry_delay_s)
                continue
            except StreetDataUnavailable as e:
                logger.error("street query failed", reason=e.reason, attempt=attempt)
                raise StreetDataUnavailable(e.reason, attempts=attempt, status=e.status) from e
            logger.info("street query ok", ways=len(ways), radius_m=round(radius_m), attempt=attempt)
            return ways

        logger.error("street query retries exhausted", attempts=self.max_attempts)
        raise StreetDataUnavailable(last_failure.reason if last_failure else "unknown",
                                    attempts=self.max_attempts,
                                    status=last_failure.status if last_failure else None) from last_failure


def _line_parts(geom) -> Iterable[LineString]:
    if geom is None or geom.is_empty:
        return []
    if geom.geom_type == "LineString":
        return [geom]
    if geom.geom_type == "MultiLineString":
        return list(geom.geoms)
    if geom.geom_type == "Polygon":
        # 닫힌 보행로(광장 둘레 등)는 외곽선을 길로 취급
        return [LineString(geom.exterior.coords)]
    return []


class OsmnxStreetSource:
    """Same ways through osmnx.features_from_point (uses the osmnx HTTP cache)."""

    def __init__(self, highway_types: Sequence[str]):
        self.highway_types = list(highway_types)

    def fetch_ways(self, center_lat: float, center_lng: float, radius_m: float) -> List[RawWay]:
        tags = {"highway": self.highway_types}
        try:
            gdf = ox.features_from_point((center_lat, center_lng), tags=tags, dist=int(radius_m))
        except InsufficientResponseError:
            logger.info("osmnx returned no features", radius_m=round(radius_m))
            return []
        except (requests.RequestException, ResponseStatusCodeError) as e:
            raise StreetDataUnavailable(str(e)) from e

        ways: List[RawWay] = []
        for idx, row in gdf.iterrows():
            # index는 (element, id) MultiIndex
            element, osmid = idx if isinstance(idx, tuple) else ("way", idx)
            if element != "way":
                continue
            for k, line in enumerate(_line_parts(row.geometry)):
                way_id = int(osmid) if k == 0 else f"{osmid}:{k}"
                ways.append(RawWay(id=way_id, geometry=tuple(GeoPoint.from_lonlat(x, y) for x, y in line.coords)))
        logger.info("osmnx street query ok", ways=len(ways), radius_m=round(radius_m))
        return ways
