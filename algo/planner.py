# algo/planner.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple
import math
import numpy as np
import structlog

from config import SETTINGS
from .connector import Connector, GraphConnector, OsrmConnector
from .context import Options
from .errors import InvalidRouteRequest, NoGlyphCoverage, NoStreetDataFound, StitchFailure
from .geo import GeoPoint
from .matcher import MatchReport, match_text
from .regulator import RegulationResult, regulate_distance
from .segments import calculate_search_radius, categorize_street_segments
from .stitcher import StitchResult, stitch_segments
from .street_data import OsmnxStreetSource, OverpassStreetSource, StreetSource

logger = structlog.get_logger(__name__)

DEFAULT_PACE_MIN_PER_KM = 6.0


@dataclass
class RouteResult:
    coordinates: List[GeoPoint]
    distance_km: float
    segments_used: int

    # 내부 진단 정보 (공개 계약에는 포함되지 않음)
    match: Optional[MatchReport] = None
    stitch: Optional[StitchResult] = None
    regulation: Optional[RegulationResult] = None

    def in_range(self, min_km: float, max_km: float) -> bool:
        return min_km <= self.distance_km <= max_km


def estimate_running_time(distance_km: float, pace_min_per_km: float = DEFAULT_PACE_MIN_PER_KM) -> Tuple[int, int, str]:
    total_min = distance_km * pace_min_per_km
    hours = int(total_min // 60)
    minutes = int(round(total_min % 60))
    if minutes == 60:
        hours, minutes = hours + 1, 0
    label = f"{hours} h {minutes} min" if hours > 0 else f"{minutes} min"
    return hours, minutes, label


def _validate(text: str, lat: float, lng: float, min_km: float, max_km: float) -> None:
    if not text or not text.strip():
        raise InvalidRouteRequest("text must not be blank")
    # NaN은 모든 비교가 False라 범위 검사를 통과해버림
    if not all(math.isfinite(v) for v in (lat, lng, min_km, max_km)):
        raise InvalidRouteRequest("coordinates and distances must be finite numbers")
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lng <= 180.0):
        raise InvalidRouteRequest(f"center ({lat}, {lng}) is not a valid WGS84 coordinate")
    if min_km <= 0 or max_km <= 0:
        raise InvalidRouteRequest("distances must be positive")
    if min_km >= max_km:
        raise InvalidRouteRequest("minimum distance must be smaller than maximum distance")


def default_street_source(opt: Options) -> StreetSource:
    if opt.street_source == "osmnx":
        return OsmnxStreetSource(opt.highway_types)
    return OverpassStreetSource(
        SETTINGS.OVERPASS_URL,
        opt.highway_types,
        query_timeout_s=opt.overpass_timeout_s,
        request_timeout_s=opt.request_timeout_s,
        max_attempts=opt.fetch_attempts,
        retry_delay_s=opt.retry_delay_s,
        user_agent=SETTINGS.USER_AGENT,
    )


def default_connector(opt: Options, center_lat: float, center_lng: float) -> Connector:
    if opt.connector == "graph":
        return GraphConnector(center_lat, center_lng, dist_m=opt.graph_radius_m, cache_dir=SETTINGS.CACHE_DIR)
    return OsrmConnector(SETTINGS.OSRM_URL, timeout=opt.connector_timeout_s)


class TextRoutePlanner:
    """
    Stateless text → street route pipeline.

    Holds only immutable options and its two external collaborators; every
    call owns its segments, matches and path. When a collaborator is not
    given, the one named in the options is built per call.
    """

    def __init__(self, options: Optional[Options] = None,
                 street_source: Optional[StreetSource] = None,
                 connector: Optional[Connector] = None):
        self.options = options or Options()
        self.street_source = street_source
        self.connector = connector

    def synthesize(self, text: str, center_lat: float, center_lng: float,
                   min_distance_km: float, max_distance_km: float,
                   rng: Optional[np.random.Generator] = None) -> RouteResult:
        _validate(text, center_lat, center_lng, min_distance_km, max_distance_km)
        # 여기서 직접 만든 협력 객체만 끝나고 닫는다
        owned: List[object] = []
        try:
            return self._run(text, center_lat, center_lng, min_distance_km, max_distance_km, rng, owned)
        finally:
            for collaborator in owned:
                close = getattr(collaborator, "close", None)
                if close is not None:
                    close()

    def _run(self, text: str, center_lat: float, center_lng: float,
             min_distance_km: float, max_distance_km: float,
             rng: Optional[np.random.Generator], owned: List[object]) -> RouteResult:
        opt = self.options
        log = logger.bind(text=text, center=(center_lat, center_lng))
        log.info("route synthesis started", min_km=min_distance_km, max_km=max_distance_km)

        # 1) 주변 도로망
        radius_m = calculate_search_radius(min_distance_km, max_distance_km)
        source = self.street_source
        if source is None:
            source = default_street_source(opt)
            owned.append(source)
        ways = source.fetch_ways(center_lat, center_lng, radius_m)

        # 2) 방향별 세그먼트 분류
        segments = categorize_street_segments(ways, center_lat, center_lng)
        if not segments:
            raise NoStreetDataFound(center_lat, center_lng, radius_m)

        # 3) 글자별 세그먼트 선택
        match = match_text(text, segments, char_spacing_m=opt.char_spacing_m)
        if not match.matched:
            raise NoGlyphCoverage(text)

        # 4) 한 붓 그리기
        connector = self.connector
        if connector is None:
            connector = default_connector(opt, center_lat, center_lng)
            owned.append(connector)
        stitch = stitch_segments(match.matched, connector)
        if not stitch.path:
            raise StitchFailure(len(match.matched))

        # 5) 목표 거리로 조정
        if rng is None:
            rng = np.random.default_rng(opt.seed)
        regulation = regulate_distance(
            stitch.path, min_distance_km, max_distance_km, connector, rng,
            extension_tolerance_km=opt.extension_tolerance_km,
            simplify_start_tolerance=opt.simplify_start_tolerance,
            simplify_max_tolerance=opt.simplify_max_tolerance,
            simplify_growth=opt.simplify_growth,
        )

        log.info("route synthesis done", distance_km=round(regulation.distance_km, 3),
                 segments=len(match.matched), outcome=regulation.outcome.value)
        return RouteResult(
            coordinates=regulation.path,
            distance_km=regulation.distance_km,
            segments_used=len(match.matched),
            match=match,
            stitch=stitch,
            regulation=regulation,
        )


def synthesize_text_route(text: str, center_lat: float, center_lng: float,
                          min_distance_km: float, max_distance_km: float, *,
                          options: Optional[Options] = None,
                          street_source: Optional[StreetSource] = None,
                          connector: Optional[Connector] = None,
                          rng: Optional[np.random.Generator] = None) -> RouteResult:
    planner = TextRoutePlanner(options, street_source=street_source, connector=connector)
    return planner.synthesize(text, center_lat, center_lng, min_distance_km, max_distance_km, rng=rng)
