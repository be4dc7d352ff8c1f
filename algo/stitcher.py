# algo/stitcher.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import structlog

from .connector import Connector
from .geo import GeoPoint, haversine_km
from .matcher import MatchedSegment

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ConnectorGap:
    start: GeoPoint
    end: GeoPoint


@dataclass
class StitchResult:
    path: List[GeoPoint] = field(default_factory=list)
    gaps: List[ConnectorGap] = field(default_factory=list)
    order: List[int] = field(default_factory=list)  # 방문한 세그먼트 인덱스 순서


def _nearest_unvisited(last: GeoPoint, segments: Sequence[MatchedSegment], visited: List[bool]) -> Optional[int]:
    best_i, best_d = None, float("inf")
    for i, seg in enumerate(segments):
        if visited[i]:
            continue
        d = haversine_km(last, seg.start_point)
        if d < best_d:
            best_i, best_d = i, d
    return best_i


def stitch_segments(segments: Sequence[MatchedSegment], connector: Connector) -> StitchResult:
    """
    탐욕적 최근접 연결로 한 붓 그리기 경로를 만든다 (되돌아가기 허용).
    세그먼트 사이 빈 구간은 connector 경로로 채우고, 실패하면 그냥 건너뛴다.
    """
    result = StitchResult()
    if not segments:
        return result

    visited = [False] * len(segments)
    result.path.extend(segments[0].geometry)
    result.order.append(0)
    visited[0] = True

    while not all(visited):
        last = result.path[-1]
        nxt = _nearest_unvisited(last, segments, visited)
        if nxt is None:
            break
        seg = segments[nxt]

        bridge = connector.route(last, seg.start_point)
        if bridge:
            result.path.extend(bridge)
        else:
            logger.warning("connector gap", start=last.as_lnglat(), end=seg.start_point.as_lnglat())
            result.gaps.append(ConnectorGap(last, seg.start_point))

        result.path.extend(seg.geometry)
        result.order.append(nxt)
        visited[nxt] = True

    logger.info("segments stitched", segments=len(segments), points=len(result.path), gaps=len(result.gaps))
    return result
