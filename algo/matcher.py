# algo/matcher.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, List, Optional, Sequence, Set
import numpy as np
import structlog

from .glyphs import StrokeRole, TargetPosition, pattern_for, target_for
from .segments import StreetSegment

logger = structlog.get_logger(__name__)

M_PER_DEG = 111000.0  # 위경도 → 대략적인 미터 스케일
DEFAULT_CHAR_SPACING_M = 200.0


class SkipReason(str, Enum):
    UNKNOWN_CHARACTER = "unknown-character"
    NO_TARGET_POSITION = "no-target-position"
    NO_ELIGIBLE_SEGMENT = "no-eligible-segment"


@dataclass(frozen=True)
class MatchedSegment:
    segment: StreetSegment
    role: StrokeRole
    character: str
    char_index: int

    # StreetSegment 필드를 그대로 노출
    @property
    def id(self) -> Hashable:
        return self.segment.id

    @property
    def geometry(self):
        return self.segment.geometry

    @property
    def start_point(self):
        return self.segment.start_point

    @property
    def end_point(self):
        return self.segment.end_point


@dataclass(frozen=True)
class SkippedRole:
    character: str
    char_index: int
    role: Optional[StrokeRole]
    reason: SkipReason


@dataclass
class MatchReport:
    matched: List[MatchedSegment] = field(default_factory=list)
    skipped: List[SkippedRole] = field(default_factory=list)

    @property
    def used_ids(self) -> Set[Hashable]:
        return {m.id for m in self.matched}


def position_score(segment: StreetSegment, target: TargetPosition, offset_x: float) -> float:
    c = segment.center_point
    return abs(c.lng * M_PER_DEG - (target.x + offset_x)) + abs(c.lat * M_PER_DEG - target.y)


def find_best_segment(target: TargetPosition, offset_x: float,
                      segments: Sequence[StreetSegment], used_ids: Set[Hashable]) -> Optional[StreetSegment]:
    """Lowest-score unused segment with the target's direction; first seen wins ties."""
    candidates = [s for s in segments if s.id not in used_ids and s.direction == target.direction]
    if not candidates:
        return None
    scores = np.array([position_score(s, target, offset_x) for s in candidates], dtype=float)
    # argmin은 최솟값이 여러 개면 첫 번째 인덱스를 반환
    return candidates[int(scores.argmin())]


def match_character(char: str, char_index: int, segments: Sequence[StreetSegment],
                    used_ids: Set[Hashable], char_spacing_m: float, report: MatchReport) -> None:
    roles = pattern_for(char)
    if roles is None:
        logger.warning("no glyph pattern for character", character=char, index=char_index)
        report.skipped.append(SkippedRole(char, char_index, None, SkipReason.UNKNOWN_CHARACTER))
        return

    offset_x = char_index * char_spacing_m
    for role in roles:
        target = target_for(role)
        if target is None:
            report.skipped.append(SkippedRole(char, char_index, role, SkipReason.NO_TARGET_POSITION))
            continue
        best = find_best_segment(target, offset_x, segments, used_ids)
        if best is None:
            report.skipped.append(SkippedRole(char, char_index, role, SkipReason.NO_ELIGIBLE_SEGMENT))
            continue
        report.matched.append(MatchedSegment(best, role, char, char_index))
        used_ids.add(best.id)


def match_text(text: str, segments: Sequence[StreetSegment],
               char_spacing_m: float = DEFAULT_CHAR_SPACING_M) -> MatchReport:
    """
    문자열의 각 글자를 스트로크 역할로 풀어 가장 가까운 거리 세그먼트를 배정.
    한 번 쓴 세그먼트 id는 글자 전체에 걸쳐 다시 쓰지 않는다.
    """
    report = MatchReport()
    used_ids: Set[Hashable] = set()
    for i, ch in enumerate(text):
        match_character(ch, i, segments, used_ids, char_spacing_m, report)

    logger.info("glyph matching done", text=text, matched=len(report.matched), skipped=len(report.skipped))
    return report
