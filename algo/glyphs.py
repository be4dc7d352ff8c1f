# algo/glyphs.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .segments import Direction


class StrokeRole(str, Enum):
    TOP = "top"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    MIDDLE = "middle"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    BOTTOM = "bottom"
    DIAGONAL = "diagonal"


@dataclass(frozen=True)
class TargetPosition:
    x: float  # m, 글자 칸 중심 기준
    y: float
    direction: Direction


_R = StrokeRole

# 7-세그먼트 디스플레이 스타일. 패턴 안의 순서대로 매칭한다.
GLYPH_PATTERNS: Mapping[str, Tuple[StrokeRole, ...]] = MappingProxyType({
    "0": (_R.TOP, _R.TOP_RIGHT, _R.BOTTOM_RIGHT, _R.BOTTOM, _R.BOTTOM_LEFT, _R.TOP_LEFT),
    "1": (_R.TOP_RIGHT, _R.BOTTOM_RIGHT),
    "2": (_R.TOP, _R.TOP_RIGHT, _R.MIDDLE, _R.BOTTOM_LEFT, _R.BOTTOM),
    "3": (_R.TOP, _R.TOP_RIGHT, _R.MIDDLE, _R.BOTTOM_RIGHT, _R.BOTTOM),
    "4": (_R.TOP_LEFT, _R.MIDDLE, _R.TOP_RIGHT, _R.BOTTOM_RIGHT),
    "5": (_R.TOP, _R.TOP_LEFT, _R.MIDDLE, _R.BOTTOM_RIGHT, _R.BOTTOM),
    "6": (_R.TOP, _R.TOP_LEFT, _R.MIDDLE, _R.BOTTOM_LEFT, _R.BOTTOM, _R.BOTTOM_RIGHT),
    "7": (_R.TOP, _R.TOP_RIGHT, _R.BOTTOM_RIGHT),
    "8": (_R.TOP, _R.TOP_LEFT, _R.TOP_RIGHT, _R.MIDDLE, _R.BOTTOM_LEFT, _R.BOTTOM_RIGHT, _R.BOTTOM),
    "9": (_R.TOP, _R.TOP_LEFT, _R.TOP_RIGHT, _R.MIDDLE, _R.BOTTOM_RIGHT, _R.BOTTOM),
    # letters
    "A": (_R.TOP, _R.TOP_LEFT, _R.TOP_RIGHT, _R.MIDDLE, _R.BOTTOM_LEFT, _R.BOTTOM_RIGHT),
    "P": (_R.TOP, _R.TOP_LEFT, _R.TOP_RIGHT, _R.MIDDLE, _R.BOTTOM_LEFT),
    "R": (_R.TOP, _R.TOP_LEFT, _R.TOP_RIGHT, _R.MIDDLE, _R.BOTTOM_LEFT, _R.DIAGONAL),
})

_H, _V = Direction.HORIZONTAL, Direction.VERTICAL

ROLE_POSITIONS: Mapping[StrokeRole, TargetPosition] = MappingProxyType({
    _R.TOP: TargetPosition(0, 100, _H),
    _R.TOP_RIGHT: TargetPosition(50, 50, _V),
    _R.TOP_LEFT: TargetPosition(-50, 50, _V),
    _R.MIDDLE: TargetPosition(0, 0, _H),
    _R.BOTTOM_RIGHT: TargetPosition(50, -50, _V),
    _R.BOTTOM_LEFT: TargetPosition(-50, -50, _V),
    _R.BOTTOM: TargetPosition(0, -100, _H),
    # R의 다리: 가운데에서 오른쪽 아래로
    _R.DIAGONAL: TargetPosition(25, -50, Direction.DIAGONAL),
})


def pattern_for(char: str) -> Optional[Tuple[StrokeRole, ...]]:
    return GLYPH_PATTERNS.get(char)


def target_for(role: StrokeRole) -> Optional[TargetPosition]:
    return ROLE_POSITIONS.get(role)


def supported_characters() -> Dict[str, List[str]]:
    return {ch: [r.value for r in roles] for ch, roles in GLYPH_PATTERNS.items()}
