# algo/regulator.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence
import numpy as np
import structlog

from .connector import Connector
from .geo import GeoPoint, offset_point, path_length_km
from .simplify import douglas_peucker

logger = structlog.get_logger(__name__)

EXTENSION_TOLERANCE_KM = 0.1
SIMPLIFY_START_TOLERANCE = 1e-5
SIMPLIFY_MAX_TOLERANCE = 1e-3
SIMPLIFY_GROWTH = 1.5

# 북, 남, 동, 서 (north_km 부호, east_km 부호)
CARDINALS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class RegulationOutcome(str, Enum):
    IN_RANGE = "in-range"
    WITHIN_TOLERANCE = "within-tolerance"
    EXTENDED = "extended"
    SIMPLIFIED = "simplified"
    SHORTFALL = "shortfall"


@dataclass
class RegulationResult:
    path: List[GeoPoint]
    distance_km: float
    outcome: RegulationOutcome
    missing_legs: int = 0
    tolerance_used: Optional[float] = None


def find_extension_point(start: GeoPoint, distance_km: float, rng: np.random.Generator) -> GeoPoint:
    north, east = CARDINALS[int(rng.integers(len(CARDINALS)))]
    return offset_point(start, north_km=north * distance_km, east_km=east * distance_km)


def extend_path(path: Sequence[GeoPoint], min_km: float, max_km: float, connector: Connector,
                rng: np.random.Generator, tolerance_km: float = EXTENSION_TOLERANCE_KM) -> RegulationResult:
    """
    경로 끝에서 무작위 방위로 왕복 우회로를 붙여 길이를 늘린다 (한 번만).
    """
    extended = list(path)
    current = path_length_km(extended)
    needed = (min_km + max_km) / 2 - current
    logger.info("extending path", current_km=round(current, 3), needed_km=round(needed, 3))

    if needed <= tolerance_km:
        return RegulationResult(extended, current, RegulationOutcome.WITHIN_TOLERANCE)

    last = extended[-1]
    detour = find_extension_point(last, needed / 2, rng)

    missing = 0
    outbound = connector.route(last, detour)
    if outbound:
        extended.extend(outbound)
        inbound = connector.route(detour, last)
        if inbound:
            extended.extend(inbound)
        else:
            missing = 1
    else:
        missing = 2
    if missing:
        logger.warning("extension leg missing", missing_legs=missing, detour=detour.as_lnglat())

    distance = path_length_km(extended)
    outcome = RegulationOutcome.EXTENDED if min_km <= distance <= max_km else RegulationOutcome.SHORTFALL
    return RegulationResult(extended, distance, outcome, missing_legs=missing)


def simplify_path(path: Sequence[GeoPoint], max_km: float,
                  start_tolerance: float = SIMPLIFY_START_TOLERANCE,
                  max_tolerance: float = SIMPLIFY_MAX_TOLERANCE,
                  growth: float = SIMPLIFY_GROWTH) -> RegulationResult:
    """Raise the Douglas-Peucker tolerance on the original path until it fits under max_km."""
    simplified = list(path)
    current = path_length_km(simplified)
    tolerance = start_tolerance
    used = None
    logger.info("simplifying path", current_km=round(current, 3), excess_km=round(current - max_km, 3))

    while current > max_km and tolerance < max_tolerance:
        simplified = douglas_peucker(path, tolerance)
        current = path_length_km(simplified)
        used = tolerance
        tolerance *= growth

    outcome = RegulationOutcome.SIMPLIFIED if current <= max_km else RegulationOutcome.SHORTFALL
    return RegulationResult(simplified, current, outcome, tolerance_used=used)


def regulate_distance(path: List[GeoPoint], min_km: float, max_km: float, connector: Connector,
                      rng: Optional[np.random.Generator] = None,
                      extension_tolerance_km: float = EXTENSION_TOLERANCE_KM,
                      simplify_start_tolerance: float = SIMPLIFY_START_TOLERANCE,
                      simplify_max_tolerance: float = SIMPLIFY_MAX_TOLERANCE,
                      simplify_growth: float = SIMPLIFY_GROWTH) -> RegulationResult:
    current = path_length_km(path)
    logger.info("regulating distance", current_km=round(current, 3), min_km=min_km, max_km=max_km)

    if current < min_km:
        if rng is None:
            rng = np.random.default_rng()
        result = extend_path(path, min_km, max_km, connector, rng, tolerance_km=extension_tolerance_km)
    elif current > max_km:
        result = simplify_path(path, max_km, simplify_start_tolerance, simplify_max_tolerance, simplify_growth)
    else:
        return RegulationResult(path, current, RegulationOutcome.IN_RANGE)

    if result.outcome is RegulationOutcome.SHORTFALL:
        logger.warning("distance outside target window", distance_km=round(result.distance_km, 3),
                       min_km=min_km, max_km=max_km)
    return result
