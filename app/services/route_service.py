# app/services/route_service.py
from __future__ import annotations
from typing import Any, Dict, List
from shapely.geometry import LineString, mapping

from algo.geo import GeoPoint
from algo.planner import RouteResult, estimate_running_time


def feature_from_points(points: List[GeoPoint], props: Dict[str, Any]) -> Dict[str, Any]:
    """GeoJSON LineString feature, coordinates as [lng, lat]."""
    coords = [p.as_lnglat() for p in points]
    if len(coords) == 1:
        coords = coords * 2  # LineString은 최소 2점 필요
    geometry = mapping(LineString(coords))
    return {
        "type": "Feature",
        "geometry": {"type": geometry["type"], "coordinates": [list(c) for c in geometry["coordinates"]]},
        "properties": props,
    }


def route_metrics(result: RouteResult, min_km: float, max_km: float) -> Dict[str, Any]:
    _, _, label = estimate_running_time(result.distance_km)
    return {
        "distance_km": round(result.distance_km, 3),
        "segments_used": result.segments_used,
        "nodes": len(result.coordinates),
        "min_km": min_km,
        "max_km": max_km,
        "in_range": result.in_range(min_km, max_km),
        "estimated_time": label,
    }


def debug_info(result: RouteResult) -> Dict[str, Any]:
    info: Dict[str, Any] = {}
    if result.match is not None:
        info["matched"] = [
            {"id": m.id, "character": m.character, "index": m.char_index, "role": m.role.value}
            for m in result.match.matched
        ]
        info["skipped"] = [
            {"character": s.character, "index": s.char_index,
             "role": s.role.value if s.role else None, "reason": s.reason.value}
            for s in result.match.skipped
        ]
    if result.stitch is not None:
        info["connector_gaps"] = len(result.stitch.gaps)
    if result.regulation is not None:
        info["regulation"] = {
            "outcome": result.regulation.outcome.value,
            "missing_legs": result.regulation.missing_legs,
            "tolerance_used": result.regulation.tolerance_used,
        }
    return info


def build_response(text: str, result: RouteResult, min_km: float, max_km: float, debug: bool = False) -> Dict[str, Any]:
    props = {
        "name": f"Text route '{text}' ~{result.distance_km:.1f}km",
        "text": text,
        "segments_used": result.segments_used,
    }
    feat = feature_from_points(result.coordinates, props)
    data: Dict[str, Any] = {
        "geojson": {"type": "FeatureCollection", "features": [feat]},
        "metrics": route_metrics(result, min_km, max_km),
    }
    if debug:
        data["debug"] = debug_info(result)
    return data
