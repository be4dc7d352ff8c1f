from __future__ import annotations
from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError
import structlog

from algo.context import GeneratePayload, Options
from algo.errors import (
    InvalidRouteRequest, NoGlyphCoverage, NoStreetDataFound,
    RouteSynthesisError, StitchFailure, StreetDataUnavailable,
)
from algo.planner import TextRoutePlanner
from app.services.route_service import build_response

bp = Blueprint("routes_generate", __name__, url_prefix="/routes")
logger = structlog.get_logger(__name__)

# 치명적 오류 → HTTP 상태코드
ERROR_STATUS = {
    InvalidRouteRequest: 400,
    NoStreetDataFound: 404,
    NoGlyphCoverage: 422,
    StitchFailure: 500,
    StreetDataUnavailable: 503,
}

def _bad(code: int, kind: str, msg: str):
    return jsonify({"ok": False, "error": {"code": code, "type": kind, "message": msg}}), code

def _status_for(err: RouteSynthesisError) -> int:
    for cls, code in ERROR_STATUS.items():
        if isinstance(err, cls):
            return code
    return 500

@bp.route("/text", methods=["POST"])
def generate_text_route():
    """
    Body(JSON):
    {
      "text": "42",
      "start_point": {"lat": 25.0330, "lng": 121.5654},
      "min_km": 3.0,
      "max_km": 5.0,
      "options": {"char_spacing_m": 200, "connector": "osrm", "seed": 7},
      "debug": false
    }
    """
    data = request.get_json(silent=True)
    if data is None:
        return _bad(400, "InvalidJSON", "Invalid JSON body")
    try:
        payload = GeneratePayload.model_validate(data)
    except ValidationError as e:
        return _bad(400, "ValidationError", str(e))

    sp = payload.start_point
    planner = TextRoutePlanner(
        payload.options or Options(),
        street_source=current_app.config.get("ROUTE_STREET_SOURCE"),
        connector=current_app.config.get("ROUTE_CONNECTOR"),
    )
    try:
        result = planner.synthesize(payload.text, sp.lat, sp.lng, payload.min_km, payload.max_km)
    except RouteSynthesisError as e:
        code = _status_for(e)
        logger.warning("route request failed", error_type=type(e).__name__, error=str(e), status=code)
        return _bad(code, type(e).__name__, str(e))

    body = build_response(payload.text, result, payload.min_km, payload.max_km, debug=payload.debug)
    return jsonify({"ok": True, "data": body}), 200
