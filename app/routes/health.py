from flask import Blueprint, jsonify

from algo.glyphs import supported_characters

bp = Blueprint("health", __name__, url_prefix="/")

@bp.route("health", methods=["GET"])
def health():
    return jsonify({"ok": True, "service": "text-route"}), 200

@bp.route("glyphs", methods=["GET"])
def glyphs():
    return jsonify({"ok": True, "data": {"glyphs": supported_characters()}}), 200
