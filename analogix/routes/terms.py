from datetime import date

from flask import Blueprint, request, jsonify, current_app

from ..algorithms import resolve_term, next_term
from ..services import get_cache
from ..stores import get_stored_region, set_stored_region
from ..term_data import REGION_LABELS, normalize_region
from ..utils import csrf_protect, parse_day

# Define the blueprint for academic term routes
terms_bp = Blueprint("terms", __name__)


def term_to_json(term):
    if term is None:
        return None
    return {
        "id": term.id,
        "label": term.label,
        "start": term.start.isoformat(),
        "end": term.end.isoformat(),
    }


def _region():
    """Region from the query string, else the stored preference, else the configured default."""
    return (
        request.args.get("region")
        or get_stored_region(get_cache())
        or current_app.config["DEFAULT_REGION"]
    )


@terms_bp.route("/regions", methods=["GET"])
def get_regions():
    return jsonify([{"code": code, "label": label} for code, label in REGION_LABELS.items()]), 200


@terms_bp.route("/resolve", methods=["GET"])
def resolve():
    """
    Resolve a date to its term and week.

    Query: ?date=YYYY-MM-DD (defaults to today) &region=NSW (defaults to stored region)

    Returns:
        JSON: {"region", "date", "inTerm", "term", "week", "weeksTotal", "nextTerm"}
        or a 400 error for a bad date or region.
    """
    requested = _region()
    region = normalize_region(requested)
    if region is None:
        return jsonify({"message": f"Unknown region '{requested}'"}), 400
    try:
        day = parse_day(request.args["date"]) if request.args.get("date") else date.today()
    except (ValueError, OverflowError):
        return jsonify({"message": "Invalid date"}), 400

    info = resolve_term(day, region)
    return jsonify({
        "region": region,
        "date": day.isoformat(),
        "inTerm": info is not None,
        "term": term_to_json(info.term) if info else None,
        "week": info.week if info else None,
        "weeksTotal": info.weeks_total if info else None,
        "nextTerm": term_to_json(next_term(day, region)),
    }), 200


@terms_bp.route("/region", methods=["GET"])
def get_region():
    return jsonify({"region": get_stored_region(get_cache())}), 200


@terms_bp.route("/region", methods=["PUT"])
@csrf_protect
def put_region():
    data = request.get_json(silent=True) or {}
    try:
        region = set_stored_region(get_cache(), data.get("region"))
    except ValueError as e:
        return jsonify({"message": str(e)}), 400
    return jsonify({"message": "Region saved", "region": region}), 200
