from flask import Blueprint, request, jsonify

from ..services import get_stats_store, get_subject_store
from ..utils import csrf_protect

# Define the blueprint for stats and per-subject data
stats_bp = Blueprint("stats", __name__)


def stats_to_json(stats):
    return {
        "quizzesDone": stats.quizzes_done,
        "currentStreak": stats.current_streak,
        "accuracy": stats.accuracy,
        "conversationsCount": stats.conversations_count,
        "topSubject": stats.top_subject,
        "subjectCounts": stats.subject_counts,
    }


@stats_bp.route("/stats", methods=["GET"])
def get_stats():
    return jsonify(stats_to_json(get_stats_store().get())), 200


@stats_bp.route("/stats/quiz", methods=["POST"])
@csrf_protect
def record_quiz():
    data = request.get_json(silent=True) or {}
    try:
        score = float(data["score"])
    except (KeyError, ValueError, TypeError):
        return jsonify({"message": "A numeric score is required"}), 400
    return jsonify(stats_to_json(get_stats_store().add_quiz(score))), 200


@stats_bp.route("/stats/chat", methods=["POST"])
@csrf_protect
def record_chat():
    subject = (request.get_json(silent=True) or {}).get("subject")
    if not subject:
        return jsonify({"message": "Subject is required"}), 400
    return jsonify(stats_to_json(get_stats_store().record_chat(subject))), 200


@stats_bp.route("/stats/streak", methods=["PUT"])
@csrf_protect
def update_streak():
    try:
        streak = int((request.get_json(silent=True) or {})["streak"])
    except (KeyError, ValueError, TypeError):
        return jsonify({"message": "An integer streak is required"}), 400
    return jsonify(stats_to_json(get_stats_store().update_streak(streak))), 200


@stats_bp.route("/subjects/<subject_id>", methods=["GET"])
def get_subject(subject_id):
    return jsonify(get_subject_store().get_subject(subject_id)), 200


@stats_bp.route("/subjects/<subject_id>/marks", methods=["POST"])
@csrf_protect
def add_mark(subject_id):
    """
    Add a mark to a subject.

    Payload: {"title", "score", "total"}
    """
    data = request.get_json(silent=True) or {}
    try:
        mark = get_subject_store().add_mark(
            subject_id,
            title=data["title"],
            score=float(data["score"]),
            total=float(data["total"]),
        )
    except (KeyError, ValueError, TypeError) as e:
        return jsonify({"message": f"Invalid mark: {e}"}), 400
    return jsonify({"message": "Mark added", "mark": mark}), 201


@stats_bp.route("/subjects/<subject_id>/notes", methods=["PUT"])
@csrf_protect
def update_notes(subject_id):
    content = (request.get_json(silent=True) or {}).get("content", "")
    return jsonify(get_subject_store().update_notes(subject_id, content)), 200
