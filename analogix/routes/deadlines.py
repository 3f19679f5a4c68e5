from flask import Blueprint, request, jsonify

from ..services import get_deadline_store
from ..utils import csrf_protect, to_dt, to_iso

# Define the blueprint for deadline API routes
deadlines_bp = Blueprint("deadlines", __name__)


def deadline_to_json(deadline):
    return {
        "id": deadline.id,
        "title": deadline.title,
        "dueDate": to_iso(deadline.due_date),
        "subject": deadline.subject,
        "priority": deadline.priority,
    }


@deadlines_bp.route("/", methods=["GET"])
def get_deadlines():
    deadlines = get_deadline_store().get_all()
    return jsonify([deadline_to_json(d) for d in deadlines]), 200


@deadlines_bp.route("/", methods=["POST"])
@csrf_protect
def create_deadline():
    """
    Create a deadline.

    Payload: {"title", "dueDate", "subject"?, "priority"?}

    Returns:
        JSON: The stored deadline with its new ID and status code 201.
    """
    data = request.get_json(silent=True) or {}
    try:
        due_date = to_dt(data.get("dueDate"))
        if due_date is None:
            return jsonify({"message": "Due date is required"}), 400
        deadline = get_deadline_store().add(
            title=data.get("title"),
            due_date=due_date,
            subject=data.get("subject"),
            priority=data.get("priority", "medium"),
        )
    except (ValueError, TypeError) as e:
        return jsonify({"message": str(e)}), 400
    return jsonify({"message": "Deadline created", "deadline": deadline_to_json(deadline)}), 201


@deadlines_bp.route("/<deadline_id>", methods=["DELETE"])
@csrf_protect
def delete_deadline(deadline_id):
    store = get_deadline_store()
    if not any(d.id == deadline_id for d in store.get_all()):
        return jsonify({"message": "Deadline not found"}), 404
    store.remove(deadline_id)
    return jsonify({"message": "Deadline deleted"}), 200
