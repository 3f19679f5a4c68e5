from flask import Blueprint, request, jsonify

from ..services import get_timer_store
from ..utils import csrf_protect

# Define the blueprint for the study timer
timer_bp = Blueprint("timer", __name__)


def timer_to_json(state):
    return {
        "phase": state.phase,
        "timeLeft": state.time_left,
        "isActive": state.is_active,
        "sessionsCompleted": state.sessions_completed,
        "sessionsTarget": state.sessions_target,
        "settings": {"study": state.settings.study, "break": state.settings.rest},
        "lastTick": state.last_tick,
    }


@timer_bp.route("/", methods=["GET"])
def get_timer():
    return jsonify(timer_to_json(get_timer_store().load())), 200


@timer_bp.route("/<action>", methods=["POST"])
@csrf_protect
def control_timer(action):
    """
    Run a timer control: start, pause, reset, skip or tick.

    Returns:
        JSON: The resulting timer state, or a 404 for an unknown action.
    """
    store = get_timer_store()
    controls = {
        "start": store.start,
        "pause": store.pause,
        "reset": store.reset,
        "skip": store.skip,
        "tick": store.tick,
    }
    if action not in controls:
        return jsonify({"message": f"Unknown timer action '{action}'"}), 404
    return jsonify(timer_to_json(controls[action]())), 200


@timer_bp.route("/settings", methods=["PUT"])
@csrf_protect
def update_timer_settings():
    """
    Update phase durations (seconds) and the sessions target.

    Payload: {"study"?, "break"?, "sessionsTarget"?}
    """
    data = request.get_json(silent=True) or {}
    try:
        state = get_timer_store().update_settings(
            study=data.get("study"),
            rest=data.get("break"),
            sessions_target=data.get("sessionsTarget"),
        )
    except (ValueError, TypeError, OverflowError) as e:
        return jsonify({"message": str(e)}), 400
    return jsonify(timer_to_json(state)), 200
