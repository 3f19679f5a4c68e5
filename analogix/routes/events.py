# Import Flask modules for routing, request handling, and responses
from flask import Blueprint, request, jsonify, current_app, Response

# Import the event store, the importer and helpers
from ..errors import ParseError
from ..ics import normalize_import, export_ics
from ..services import get_event_store
from ..utils import csrf_protect, to_dt, to_iso

# Define the blueprint for event-related API routes
events_bp = Blueprint("events", __name__)


def event_to_json(event):
    return {
        "id": event.id,
        "title": event.title,
        "date": to_iso(event.date),
        "type": event.type,
        "subject": event.subject,
        "description": event.description,
        "source": event.source,
    }


@events_bp.route("/", methods=["GET"])
def get_events():
    """
    Fetch all events of the current user (or of the local cache when signed out).

    Returns:
        JSON: List of events ordered by date.
    """
    events = get_event_store().get_all()
    return jsonify([event_to_json(e) for e in events]), 200


@events_bp.route("/", methods=["POST"])
@csrf_protect
def create_event():
    """
    Create a single manually entered event.

    Payload: {"title", "date", "type"?, "subject"?, "description"?}

    Returns:
        JSON: The created event and status code 201.
    """
    data = request.get_json(silent=True) or {}
    try:
        date = to_dt(data.get("date"))
        if date is None:
            return jsonify({"message": "Event date is required"}), 400
        event = get_event_store().create(
            title=data.get("title"),
            date=date,
            type=data.get("type", "event"),
            subject=data.get("subject"),
            description=data.get("description"),
        )
    except (ValueError, TypeError) as e:
        return jsonify({"message": str(e)}), 400
    return jsonify({"message": "Event created", "event": event_to_json(event)}), 201


@events_bp.route("/<event_id>", methods=["DELETE"])
@csrf_protect
def delete_event(event_id):
    """
    Delete a single event by its ID.

    Args:
        event_id (str): The ID of the event to delete.

    Returns:
        JSON: Success message and status code 200, or a 404 error.
    """
    store = get_event_store()
    if not any(e.id == event_id for e in store.get_all()):
        return jsonify({"message": "Event not found"}), 404
    store.remove(event_id)
    return jsonify({"message": "Event deleted"}), 200


@events_bp.route("/import-ics", methods=["POST"])
@csrf_protect
def import_ics():
    """
    Import events from an .ics file.

    Accepts either a multipart upload ('file') or JSON {"ics": "<content>"}.
    A file that cannot be parsed is rejected as a whole; nothing is stored.

    Returns:
        JSON: Number of imported events and status code 200, or a 400 error.
    """
    upload = request.files.get("file")
    if upload is not None:
        ics_content = upload.read().decode("utf-8", errors="replace")
    else:
        ics_content = (request.get_json(silent=True) or {}).get("ics")
    if not ics_content:
        return jsonify({"message": "No .ics content provided"}), 400

    try:
        events = normalize_import(ics_content)
    except ParseError as e:
        current_app.logger.info("Rejected .ics import: %s", e)
        return jsonify({"message": f"Failed to import .ics file: {e}"}), 400

    get_event_store().add_multiple(events)
    return jsonify({"message": "Events imported successfully", "count": len(events)}), 200


@events_bp.route("/export-ics", methods=["GET"])
def export_events_ics():
    """
    Export all events as an .ics file.

    Returns:
        Response: A downloadable .ics file containing all events.
    """
    ics_content = export_ics(get_event_store().get_all())

    # Return as a downloadable file
    return Response(
        ics_content,
        mimetype="text/calendar",
        headers={"Content-Disposition": "attachment; filename=analogix_events.ics"},
    )
