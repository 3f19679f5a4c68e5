# Standard library imports
from functools import wraps
from flask import session, request, jsonify, current_app
from datetime import date, datetime, time as dtime
import secrets
from dateutil import parser


def str_to_bool(val):
    """
    Convert a string or boolean value to a boolean.

    Args:
        val (str | bool): The value to convert.

    Returns:
        bool: The boolean representation of the input value.
    """
    if isinstance(val, bool):
        return val
    if isinstance(val, str):
        return val.lower() == "true"
    return False


def current_user_id():
    """
    Return the id of the signed-in user, or None when nobody is signed in.

    This is the only thing the stores need to know about authentication.
    The id is held in the session at login so the check never touches the
    remote database.
    """
    return session.get("user_id")


def login_required(f):
    """
    Decorator to ensure a user is logged in.

    Returns a 401 JSON error when no user is present in the session.

    Args:
        f (function): The view function to wrap.

    Returns:
        function: The decorated function.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = current_user_id()
        if user_id is None:
            return jsonify({"error": "Unauthorized: Not logged in"}), 401
        # Pass the user id to the route function
        return f(user_id, *args, **kwargs)

    return decorated_function


def csrf_protect(f):
    """
    Decorator to protect a route from CSRF attacks.

    - Checks for a valid CSRF token in the session and request (form or header).
    - Skips check if app is in TESTING mode.
    - Returns 400 error if token is missing or invalid.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_app.config.get("TESTING"):
            return f(*args, **kwargs)

        # Only check for state-changing methods
        if request.method in ["POST", "PUT", "PATCH", "DELETE"]:
            token = session.get("csrf_token")
            if not token:
                return jsonify({"error": "CSRF token missing from session"}), 400

            # Get token from form or from header (for AJAX)
            request_token = request.form.get("csrf_token") or request.headers.get(
                "X-CSRF-Token"
            )

            if not request_token:
                return jsonify({"error": "CSRF token missing from request"}), 400

            if not secrets.compare_digest(token, request_token):
                return jsonify({"error": "Invalid CSRF token"}), 400

        return f(*args, **kwargs)

    return decorated_function


def make_csrf_token():
    """
    Generates and stores a CSRF token in the session if not already present.
    Skips token generation in TESTING mode.
    """
    if current_app.config.get("TESTING"):
        return
    if "csrf_token" not in session:
        session["csrf_token"] = secrets.token_hex(16)


def to_dt(value) -> datetime:
    """
    Convert an ISO string, date or datetime to a naive datetime in local time.

    Timezone-aware values are converted to the machine's local time before
    the zone is dropped; bare dates become local midnight.

    Args:
        value (str | date | datetime): The input value.

    Returns:
        datetime: Naive local datetime, or None for empty input.
    """
    if value is None or value == "":
        return None

    if isinstance(value, str):
        try:
            # Use fromisoformat for standard ISO strings
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            # Fallback to dateutil.parser for more lenient parsing
            value = parser.parse(value)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value

    if isinstance(value, date):
        return datetime.combine(value, dtime.min)

    # Handle other unexpected types
    raise TypeError(f"Unsupported type for to_dt: {type(value)}")


def to_iso(dt: datetime) -> str:
    """
    Return an ISO 8601 string for a local datetime, or None.

    Args:
        dt (datetime): The datetime object.

    Returns:
        str: ISO 8601 formatted string with seconds precision.
    """
    if dt is None:
        return None
    return to_dt(dt).isoformat(timespec="seconds")


def parse_day(value):
    """Parse a YYYY-MM-DD string (or any ISO timestamp) to a date."""
    return to_dt(value).date()
