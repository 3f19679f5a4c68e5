# Import Flask and related modules for routing and sessions
from flask import Blueprint, request, jsonify, session, current_app
from sqlalchemy.exc import SQLAlchemyError
import re

# Import extensions for database and password hashing
from ..extensions import db, bcrypt
from ..models import User
from ..services import get_deadline_store, get_event_store
from ..utils import csrf_protect, login_required

# Define the authentication blueprint for all auth-related routes
auth_bp = Blueprint("auth", __name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _credentials():
    """Read credentials from a JSON body or a form post."""
    return request.get_json(silent=True) or request.form


@auth_bp.route("/register", methods=["POST"])
@csrf_protect
def register():
    """
    Register route: Handles new user sign-up.

    Creates a new User record with a bcrypt-hashed password and signs the
    user in.

    Returns:
        JSON: The new user's id and status code 201, or a 400/409/503 error.
    """
    data = _credentials()
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    email = (data.get("email") or "").strip()

    if not username or not password:
        return jsonify({"message": "Username and password are required"}), 400
    # Validate email format
    if not EMAIL_PATTERN.match(email):
        return jsonify({"message": "Invalid email address"}), 400

    try:
        if User.query.filter((User.username == username) | (User.email == email)).first():
            return jsonify({"message": "Username or email already registered"}), 409

        hashed_password = bcrypt.generate_password_hash(password).decode("utf-8")
        user = User(username=username, email=email, password=hashed_password)
        db.session.add(user)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Registration failed")
        return jsonify({"message": "Account service unavailable"}), 503

    session["username"] = user.username
    session["user_id"] = user.id
    return jsonify({"message": "Registered", "user_id": user.id}), 201


@auth_bp.route("/login", methods=["POST"])
@csrf_protect
def login():
    """
    Login route: Authenticates user credentials using bcrypt.

    On success the username and user id are stored in the session; the
    stores treat the presence of the id as "a user is signed in".

    Returns:
        JSON: The user's id and status code 200, or a 401/503 error.
    """
    data = _credentials()
    username = data.get("username") or ""
    password = data.get("password") or ""

    try:
        user = User.query.filter_by(username=username).first()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Login lookup failed")
        return jsonify({"message": "Account service unavailable"}), 503

    # Check if user exists and password hash matches
    if user and bcrypt.check_password_hash(user.password, password):
        session["username"] = user.username
        session["user_id"] = user.id
        return jsonify({"message": "Logged in", "user_id": user.id}), 200
    return jsonify({"message": "Invalid credentials"}), 401


@auth_bp.route("/logout", methods=["GET", "POST"])
def logout():
    session.clear()
    return jsonify({"message": "Logged out"}), 200


@auth_bp.route("/delete_account", methods=["POST"])
@csrf_protect
@login_required
def delete_account(user_id):
    """
    Delete the signed-in account together with its events and deadlines.

    The stores are reset first so the local cache is emptied even when the
    remote database cannot be reached.
    """
    get_event_store().reset()
    get_deadline_store().reset()

    try:
        user = db.session.get(User, user_id)
        if user:
            db.session.delete(user)
            db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Account deletion failed for user %s", user_id)
        return jsonify({"message": "Local data cleared; account deletion failed"}), 503

    session.clear()
    return jsonify({"message": "Account deleted"}), 200
