from .auth import auth_bp              # Authentication routes (login, register, etc.)
from .events import events_bp          # Calendar events API routes
from .deadlines import deadlines_bp    # Deadlines API routes
from .terms import terms_bp            # Academic term/week routes
from .timer import timer_bp            # Study timer routes
from .stats import stats_bp            # Stats and subject data routes


def register_blueprints(app):
    """
    Register all Flask blueprints with their respective URL prefixes.

    Args:
        app (Flask): The Flask application instance.
    """
    app.register_blueprint(auth_bp, url_prefix="/auth")                # Auth routes under /auth
    app.register_blueprint(events_bp, url_prefix="/api/events")        # Events API under /api/events
    app.register_blueprint(deadlines_bp, url_prefix="/api/deadlines")  # Deadlines API under /api/deadlines
    app.register_blueprint(terms_bp, url_prefix="/api/terms")          # Term resolution under /api/terms
    app.register_blueprint(timer_bp, url_prefix="/api/timer")          # Timer under /api/timer
    app.register_blueprint(stats_bp, url_prefix="/api")                # Stats and subjects under /api
