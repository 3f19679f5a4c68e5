# Import Flask extensions for database, password hashing, and migrations
from flask_sqlalchemy import SQLAlchemy      # ORM for the remote tier
from flask_bcrypt import Bcrypt              # Secure password hashing
from flask_migrate import Migrate            # Database schema migrations

from .notifications import NotificationBus

# Instantiate the extensions (to be initialized with the Flask app in the factory)
db = SQLAlchemy()    # Handles all remote database operations and models
bcrypt = Bcrypt()    # Provides methods for hashing and checking passwords
migrate = Migrate()  # Manages database migrations (schema changes)

# Process-lifetime notification bus shared by every store
bus = NotificationBus()
