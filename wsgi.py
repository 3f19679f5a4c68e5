# WSGI entry point for the Analogix study planner.
# This file is used by WSGI servers (e.g., Gunicorn, uWSGI) to run the app in production.

from analogix import create_app  # Import the application factory function

# Specify the configuration to use for the Flask app.
# You can change this to another config class if needed (e.g., for development or testing).
config = "analogix.config.ProdConfig"

# Create the Flask application instance using the factory pattern.
# The 'application' variable is recognized by most WSGI servers as the entry point.
application = create_app(config)
