"""Flask application factory for the Stillsite API."""

from flask import Flask
from flask_cors import CORS

import config
from api.middleware import register_error_handlers, register_request_logging
from database.connection import remove_session


def create_app():
    """Create and configure the Flask application."""
    app = Flask(__name__)

    # Configuration
    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["DEBUG"] = config.FLASK_DEBUG

    # Enable CORS for all routes
    CORS(app)

    # Clean up database sessions after each request
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        remove_session()

    register_error_handlers(app)
    register_request_logging(app)

    # Register blueprints
    from api.routes.archive import archive_bp
    from api.routes.settings import settings_bp

    app.register_blueprint(archive_bp, url_prefix="/api/archive")
    app.register_blueprint(settings_bp, url_prefix="/api/settings")

    # Health check
    @app.route("/api/health")
    def health():
        return {"status": "ok", "app": config.SLUG}

    return app
