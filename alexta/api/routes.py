"""
Flask routes orchestrator for the chat API

Registers the route blueprints:

- blueprints/config_routes.py: Health check, languages, selected language, capabilities
- blueprints/message_routes.py: Message submission, listing, translation and summary
"""
import logging
from flask import jsonify

from alexta.core.exceptions import ValidationRejection
from .blueprints import (
    create_config_blueprint,
    create_message_blueprint
)

logger = logging.getLogger(__name__)


def configure_routes(app, orchestrator, background_loop, settings):
    """
    Configure Flask routes by registering all blueprints

    Args:
        app: Flask application instance
        orchestrator: EnrichmentOrchestrator instance
        background_loop: BackgroundLoop the orchestrator runs on
        settings: Settings the server was started with
    """

    # Register config and health check routes
    config_bp = create_config_blueprint(orchestrator, background_loop, settings)
    app.register_blueprint(config_bp)

    # Register message routes
    message_bp = create_message_blueprint(orchestrator, background_loop)
    app.register_blueprint(message_bp)

    # Register error handlers
    _register_error_handlers(app)


def _register_error_handlers(app):
    """Register global error handlers"""

    @app.errorhandler(ValidationRejection)
    def validation_rejected(error):
        return jsonify({"error": error.message, "details": error.context}), 400

    @app.errorhandler(404)
    def route_not_found(error):
        return jsonify({"error": "API Endpoint not found"}), 404

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.exception(f"INTERNAL SERVER ERROR: {error}")
        return jsonify({"error": "Internal server error", "details": str(error)}), 500
