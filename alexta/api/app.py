"""
Flask application factory for the chat API
"""
import logging
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from alexta.config import Settings
from alexta.core.builder import build_orchestrator
from alexta.utils.unified_logger import setup_web_logger
from .event_loop import BackgroundLoop
from .routes import configure_routes
from .websocket import (
    attach_orchestrator,
    configure_websocket_handlers,
    emit_log,
    report_download_progress,
)

logger = logging.getLogger(__name__)


def create_app(settings=None, orchestrator=None, background_loop=None):
    """
    Build the Flask app, its Socket.IO server and the orchestrator loop

    Args:
        settings: Settings (environment defaults if omitted)
        orchestrator: Pre-built orchestrator (tests inject one backed by fakes)
        background_loop: Loop to run the orchestrator on (started if needed)

    Returns:
        tuple: (app, socketio, orchestrator, background_loop)
    """
    settings = settings or Settings(interface_type="web")

    app = Flask(__name__)
    CORS(app)
    socketio = SocketIO(app, cors_allowed_origins="*")

    web_logger = setup_web_logger(lambda entry: emit_log(socketio, entry))

    if orchestrator is None:
        orchestrator = build_orchestrator(
            settings,
            on_progress=lambda kind, key, event: report_download_progress(socketio, web_logger, kind, key, event),
        )

    background_loop = (background_loop or BackgroundLoop()).start()

    configure_routes(app, orchestrator, background_loop, settings)
    configure_websocket_handlers(socketio)
    attach_orchestrator(socketio, orchestrator)

    return app, socketio, orchestrator, background_loop
