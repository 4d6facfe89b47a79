"""
Web API for the Alexta chat (Flask + Socket.IO)
"""
from .app import create_app
from .event_loop import BackgroundLoop
from .routes import configure_routes
from .websocket import (
    attach_orchestrator,
    configure_websocket_handlers,
    emit_download_progress,
    emit_log,
    report_download_progress,
)

__all__ = [
    'create_app',
    'BackgroundLoop',
    'configure_routes',
    'configure_websocket_handlers',
    'attach_orchestrator',
    'emit_download_progress',
    'emit_log',
    'report_download_progress',
]
