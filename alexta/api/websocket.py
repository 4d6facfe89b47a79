"""
WebSocket handlers for real-time communication
"""
import logging
from flask import request
from flask_socketio import emit

from alexta.utils.unified_logger import LogType

logger = logging.getLogger(__name__)


def configure_websocket_handlers(socketio):
    """Configure WebSocket event handlers"""

    @socketio.on('connect')
    def handle_websocket_connect():
        logger.info(f'WebSocket client connected: {request.sid}')
        emit('connected', {'message': 'Connected to Alexta chat server via WebSocket'})

    @socketio.on('disconnect')
    def handle_websocket_disconnect():
        logger.info(f'WebSocket client disconnected: {request.sid}')


def emit_message_update(socketio, message, summary_offered=False):
    """
    Emit WebSocket update for a message state change

    Args:
        socketio: SocketIO instance
        message: Message snapshot
        summary_offered: Whether the summarize action should be shown
    """
    data_to_emit = message.to_dict()
    data_to_emit['summary_offered'] = summary_offered
    try:
        socketio.emit('message_update', data_to_emit, namespace='/')
    except Exception as e:
        logger.error(f"WebSocket emission error for message {message.id}: {e}")


def emit_download_progress(socketio, kind, key, event):
    """Emit a model download progress event"""
    try:
        socketio.emit('download_progress', {
            'capability': kind.value,
            'key': str(key) if key is not None else None,
            'loaded': event.loaded,
            'total': event.total,
            'percentage': round(event.percentage, 1),
        }, namespace='/')
    except Exception as e:
        logger.error(f"WebSocket emission error for download progress: {e}")


def attach_orchestrator(socketio, orchestrator):
    """Push every committed message state change to connected clients"""
    def _on_message_changed(message):
        emit_message_update(socketio, message, orchestrator.should_offer_summary(message.id))

    orchestrator.add_listener(_on_message_changed)
    return _on_message_changed


def emit_log(socketio, log_entry):
    """Forward a UnifiedLogger entry to connected clients"""
    try:
        socketio.emit('log', log_entry, namespace='/')
    except Exception as e:
        logger.error(f"WebSocket emission error for log entry: {e}")


def report_download_progress(socketio, web_logger, kind, key, event):
    """Log a model download step and push the raw progress to clients"""
    label = f"Downloading {kind.value}" + (f" {key}" if key is not None else "")
    web_logger.info(label, LogType.DOWNLOAD_PROGRESS, {'loaded': event.loaded, 'total': event.total})
    emit_download_progress(socketio, kind, key, event)
