"""
API Routes
"""
from .config_routes import create_config_blueprint
from .message_routes import create_message_blueprint

__all__ = [
    'create_config_blueprint',
    'create_message_blueprint',
]
