"""
Flask web server for the Alexta chat API with WebSocket support
"""
import sys
import logging
import atexit
from datetime import datetime

import httpx

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Reduce verbosity of werkzeug (Flask HTTP server logs)
logging.getLogger('werkzeug').setLevel(logging.WARNING)
logging.getLogger('httpx').setLevel(logging.WARNING)

from alexta.config import HOST, PORT, Settings, is_supported_language
from alexta.api import create_app
from alexta.core.capabilities.factory import SUPPORTED_BACKENDS


def validate_configuration(settings):
    """Validate required configuration before starting server"""
    issues = []

    if not PORT or not isinstance(PORT, int):
        issues.append("PORT must be a valid integer")
    if not is_supported_language(settings.default_target_language):
        issues.append(f"DEFAULT_TARGET_LANGUAGE '{settings.default_target_language}' is not supported")
    for name, provider in (("TRANSLATOR_PROVIDER", settings.translator_provider),
                           ("SUMMARIZER_PROVIDER", settings.summarizer_provider)):
        if provider.lower() not in SUPPORTED_BACKENDS:
            issues.append(f"{name} '{provider}' is unknown (expected one of: {', '.join(SUPPORTED_BACKENDS)})")

    if issues:
        logger.error("=" * 70)
        logger.error("CONFIGURATION ERROR")
        logger.error("=" * 70)
        for issue in issues:
            logger.error(f"   - {issue}")
        logger.error("Create a .env file from .env.example, fix the settings and restart")
        logger.error("=" * 70)
        raise ValueError("Configuration validation failed. See errors above.")

    logger.info("Configuration validated successfully")


def test_ollama_connection(settings):
    """Test Ollama connection at startup and log result"""
    base_url = settings.ollama_api_endpoint.split('/api/')[0].rstrip('/')
    tags_url = f"{base_url}/api/tags"
    try:
        logger.info(f"Testing Ollama connection at {tags_url}...")
        response = httpx.get(tags_url, timeout=5)
        if response.status_code == 200:
            models = [m.get('name') for m in response.json().get('models', [])]
            logger.info(f"Ollama connected! Found {len(models)} model(s): {models}")
            return True
        logger.warning(f"Ollama returned status {response.status_code}")
        return False
    except httpx.ConnectError:
        logger.warning(f"Cannot connect to Ollama at {base_url}")
        logger.warning("   Make sure Ollama is running ('ollama serve')")
        return False
    except httpx.HTTPError as e:
        logger.warning(f"Ollama connection test failed: {e}")
        return False


def make_shutdown(orchestrator, background_loop):
    """Build the exit hook that lets running stages settle and closes provider clients"""
    def shutdown():
        if background_loop.is_running:
            try:
                background_loop.run(orchestrator.close(), timeout=10)
            except Exception as e:
                logger.error(f"Error while shutting down orchestrator: {e}")
            background_loop.stop()
    return shutdown


def main(settings=None):
    settings = settings or Settings(interface_type="web")

    try:
        validate_configuration(settings)
    except ValueError:
        sys.exit(1)

    app, socketio, orchestrator, background_loop = create_app(settings)
    atexit.register(make_shutdown(orchestrator, background_loop))

    logger.info("=" * 60)
    logger.info(f"ALEXTA CHAT SERVER (Version {datetime.now().strftime('%Y%m%d-%H%M')})")
    logger.info("=" * 60)
    logger.info(f"   - Translator: {settings.translator_provider} / {settings.translator_model}")
    logger.info(f"   - Summarizer: {settings.summarizer_provider} / {settings.summarizer_model}")
    logger.info(f"   - API: http://{HOST}:{PORT}/api/")
    logger.info(f"   - Health Check: http://{HOST}:{PORT}/api/health")
    logger.info("")

    if "ollama" in (settings.translator_provider, settings.summarizer_provider):
        test_ollama_connection(settings)

    logger.info("Press Ctrl+C to stop the server")

    if HOST == '0.0.0.0':
        logger.warning("Server is binding to 0.0.0.0 (all network interfaces)")

    socketio.run(app, debug=False, host=HOST, port=PORT, allow_unsafe_werkzeug=True)


if __name__ == '__main__':
    main()
