"""
Configuration and health check routes
"""
import logging
from flask import Blueprint, request, jsonify

from alexta import __version__
from alexta.config import SUPPORTED_LANGUAGES, DEBUG_MODE, get_language_name

# Setup logger for this module
logger = logging.getLogger('config_routes')
if DEBUG_MODE:
    logger.setLevel(logging.DEBUG)


def create_config_blueprint(orchestrator, background_loop, settings):
    """
    Create and configure the config blueprint

    Args:
        orchestrator: EnrichmentOrchestrator instance
        background_loop: BackgroundLoop the orchestrator runs on
        settings: Settings the server was started with
    """
    bp = Blueprint('config', __name__)

    @bp.route('/api/health', methods=['GET'])
    def health_check():
        """API health check endpoint"""
        return jsonify({
            "status": "ok",
            "message": "Alexta chat API is running",
            "version": __version__,
            "translator_provider": settings.translator_provider,
            "summarizer_provider": settings.summarizer_provider,
        })

    @bp.route('/api/languages', methods=['GET'])
    def get_languages():
        """Languages offered in the target language selector"""
        return jsonify({
            "languages": SUPPORTED_LANGUAGES,
            "selected": background_loop.call(lambda: orchestrator.selected_language),
        })

    @bp.route('/api/settings/language', methods=['GET'])
    def get_selected_language():
        code = background_loop.call(lambda: orchestrator.selected_language)
        return jsonify({"language": code, "name": get_language_name(code)})

    @bp.route('/api/settings/language', methods=['PUT'])
    def set_selected_language():
        """Change the target language used by later translations"""
        data = request.get_json(silent=True) or {}
        code = data.get('language')
        # ValidationRejection is mapped to 400 by the app error handler
        background_loop.call(orchestrator.select_language, code)
        logger.info(f"Target language set to {code}")
        return jsonify({"language": code, "name": get_language_name(code)})

    @bp.route('/api/capabilities', methods=['GET'])
    def get_capabilities():
        """Registry slot states"""
        capabilities = background_loop.call(orchestrator.capabilities)
        if DEBUG_MODE:
            logger.debug(f"/api/capabilities response: {capabilities}")
        return jsonify({"capabilities": capabilities, "settings": settings.to_dict()})

    return bp
