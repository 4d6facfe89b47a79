"""
Chat message routes: submission, listing and the user-triggered stages
"""
import logging
from flask import Blueprint, request, jsonify

from alexta.config import is_supported_language
from alexta.core.exceptions import ValidationRejection
from alexta.core import policies

logger = logging.getLogger('message_routes')


def create_message_blueprint(orchestrator, background_loop):
    """
    Create and configure the message blueprint

    Args:
        orchestrator: EnrichmentOrchestrator instance
        background_loop: BackgroundLoop the orchestrator runs on
    """
    bp = Blueprint('messages', __name__)

    def _serialize(message):
        data = message.to_dict()
        data['summary_offered'] = orchestrator.should_offer_summary(message.id)
        return data

    def _snapshot(message_id):
        message = orchestrator.snapshot(message_id)
        return _serialize(message) if message is not None else None

    def _not_found(message_id):
        return jsonify({"error": f"Message {message_id} not found"}), 404

    @bp.route('/api/messages', methods=['POST'])
    def submit_message():
        """Submit a new chat message; language detection starts immediately"""
        data = request.get_json(silent=True) or {}
        text = data.get('text')
        if not isinstance(text, str) or not policies.is_submittable(text):
            raise ValidationRejection("Message text is empty")

        def _submit():
            message_id = orchestrator.submit(text)
            return _snapshot(message_id)

        return jsonify(background_loop.call(_submit)), 201

    @bp.route('/api/messages', methods=['GET'])
    def list_messages():
        messages = background_loop.call(
            lambda: [_serialize(message) for message in orchestrator.snapshots()]
        )
        return jsonify({"messages": messages, "count": len(messages)})

    @bp.route('/api/messages/<int:message_id>', methods=['GET'])
    def get_message(message_id):
        message = background_loop.call(_snapshot, message_id)
        if message is None:
            return _not_found(message_id)
        return jsonify(message)

    @bp.route('/api/messages/<int:message_id>/translate', methods=['POST'])
    def translate_message(message_id):
        """
        Start translating a message.

        Body (optional): {"target_language": "<code>"}; the selected
        language is used when omitted.
        """
        data = request.get_json(silent=True) or {}
        target_language = data.get('target_language')
        if target_language is not None and not is_supported_language(target_language):
            raise ValidationRejection(f"Unsupported target language: {target_language}",
                                      context={'language': target_language})

        def _start():
            if orchestrator.snapshot(message_id) is None:
                return None, None
            state = orchestrator.start_translation(message_id, target_language)
            return state, _snapshot(message_id)

        state, message = background_loop.call(_start)
        if message is None:
            return _not_found(message_id)
        if state is None:
            logger.info(f"Translation of message {message_id} rejected")
            return jsonify({"error": "Translation not possible for this message right now",
                            "message": message}), 409
        return jsonify(message), 202

    @bp.route('/api/messages/<int:message_id>/summarize', methods=['POST'])
    def summarize_message(message_id):
        """Start summarizing a message"""
        def _start():
            if orchestrator.snapshot(message_id) is None:
                return None, None
            state = orchestrator.start_summary(message_id)
            return state, _snapshot(message_id)

        state, message = background_loop.call(_start)
        if message is None:
            return _not_found(message_id)
        if state is None:
            logger.info(f"Summary of message {message_id} rejected")
            return jsonify({"error": "Summary not offered for this message",
                            "message": message}), 409
        return jsonify(message), 202

    return bp
