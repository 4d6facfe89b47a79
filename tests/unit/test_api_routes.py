"""Unit tests for the Flask API (test client, fake providers)."""

from types import SimpleNamespace

import pytest

from alexta.api import BackgroundLoop, create_app, report_download_progress
from alexta.config import SAME_LANGUAGE_MESSAGE, Settings
from alexta.core.models import CapabilityKind, DownloadProgress
from alexta.utils.unified_logger import setup_web_logger
from tests.fakes import make_orchestrator


@pytest.fixture
def api(detector, translator, summarizer):
    orchestrator = make_orchestrator(detector, translator, summarizer)
    app, socketio, orchestrator, loop = create_app(Settings(interface_type="web"),
                                                   orchestrator=orchestrator,
                                                   background_loop=BackgroundLoop())
    app.config['TESTING'] = True

    def settle():
        loop.run(orchestrator.drain(), timeout=5)

    yield SimpleNamespace(app=app, client=app.test_client(), socketio=socketio,
                          orchestrator=orchestrator, loop=loop, settle=settle)
    loop.stop()


def _submit(api, text):
    response = api.client.post('/api/messages', json={'text': text})
    assert response.status_code == 201
    api.settle()
    return response.get_json()['id']


class TestConfigRoutes:

    def test_health(self, api):
        response = api.client.get('/api/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'ok'

    def test_languages(self, api):
        data = api.client.get('/api/languages').get_json()
        assert len(data['languages']) == 6
        assert data['selected'] == 'en'

    def test_select_language(self, api):
        response = api.client.put('/api/settings/language', json={'language': 'fr'})
        assert response.status_code == 200
        assert response.get_json() == {'language': 'fr', 'name': 'French'}
        assert api.client.get('/api/settings/language').get_json()['language'] == 'fr'

    def test_unsupported_language_is_bad_request(self, api):
        response = api.client.put('/api/settings/language', json={'language': 'de'})
        assert response.status_code == 400
        assert 'Unsupported target language' in response.get_json()['error']

    def test_capabilities(self, api):
        _submit(api, "Hello everyone")
        data = api.client.get('/api/capabilities').get_json()

        assert data['capabilities'][0]['kind'] == 'detector'
        assert data['capabilities'][0]['state'] == 'ready'


class TestMessageRoutes:

    def test_submit_returns_pending_message(self, api):
        response = api.client.post('/api/messages', json={'text': 'Bonjour le monde'})
        api.settle()

        data = response.get_json()
        assert response.status_code == 201
        assert data['id'] == 1
        assert data['text'] == 'Bonjour le monde'
        assert data['detection']['status'] == 'pending'

    def test_empty_message_is_rejected(self, api):
        response = api.client.post('/api/messages', json={'text': '   '})
        assert response.status_code == 400
        assert api.client.get('/api/messages').get_json()['count'] == 0

    def test_list_and_get(self, api):
        first = _submit(api, "Bonjour le monde")
        _submit(api, "Hola a todos")

        listing = api.client.get('/api/messages').get_json()
        assert [m['detection']['language'] for m in listing['messages']] == ['fr', 'es']

        message = api.client.get(f'/api/messages/{first}').get_json()
        assert message['detection']['display_text'] == 'fr'
        assert message['summary_offered'] is False

    def test_unknown_message_is_not_found(self, api):
        assert api.client.get('/api/messages/99').status_code == 404
        assert api.client.post('/api/messages/99/translate', json={}).status_code == 404
        assert api.client.post('/api/messages/99/summarize').status_code == 404

    def test_translate(self, api):
        message_id = _submit(api, "Bonjour le monde")

        response = api.client.post(f'/api/messages/{message_id}/translate', json={'target_language': 'en'})
        assert response.status_code == 202
        assert response.get_json()['translation']['status'] == 'in_flight'

        api.settle()
        translation = api.client.get(f'/api/messages/{message_id}').get_json()['translation']
        assert translation['status'] == 'done'
        assert translation['result_text'] == '[fr->en] Bonjour le monde'
        assert translation['target_language'] == 'en'

    def test_translate_same_language(self, api):
        message_id = _submit(api, "Hello everyone")

        response = api.client.post(f'/api/messages/{message_id}/translate')

        assert response.status_code == 202
        assert response.get_json()['translation']['result_text'] == SAME_LANGUAGE_MESSAGE

    def test_translate_undetected_message_conflicts(self, api):
        message_id = _submit(api, "12345")

        response = api.client.post(f'/api/messages/{message_id}/translate', json={})

        assert response.status_code == 409
        assert response.get_json()['message']['detection']['status'] == 'unknown'

    def test_translate_unsupported_target_is_bad_request(self, api):
        message_id = _submit(api, "Bonjour le monde")
        response = api.client.post(f'/api/messages/{message_id}/translate', json={'target_language': 'xx'})
        assert response.status_code == 400

    def test_summarize(self, api, long_english_text, summarizer):
        message_id = _submit(api, long_english_text)
        assert api.client.get(f'/api/messages/{message_id}').get_json()['summary_offered'] is True

        response = api.client.post(f'/api/messages/{message_id}/summarize')
        assert response.status_code == 202

        api.settle()
        message = api.client.get(f'/api/messages/{message_id}').get_json()
        assert message['summary']['status'] == 'done'
        assert message['summary_offered'] is False
        assert summarizer.invoke_count == 1

    def test_summarize_short_text_conflicts(self, api, summarizer):
        message_id = _submit(api, "Hello everyone")

        response = api.client.post(f'/api/messages/{message_id}/summarize')

        assert response.status_code == 409
        assert summarizer.invoke_count == 0


class TestWebSocket:

    def test_message_updates_are_pushed(self, api):
        client = api.socketio.test_client(api.app)
        received = client.get_received()
        assert received[0]['name'] == 'connected'

        _submit(api, "Bonjour le monde")

        updates = [event['args'][0] for event in client.get_received() if event['name'] == 'message_update']
        assert [u['detection']['status'] for u in updates] == ['pending', 'resolved']
        client.disconnect()

    def test_download_progress_is_logged_to_clients(self, api):
        entries = []
        web_logger = setup_web_logger(entries.append)
        web_logger.console_output = False
        client = api.socketio.test_client(api.app)
        client.get_received()

        report_download_progress(api.socketio, web_logger, CapabilityKind.SUMMARIZER, None,
                                 DownloadProgress(loaded=50, total=200))

        received = {event['name']: event['args'][0] for event in client.get_received()}
        assert received['download_progress']['percentage'] == 25.0
        assert received['log']['type'] == 'download_progress'
        assert received['log']['message'] == "Downloading summarizer"
        assert entries[0]['data'] == {'loaded': 50, 'total': 200}
        client.disconnect()
