"""Unit tests for EnrichmentOrchestrator."""

import asyncio

import pytest

from alexta.config import SAME_LANGUAGE_MESSAGE
from alexta.core.exceptions import InvocationFailure, ValidationRejection
from alexta.core.models import Availability, DetectionStatus, StageStatus
from tests.fakes import (
    FakeDetector,
    FakeSummarizer,
    FakeTranslator,
    make_orchestrator,
)


async def _let_tasks_run(rounds: int = 10):
    for _ in range(rounds):
        await asyncio.sleep(0)


async def _submit_and_detect(orchestrator, text):
    message_id = orchestrator.submit(text)
    await orchestrator.drain()
    return message_id


class TestSubmission:
    """Test message creation and automatic detection."""

    @pytest.mark.asyncio
    async def test_submit_creates_pending_message(self, orchestrator):
        message_id = orchestrator.submit("Bonjour le monde")

        message = orchestrator.snapshot(message_id)
        assert message_id == 1
        assert message.text == "Bonjour le monde"
        assert message.detection.status == DetectionStatus.PENDING
        await orchestrator.drain()

    @pytest.mark.asyncio
    async def test_empty_text_creates_no_message(self, orchestrator, detector):
        assert orchestrator.submit("") is None
        assert orchestrator.submit("   \n ") is None
        await orchestrator.drain()

        assert orchestrator.snapshots() == []
        assert detector.invoke_count == 0

    @pytest.mark.asyncio
    async def test_ids_increase_in_submission_order(self, orchestrator):
        ids = [orchestrator.submit(text) for text in ("Hello everyone", "Hola a todos")]
        await orchestrator.drain()

        assert ids == [1, 2]
        assert [m.text for m in orchestrator.snapshots()] == ["Hello everyone", "Hola a todos"]

    @pytest.mark.asyncio
    async def test_detection_resolves_language(self, orchestrator):
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        detection = orchestrator.snapshot(message_id).detection
        assert detection.status == DetectionStatus.RESOLVED
        assert detection.language == "fr"

    @pytest.mark.asyncio
    async def test_unmatched_text_is_unknown(self, orchestrator):
        message_id = await _submit_and_detect(orchestrator, "12345")

        detection = orchestrator.snapshot(message_id).detection
        assert detection.status == DetectionStatus.UNKNOWN
        assert detection.reason == "No language matched"


class TestDetectionAttribution:
    """Detection results land on the message that started them."""

    @pytest.mark.asyncio
    async def test_out_of_order_completion(self):
        slow = asyncio.Event()
        detector = FakeDetector({"Bonjour le monde": "fr", "Hello everyone": "en", "Hola a todos": "es"},
                                gates={"Bonjour le monde": slow})
        orchestrator = make_orchestrator(detector=detector)

        first = orchestrator.submit("Bonjour le monde")
        second = orchestrator.submit("Hello everyone")
        third = orchestrator.submit("Hola a todos")
        await _let_tasks_run()

        assert orchestrator.snapshot(first).detection.is_pending
        assert orchestrator.snapshot(second).detection.language == "en"
        assert orchestrator.snapshot(third).detection.language == "es"

        slow.set()
        await orchestrator.drain()

        assert orchestrator.snapshot(first).detection.language == "fr"
        assert orchestrator.snapshot(second).detection.language == "en"

    @pytest.mark.asyncio
    async def test_detection_is_never_overwritten(self, orchestrator, detector):
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        detector.languages["Bonjour le monde"] = "en"
        state = await orchestrator.detect(message_id)

        assert state.language == "fr"
        assert orchestrator.snapshot(message_id).detection.language == "fr"
        assert detector.invoke_count == 1

    @pytest.mark.asyncio
    async def test_detect_does_not_start_twice(self):
        gate = asyncio.Event()
        detector = FakeDetector({"Hello everyone": "en"}, gates={"Hello everyone": gate})
        orchestrator = make_orchestrator(detector=detector)

        message_id = orchestrator.submit("Hello everyone")
        await _let_tasks_run()
        state = await orchestrator.detect(message_id)

        assert state.is_pending
        gate.set()
        await orchestrator.drain()
        assert detector.invoke_count == 1

    @pytest.mark.asyncio
    async def test_detect_unknown_message(self, orchestrator):
        assert await orchestrator.detect(42) is None


class TestDetectionFailures:
    """Detector problems end in UNKNOWN with a reason."""

    @pytest.mark.asyncio
    async def test_unavailable_detector(self):
        orchestrator = make_orchestrator(detector=FakeDetector(availability=Availability.UNAVAILABLE))
        message_id = await _submit_and_detect(orchestrator, "Hello everyone")

        detection = orchestrator.snapshot(message_id).detection
        assert detection.status == DetectionStatus.UNKNOWN
        assert detection.reason == "Language detector not available"

    @pytest.mark.asyncio
    async def test_invocation_failure(self):
        detector = FakeDetector(invoke_error=InvocationFailure("model crashed"))
        orchestrator = make_orchestrator(detector=detector)
        message_id = await _submit_and_detect(orchestrator, "Hello everyone")

        assert orchestrator.snapshot(message_id).detection.reason == "Language detection failed: model crashed"

    @pytest.mark.asyncio
    async def test_unexpected_error(self):
        detector = FakeDetector(invoke_error=RuntimeError("boom"))
        orchestrator = make_orchestrator(detector=detector)
        message_id = await _submit_and_detect(orchestrator, "Hello everyone")

        detection = orchestrator.snapshot(message_id).detection
        assert detection.status == DetectionStatus.UNKNOWN
        assert detection.reason == "Language detection error: boom"


class TestTranslation:
    """Test the translation stage."""

    @pytest.mark.asyncio
    async def test_french_to_english(self, orchestrator, translator):
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        state = await orchestrator.request_translation(message_id, "en")

        assert state.status == StageStatus.DONE
        assert state.result_text == "[fr->en] Bonjour le monde"
        assert state.target_language == "en"
        assert translator.invoke_count == 1
        handle = translator.invocations[0]['handle']
        assert handle.options == {'source_language': 'fr', 'target_language': 'en'}
        assert translator.invocations[0]['text'] == "Bonjour le monde"
        assert orchestrator.snapshot(message_id).translation == state

    @pytest.mark.asyncio
    async def test_same_language_short_circuits(self, orchestrator, translator):
        message_id = await _submit_and_detect(orchestrator, "Hello everyone")

        state = await orchestrator.request_translation(message_id, "en")

        assert state.status == StageStatus.DONE
        assert state.result_text == SAME_LANGUAGE_MESSAGE
        assert translator.invoke_count == 0
        assert translator.create_calls == 0

    @pytest.mark.asyncio
    async def test_uses_selected_language_by_default(self, orchestrator):
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")
        orchestrator.select_language("es")

        state = await orchestrator.request_translation(message_id)

        assert state.target_language == "es"
        assert state.result_text == "[fr->es] Bonjour le monde"

    @pytest.mark.asyncio
    async def test_result_keeps_its_target_after_selection_changes(self, orchestrator):
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")
        await orchestrator.request_translation(message_id, "es")

        orchestrator.select_language("ru")

        assert orchestrator.snapshot(message_id).translation.target_language == "es"

    @pytest.mark.asyncio
    async def test_rejected_while_detection_pending(self):
        gate = asyncio.Event()
        detector = FakeDetector({"Bonjour le monde": "fr"}, gates={"Bonjour le monde": gate})
        translator = FakeTranslator()
        orchestrator = make_orchestrator(detector=detector, translator=translator)

        message_id = orchestrator.submit("Bonjour le monde")
        assert await orchestrator.request_translation(message_id, "en") is None
        assert orchestrator.snapshot(message_id).translation.status == StageStatus.IDLE

        gate.set()
        await orchestrator.drain()
        assert translator.invoke_count == 0

    @pytest.mark.asyncio
    async def test_rejected_for_unknown_detection(self, orchestrator, translator):
        message_id = await _submit_and_detect(orchestrator, "12345")
        assert await orchestrator.request_translation(message_id, "en") is None
        assert translator.invoke_count == 0

    @pytest.mark.asyncio
    async def test_rejected_for_unsupported_target_or_unknown_message(self, orchestrator):
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")
        assert await orchestrator.request_translation(message_id, "xx") is None
        assert await orchestrator.request_translation(99, "en") is None

    @pytest.mark.asyncio
    async def test_concurrent_requests_invoke_once(self, detector):
        gate = asyncio.Event()
        translator = FakeTranslator(invoke_gate=gate)
        orchestrator = make_orchestrator(detector=detector, translator=translator)
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        first = asyncio.ensure_future(orchestrator.request_translation(message_id, "en"))
        await _let_tasks_run()
        assert orchestrator.snapshot(message_id).translation.status == StageStatus.IN_FLIGHT
        assert orchestrator.snapshot(message_id).translation.display_text == "Translating..."

        assert await orchestrator.request_translation(message_id, "en") is None
        assert await orchestrator.request_translation(message_id, "es") is None

        gate.set()
        state = await first
        assert state.status == StageStatus.DONE
        assert translator.invoke_count == 1

    @pytest.mark.asyncio
    async def test_in_flight_guard_is_per_message(self, detector):
        gate = asyncio.Event()
        translator = FakeTranslator(invoke_gate=gate)
        orchestrator = make_orchestrator(detector=detector, translator=translator)
        french = await _submit_and_detect(orchestrator, "Bonjour le monde")
        spanish = await _submit_and_detect(orchestrator, "Hola a todos")

        tasks = [asyncio.ensure_future(orchestrator.request_translation(message_id, "en"))
                 for message_id in (french, spanish)]
        await _let_tasks_run()
        assert translator.invoke_count == 2

        gate.set()
        results = await asyncio.gather(*tasks)
        assert [r.result_text for r in results] == ["[fr->en] Bonjour le monde", "[es->en] Hola a todos"]

    @pytest.mark.asyncio
    async def test_translator_unavailable(self, detector):
        orchestrator = make_orchestrator(detector=detector,
                                         translator=FakeTranslator(availability=Availability.UNAVAILABLE))
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        state = await orchestrator.request_translation(message_id, "en")

        assert state.status == StageStatus.FAILED
        assert state.error == "Translation from fr to en is not available"
        assert state.display_text == state.error

    @pytest.mark.asyncio
    async def test_translator_failure_can_be_retried(self, detector):
        translator = FakeTranslator(invoke_error=InvocationFailure("timeout"))
        orchestrator = make_orchestrator(detector=detector, translator=translator)
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        state = await orchestrator.request_translation(message_id, "en")
        assert state.status == StageStatus.FAILED
        assert state.error == "Translation failed: timeout"

        translator.invoke_error = None
        state = await orchestrator.request_translation(message_id, "en")
        assert state.status == StageStatus.DONE

    @pytest.mark.asyncio
    async def test_empty_translation_fails(self, detector):
        class SilentTranslator(FakeTranslator):
            def produce(self, handle, text):
                return ""

        orchestrator = make_orchestrator(detector=detector, translator=SilentTranslator())
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        state = await orchestrator.request_translation(message_id, "en")

        assert state.status == StageStatus.FAILED
        assert state.error == "Translation failed: Translator returned no translation"

    @pytest.mark.asyncio
    async def test_start_translation_returns_immediately(self, orchestrator):
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        state = orchestrator.start_translation(message_id, "en")
        assert state.status == StageStatus.IN_FLIGHT

        await orchestrator.drain()
        assert orchestrator.snapshot(message_id).translation.status == StageStatus.DONE

    @pytest.mark.asyncio
    async def test_translator_handle_is_reused_per_pair(self, orchestrator, translator):
        first = await _submit_and_detect(orchestrator, "Bonjour le monde")
        second = await _submit_and_detect(orchestrator, "Bonjour le monde")

        await orchestrator.request_translation(first, "en")
        await orchestrator.request_translation(second, "en")
        await orchestrator.request_translation(second, "es")

        assert translator.create_calls == 2


class TestLanguageSelection:

    def test_select_supported_language(self, orchestrator):
        orchestrator.select_language("tr")
        assert orchestrator.selected_language == "tr"

    def test_unsupported_language_is_rejected(self, orchestrator):
        with pytest.raises(ValidationRejection):
            orchestrator.select_language("de")
        assert orchestrator.selected_language == "en"


class TestSummary:
    """Test the summarization stage."""

    @pytest.mark.asyncio
    async def test_long_english_text_scenario(self, orchestrator, summarizer, long_english_text):
        message_id = await _submit_and_detect(orchestrator, long_english_text)
        assert orchestrator.should_offer_summary(message_id)

        state = await orchestrator.request_summary(message_id)

        assert state.status == StageStatus.DONE
        assert state.text == f"Summary of {len(long_english_text)} characters"
        assert summarizer.invoke_count == 1
        assert not orchestrator.should_offer_summary(message_id)
        assert await orchestrator.request_summary(message_id) is None

    @pytest.mark.asyncio
    async def test_short_text_never_reaches_summarizer(self):
        text = "a" * 150
        summarizer = FakeSummarizer()
        orchestrator = make_orchestrator(detector=FakeDetector({text: "en"}), summarizer=summarizer)
        message_id = await _submit_and_detect(orchestrator, text)

        assert not orchestrator.should_offer_summary(message_id)
        assert await orchestrator.request_summary(message_id) is None
        assert summarizer.create_calls == 0
        assert summarizer.invoke_count == 0

    @pytest.mark.asyncio
    async def test_non_english_text_is_not_summarized(self):
        text = "b" * 200
        summarizer = FakeSummarizer()
        orchestrator = make_orchestrator(detector=FakeDetector({text: "fr"}), summarizer=summarizer)
        message_id = await _submit_and_detect(orchestrator, text)

        assert not orchestrator.should_offer_summary(message_id)
        assert await orchestrator.request_summary(message_id) is None
        assert summarizer.invoke_count == 0

    @pytest.mark.asyncio
    async def test_concurrent_summary_requests_invoke_once(self, detector, long_english_text):
        gate = asyncio.Event()
        summarizer = FakeSummarizer(invoke_gate=gate)
        orchestrator = make_orchestrator(detector=detector, summarizer=summarizer)
        message_id = await _submit_and_detect(orchestrator, long_english_text)

        first = asyncio.ensure_future(orchestrator.request_summary(message_id))
        await _let_tasks_run()
        assert orchestrator.snapshot(message_id).summary.display_text == "Summarizing..."
        assert await orchestrator.request_summary(message_id) is None

        gate.set()
        await first
        assert summarizer.invoke_count == 1

    @pytest.mark.asyncio
    async def test_summarizer_unavailable(self, detector, long_english_text):
        orchestrator = make_orchestrator(detector=detector,
                                         summarizer=FakeSummarizer(availability=Availability.UNAVAILABLE))
        message_id = await _submit_and_detect(orchestrator, long_english_text)

        state = await orchestrator.request_summary(message_id)

        assert state.status == StageStatus.FAILED
        assert state.error == "Summarizer not available"
        # A failed summary may be requested again
        assert orchestrator.should_offer_summary(message_id)

    @pytest.mark.asyncio
    async def test_summarizer_invocation_failure(self, detector, long_english_text):
        summarizer = FakeSummarizer(invoke_error=InvocationFailure("context window exceeded"))
        orchestrator = make_orchestrator(detector=detector, summarizer=summarizer)
        message_id = await _submit_and_detect(orchestrator, long_english_text)

        state = await orchestrator.request_summary(message_id)

        assert state.error == "Summarization failed: context window exceeded"

    @pytest.mark.asyncio
    async def test_start_summary(self, orchestrator, long_english_text):
        message_id = await _submit_and_detect(orchestrator, long_english_text)

        assert orchestrator.start_summary(message_id).status == StageStatus.IN_FLIGHT
        await orchestrator.drain()
        assert orchestrator.snapshot(message_id).summary.status == StageStatus.DONE

    @pytest.mark.asyncio
    async def test_summary_and_translation_run_independently(self, detector, long_english_text):
        gate = asyncio.Event()
        summarizer = FakeSummarizer(invoke_gate=gate)
        orchestrator = make_orchestrator(detector=detector, summarizer=summarizer)
        message_id = await _submit_and_detect(orchestrator, long_english_text)

        orchestrator.start_summary(message_id)
        translation = await orchestrator.request_translation(message_id, "fr")

        assert translation.status == StageStatus.DONE
        assert orchestrator.snapshot(message_id).summary.status == StageStatus.IN_FLIGHT
        gate.set()
        await orchestrator.drain()


class TestListenersAndProgress:

    @pytest.mark.asyncio
    async def test_listeners_receive_every_change(self, orchestrator):
        seen = []

        def broken_listener(message):
            raise RuntimeError("render failed")

        orchestrator.add_listener(broken_listener)
        orchestrator.add_listener(seen.append)

        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")
        await orchestrator.request_translation(message_id, "en")

        assert [m.detection.status for m in seen[:2]] == [DetectionStatus.PENDING, DetectionStatus.RESOLVED]
        assert [m.translation.status for m in seen[2:]] == [StageStatus.IN_FLIGHT, StageStatus.DONE]

    @pytest.mark.asyncio
    async def test_removed_listener_is_not_called(self, orchestrator):
        seen = []
        orchestrator.add_listener(seen.append)
        orchestrator.remove_listener(seen.append)

        await _submit_and_detect(orchestrator, "Hello everyone")
        assert seen == []

    @pytest.mark.asyncio
    async def test_download_progress_reaches_sink(self, detector):
        events = []
        translator = FakeTranslator(availability=Availability.DOWNLOADABLE,
                                    download_events=[(10, 40), (40, 40)])
        orchestrator = make_orchestrator(detector=detector, translator=translator,
                                         on_progress=lambda kind, key, event: events.append(event))
        message_id = await _submit_and_detect(orchestrator, "Bonjour le monde")

        state = await orchestrator.request_translation(message_id, "en")

        assert state.status == StageStatus.DONE
        assert [(e.loaded, e.total) for e in events] == [(10, 40), (40, 40)]

    @pytest.mark.asyncio
    async def test_capabilities_and_close(self, orchestrator, detector):
        await _submit_and_detect(orchestrator, "Hello everyone")

        assert orchestrator.capabilities()[0]['kind'] == 'detector'
        await orchestrator.close()
        assert detector.closed
