"""
Asynchronous enrichment of chat messages.

The orchestrator accepts new messages, detects their language as soon as
they are created, and runs translation and summarization when the user
asks for them. Provider calls suspend the calling task; several stages of
several messages may be awaiting completion at once. Every result is
written back to the message id captured when the stage started, never to
a list position, so out-of-order completions land on the right message.

Provider failures never escape: each stage ends in a definite state
(DONE, FAILED or UNKNOWN) carrying a human-readable reason.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from alexta.config import (
    DEFAULT_TARGET_LANGUAGE,
    SAME_LANGUAGE_MESSAGE,
    SUMMARY_MIN_LENGTH,
    SUMMARY_REQUIRED_LANGUAGE,
    is_supported_language,
)
from alexta.core import policies
from alexta.core.exceptions import (
    CapabilityError,
    CapabilityUnavailable,
    InvocationFailure,
    ValidationRejection,
)
from alexta.core.message_store import MessageStore
from alexta.core.models import (
    CapabilityKind,
    DetectionState,
    Message,
    StageStatus,
    SummaryState,
    TranslationState,
    TranslatorCacheKey,
)
from alexta.core.registry import ProviderRegistry

logger = logging.getLogger(__name__)

MessageListener = Callable[[Message], None]


class EnrichmentOrchestrator:
    """
    Drives detection, translation and summarization for a message list.

    Args:
        registry: Source of capability handles (injected so tests can use fakes)
        store: Message store, a fresh one by default
        selected_language: Initial target language for translations
        summary_min_length: Texts at or below this many characters are never summarized
        summary_language: Detected language required before offering a summary
    """

    def __init__(self,
                 registry: ProviderRegistry,
                 store: Optional[MessageStore] = None,
                 selected_language: str = DEFAULT_TARGET_LANGUAGE,
                 summary_min_length: int = SUMMARY_MIN_LENGTH,
                 summary_language: str = SUMMARY_REQUIRED_LANGUAGE):
        self.registry = registry
        self.store = store if store is not None else MessageStore()
        self.summary_min_length = summary_min_length
        self.summary_language = summary_language
        self._selected_language = DEFAULT_TARGET_LANGUAGE
        self.select_language(selected_language)
        self._listeners: List[MessageListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._detecting: Set[int] = set()

    # ------------------------------------------------------------------
    # Target language selection
    # ------------------------------------------------------------------

    @property
    def selected_language(self) -> str:
        return self._selected_language

    def select_language(self, language_code: str) -> None:
        """
        Select the target language for translations.

        Raises:
            ValidationRejection: The language is not in SUPPORTED_LANGUAGES
        """
        if not is_supported_language(language_code):
            raise ValidationRejection(f"Unsupported target language: {language_code}",
                                      context={'language': language_code})
        self._selected_language = language_code

    # ------------------------------------------------------------------
    # Listeners and snapshots
    # ------------------------------------------------------------------

    def add_listener(self, listener: MessageListener) -> None:
        """Call listener with the new snapshot after every state change"""
        self._listeners.append(listener)

    def remove_listener(self, listener: MessageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, message: Optional[Message]) -> None:
        if message is None:
            return
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception:
                logger.exception(f"Listener failed while handling message {message.id}")

    def snapshot(self, message_id: int) -> Optional[Message]:
        """Read-only view of one message"""
        return self.store.get(message_id)

    def snapshots(self) -> List[Message]:
        """Read-only views of all messages in submission order"""
        return self.store.all()

    def capabilities(self) -> list:
        return self.registry.describe()

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    def _spawn(self, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every background stage has settled"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        await self.drain()
        await self.registry.close()

    # ------------------------------------------------------------------
    # Submission and detection
    # ------------------------------------------------------------------

    def submit(self, text: str) -> Optional[int]:
        """
        Add a message and start detecting its language.

        Must be called from a running event loop.

        Returns:
            The new message id, or None for empty/whitespace-only text
        """
        if not policies.is_submittable(text):
            logger.debug("Ignoring empty message")
            return None

        message = self.store.add(text)
        logger.info(f"[MESSAGE {message.id}] submitted ({len(text)} chars)")
        self._notify(message)
        self._detecting.add(message.id)
        self._spawn(self._run_detection(message))
        return message.id

    async def detect(self, message_id: int) -> Optional[DetectionState]:
        """
        Detect the language of a message whose detection is still pending.

        Settled detections are returned unchanged; a detection already
        running for the message is not started twice.
        """
        message = self.store.get(message_id)
        if message is None:
            return None
        if not message.detection.is_pending or message_id in self._detecting:
            return message.detection
        self._detecting.add(message_id)
        return await self._run_detection(message)

    async def _run_detection(self, message: Message) -> DetectionState:
        try:
            handle = await self.registry.acquire(CapabilityKind.DETECTOR)
            language = await self.registry.provider(CapabilityKind.DETECTOR).invoke(handle, message.text)
        except CapabilityUnavailable as e:
            logger.warning(f"[MESSAGE {message.id}] language detector unavailable: {e.message}")
            state = DetectionState.unknown("Language detector not available")
        except CapabilityError as e:
            logger.warning(f"[MESSAGE {message.id}] language detection failed: {e.message}")
            state = DetectionState.unknown(f"Language detection failed: {e.message}")
        except Exception as e:
            logger.exception(f"[MESSAGE {message.id}] unexpected error during language detection")
            state = DetectionState.unknown(f"Language detection error: {e}")
        else:
            if language:
                state = DetectionState.resolved(language)
            else:
                state = DetectionState.unknown("No language matched")
        finally:
            self._detecting.discard(message.id)

        updated = self.store.set_detection(message.id, state)
        if updated is None:
            return self.store.get(message.id).detection
        logger.info(f"[MESSAGE {message.id}] language: {state.display_text}")
        self._notify(updated)
        return state

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def _begin_translation(self, message_id: int,
                           target_language: Optional[str]) -> Optional[TranslationState]:
        """
        Apply the translation gates.

        Returns None when the request is rejected, a DONE state when the
        text is already in the target language, or the new IN_FLIGHT state
        when the translator has to be called.
        """
        target = target_language or self._selected_language
        message = self.store.get(message_id)
        if message is None:
            logger.warning(f"Translation requested for unknown message {message_id}")
            return None
        if not is_supported_language(target):
            logger.warning(f"[MESSAGE {message_id}] unsupported target language: {target}")
            return None
        if not policies.can_translate(message):
            logger.info(f"[MESSAGE {message_id}] translation rejected: language not detected")
            return None
        if message.translation.status == StageStatus.IN_FLIGHT:
            logger.debug(f"[MESSAGE {message_id}] translation already in flight")
            return None

        if policies.is_same_language(message, target):
            state = TranslationState(status=StageStatus.DONE,
                                     result_text=SAME_LANGUAGE_MESSAGE,
                                     target_language=target)
        else:
            state = TranslationState(status=StageStatus.IN_FLIGHT, target_language=target)
        self._notify(self.store.set_translation(message_id, state))
        return state

    async def _run_translation(self, message: Message, target: str) -> TranslationState:
        source = message.detection.language
        key = TranslatorCacheKey(source, target)
        try:
            handle = await self.registry.acquire(CapabilityKind.TRANSLATOR, key)
            translated = await self.registry.provider(CapabilityKind.TRANSLATOR).invoke(handle, message.text)
            if not translated:
                raise InvocationFailure("Translator returned no translation")
        except CapabilityUnavailable as e:
            logger.warning(f"[MESSAGE {message.id}] translator {key} unavailable: {e.message}")
            state = TranslationState(status=StageStatus.FAILED, target_language=target,
                                     error=f"Translation from {source} to {target} is not available")
        except CapabilityError as e:
            logger.warning(f"[MESSAGE {message.id}] translation {key} failed: {e.message}")
            state = TranslationState(status=StageStatus.FAILED, target_language=target,
                                     error=f"Translation failed: {e.message}")
        except Exception as e:
            logger.exception(f"[MESSAGE {message.id}] unexpected error during translation")
            state = TranslationState(status=StageStatus.FAILED, target_language=target,
                                     error=f"Translation error: {e}")
        else:
            state = TranslationState(status=StageStatus.DONE, result_text=translated,
                                     target_language=target)
            logger.info(f"[MESSAGE {message.id}] translated {key}")

        self._notify(self.store.set_translation(message.id, state))
        return state

    async def request_translation(self, message_id: int,
                                  target_language: Optional[str] = None) -> Optional[TranslationState]:
        """
        Translate a message into target_language (the selected language by default).

        Returns:
            The resulting translation state, or None if the request was
            rejected (unknown message, language not detected yet, or a
            translation of this message already in flight)
        """
        state = self._begin_translation(message_id, target_language)
        if state is None or state.status != StageStatus.IN_FLIGHT:
            return state
        return await self._run_translation(self.store.get(message_id), state.target_language)

    def start_translation(self, message_id: int,
                          target_language: Optional[str] = None) -> Optional[TranslationState]:
        """
        Like request_translation, but returns immediately with the new state
        while the translator runs in the background.
        """
        state = self._begin_translation(message_id, target_language)
        if state is not None and state.status == StageStatus.IN_FLIGHT:
            self._spawn(self._run_translation(self.store.get(message_id), state.target_language))
        return state

    # ------------------------------------------------------------------
    # Summarization
    # ------------------------------------------------------------------

    def should_offer_summary(self, message_id: int) -> bool:
        message = self.store.get(message_id)
        if message is None:
            return False
        return policies.should_offer_summary(message, self.summary_min_length, self.summary_language)

    def _begin_summary(self, message_id: int) -> Optional[SummaryState]:
        message = self.store.get(message_id)
        if message is None:
            logger.warning(f"Summary requested for unknown message {message_id}")
            return None
        if not policies.is_long_enough_to_summarize(message.text, self.summary_min_length):
            logger.info(f"[MESSAGE {message_id}] text too short for summarization")
            return None
        if message.summary.status == StageStatus.IN_FLIGHT:
            logger.debug(f"[MESSAGE {message_id}] summary already in flight")
            return None
        if not policies.should_offer_summary(message, self.summary_min_length, self.summary_language):
            logger.info(f"[MESSAGE {message_id}] summary rejected by policy")
            return None

        state = SummaryState(status=StageStatus.IN_FLIGHT)
        self._notify(self.store.set_summary(message_id, state))
        return state

    async def _run_summary(self, message: Message) -> SummaryState:
        try:
            handle = await self.registry.acquire(CapabilityKind.SUMMARIZER)
            summary = await self.registry.provider(CapabilityKind.SUMMARIZER).invoke(handle, message.text)
            if not summary:
                raise InvocationFailure("Summarizer returned an empty summary")
        except CapabilityUnavailable as e:
            logger.warning(f"[MESSAGE {message.id}] summarizer unavailable: {e.message}")
            state = SummaryState(status=StageStatus.FAILED, error="Summarizer not available")
        except CapabilityError as e:
            logger.warning(f"[MESSAGE {message.id}] summarization failed: {e.message}")
            state = SummaryState(status=StageStatus.FAILED, error=f"Summarization failed: {e.message}")
        except Exception as e:
            logger.exception(f"[MESSAGE {message.id}] unexpected error during summarization")
            state = SummaryState(status=StageStatus.FAILED, error=f"Summarization error: {e}")
        else:
            state = SummaryState(status=StageStatus.DONE, text=summary)
            logger.info(f"[MESSAGE {message.id}] summarized")

        self._notify(self.store.set_summary(message.id, state))
        return state

    async def request_summary(self, message_id: int) -> Optional[SummaryState]:
        """
        Summarize a message.

        Returns:
            The resulting summary state, or None if the request was rejected
            (text too short, not detected as the summary language, already
            summarized, or a summary already in flight)
        """
        state = self._begin_summary(message_id)
        if state is None:
            return None
        return await self._run_summary(self.store.get(message_id))

    def start_summary(self, message_id: int) -> Optional[SummaryState]:
        """Like request_summary, but returns immediately with the IN_FLIGHT state"""
        state = self._begin_summary(message_id)
        if state is not None:
            self._spawn(self._run_summary(self.store.get(message_id)))
        return state
