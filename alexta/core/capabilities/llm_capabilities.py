"""
Translator and summarizer capabilities served by an LLM backend.

Both capabilities share the same lifecycle: availability is whether the
backend's model is present, creation pulls the model when the backend
reports it as downloadable, and invocation is a single chat request.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from alexta.config import TRANSLATE_TAG_IN, TRANSLATE_TAG_OUT
from alexta.core.llm.base import LLMBackend
from alexta.core.llm.utils.extraction import TranslationExtractor, remove_think_blocks
from alexta.core.models import Availability, CapabilityKind
from alexta.prompts import generate_summary_prompt, generate_translation_prompt
from .base import CapabilityHandle, CapabilityProvider, ProgressCallback
from alexta.core.exceptions import InitializationFailure, InvocationFailure

logger = logging.getLogger(__name__)


class LLMCapability(CapabilityProvider):
    """Capability whose lifecycle is delegated to an LLM backend"""

    def __init__(self, backend: LLMBackend):
        super().__init__(backend.model)
        self.backend = backend

    async def _negotiate(self, options: Dict[str, Any]) -> Availability:
        return await self.backend.check_model()

    async def _download(self, options: Dict[str, Any],
                        on_progress: Optional[ProgressCallback]) -> None:
        try:
            async for event in self.backend.pull_model():
                logger.debug(f"[{self.kind.value}] Downloaded {event.loaded} of {event.total} bytes.")
                self.emit_progress(on_progress, event)
        except httpx.HTTPError as e:
            raise InitializationFailure(f"Download of {self.name} failed: {e}",
                                        context={'provider': self.name}) from e

    async def _instantiate(self, options: Dict[str, Any]) -> CapabilityHandle:
        return CapabilityHandle(kind=self.kind, model=self.backend.model, options=dict(options))

    async def close(self) -> None:
        await self.backend.close()


class LLMTranslator(LLMCapability):
    """Translates text between the language pair bound to its handle"""

    kind = CapabilityKind.TRANSLATOR

    def __init__(self, backend: LLMBackend):
        super().__init__(backend)
        self._extractor = TranslationExtractor(TRANSLATE_TAG_IN, TRANSLATE_TAG_OUT)

    async def _instantiate(self, options: Dict[str, Any]) -> CapabilityHandle:
        if not options.get("source_language") or not options.get("target_language"):
            raise InitializationFailure("Translator requires source_language and target_language",
                                        context={'provider': self.name})
        return await super()._instantiate(options)

    async def invoke(self, handle: CapabilityHandle, text: str) -> str:
        source_language = handle.options["source_language"]
        target_language = handle.options["target_language"]
        prompt = generate_translation_prompt(text, source_language, target_language)

        response = await self.backend.generate(prompt.user, system_prompt=prompt.system)
        translated = self._extractor.extract(response)
        if not translated:
            raise InvocationFailure(
                "Translator returned no translation",
                context={'pair': f"{source_language}-{target_language}", 'model': handle.model}
            )
        return translated


class LLMSummarizer(LLMCapability):
    """Summarizes text using the style preferences bound to its handle"""

    kind = CapabilityKind.SUMMARIZER

    async def invoke(self, handle: CapabilityHandle, text: str) -> str:
        prompt = generate_summary_prompt(text, handle.options)
        response = await self.backend.generate(prompt.user, system_prompt=prompt.system)

        summary = remove_think_blocks(response or "").strip()
        if not summary:
            raise InvocationFailure("Summarizer returned an empty summary",
                                    context={'model': handle.model})
        return summary
