"""
Builds the capability providers described by the settings.
"""
import logging
from typing import Dict, Optional

import httpx

from alexta.config import Settings
from alexta.core.llm.base import LLMBackend
from alexta.core.llm.providers.ollama import OllamaBackend
from alexta.core.llm.providers.openai import OpenAICompatibleBackend
from alexta.core.models import CapabilityKind
from .base import CapabilityProvider
from .detector import LangDetectDetector
from .llm_capabilities import LLMSummarizer, LLMTranslator

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("ollama", "openai")


def create_backend(provider_type: str, model: str, settings: Settings,
                   transport: Optional[httpx.AsyncBaseTransport] = None) -> LLMBackend:
    """
    Factory function to create an LLM backend.

    Args:
        provider_type: 'ollama' or 'openai'
        model: Model name served by the backend
        settings: Application settings
        transport: Optional httpx transport shared by the backend's client

    Returns:
        LLMBackend instance

    Raises:
        ValueError: If provider_type is not recognized
    """
    provider_type = provider_type.lower()
    if provider_type == "ollama":
        return OllamaBackend(
            model=model,
            api_endpoint=settings.ollama_api_endpoint,
            timeout=settings.timeout,
            auto_download=settings.auto_download_models,
            transport=transport
        )
    if provider_type == "openai":
        return OpenAICompatibleBackend(
            model=model,
            api_endpoint=settings.openai_api_endpoint,
            api_key=settings.openai_api_key,
            timeout=settings.timeout,
            transport=transport
        )
    raise ValueError(
        f"Unknown provider: '{provider_type}'. "
        f"Expected one of: {', '.join(SUPPORTED_BACKENDS)}."
    )


def _model_for(provider_type: str, ollama_model: str, settings: Settings) -> str:
    """OpenAI-compatible backends share one configured model name"""
    return settings.openai_model if provider_type.lower() == "openai" else ollama_model


def create_providers(settings: Settings,
                     transport: Optional[httpx.AsyncBaseTransport] = None
                     ) -> Dict[CapabilityKind, CapabilityProvider]:
    """Build the detector, translator and summarizer for these settings"""
    translator_backend = create_backend(
        settings.translator_provider,
        _model_for(settings.translator_provider, settings.translator_model, settings),
        settings, transport)
    summarizer_backend = create_backend(
        settings.summarizer_provider,
        _model_for(settings.summarizer_provider, settings.summarizer_model, settings),
        settings, transport)
    logger.debug(f"Translator: {settings.translator_provider}/{translator_backend.model}, "
                 f"summarizer: {settings.summarizer_provider}/{summarizer_backend.model}")

    return {
        CapabilityKind.DETECTOR: LangDetectDetector(min_confidence=settings.detection_min_confidence),
        CapabilityKind.TRANSLATOR: LLMTranslator(translator_backend),
        CapabilityKind.SUMMARIZER: LLMSummarizer(summarizer_backend),
    }
