"""
Wires providers, registry and orchestrator together from settings
"""
from typing import Optional

import httpx

from alexta.config import Settings
from alexta.core.capabilities.factory import create_providers
from alexta.core.models import CapabilityKind
from alexta.core.orchestrator import EnrichmentOrchestrator
from alexta.core.registry import ProviderRegistry, RegistryProgressCallback


def build_registry(settings: Settings,
                   on_progress: Optional[RegistryProgressCallback] = None,
                   transport: Optional[httpx.AsyncBaseTransport] = None) -> ProviderRegistry:
    return ProviderRegistry(
        providers=create_providers(settings, transport),
        options={CapabilityKind.SUMMARIZER: dict(settings.summary_options)},
        retry_unavailable=settings.retry_unavailable,
        on_progress=on_progress,
    )


def build_orchestrator(settings: Optional[Settings] = None,
                       on_progress: Optional[RegistryProgressCallback] = None,
                       transport: Optional[httpx.AsyncBaseTransport] = None) -> EnrichmentOrchestrator:
    """
    Create an orchestrator backed by the providers named in settings.

    Args:
        settings: Application settings (environment defaults if omitted)
        on_progress: Optional sink for model download progress
        transport: Optional httpx transport for the LLM backends
    """
    settings = settings or Settings()
    registry = build_registry(settings, on_progress, transport)
    return EnrichmentOrchestrator(registry, selected_language=settings.default_target_language)
