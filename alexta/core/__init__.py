"""
Asynchronous message enrichment core
"""
from .models import (
    Availability,
    CapabilityKind,
    DetectionState,
    DetectionStatus,
    DownloadProgress,
    Message,
    StageStatus,
    SummaryState,
    TranslationState,
    TranslatorCacheKey,
)
from .message_store import MessageStore
from .registry import ProviderRegistry, SlotState
from .orchestrator import EnrichmentOrchestrator

__all__ = [
    'Availability',
    'CapabilityKind',
    'DetectionState',
    'DetectionStatus',
    'DownloadProgress',
    'Message',
    'StageStatus',
    'SummaryState',
    'TranslationState',
    'TranslatorCacheKey',
    'MessageStore',
    'ProviderRegistry',
    'SlotState',
    'EnrichmentOrchestrator',
]
