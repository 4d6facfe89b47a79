"""
Capability providers: language detection, translation and summarization
"""
from .base import CapabilityHandle, CapabilityProvider, ProgressCallback
from alexta.core.exceptions import (
    AlextaError,
    CapabilityError,
    CapabilityUnavailable,
    InitializationFailure,
    InvocationFailure,
    ValidationRejection,
)
from .detector import LangDetectDetector
from .llm_capabilities import LLMTranslator, LLMSummarizer
from .factory import create_providers

__all__ = [
    'CapabilityHandle',
    'CapabilityProvider',
    'ProgressCallback',
    'AlextaError',
    'CapabilityError',
    'CapabilityUnavailable',
    'InitializationFailure',
    'InvocationFailure',
    'ValidationRejection',
    'LangDetectDetector',
    'LLMTranslator',
    'LLMSummarizer',
    'create_providers',
]
