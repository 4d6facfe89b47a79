"""
LLM backends serving the translator and summarizer capabilities
"""
from .base import LLMBackend
from .providers.ollama import OllamaBackend
from .providers.openai import OpenAICompatibleBackend

__all__ = [
    'LLMBackend',
    'OllamaBackend',
    'OpenAICompatibleBackend',
]
