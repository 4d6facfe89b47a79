"""
LLM Backend Implementations

Backends:
    - ollama: Local Ollama server (supports model download)
    - openai: OpenAI-compatible APIs (OpenAI, OpenRouter, LM Studio...)
"""

__all__ = []
