"""
Helpers for working with LLM responses
"""
from .extraction import TranslationExtractor, remove_think_blocks

__all__ = ['TranslationExtractor', 'remove_think_blocks']
