"""
Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and provides common fixtures
built on the fake providers in tests/fakes.py.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from tests.fakes import (
    LONG_ENGLISH_TEXT,
    FakeDetector,
    FakeSummarizer,
    FakeTranslator,
    make_orchestrator,
)


@pytest.fixture
def long_english_text():
    """English text longer than the summary threshold"""
    return LONG_ENGLISH_TEXT


@pytest.fixture
def detector():
    return FakeDetector({
        "Bonjour le monde": "fr",
        "Hello everyone": "en",
        "Hola a todos": "es",
        LONG_ENGLISH_TEXT: "en",
    })


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def orchestrator(detector, translator, summarizer):
    return make_orchestrator(detector, translator, summarizer)
