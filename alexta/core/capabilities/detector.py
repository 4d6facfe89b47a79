"""
Language detector capability backed by langdetect.

Uses the langdetect library (based on Google's language-detection library)
for fast, local language identification of chat messages.
"""
import asyncio
import logging
import re
from typing import Any, Dict, Optional

from langdetect import DetectorFactory, detect_langs, LangDetectException
from langdetect.detector_factory import init_factory

from alexta.config import DETECTION_MIN_CONFIDENCE
from alexta.core.models import Availability, CapabilityKind
from .base import CapabilityHandle, CapabilityProvider
from alexta.core.exceptions import InvocationFailure

logger = logging.getLogger(__name__)


def clean_text_for_detection(text: str) -> str:
    """
    Clean text to improve detection accuracy

    Args:
        text: Raw text

    Returns:
        Cleaned text
    """
    # Remove common markup artifacts
    text = re.sub(r'<[^>]+>', '', text)

    # Remove URLs
    text = re.sub(r'http[s]?://\S+', '', text)

    # Remove email addresses
    text = re.sub(r'\S+@\S+', '', text)

    # Remove excessive whitespace
    text = re.sub(r'\s+', ' ', text)

    return text.strip()


def normalize_language_code(code: str) -> str:
    """Reduce langdetect codes to their primary subtag ('zh-cn' -> 'zh')"""
    return code.split('-')[0].lower()


class LangDetectDetector(CapabilityProvider):
    """Detects the language of a message with langdetect"""

    kind = CapabilityKind.DETECTOR

    def __init__(self, min_confidence: float = DETECTION_MIN_CONFIDENCE, seed: int = 0):
        super().__init__("langdetect")
        self.min_confidence = min_confidence
        self.seed = seed

    async def _negotiate(self, options: Dict[str, Any]) -> Availability:
        # Language profiles ship with the package; loading them is the only check
        await asyncio.to_thread(init_factory)
        return Availability.READY

    async def _instantiate(self, options: Dict[str, Any]) -> CapabilityHandle:
        # langdetect is randomized; a fixed seed keeps results reproducible
        DetectorFactory.seed = self.seed
        return CapabilityHandle(kind=self.kind, model=self.name, options=dict(options))

    async def invoke(self, handle: CapabilityHandle, text: str) -> Optional[str]:
        """
        Detect the language of text.

        Returns:
            Best-match language code, or None when nothing matches well enough
        """
        cleaned = clean_text_for_detection(text)
        if not cleaned:
            return None

        try:
            results = await asyncio.to_thread(detect_langs, cleaned)
        except LangDetectException as e:
            # Raised for text with no detectable features (digits, emoji...)
            logger.debug(f"No language features in text: {e}")
            return None
        except Exception as e:
            raise InvocationFailure(f"Language detection failed: {e}") from e

        if not results:
            return None

        top_result = results[0]
        if top_result.prob < self.min_confidence:
            logger.debug(f"Top language {top_result.lang} below confidence threshold "
                         f"({top_result.prob:.2f} < {self.min_confidence})")
            return None

        return normalize_language_code(top_result.lang)
