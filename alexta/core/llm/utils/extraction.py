"""
Translation extraction from LLM responses.

Handles responses wrapped in output tags, possibly preceded by
<think>...</think> reasoning blocks.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)


class TranslationExtractor:
    """
    Extracts translation text from LLM responses.

    Example:
        >>> extractor = TranslationExtractor("<TRANSLATION>", "</TRANSLATION>")
        >>> extractor.extract("<think>hmm</think><TRANSLATION>Hello</TRANSLATION>")
        'Hello'
    """

    def __init__(self, tag_in: str, tag_out: str):
        self._tag_in = tag_in
        self._tag_out = tag_out
        self._compiled_regex = re.compile(
            rf"{re.escape(self._tag_in)}(.*?){re.escape(self._tag_out)}",
            re.DOTALL
        )

    def extract(self, response: str) -> Optional[str]:
        """
        Extract the text between the output tags.

        Content inside <think></think> blocks is never searched.

        Args:
            response: Raw LLM response text

        Returns:
            Extracted text, or None if no tagged content was found
        """
        if not response:
            return None

        response = self._remove_think_blocks(response.strip()).strip()

        starts_correctly = response.startswith(self._tag_in)
        ends_correctly = response.endswith(self._tag_out)

        if starts_correctly and ends_correctly:
            content = response[len(self._tag_in):-len(self._tag_out)]
            return content.strip()

        # Less strict: tags somewhere inside the response
        match = self._compiled_regex.search(response)
        if match:
            logger.warning("Output tags found but not at response boundaries; "
                           "the model added extra text. Using extracted content anyway.")
            return match.group(1).strip()

        return None

    def _remove_think_blocks(self, response: str) -> str:
        return remove_think_blocks(response)


def remove_think_blocks(response: str) -> str:
    """Remove <think>...</think> blocks, including an orphan closing tag"""
    response = re.sub(r'<think>.*?</think>', '', response, flags=re.DOTALL | re.IGNORECASE)
    # Orphan </think> when the opening tag was truncated
    response = re.sub(r'^.*?</think>\s*', '', response, flags=re.DOTALL | re.IGNORECASE)
    return response
