from typing import Dict, NamedTuple, Optional

from alexta.config import (INPUT_TAG_IN, INPUT_TAG_OUT, TRANSLATE_TAG_IN,
                           TRANSLATE_TAG_OUT, get_language_name)


class PromptPair(NamedTuple):
    """A pair of system and user prompts for an LLM request."""
    system: str
    user: str


# ============================================================================
# SHARED PROMPT SECTIONS
# ============================================================================

def _get_output_format_section(
    translate_tag_in: str,
    translate_tag_out: str,
    input_tag_in: str,
    input_tag_out: str,
    example_format: str = "Your translated text here"
) -> str:
    """
    Generate standardized output format instructions.

    Args:
        translate_tag_in: Opening tag for translation output
        translate_tag_out: Closing tag for translation output
        input_tag_in: Opening tag for input text
        input_tag_out: Closing tag for input text
        example_format: Example text to show in correct format

    Returns:
        str: Formatted output format instructions
    """
    return f"""# OUTPUT FORMAT

**CRITICAL OUTPUT RULES:**
1. Translate ONLY the text between "{input_tag_in}" and "{input_tag_out}" tags
2. Your response MUST start with {translate_tag_in} (first characters, no text before)
3. Your response MUST end with {translate_tag_out} (last characters, no text after)
4. Do NOT add explanations, comments, notes, or greetings

**CORRECT format (ONLY this):**
{translate_tag_in}
{example_format}
{translate_tag_out}
"""


# Summary style descriptions, keyed by the summarizer preference values
SUMMARY_TYPE_INSTRUCTIONS: Dict[str, str] = {
    "key-points": "Extract the most important points as a bulleted list.",
    "tl;dr": "Write a short overview a busy reader can skim.",
    "teaser": "Write an intriguing teaser that makes the reader want to read the full text.",
    "headline": "Write a single headline capturing the main point.",
}

SUMMARY_LENGTH_INSTRUCTIONS: Dict[str, str] = {
    "short": "Keep it very brief (at most 3 bullet points or one sentence).",
    "medium": "Keep it concise (at most 5 bullet points or a short paragraph).",
    "long": "Be thorough (at most 7 bullet points or a full paragraph).",
}


def generate_translation_prompt(
    text: str,
    source_language: str,
    target_language: str,
    translate_tag_in: str = TRANSLATE_TAG_IN,
    translate_tag_out: str = TRANSLATE_TAG_OUT
) -> PromptPair:
    """
    Generate the translation prompt for a single chat message.

    Args:
        text: The text to translate
        source_language: Source language code (e.g. "fr")
        target_language: Target language code (e.g. "en")
        translate_tag_in: Opening tag for translation output
        translate_tag_out: Closing tag for translation output

    Returns:
        PromptPair: A named tuple with 'system' and 'user' prompts
    """
    source_name = get_language_name(source_language)
    target_name = get_language_name(target_language)

    output_format_section = _get_output_format_section(
        translate_tag_in,
        translate_tag_out,
        INPUT_TAG_IN,
        INPUT_TAG_OUT
    )

    system_prompt = f"""You are a professional {target_name} translator.

# TRANSLATION PRINCIPLES

Translate {source_name} to {target_name}. Output only the translation.

**PRIORITY ORDER:**
1. Preserve exact names
2. Match original tone and formality
3. Use natural {target_name} phrasing - never word-for-word
4. Translate idioms to {target_name} equivalents

**YOU MUST TRANSLATE INTO {target_name.upper()}.**

{output_format_section}"""

    user_prompt = f"""{INPUT_TAG_IN}
{text}
{INPUT_TAG_OUT}"""

    return PromptPair(system=system_prompt.strip(), user=user_prompt.strip())


def generate_summary_prompt(text: str, options: Optional[Dict[str, str]] = None) -> PromptPair:
    """
    Generate the summarization prompt.

    Args:
        text: The text to summarize
        options: Style preferences {type, format, length}

    Returns:
        PromptPair: A named tuple with 'system' and 'user' prompts
    """
    options = options or {}
    summary_type = options.get("type", "key-points")
    summary_format = options.get("format", "text")
    summary_length = options.get("length", "medium")

    type_instruction = SUMMARY_TYPE_INSTRUCTIONS.get(summary_type, SUMMARY_TYPE_INSTRUCTIONS["key-points"])
    length_instruction = SUMMARY_LENGTH_INSTRUCTIONS.get(summary_length, SUMMARY_LENGTH_INSTRUCTIONS["medium"])
    if summary_format == "markdown":
        format_instruction = "Format the summary as Markdown."
    else:
        format_instruction = "Use plain text only, no Markdown formatting."

    system_prompt = f"""You summarize text written by users of a chat application.

{type_instruction}
{length_instruction}
{format_instruction}
Write the summary in the same language as the text.
Output only the summary, with no introduction or closing remarks."""

    user_prompt = f"""{INPUT_TAG_IN}
{text}
{INPUT_TAG_OUT}"""

    return PromptPair(system=system_prompt.strip(), user=user_prompt.strip())
