"""
Gating rules for the user-triggered enrichment stages.

Each rule is a plain function of a message snapshot. They are evaluated
locally before any provider is contacted.
"""
from typing import Optional

from alexta.config import SUMMARY_MIN_LENGTH, SUMMARY_REQUIRED_LANGUAGE
from alexta.core.models import DetectionStatus, Message, StageStatus


def is_submittable(text: Optional[str]) -> bool:
    """Empty and whitespace-only texts never become messages"""
    return bool(text and text.strip())


def can_translate(message: Message) -> bool:
    """Translation needs a resolved source language"""
    return message.detection.status == DetectionStatus.RESOLVED


def is_same_language(message: Message, target_language: str) -> bool:
    return can_translate(message) and message.detection.language == target_language


def is_long_enough_to_summarize(text: str, min_length: int = SUMMARY_MIN_LENGTH) -> bool:
    return len(text) > min_length


def should_offer_summary(message: Message,
                         min_length: int = SUMMARY_MIN_LENGTH,
                         required_language: str = SUMMARY_REQUIRED_LANGUAGE) -> bool:
    """
    A summary is offered for long texts detected in the required language
    that do not already have one.
    """
    return (
        is_long_enough_to_summarize(message.text, min_length)
        and message.detection.status == DetectionStatus.RESOLVED
        and message.detection.language == required_language
        and message.summary.status != StageStatus.DONE
    )
