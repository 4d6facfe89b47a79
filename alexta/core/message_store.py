"""
Ordered store of chat messages
"""
import itertools
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from alexta.core.models import (
    DetectionState,
    Message,
    SummaryState,
    TranslationState,
)

logger = logging.getLogger(__name__)


class MessageStore:
    """
    Ordered sequence of messages, addressed by stable id.

    Ids increase from 1 and are never reused. Records are immutable;
    every update swaps in a new Message built with dataclasses.replace,
    so the text set at creation can never change.
    """

    def __init__(self):
        self._messages: Dict[int, Message] = {}
        self._order: List[int] = []
        self._ids = itertools.count(1)

    def add(self, text: str) -> Message:
        """Create a message with pending detection and idle stages"""
        message = Message(id=next(self._ids), text=text)
        self._messages[message.id] = message
        self._order.append(message.id)
        return message

    def get(self, message_id: int) -> Optional[Message]:
        return self._messages.get(message_id)

    def __contains__(self, message_id: int) -> bool:
        return message_id in self._messages

    def __len__(self) -> int:
        return len(self._order)

    def all(self) -> List[Message]:
        """Messages in submission order"""
        return [self._messages[message_id] for message_id in self._order]

    def set_detection(self, message_id: int, detection: DetectionState) -> Optional[Message]:
        """
        Settle detection for a message.

        Detection leaves PENDING exactly once; later attempts are ignored
        and return None.
        """
        message = self._messages.get(message_id)
        if message is None:
            return None
        if not message.detection.is_pending:
            logger.warning(f"Detection for message {message_id} already settled "
                           f"({message.detection.status.value}); ignoring update")
            return None
        return self._replace(message, detection=detection)

    def set_translation(self, message_id: int, translation: TranslationState) -> Optional[Message]:
        message = self._messages.get(message_id)
        if message is None:
            return None
        return self._replace(message, translation=translation)

    def set_summary(self, message_id: int, summary: SummaryState) -> Optional[Message]:
        message = self._messages.get(message_id)
        if message is None:
            return None
        return self._replace(message, summary=summary)

    def _replace(self, message: Message, **changes) -> Message:
        updated = replace(message, **changes)
        self._messages[message.id] = updated
        return updated
