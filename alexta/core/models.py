"""
Data model for chat messages and their enrichment stages.

A message is created once with immutable text; its three stages
(detection, translation, summary) each carry their own state and are
replaced wholesale on every transition. All records are frozen, so a
message handed to a caller is already a read-only snapshot.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional


class Availability(Enum):
    """Readiness of a capability, as reported by its negotiation check"""
    UNAVAILABLE = "unavailable"
    DOWNLOADABLE = "downloadable"
    READY = "ready"


class CapabilityKind(Enum):
    """The three externally provided capabilities"""
    DETECTOR = "detector"
    TRANSLATOR = "translator"
    SUMMARIZER = "summarizer"


class TranslatorCacheKey(NamedTuple):
    """Language pair a translator handle is bound to"""
    source_language: str
    target_language: str

    def __str__(self) -> str:
        return f"{self.source_language}-{self.target_language}"


@dataclass(frozen=True)
class DownloadProgress:
    """One model download progress event"""
    loaded: int
    total: int

    @property
    def percentage(self) -> float:
        return (self.loaded / self.total * 100) if self.total > 0 else 0.0


class DetectionStatus(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    UNKNOWN = "unknown"


class StageStatus(Enum):
    """Status of a user-triggered stage (translation, summary)"""
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class DetectionState:
    status: DetectionStatus = DetectionStatus.PENDING
    language: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> 'DetectionState':
        return cls()

    @classmethod
    def resolved(cls, language: str) -> 'DetectionState':
        return cls(status=DetectionStatus.RESOLVED, language=language)

    @classmethod
    def unknown(cls, reason: str = "Language could not be detected") -> 'DetectionState':
        return cls(status=DetectionStatus.UNKNOWN, reason=reason)

    @property
    def is_pending(self) -> bool:
        return self.status == DetectionStatus.PENDING

    @property
    def is_resolved(self) -> bool:
        return self.status == DetectionStatus.RESOLVED

    @property
    def display_text(self) -> str:
        if self.status == DetectionStatus.PENDING:
            return "detecting..."
        if self.status == DetectionStatus.RESOLVED:
            return self.language
        return "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'language': self.language,
            'reason': self.reason,
            'display_text': self.display_text,
        }


@dataclass(frozen=True)
class TranslationState:
    status: StageStatus = StageStatus.IDLE
    result_text: Optional[str] = None
    # Target language that produced result_text. The user's selection may
    # change after completion, so it is recorded alongside the result.
    target_language: Optional[str] = None
    error: Optional[str] = None

    @property
    def display_text(self) -> str:
        if self.status == StageStatus.IN_FLIGHT:
            return "Translating..."
        if self.status == StageStatus.DONE:
            return self.result_text or ""
        if self.status == StageStatus.FAILED:
            return self.error or "Translation failed"
        return ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'result_text': self.result_text,
            'target_language': self.target_language,
            'error': self.error,
            'display_text': self.display_text,
        }


@dataclass(frozen=True)
class SummaryState:
    status: StageStatus = StageStatus.IDLE
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def display_text(self) -> str:
        if self.status == StageStatus.IN_FLIGHT:
            return "Summarizing..."
        if self.status == StageStatus.DONE:
            return self.text or ""
        if self.status == StageStatus.FAILED:
            return self.error or "Summarization failed"
        return ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'text': self.text,
            'error': self.error,
            'display_text': self.display_text,
        }


@dataclass(frozen=True)
class Message:
    """A submitted chat message with its enrichment state"""
    id: int
    text: str
    detection: DetectionState = field(default_factory=DetectionState)
    translation: TranslationState = field(default_factory=TranslationState)
    summary: SummaryState = field(default_factory=SummaryState)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'detection': self.detection.to_dict(),
            'translation': self.translation.to_dict(),
            'summary': self.summary.to_dict(),
        }
