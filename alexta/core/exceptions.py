"""
Exception hierarchy for capability providers and the enrichment core.

Provider and registry code raise these; the enrichment orchestrator
catches them and turns them into terminal message states, so none of
them reaches the presentation layer.
"""

from typing import Optional, Dict, Any


class AlextaError(Exception):
    """Base exception for all Alexta errors.

    Attributes:
        message: Human-readable error message
        context: Additional context about the error
        recoverable: Whether a later attempt may succeed
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}: {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" (context: {context_str})"
        return base


class ValidationRejection(AlextaError):
    """Raised when a local policy gate rejects a request.

    Never reaches a provider.
    """
    pass


# ============================================================================
# Capability errors
# ============================================================================

class CapabilityError(AlextaError):
    """Base exception for capability provider errors."""
    pass


class CapabilityUnavailable(CapabilityError):
    """Raised when the host does not support, or permanently declined, a capability."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=False)


class InitializationFailure(CapabilityError):
    """Raised when negotiating or downloading a capability fails transiently."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=True)


class InvocationFailure(CapabilityError):
    """Raised when a capability call fails or returns nothing usable."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=True)
