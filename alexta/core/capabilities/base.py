"""
Base class for capability providers.

A capability provider wraps one externally supplied service (language
detection, translation, summarization) behind a negotiate / create /
invoke contract:

    availability = await provider.check_availability(options)
    handle = await provider.create(options, on_progress)
    output = await provider.invoke(handle, text)

`create` only returns once the handle is ready to use; when the
capability first has to be downloaded, progress events are pushed to the
optional `on_progress` sink while the download runs.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from alexta.core.models import Availability, CapabilityKind, DownloadProgress
from alexta.core.exceptions import CapabilityUnavailable, InitializationFailure

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[DownloadProgress], None]


@dataclass(frozen=True)
class CapabilityHandle:
    """Ready-to-use capability instance.

    Owned by the ProviderRegistry; callers only borrow it.
    """
    kind: CapabilityKind
    model: str
    options: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


class CapabilityProvider(ABC):
    """Abstract base class for capability providers"""

    kind: CapabilityKind

    def __init__(self, name: str):
        """
        Initialize the provider.

        Args:
            name: Provider/model identifier used in logs and handles
        """
        self.name = name

    async def check_availability(self, options: Optional[Dict[str, Any]] = None) -> Availability:
        """
        Ask the host whether this capability can be used.

        Never raises: host errors are reported as UNAVAILABLE.
        """
        try:
            return await self._negotiate(options or {})
        except Exception as e:
            logger.warning(f"[{self.kind.value}] availability check failed for {self.name}: {e}")
            return Availability.UNAVAILABLE

    async def create(self, options: Optional[Dict[str, Any]] = None,
                     on_progress: Optional[ProgressCallback] = None,
                     availability: Optional[Availability] = None) -> CapabilityHandle:
        """
        Create a ready-to-use handle, downloading the capability first if needed.

        Callers that already negotiated pass the answer as `availability`
        to skip a second check.

        Raises:
            CapabilityUnavailable: The host does not offer this capability
            InitializationFailure: Download or instantiation failed
        """
        options = options or {}
        if availability is None:
            availability = await self.check_availability(options)
        if availability == Availability.UNAVAILABLE:
            raise CapabilityUnavailable(
                f"{self.kind.value.capitalize()} is not available",
                context={'provider': self.name, **options}
            )

        if availability == Availability.DOWNLOADABLE:
            logger.info(f"[{self.kind.value}] downloading {self.name}...")
            try:
                await self._download(options, on_progress)
            except InitializationFailure:
                raise
            except Exception as e:
                raise InitializationFailure(
                    f"Download of {self.name} failed: {e}",
                    context={'provider': self.name}
                ) from e
            logger.info(f"[{self.kind.value}] {self.name} downloaded and ready")

        try:
            return await self._instantiate(options)
        except InitializationFailure:
            raise
        except Exception as e:
            raise InitializationFailure(
                f"Could not create {self.kind.value} {self.name}: {e}",
                context={'provider': self.name}
            ) from e

    @staticmethod
    def emit_progress(on_progress: Optional[ProgressCallback], event: DownloadProgress) -> None:
        """Deliver a progress event; a failing sink never stops the download"""
        if on_progress is None:
            return
        try:
            on_progress(event)
        except Exception as e:
            logger.debug(f"Progress callback raised: {e}")

    @abstractmethod
    async def _negotiate(self, options: Dict[str, Any]) -> Availability:
        """Query the host for availability. May raise; callers use check_availability."""
        pass

    async def _download(self, options: Dict[str, Any],
                        on_progress: Optional[ProgressCallback]) -> None:
        """Fetch the capability. Providers that report DOWNLOADABLE must override."""
        raise InitializationFailure(f"{self.name} does not support downloading")

    @abstractmethod
    async def _instantiate(self, options: Dict[str, Any]) -> CapabilityHandle:
        """Build the handle once the capability is present."""
        pass

    @abstractmethod
    async def invoke(self, handle: CapabilityHandle, text: str) -> Optional[str]:
        """
        Run the capability on text.

        Raises:
            InvocationFailure: The call failed or produced nothing usable
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the provider"""
        pass
