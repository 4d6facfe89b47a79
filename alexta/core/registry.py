"""
Process-wide cache of capability handles.

The registry is the single point of truth for "do we have a usable
instance of capability X". The detector and summarizer each have one
slot; translators have one slot per (source, target) language pair.

Each slot is in one of three states:

    NOT_ATTEMPTED          never tried, or the last attempt failed transiently
    CONFIRMED_UNAVAILABLE  the host said the capability is unavailable
    READY                  a handle was created and is memoized

Concurrent lookups of a slot while its initialization runs all await the
same attempt. Slots are never evicted.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from alexta.config import RETRY_UNAVAILABLE
from alexta.core.capabilities.base import CapabilityHandle, CapabilityProvider
from alexta.core.exceptions import (
    CapabilityError,
    CapabilityUnavailable,
    InitializationFailure,
)
from alexta.core.models import (
    Availability,
    CapabilityKind,
    DownloadProgress,
    TranslatorCacheKey,
)

logger = logging.getLogger(__name__)

SlotKey = Tuple[CapabilityKind, Optional[Hashable]]

# Receives (kind, key, event) for every download progress event
RegistryProgressCallback = Callable[[CapabilityKind, Optional[Hashable], DownloadProgress], None]


class SlotState(Enum):
    NOT_ATTEMPTED = "not_attempted"
    CONFIRMED_UNAVAILABLE = "confirmed_unavailable"
    READY = "ready"


@dataclass
class _Slot:
    state: SlotState = SlotState.NOT_ATTEMPTED
    handle: Optional[CapabilityHandle] = None
    reason: Optional[str] = None
    pending: Optional[asyncio.Task] = None
    attempts: int = 0


class ProviderRegistry:
    """
    Owns capability handles and negotiates them with their providers.

    Args:
        providers: One provider per capability kind
        options: Creation options per kind (e.g. summarizer style preferences).
            Translator options are derived from the cache key.
        retry_unavailable: When False, an UNAVAILABLE answer is remembered
            until reset(); when True, the next lookup negotiates again.
        on_progress: Optional sink for download progress events
    """

    def __init__(self,
                 providers: Dict[CapabilityKind, CapabilityProvider],
                 options: Optional[Dict[CapabilityKind, Dict[str, Any]]] = None,
                 retry_unavailable: bool = RETRY_UNAVAILABLE,
                 on_progress: Optional[RegistryProgressCallback] = None):
        self._providers = dict(providers)
        self._options = options or {}
        self.retry_unavailable = retry_unavailable
        self.on_progress = on_progress
        self._slots: Dict[SlotKey, _Slot] = {}

    def provider(self, kind: CapabilityKind) -> CapabilityProvider:
        """The provider registered for a capability kind"""
        try:
            return self._providers[kind]
        except KeyError:
            raise CapabilityUnavailable(f"No provider registered for {kind.value}") from None

    @staticmethod
    def _slot_key(kind: CapabilityKind, key: Optional[Hashable]) -> SlotKey:
        if kind == CapabilityKind.TRANSLATOR:
            if key is None:
                raise ValueError("Translator lookups need a (source, target) language pair")
            return kind, TranslatorCacheKey(*key)
        return kind, None

    def _creation_options(self, kind: CapabilityKind, key: Optional[Hashable]) -> Dict[str, Any]:
        options = dict(self._options.get(kind, {}))
        if kind == CapabilityKind.TRANSLATOR:
            options.update(source_language=key.source_language,
                           target_language=key.target_language)
        return options

    async def get(self, kind: CapabilityKind,
                  key: Optional[Hashable] = None) -> Optional[CapabilityHandle]:
        """
        Return a ready handle, or None when the capability cannot be used.

        Never raises for provider-side problems; use acquire() to learn why.
        """
        try:
            return await self.acquire(kind, key)
        except CapabilityError:
            return None

    async def acquire(self, kind: CapabilityKind,
                      key: Optional[Hashable] = None) -> CapabilityHandle:
        """
        Return a ready handle, initializing the slot on first use.

        Raises:
            CapabilityUnavailable: The slot is confirmed unavailable
            InitializationFailure: This initialization attempt failed
        """
        slot_key = self._slot_key(kind, key)
        slot = self._slots.setdefault(slot_key, _Slot())

        if slot.state == SlotState.READY:
            return slot.handle

        if slot.state == SlotState.CONFIRMED_UNAVAILABLE and not self.retry_unavailable:
            raise CapabilityUnavailable(slot.reason or f"{kind.value} is unavailable",
                                        context={'key': str(slot_key[1] or kind.value)})

        if slot.pending is None:
            slot.pending = asyncio.ensure_future(self._initialize(slot_key, slot))
            slot.pending.add_done_callback(lambda _task, s=slot: setattr(s, 'pending', None))

        return await asyncio.shield(slot.pending)

    async def _initialize(self, slot_key: SlotKey, slot: _Slot) -> CapabilityHandle:
        kind, key = slot_key
        label = f"{kind.value}[{key}]" if key is not None else kind.value
        provider = self.provider(kind)
        options = self._creation_options(kind, key)
        slot.attempts += 1

        availability = await provider.check_availability(options)
        if availability == Availability.UNAVAILABLE:
            slot.state = SlotState.CONFIRMED_UNAVAILABLE
            slot.reason = f"{kind.value.capitalize()} is not available"
            logger.info(f"[REGISTRY] {label}: unavailable")
            raise CapabilityUnavailable(slot.reason, context={'key': str(key or kind.value)})

        def forward_progress(event: DownloadProgress) -> None:
            if self.on_progress:
                self.on_progress(kind, key, event)

        try:
            handle = await provider.create(options, on_progress=forward_progress,
                                           availability=availability)
        except CapabilityUnavailable as e:
            slot.state = SlotState.CONFIRMED_UNAVAILABLE
            slot.reason = e.message
            logger.info(f"[REGISTRY] {label}: unavailable ({e.message})")
            raise
        except InitializationFailure as e:
            slot.state = SlotState.NOT_ATTEMPTED
            slot.reason = e.message
            logger.warning(f"[REGISTRY] {label}: initialization failed, will retry on next use: {e.message}")
            raise
        except Exception as e:
            slot.state = SlotState.NOT_ATTEMPTED
            slot.reason = str(e)
            logger.exception(f"[REGISTRY] {label}: unexpected error during initialization")
            raise InitializationFailure(f"Could not initialize {kind.value}: {e}") from e

        slot.state = SlotState.READY
        slot.handle = handle
        slot.reason = None
        logger.info(f"[REGISTRY] {label}: ready ({handle.model})")
        return handle

    def reset(self, kind: Optional[CapabilityKind] = None, key: Optional[Hashable] = None) -> None:
        """
        Forget cached results so the next lookup negotiates again.

        With no arguments every slot is cleared; with a kind only that kind's
        slots; with a kind and key only that slot. In-flight initializations
        are left to finish for the callers already awaiting them.
        """
        if kind is None:
            self._slots.clear()
            return
        if key is not None:
            self._slots.pop(self._slot_key(kind, key), None)
            return
        for slot_key in [k for k in self._slots if k[0] == kind]:
            del self._slots[slot_key]

    def state(self, kind: CapabilityKind, key: Optional[Hashable] = None) -> SlotState:
        slot = self._slots.get(self._slot_key(kind, key))
        return slot.state if slot else SlotState.NOT_ATTEMPTED

    def describe(self) -> list:
        """Snapshot of every known slot, for status displays"""
        entries = []
        for (kind, key), slot in self._slots.items():
            entries.append({
                'kind': kind.value,
                'key': str(key) if key is not None else None,
                'state': slot.state.value,
                'initializing': slot.pending is not None,
                'model': slot.handle.model if slot.handle else None,
                'reason': slot.reason,
                'attempts': slot.attempts,
            })
        return entries

    async def close(self) -> None:
        """Close every provider"""
        for provider in self._providers.values():
            await provider.close()
