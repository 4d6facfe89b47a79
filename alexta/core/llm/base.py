"""
Base class for LLM backends.

Translator and summarizer capabilities are served by an LLM reached over
HTTP. A backend knows how to tell whether its model is present, how to
fetch it when the server supports that, and how to run a chat request.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional
import httpx

from alexta.config import REQUEST_TIMEOUT
from alexta.core.models import Availability, DownloadProgress
from alexta.core.exceptions import InitializationFailure


class LLMBackend(ABC):
    """Abstract base class for LLM backends"""

    def __init__(self, model: str, api_endpoint: str, timeout: int = REQUEST_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the backend.

        Args:
            model: Model name/identifier
            api_endpoint: Base URL or full endpoint of the server
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.model = model
        self.api_endpoint = api_endpoint
        self.timeout = timeout
        self._transport = transport
        self._client = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a persistent HTTP client with connection pooling"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    @abstractmethod
    async def check_model(self) -> Availability:
        """
        Report whether the model can be used.

        May raise httpx errors; the capability layer maps them to UNAVAILABLE.
        """
        pass

    async def pull_model(self) -> AsyncIterator[DownloadProgress]:
        """
        Download the model, yielding progress events until it is ready.

        The sequence is finite and cannot be restarted.
        """
        raise InitializationFailure(f"{self.__class__.__name__} cannot download models")
        yield  # pragma: no cover

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Run a single chat request.

        Args:
            prompt: The user prompt (content to process)
            system_prompt: Optional system prompt (role/instructions)

        Returns:
            Raw response text (may be empty)
        """
        pass
