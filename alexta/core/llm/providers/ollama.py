"""
Ollama backend implementation.

Talks to a local Ollama server:
    - /api/tags  lists installed models (availability check)
    - /api/pull  downloads a model, streaming NDJSON progress lines
    - /api/chat  runs a chat request
"""

from typing import AsyncIterator, Optional
import json
import logging
import httpx

from alexta.config import OLLAMA_API_ENDPOINT, REQUEST_TIMEOUT, AUTO_DOWNLOAD_MODELS
from alexta.core.models import Availability, DownloadProgress
from alexta.core.exceptions import InitializationFailure, InvocationFailure
from ..base import LLMBackend

logger = logging.getLogger(__name__)


def normalize_model_name(name: str) -> str:
    """Ollama reports untagged models as ':latest'"""
    return name if ':' in name else f"{name}:latest"


class OllamaBackend(LLMBackend):
    """Ollama API backend - uses /api/chat without streaming"""

    def __init__(self, model: str, api_endpoint: str = OLLAMA_API_ENDPOINT,
                 timeout: int = REQUEST_TIMEOUT, auto_download: bool = AUTO_DOWNLOAD_MODELS,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        # Accept both the server root and legacy /api/generate style endpoints
        base_url = api_endpoint.rstrip('/')
        for suffix in ('/api/generate', '/api/chat'):
            if base_url.endswith(suffix):
                base_url = base_url[:-len(suffix)]
        super().__init__(model, base_url, timeout, transport)
        self.auto_download = auto_download

    async def list_models(self) -> list:
        """Names of the models installed on the server"""
        client = await self._get_client()
        response = await client.get(f"{self.api_endpoint}/api/tags", timeout=10)
        response.raise_for_status()
        data = response.json()
        return [m.get("name") or m.get("model", "") for m in data.get("models", [])]

    async def check_model(self) -> Availability:
        installed = {normalize_model_name(name) for name in await self.list_models()}
        if normalize_model_name(self.model) in installed:
            return Availability.READY
        if self.auto_download:
            return Availability.DOWNLOADABLE
        logger.info(f"Model {self.model} is not installed and auto-download is disabled")
        return Availability.UNAVAILABLE

    async def pull_model(self) -> AsyncIterator[DownloadProgress]:
        """
        Pull the model through /api/pull.

        Ollama streams one JSON object per line, e.g.
            {"status": "pulling manifest"}
            {"status": "downloading ...", "digest": "...", "total": 100, "completed": 40}
            {"status": "success"}

        Raises:
            InitializationFailure: Error line, or stream ended without success
        """
        payload = {"model": self.model, "stream": True}
        client = await self._get_client()
        succeeded = False

        async with client.stream("POST", f"{self.api_endpoint}/api/pull", json=payload,
                                 timeout=None) as response:
            response.raise_for_status()
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    chunk_data = json.loads(line)
                except json.JSONDecodeError:
                    continue

                if chunk_data.get("error"):
                    raise InitializationFailure(
                        f"Ollama could not pull {self.model}: {chunk_data['error']}",
                        context={'model': self.model}
                    )

                total = chunk_data.get("total")
                if total:
                    yield DownloadProgress(loaded=chunk_data.get("completed", 0), total=total)

                if chunk_data.get("status") == "success":
                    succeeded = True
                    break

        if not succeeded:
            raise InitializationFailure(
                f"Download of {self.model} ended before the model was ready",
                context={'model': self.model}
            )

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "think": False,
        }

        client = await self._get_client()
        try:
            response = await client.post(f"{self.api_endpoint}/api/chat", json=payload,
                                         timeout=self.timeout)
            response.raise_for_status()
            response_json = response.json()
        except httpx.TimeoutException as e:
            raise InvocationFailure(f"Ollama request timed out: {e}", context={'model': self.model}) from e
        except httpx.HTTPStatusError as e:
            error_body = e.response.text[:500] if e.response is not None else ""
            raise InvocationFailure(
                f"Ollama HTTP error {e.response.status_code}: {error_body}",
                context={'model': self.model}
            ) from e
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise InvocationFailure(f"Ollama request failed: {e}", context={'model': self.model}) from e

        return response_json.get("message", {}).get("content", "")
