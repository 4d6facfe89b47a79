"""
OpenAI-compatible backend implementation.

Works with OpenAI and any endpoint speaking the chat completions format
(OpenRouter, LM Studio, llama.cpp, vLLM...). These servers cannot download
models on demand, so the backend is either READY or UNAVAILABLE.
"""

from typing import Optional
from urllib.parse import urlparse
import json
import httpx

from alexta.config import OPENAI_API_ENDPOINT, OPENAI_MODEL, REQUEST_TIMEOUT
from alexta.core.models import Availability
from alexta.core.exceptions import InvocationFailure
from ..base import LLMBackend

LOCAL_HOSTS = ('localhost', '127.0.0.1', '0.0.0.0', '::1')


class OpenAICompatibleBackend(LLMBackend):
    """OpenAI-compatible API backend"""

    def __init__(self, model: str = OPENAI_MODEL, api_endpoint: str = OPENAI_API_ENDPOINT,
                 api_key: Optional[str] = None, timeout: int = REQUEST_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(model, api_endpoint, timeout, transport)
        self.api_key = api_key

    def _is_local_endpoint(self) -> bool:
        return urlparse(self.api_endpoint).hostname in LOCAL_HOSTS

    async def check_model(self) -> Availability:
        # Local servers run without keys; hosted APIs need one
        if self.api_key or self._is_local_endpoint():
            return Availability.READY
        return Availability.UNAVAILABLE

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
        }

        client = await self._get_client()
        try:
            response = await client.post(self.api_endpoint, json=payload, headers=headers,
                                         timeout=self.timeout)
            response.raise_for_status()
            response_json = response.json()
        except httpx.TimeoutException as e:
            raise InvocationFailure(f"API request timed out: {e}", context={'model': self.model}) from e
        except httpx.HTTPStatusError as e:
            error_body = e.response.text[:500] if e.response is not None else ""
            raise InvocationFailure(
                f"API HTTP error {e.response.status_code}: {error_body}",
                context={'model': self.model}
            ) from e
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise InvocationFailure(f"API request failed: {e}", context={'model': self.model}) from e

        choices = response_json.get("choices") or [{}]
        return choices[0].get("message", {}).get("content") or ""
