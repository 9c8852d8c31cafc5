"""LLM client for the Gemini and OpenAI chat APIs.

One ``generate(prompt) -> text`` surface, dispatched on the configured
provider. HTTP 429 / quota exhaustion is raised as RateLimitError so callers
can report it as transient instead of as a failure.
"""

import asyncio
import logging
from enum import Enum
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from linkgraph.config import settings

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    GEMINI = "gemini"
    OPENAI = "openai"


class LLMError(RuntimeError):
    """The LLM provider failed to produce a response."""


class RateLimitError(LLMError):
    """The provider rejected the request for rate or quota reasons."""


def _is_rate_limited(response: requests.Response) -> bool:
    if response.status_code == 429:
        return True
    return "RESOURCE_EXHAUSTED" in response.text


class LLMClient:
    """Async-wrapped client for hosted LLM APIs using requests."""

    def __init__(
        self,
        provider: LLMProvider | str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_concurrent: int | None = None,
    ) -> None:
        self.provider = LLMProvider(provider or settings.llm_provider)
        self.api_key = api_key if api_key is not None else settings.llm_api_key
        self._model = model
        self._base_url = base_url
        self.timeout = timeout or settings.llm_timeout
        self.max_concurrent = max_concurrent or settings.llm_max_concurrent

        self._semaphore = asyncio.Semaphore(self.max_concurrent)
        self._session: requests.Session | None = None

    @property
    def model(self) -> str:
        if self._model:
            return self._model
        if self.provider == LLMProvider.OPENAI:
            return settings.openai_model
        return settings.gemini_model

    @property
    def base_url(self) -> str:
        if self._base_url:
            return self._base_url.rstrip("/")
        if self.provider == LLMProvider.OPENAI:
            return settings.openai_base_url.rstrip("/")
        return settings.gemini_base_url.rstrip("/")

    def set_provider(self, provider: LLMProvider | str, api_key: str | None = None) -> None:
        """Switch provider (and optionally key); the session is rebuilt lazily."""
        self.provider = LLMProvider(provider)
        if api_key:
            self.api_key = api_key
        self._model = None
        self._base_url = None
        if self._session is not None:
            self._session.close()
            self._session = None

    def _get_session(self) -> requests.Session:
        """Get or create requests session with connection pooling."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Content-Type": "application/json"})
            adapter = HTTPAdapter(
                pool_connections=self.max_concurrent,
                pool_maxsize=self.max_concurrent * 2,
                max_retries=Retry(total=2, backoff_factor=0.5),
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        session = self._get_session()
        try:
            response = session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise LLMError(f"LLM request failed: {e}") from e

        if _is_rate_limited(response):
            raise RateLimitError(f"Rate limit hit ({response.status_code}), retry later")
        if response.status_code >= 400:
            raise LLMError(f"LLM API error: {response.status_code} - {response.text[:300]}")

        try:
            data = response.json()
        except ValueError as e:
            raise LLMError(f"LLM returned a non-JSON body: {response.text[:300]}") from e
        if not isinstance(data, dict):
            raise LLMError(f"LLM returned an unexpected body: {response.text[:300]}")

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise LLMError(f"LLM API error: {message}")
        return data

    def _call_gemini(self, prompt: str) -> str:
        data = self._post(
            f"{self.base_url}/models/{self.model}:generateContent",
            {"contents": [{"parts": [{"text": prompt}]}]},
            {"x-goog-api-key": self.api_key},
        )
        candidates = data.get("candidates") or []
        if not candidates:
            logger.error(f"Gemini returned no candidates: {data}")
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    def _call_openai(self, prompt: str) -> str:
        if not self.api_key or self.api_key.startswith("AIza"):
            raise LLMError("Please provide a valid OpenAI API key in the settings.")

        data = self._post(
            f"{self.base_url}/chat/completions",
            {
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "response_format": {"type": "json_object"},
            },
            {"Authorization": f"Bearer {self.api_key}"},
        )
        choices = data.get("choices", [])
        if not choices:
            logger.error(f"LLM returned empty choices: {data}")
            raise LLMError("LLM returned empty choices")
        return choices[0].get("message", {}).get("content") or ""

    def _sync_generate(self, prompt: str) -> str:
        """Synchronous request (runs in thread)."""
        if self.provider == LLMProvider.OPENAI:
            return self._call_openai(prompt)
        return self._call_gemini(prompt)

    async def generate(self, prompt: str) -> str:
        """Generate a completion from the configured provider."""
        async with self._semaphore:
            try:
                # Run sync request in thread pool to not block event loop
                return await asyncio.to_thread(self._sync_generate, prompt)
            except RateLimitError as e:
                logger.warning(f"LLM rate limited: {e}")
                raise
            except LLMError as e:
                logger.error(f"LLM request failed: {e}")
                raise


# Global client instance
_llm_client: LLMClient | None = None


def get_llm_client() -> LLMClient:
    """Get or create the global LLM client."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client


async def close_llm_client() -> None:
    """Close the global LLM client."""
    global _llm_client
    if _llm_client is not None:
        await _llm_client.close()
        _llm_client = None
