"""LLM client — HTTP connection to the examiner's text-generation backend.

The session injects an LLM callable matching the protocol:

    async def __call__(self, system: str, prompt: str) -> str: ...

`system` is the fixed examiner instruction; `prompt` is the rendered context
block plus the player's input. The return value is the raw response text,
debug panel and all. Any failure is raised as LLMError.

Two implementations are provided:

    HttpLLM   — real HTTP client, supports the Gemini REST API plus
                 OpenAI-compatible and KoboldCpp completion backends.
                 Selected by provider_format.
    EchoLLM   — returns the prompt back unchanged. Useful for smoke-testing
                 the session wiring without a running model.

build_llm() picks one from Settings. Tests use StubLLM (defined in the test
helpers) instead.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

import httpx

from rta_samvada.config import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol — every LLM implementation must match this signature
# ---------------------------------------------------------------------------

class LLM(Protocol):
    async def __call__(self, system: str, prompt: str) -> str: ...


# ---------------------------------------------------------------------------
# HttpLLM — connects to a real backend
# ---------------------------------------------------------------------------

HttpFormat = Literal["gemini", "openai", "koboldcpp"]


class HttpLLM:
    """Async HTTP client for text-generation backends.

    Supported formats:
      "gemini"     — POST /v1beta/models/{model}:generateContent
                     {"systemInstruction": ..., "contents": [...]}
                     Response: {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}
      "openai"     — POST /v1/completions   {"model": ..., "prompt": ...}
                     Response: {"choices": [{"text": "..."}]}
      "koboldcpp"  — POST /api/v1/generate  {"prompt": ...}
                     Response: {"results": [{"text": "..."}]}

    The completion formats have no system slot, so the instruction is sent
    ahead of the prompt.

    Args:
        provider_url:    Base URL of the backend.
        api_key:         API key, or empty string if not required.
        provider_format: Wire format to use. Defaults to "gemini".
        model:           Model identifier (gemini path segment, openai body).
        temperature:     Sampling temperature.
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: HttpFormat = "gemini",
        model: str = "",
        temperature: float = 1.0,
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._model = model
        self._temperature = temperature
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            if self._format == "gemini":
                headers["x-goog-api-key"] = self._api_key
            else:
                headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(self, system: str, prompt: str) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "gemini":
            url = f"{self._base_url}/v1beta/models/{self._model}:generateContent"
            return url, {
                "systemInstruction": {"parts": [{"text": system}]},
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {"temperature": self._temperature},
            }

        combined = f"{system.strip()}\n\n{prompt}"
        if self._format == "openai":
            url = f"{self._base_url}/v1/completions"
            body: dict = {"prompt": combined, "temperature": self._temperature}
            if self._model:
                body["model"] = self._model
            return url, body

        # koboldcpp
        url = f"{self._base_url}/api/v1/generate"
        return url, {"prompt": combined, "temperature": self._temperature}

    def _parse_response(self, data: dict) -> str:
        """Extract the generated text from the response body."""
        if not isinstance(data, dict):
            raise LLMError("Unexpected response body from LLM backend")

        if self._format == "gemini":
            candidates = data.get("candidates")
            if not candidates:
                # Blocked prompts come back with promptFeedback and no candidates
                logger.warning("Gemini returned no candidates: %r", data.get("promptFeedback"))
                return ""
            parts = (candidates[0].get("content") or {}).get("parts") or []
            return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

        if self._format == "openai":
            choices = data.get("choices")
            if not choices or "text" not in choices[0]:
                raise LLMError("Unexpected response format from OpenAI-compatible backend")
            return choices[0]["text"]

        # koboldcpp
        results = data.get("results")
        if not results or "text" not in results[0]:
            raise LLMError("Unexpected response format from KoboldCpp backend")
        return results[0]["text"]

    async def __call__(self, system: str, prompt: str) -> str:
        url, body = self._build_request(system, prompt)
        logger.debug("llm call format=%s url=%s prompt_len=%d", self._format, url, len(prompt))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise LLMError("LLM backend returned a non-JSON body") from e

        text = self._parse_response(data)
        logger.debug("llm response format=%s len=%d", self._format, len(text))
        return text


# ---------------------------------------------------------------------------
# EchoLLM — returns the prompt unchanged; useful for pipeline smoke tests
# ---------------------------------------------------------------------------

class EchoLLM:
    """Returns the prompt text as-is. No network calls.

    The echoed text has no debug panel, so every turn is a no-op for score,
    level and contradictions. Use StubLLM in tests when you need controlled
    responses.
    """

    async def __call__(self, system: str, prompt: str) -> str:
        logger.debug("EchoLLM prompt_len=%d", len(prompt))
        return prompt


def build_llm(settings: Settings) -> LLM:
    """Construct the collaborator selected by settings.provider_format."""
    if settings.provider_format == "echo":
        return EchoLLM()
    return HttpLLM(
        provider_url=settings.provider_url,
        api_key=settings.api_key,
        provider_format=settings.provider_format,
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.timeout,
    )


# ---------------------------------------------------------------------------
# LLMError — raised by HttpLLM for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""
