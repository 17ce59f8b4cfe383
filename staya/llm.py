"""Completion client: HTTP connection to the LLM completion endpoint.

The dispatch layer injects a completion callable matching the protocol:

    async def __call__(self, *, api_key, model, system, history, prompt,
                       temperature) -> str: ...

The credential is a call argument rather than constructor state so that a
key changed mid-session is used on the very next request.

HttpCompletion supports two wire formats, selected by provider_format:

    "gemini" : POST {base}/v1beta/models/{model}:generateContent
                Response: {"candidates": [{"content": {"parts": [{"text": ...}]}}]}
    "openai" : POST {base}/v1/chat/completions
                Response: {"choices": [{"message": {"content": ...}}]}

Tests use stub callables (see tests/helpers.py) instead.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal, Protocol

import httpx

from staya.models import Message

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol: every completion implementation must match this signature
# ---------------------------------------------------------------------------

class Completion(Protocol):
    async def __call__(
        self,
        *,
        api_key: str,
        model: str,
        system: str,
        history: Sequence[Message],
        prompt: str,
        temperature: float,
    ) -> str: ...


# ---------------------------------------------------------------------------
# CompletionError: raised by HttpCompletion for all endpoint failures
# ---------------------------------------------------------------------------

ErrorReason = Literal["connect", "timeout", "http", "protocol"]


class CompletionError(RuntimeError):
    """Raised when the completion endpoint cannot be reached or rejects a request.

    `reason` says which layer failed; `status_code` is set for HTTP errors.
    `detail` holds the provider's own error text, e.g. "NOT_FOUND: models/x
    is not found", and is empty when the provider never answered.
    """

    def __init__(
        self,
        message: str,
        *,
        reason: ErrorReason,
        status_code: int | None = None,
        detail: str = "",
        model: str = "",
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code
        self.detail = detail
        self.model = model


# ---------------------------------------------------------------------------
# HttpCompletion: connects to a real endpoint
# ---------------------------------------------------------------------------

ProviderFormat = Literal["gemini", "openai"]


class HttpCompletion:
    """Async HTTP client for the completion endpoint.

    Args:
        provider_url:    Base URL, e.g. "https://generativelanguage.googleapis.com".
        provider_format: Wire format to use. Defaults to "gemini".
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str,
        provider_format: ProviderFormat = "gemini",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._format = provider_format
        self._timeout = timeout

    def _headers(self, api_key: str) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._format == "gemini":
            headers["x-goog-api-key"] = api_key
        else:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _build_request(
        self,
        model: str,
        system: str,
        history: Sequence[Message],
        prompt: str,
        temperature: float,
    ) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "openai":
            messages = [{"role": "system", "content": system}]
            messages.extend({"role": m.role, "content": m.content} for m in history)
            messages.append({"role": "user", "content": prompt})
            url = f"{self._base_url}/v1/chat/completions"
            return url, {"model": model, "messages": messages, "temperature": temperature}

        # gemini (default)
        contents = [
            {"role": "model" if m.role == "assistant" else "user", "parts": [{"text": m.content}]}
            for m in history
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})
        url = f"{self._base_url}/v1beta/models/{model}:generateContent"
        body = {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": contents,
            "generationConfig": {"temperature": temperature},
        }
        return url, body

    def _parse_response(self, data: dict, model: str) -> str:
        """Extract the completion text from the response body."""
        if self._format == "openai":
            choices = data.get("choices")
            if not choices or "message" not in choices[0]:
                raise CompletionError(
                    "Unexpected response format from OpenAI-compatible endpoint",
                    reason="protocol", model=model,
                )
            return choices[0]["message"].get("content") or ""

        candidates = data.get("candidates")
        if candidates is None:
            raise CompletionError(
                "Unexpected response format from Gemini endpoint",
                reason="protocol", model=model,
            )
        if not candidates:
            return ""
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(p.get("text", "") for p in parts)

    @staticmethod
    def _error_detail(resp: httpx.Response) -> str:
        """Best-effort provider error text, e.g. "NOT_FOUND: models/x is not found"."""
        try:
            err = resp.json().get("error", {})
        except ValueError:
            return resp.text[:200]
        if not isinstance(err, dict):
            return str(err)
        status = err.get("status") or err.get("code") or ""
        message = err.get("message", "")
        return f"{status}: {message}" if status else message

    async def __call__(
        self,
        *,
        api_key: str,
        model: str,
        system: str,
        history: Sequence[Message],
        prompt: str,
        temperature: float,
    ) -> str:
        url, body = self._build_request(model, system, history, prompt, temperature)
        logger.debug(
            "completion call model=%s url=%s history=%d prompt_len=%d",
            model, url, len(history), len(prompt),
        )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers(api_key))
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise CompletionError(
                f"Cannot connect to completion endpoint at {self._base_url}",
                reason="connect", model=model,
            ) from e
        except httpx.HTTPStatusError as e:
            detail = self._error_detail(e.response)
            raise CompletionError(
                f"Completion endpoint returned HTTP {e.response.status_code}: {detail}",
                reason="http", status_code=e.response.status_code,
                detail=detail, model=model,
            ) from e
        except httpx.TimeoutException as e:
            raise CompletionError(
                f"Completion endpoint timed out after {self._timeout}s",
                reason="timeout", model=model,
            ) from e
        except httpx.TransportError as e:
            raise CompletionError(
                f"Network error talking to completion endpoint: {e}",
                reason="connect", model=model,
            ) from e

        text = self._parse_response(resp.json(), model)
        logger.debug("completion response model=%s len=%d", model, len(text))
        return text
