"""Dispatch layer: one turn to the completion endpoint, with model fallback.

Per dispatch:
  1. Resolve the credential from the injected provider. Missing or
     placeholder → Failure("credential_missing") with no network I/O.
  2. Compile the system instruction from the dossier (fresh every call).
  3. Try each candidate model in order, one request at a time:
       success            → Success, remaining candidates are skipped
       model_unavailable  → log and move on to the next candidate
       transient          → retried on the same candidate up to
                            `transient_retries` times, then fatal
       anything else      → fatal, returned immediately
  4. All candidates unavailable → the last model_unavailable Failure.

Endpoint errors never propagate to the caller; every outcome is a value.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterable, Sequence

from staya.llm import Completion, CompletionError, HttpCompletion
from staya.models import DispatchOutcome, Dossier, Failure, FailureKind, Message, Success
from staya.prompts import compile_system_prompt

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.9


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

CredentialProvider = Callable[[], "str | None"]

PLACEHOLDER_CREDENTIALS = frozenset({
    "placeholder_api_key",
    "your-api-key",
    "your_api_key",
    "your-api-key-here",
    "api_key",
    "changeme",
    "none",
    "null",
    "undefined",
})


def is_usable_credential(value: str | None) -> bool:
    if value is None:
        return False
    value = value.strip()
    return bool(value) and value.lower() not in PLACEHOLDER_CREDENTIALS


class EnvCredentialProvider:
    """Reads the credential from the environment on every call.

    Variables are tried in order; the first usable value wins.
    """

    def __init__(self, *names: str) -> None:
        self.names = names or ("GEMINI_API_KEY", "API_KEY")

    def __call__(self) -> str | None:
        for name in self.names:
            value = os.environ.get(name)
            if is_usable_credential(value):
                return value.strip()
        return None


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class ErrorClassifier:
    """Maps a completion exception to a FailureKind.

    Checked in order:
      1. status in unavailable_statuses              → model_unavailable
      2. connect/timeout, or a transient status      → transient
      3. a marker in the provider detail             → model_unavailable
      4. anything else                               → unknown

    Markers are matched against CompletionError.detail only, never against
    the full message, which may embed the endpoint URL. For other exception
    types the whole message is used. The defaults match the Gemini REST API
    wording.
    """

    def __init__(
        self,
        unavailable_markers: Iterable[str] = ("not found", "not_found", "permission", "403"),
        unavailable_statuses: Iterable[int] = (403, 404),
        transient_statuses: Iterable[int] = (408, 429, 500, 502, 503, 504),
    ) -> None:
        self.unavailable_markers = tuple(m.lower() for m in unavailable_markers)
        self.unavailable_statuses = frozenset(unavailable_statuses)
        self.transient_statuses = frozenset(transient_statuses)

    def __call__(self, error: Exception) -> FailureKind:
        status = getattr(error, "status_code", None)
        reason = getattr(error, "reason", None)
        if status in self.unavailable_statuses:
            return "model_unavailable"
        if reason in ("connect", "timeout") or status in self.transient_statuses:
            return "transient"
        text = error.detail if isinstance(error, CompletionError) else str(error)
        if any(marker in text.lower() for marker in self.unavailable_markers):
            return "model_unavailable"
        return "unknown"


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

class Dispatcher:
    """Sends turns to the completion endpoint across an ordered model list.

    Args:
        completion:        Completion callable (HttpCompletion in production).
        models:            Candidate model ids, most capable first.
        credentials:       No-arg callable returning the current credential.
        classifier:        Maps endpoint errors to failure kinds.
        temperature:       Sampling temperature, intentionally non-zero.
        timeout:           Upper bound in seconds for one whole dispatch.
        transient_retries: Extra attempts on the same model for transient errors.
        retry_delay:       Base delay in seconds between transient retries.
        history_window:    Max replayed history messages; 0 disables replay.
    """

    def __init__(
        self,
        completion: Completion,
        models: Sequence[str],
        credentials: CredentialProvider,
        classifier: ErrorClassifier | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float | None = 150.0,
        transient_retries: int = 0,
        retry_delay: float = 1.0,
        history_window: int = 20,
    ) -> None:
        if not models:
            raise ValueError("Dispatcher needs at least one candidate model")
        self.completion = completion
        self.models = list(models)
        self.credentials = credentials
        self.classifier = classifier or ErrorClassifier()
        self.temperature = temperature
        self.timeout = timeout
        self.transient_retries = transient_retries
        self.retry_delay = retry_delay
        self.history_window = history_window

    def replayable(self, history: Sequence[Message]) -> list[Message]:
        """User/assistant messages in order; system notices are never replayed."""
        if self.history_window <= 0:
            return []
        turns = [m for m in history if m.role in ("user", "assistant")]
        return turns[-self.history_window:]

    async def dispatch(
        self,
        turn_text: str,
        dossier: Dossier,
        history: Sequence[Message] = (),
    ) -> DispatchOutcome:
        api_key = self.credentials()
        if not is_usable_credential(api_key):
            logger.warning("dispatch skipped: no usable credential")
            return Failure(kind="credential_missing", message="No API key is configured")

        system = compile_system_prompt(dossier)
        replay = self.replayable(history)
        try:
            return await asyncio.wait_for(
                self._fallback(api_key, system, replay, turn_text),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("dispatch timed out after %ss", self.timeout)
            return Failure(kind="transient", message=f"Dispatch timed out after {self.timeout}s")

    async def _fallback(
        self,
        api_key: str,
        system: str,
        history: list[Message],
        prompt: str,
    ) -> DispatchOutcome:
        outcome: DispatchOutcome = Failure(kind="model_unavailable", message="No candidate models")
        for model in self.models:
            outcome = await self._attempt(api_key, model, system, history, prompt)
            if isinstance(outcome, Success):
                return outcome
            if outcome.kind != "model_unavailable":
                return outcome
            logger.warning("model %s unavailable, trying next candidate: %s", model, outcome.message)
        return outcome

    async def _attempt(
        self,
        api_key: str,
        model: str,
        system: str,
        history: list[Message],
        prompt: str,
    ) -> DispatchOutcome:
        """One candidate model, including transient retries."""
        attempt = 0
        while True:
            try:
                text = await self.completion(
                    api_key=api_key,
                    model=model,
                    system=system,
                    history=history,
                    prompt=prompt,
                    temperature=self.temperature,
                )
            except Exception as e:
                if not isinstance(e, CompletionError):
                    logger.exception("completion raised unexpectedly on %s", model)
                kind = self.classifier(e)
                if kind == "transient" and attempt < self.transient_retries:
                    attempt += 1
                    logger.info("transient error on %s, retry %d: %s", model, attempt, e)
                    await asyncio.sleep(self.retry_delay * attempt)
                    continue
                if kind != "model_unavailable":
                    logger.warning("dispatch failed on %s (%s): %s", model, kind, e)
                return Failure(kind=kind, message=str(e), model=model)
            logger.debug("dispatch succeeded on %s", model)
            return Success(text=text, model=model)


def dispatcher_from_config(config: dict) -> Dispatcher:
    """Build the production dispatcher from a get_config() dict."""
    completion = HttpCompletion(
        provider_url=config["provider_url"],
        provider_format=config["provider_format"],
        timeout=float(config["timeout"]),
    )
    return Dispatcher(
        completion=completion,
        models=config["models"],
        credentials=EnvCredentialProvider(*config["api_key_env"]),
        temperature=float(config["temperature"]),
        timeout=dispatch_timeout(config),
        transient_retries=int(config["transient_retries"]),
        history_window=int(config["history_window"]),
    )


def dispatch_timeout(config: dict) -> float:
    """Whole-dispatch bound: every attempt on every candidate may use its own HTTP timeout."""
    attempts = len(config["models"]) * (1 + int(config["transient_retries"]))
    return float(config["timeout"]) * attempts + 5
