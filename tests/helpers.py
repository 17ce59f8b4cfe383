"""Shared test doubles: a scriptable completion callable and error factories."""

import asyncio

from staya.dispatch import Dispatcher
from staya.llm import CompletionError

REPLY = (
    "`T1｜2024/01/12/Friday｜23:40｜Winter｜Snow❄️｜Factory cellar🏭`\n"
    "The cellar smells of diesel and cold iron.\n"
    "\n"
    "**Volk |** 「Садись.」 (Sit down.)\n"
    "*He has been waiting a long time.*"
)


def not_found(model: str) -> CompletionError:
    return CompletionError(
        f"Completion endpoint returned HTTP 404: NOT_FOUND: models/{model} is not found",
        reason="http", status_code=404,
        detail=f"NOT_FOUND: models/{model} is not found", model=model,
    )


def forbidden(model: str) -> CompletionError:
    return CompletionError(
        "Completion endpoint returned HTTP 403: PERMISSION_DENIED: caller lacks access",
        reason="http", status_code=403,
        detail="PERMISSION_DENIED: caller lacks access", model=model,
    )


def server_error(model: str) -> CompletionError:
    return CompletionError(
        "Completion endpoint returned HTTP 503: UNAVAILABLE: overloaded",
        reason="http", status_code=503,
        detail="UNAVAILABLE: overloaded", model=model,
    )


def bad_request(model: str) -> CompletionError:
    return CompletionError(
        "Completion endpoint returned HTTP 400: INVALID_ARGUMENT: bad payload",
        reason="http", status_code=400,
        detail="INVALID_ARGUMENT: bad payload", model=model,
    )


class StubCompletion:
    """Completion double. Responses are scripted per model.

    A response may be a string, an exception to raise, or a list consumed
    one item per call. Set `gate` to an asyncio.Event to hold calls until
    the test releases them.
    """

    def __init__(self, responses: dict | None = None, default: str = REPLY) -> None:
        self.responses = responses or {}
        self.default = default
        self.calls: list[dict] = []
        self.gate: asyncio.Event | None = None

    @property
    def models_called(self) -> list[str]:
        return [c["model"] for c in self.calls]

    async def __call__(self, **kwargs) -> str:
        self.calls.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        result = self.responses.get(kwargs["model"], self.default)
        if isinstance(result, list):
            result = result.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


def make_dispatcher(
    completion: StubCompletion,
    models: tuple[str, ...] = ("pro", "flash"),
    key: str | None = "test-key",
    **kwargs,
) -> Dispatcher:
    kwargs.setdefault("timeout", 5)
    kwargs.setdefault("retry_delay", 0)
    return Dispatcher(completion, models, credentials=lambda: key, **kwargs)
