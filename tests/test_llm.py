"""Tests for staya.llm: HttpCompletion in both wire formats."""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock, patch

from staya.llm import CompletionError, HttpCompletion
from staya.models import Message

HISTORY = [
    Message(role="assistant", content="The cellar is cold."),
    Message(role="user", content="I wait."),
]


def _call(llm: HttpCompletion, **overrides):
    kwargs = {
        "api_key": "secret",
        "model": "gemini-2.5-pro",
        "system": "SYSTEM",
        "history": HISTORY,
        "prompt": "I look at Volk.",
        "temperature": 0.9,
    }
    kwargs.update(overrides)
    return llm(**kwargs)


def _mock_response(body: dict, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body
    resp.text = ""
    resp.raise_for_status = MagicMock(
        side_effect=None if status < 400 else httpx.HTTPStatusError(
            "", request=MagicMock(), response=resp
        )
    )
    return resp


# ---------------------------------------------------------------------------
# HttpCompletion: Gemini format
# ---------------------------------------------------------------------------

class TestGemini:
    @pytest.fixture
    def llm(self) -> HttpCompletion:
        return HttpCompletion(provider_url="https://generativelanguage.googleapis.com/")

    async def test_happy_path(self, llm: HttpCompletion) -> None:
        body = {"candidates": [{"content": {"parts": [{"text": "Snow "}, {"text": "falls."}]}}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            result = await _call(llm)
        assert result == "Snow falls."

    async def test_posts_to_model_url(self, llm: HttpCompletion) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"candidates": []}))
        with patch("httpx.AsyncClient.post", mock_post):
            await _call(llm)
        url = mock_post.call_args[0][0]
        assert url == "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-pro:generateContent"

    async def test_sends_key_header(self, llm: HttpCompletion) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"candidates": []}))
        with patch("httpx.AsyncClient.post", mock_post):
            await _call(llm)
        headers = mock_post.call_args.kwargs["headers"]
        assert headers["x-goog-api-key"] == "secret"
        assert "Authorization" not in headers

    async def test_body_layout(self, llm: HttpCompletion) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"candidates": []}))
        with patch("httpx.AsyncClient.post", mock_post):
            await _call(llm)
        sent = mock_post.call_args.kwargs["json"]
        assert sent["systemInstruction"] == {"parts": [{"text": "SYSTEM"}]}
        assert sent["generationConfig"] == {"temperature": 0.9}
        assert [c["role"] for c in sent["contents"]] == ["model", "user", "user"]
        assert sent["contents"][-1]["parts"][0]["text"] == "I look at Volk."

    async def test_no_candidates_is_empty_text(self, llm: HttpCompletion) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"candidates": []}))
        with patch("httpx.AsyncClient.post", mock_post):
            assert await _call(llm) == ""

    async def test_malformed_response(self, llm: HttpCompletion) -> None:
        mock_post = AsyncMock(return_value=_mock_response({"unexpected": "format"}))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(CompletionError, match="Unexpected response format") as info:
                await _call(llm)
        assert info.value.reason == "protocol"

    async def test_not_found_carries_status_and_detail(self, llm: HttpCompletion) -> None:
        body = {"error": {"code": 404, "message": "models/gemini-2.5-pro is not found", "status": "NOT_FOUND"}}
        mock_post = AsyncMock(return_value=_mock_response(body, status=404))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(CompletionError, match="HTTP 404: NOT_FOUND") as info:
                await _call(llm)
        assert info.value.status_code == 404
        assert info.value.reason == "http"
        assert info.value.detail == "NOT_FOUND: models/gemini-2.5-pro is not found"
        assert info.value.model == "gemini-2.5-pro"

    async def test_connect_error(self, llm: HttpCompletion) -> None:
        mock_post = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(CompletionError, match="Cannot connect") as info:
                await _call(llm)
        assert info.value.reason == "connect"

    async def test_timeout(self, llm: HttpCompletion) -> None:
        mock_post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(CompletionError, match="timed out") as info:
                await _call(llm)
        assert info.value.reason == "timeout"

    async def test_other_transport_error(self, llm: HttpCompletion) -> None:
        mock_post = AsyncMock(side_effect=httpx.ReadError("reset"))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(CompletionError, match="Network error") as info:
                await _call(llm)
        assert info.value.reason == "connect"


# ---------------------------------------------------------------------------
# HttpCompletion: OpenAI-compatible format
# ---------------------------------------------------------------------------

class TestOpenAI:
    @pytest.fixture
    def llm(self) -> HttpCompletion:
        return HttpCompletion(provider_url="http://localhost:8080", provider_format="openai")

    async def test_posts_to_chat_url(self, llm: HttpCompletion) -> None:
        body = {"choices": [{"message": {"content": "ok"}}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            await _call(llm)
        assert mock_post.call_args[0][0] == "http://localhost:8080/v1/chat/completions"

    async def test_bearer_token(self, llm: HttpCompletion) -> None:
        body = {"choices": [{"message": {"content": "ok"}}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            await _call(llm)
        assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"

    async def test_messages_layout(self, llm: HttpCompletion) -> None:
        body = {"choices": [{"message": {"content": "ok"}}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            await _call(llm)
        sent = mock_post.call_args.kwargs["json"]
        assert sent["model"] == "gemini-2.5-pro"
        assert sent["temperature"] == 0.9
        assert [m["role"] for m in sent["messages"]] == ["system", "assistant", "user", "user"]

    async def test_happy_path(self, llm: HttpCompletion) -> None:
        body = {"choices": [{"message": {"content": "A stormy night."}}]}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            assert await _call(llm) == "A stormy night."

    async def test_forbidden_detail(self, llm: HttpCompletion) -> None:
        body = {"error": {"message": "You do not have access", "code": "permission_denied"}}
        mock_post = AsyncMock(return_value=_mock_response(body, status=403))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(CompletionError, match="permission_denied") as info:
                await _call(llm)
        assert info.value.status_code == 403

    async def test_malformed_response(self, llm: HttpCompletion) -> None:
        body = {"candidates": []}
        mock_post = AsyncMock(return_value=_mock_response(body))
        with patch("httpx.AsyncClient.post", mock_post):
            with pytest.raises(CompletionError, match="Unexpected response format"):
                await _call(llm)
