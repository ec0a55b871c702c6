# /tests/test_provider_orchestrator.py

import asyncio
import json

import httpx
import pytest

from app.core.config import ProviderConfig
from app.services import llm_providers
from app.services.llm_providers import (
    CompletionParams,
    GeminiClient,
    OpenRouterClient,
    ProviderError,
    build_single_prompt,
    INVALID_STRUCTURE_TEXT,
)
from app.services.provider_orchestrator import (
    ADMIN_CONTACT_MESSAGE,
    OrchestratorState,
    ProviderOrchestrator,
    is_configured,
)
from conftest import FakeCompletionClient

MESSAGES = [{"role": "user", "content": "hello"}]


def _run(orchestrator):
    return asyncio.run(orchestrator.complete(MESSAGES, CompletionParams()))


def _openrouter_returning(status_code, body=None, text=None):
    def handler(request):
        if body is not None:
            return httpx.Response(status_code, json=body)
        return httpx.Response(status_code, text=text or "")
    return OpenRouterClient("sk-or-test", default_model="m", transport=httpx.MockTransport(handler))


@pytest.fixture
def config():
    return ProviderConfig(primary_key="sk-or-test", secondary_key="gemini-test")


def test_primary_success_does_not_touch_secondary(config, primary_client, secondary_client):
    outcome = _run(ProviderOrchestrator(config, primary_client, secondary_client))

    assert outcome.state == OrchestratorState.DONE
    assert outcome.content == "Primary reply"
    assert outcome.provider == "primary"
    assert secondary_client.calls == []


@pytest.mark.parametrize("status_code", [500, 502, 503, 429])
def test_retryable_primary_status_falls_back_to_secondary(config, secondary_client, status_code):
    primary = _openrouter_returning(status_code, text="upstream trouble")

    outcome = _run(ProviderOrchestrator(config, primary, secondary_client))

    assert len(secondary_client.calls) == 1
    assert outcome.succeeded
    assert outcome.content == "Secondary reply"


@pytest.mark.parametrize("status_code", [400, 401, 404, 422])
def test_client_error_from_primary_ends_without_fallback(config, secondary_client, status_code):
    primary = _openrouter_returning(status_code, text="bad request body")

    outcome = _run(ProviderOrchestrator(config, primary, secondary_client))

    assert secondary_client.calls == []
    assert outcome.state == OrchestratorState.DONE_WITH_ERROR
    assert outcome.persisted_error == "Failed to get AI response: bad request body"
    assert outcome.client_error == f"AI API returned {status_code}: bad request body"


def test_network_failure_on_primary_falls_back(config, secondary_client):
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    primary = OpenRouterClient("sk-or-test", transport=httpx.MockTransport(handler))
    outcome = _run(ProviderOrchestrator(config, primary, secondary_client))

    assert outcome.content == "Secondary reply"


def test_placeholder_primary_key_starts_at_secondary(primary_client, secondary_client):
    config = ProviderConfig(primary_key="your_openrouter_api_key", secondary_key="gemini-test")
    orchestrator = ProviderOrchestrator(config, primary_client, secondary_client)

    assert orchestrator.initial_state() == OrchestratorState.TRY_SECONDARY
    outcome = _run(orchestrator)
    assert primary_client.calls == []
    assert outcome.content == "Secondary reply"


def test_no_credentials_at_all_yields_admin_message(primary_client, secondary_client):
    config = ProviderConfig(primary_key=None, secondary_key="")
    outcome = _run(ProviderOrchestrator(config, primary_client, secondary_client))

    assert primary_client.calls == [] and secondary_client.calls == []
    assert outcome.state == OrchestratorState.DONE_WITH_ERROR
    assert outcome.persisted_error == ADMIN_CONTACT_MESSAGE
    assert outcome.client_error == ADMIN_CONTACT_MESSAGE


def test_secondary_failure_after_primary_failure_yields_admin_message(config):
    primary = FakeCompletionClient("primary", error=ProviderError("overloaded", retryable=True, status_code=503))
    secondary = FakeCompletionClient("secondary", error=ProviderError("quota", retryable=False))

    outcome = _run(ProviderOrchestrator(config, primary, secondary))

    assert outcome.state == OrchestratorState.DONE_WITH_ERROR
    assert outcome.client_error == ADMIN_CONTACT_MESSAGE


def test_empty_secondary_output_counts_as_failure():
    config = ProviderConfig(primary_key=None, secondary_key="gemini-test")
    secondary = FakeCompletionClient("secondary", reply="   ")

    outcome = _run(ProviderOrchestrator(config, FakeCompletionClient("primary"), secondary))

    assert outcome.state == OrchestratorState.DONE_WITH_ERROR


@pytest.mark.parametrize("key, expected", [
    ("sk-or-v1-abc", True),
    ("", False),
    (None, False),
    ("   ", False),
    ("your_api_key_here", False),
    ("<OPENROUTER_KEY>", False),
    ("changeme", False),
])
def test_is_configured(key, expected):
    assert is_configured(key) is expected


# --- OpenRouter client wire format ---

def test_openrouter_request_shape_and_reply():
    captured = {}

    def handler(request: httpx.Request):
        captured["auth"] = request.headers["Authorization"]
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "Hi!"}}]})

    client = OpenRouterClient("sk-or-test", default_model="fallback-model", transport=httpx.MockTransport(handler))
    params = CompletionParams(model="chosen-model", temperature=0.3, max_tokens=500, top_p=0.9,
                              frequency_penalty=0.1, presence_penalty=0.2)
    reply = asyncio.run(client.complete(MESSAGES, params))

    assert reply == "Hi!"
    assert captured["auth"] == "Bearer sk-or-test"
    assert captured["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert captured["body"] == {
        "model": "chosen-model",
        "messages": MESSAGES,
        "temperature": 0.3,
        "max_tokens": 500,
        "top_p": 0.9,
        "frequency_penalty": 0.1,
        "presence_penalty": 0.2,
    }


@pytest.mark.parametrize("body", [
    {"unexpected": True},
    {"choices": [{"message": "hi"}]},
    {"choices": [{"message": {"content": [{"type": "text", "text": "hi"}]}}]},
])
def test_openrouter_malformed_body_is_retryable(body):
    client = _openrouter_returning(200, body=body)

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.complete(MESSAGES, CompletionParams()))

    assert excinfo.value.retryable is True
    assert excinfo.value.detail == INVALID_STRUCTURE_TEXT


def test_openrouter_null_content_becomes_placeholder_text():
    client = _openrouter_returning(200, body={"choices": [{"message": {"content": None}}]})
    assert asyncio.run(client.complete(MESSAGES, CompletionParams())) == "No response received"


def test_single_prompt_flattening():
    prompt = build_single_prompt([
        {"role": "system", "content": "Be kind."},
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello"},
        {"role": "user", "content": "Bye"},
    ])
    assert prompt == "System: Be kind.\n\nUser: Hi\n\nAssistant: Hello\n\nUser: Bye\n\nAssistant:"


def test_unexpected_primary_exception_falls_back(config, secondary_client):
    primary = FakeCompletionClient("primary", error=AttributeError("'str' object has no attribute 'get'"))

    outcome = _run(ProviderOrchestrator(config, primary, secondary_client))

    assert outcome.state == OrchestratorState.DONE
    assert outcome.provider == "secondary"


def test_unexpected_secondary_exception_ends_with_admin_message(config):
    primary = FakeCompletionClient("primary", error=ProviderError("busy", retryable=True, status_code=503))
    secondary = FakeCompletionClient("secondary", error=RuntimeError("boom"))

    outcome = _run(ProviderOrchestrator(config, primary, secondary))

    assert outcome.state == OrchestratorState.DONE_WITH_ERROR
    assert outcome.client_error == ADMIN_CONTACT_MESSAGE


class _TextlessResponse:
    """Mimics a Gemini response whose only candidate part carries no text."""
    parts = [object()]

    @property
    def text(self):
        raise ValueError("The `response.text` quick accessor only works for simple text responses.")


class _FakeGenerativeModel:
    def __init__(self, model_name):
        self.model_name = model_name

    async def generate_content_async(self, prompt, generation_config=None):
        return _TextlessResponse()


def test_gemini_reply_without_text_is_a_provider_error(monkeypatch):
    monkeypatch.setattr(llm_providers.genai, "configure", lambda **kwargs: None)
    monkeypatch.setattr(llm_providers.genai, "GenerativeModel", _FakeGenerativeModel)
    client = GeminiClient("gemini-test", model="gemini-2.5-flash")

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.complete(MESSAGES, CompletionParams()))

    assert excinfo.value.retryable is False
