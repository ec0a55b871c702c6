# /aria-backend/app/services/llm_providers.py

"""
Completion provider clients.

Both clients expose the same coroutine, `complete(messages, params) -> str`,
where `messages` is the OpenAI-style list of `{"role", "content"}` dicts built
by the context assembler. Failures are reported as `ProviderError`, tagged
with whether falling back to another provider could help.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import httpx
import google.generativeai as genai
from google.generativeai.types import GenerationConfig

logger = logging.getLogger(__name__)

NO_RESPONSE_TEXT = "No response received"
INVALID_STRUCTURE_TEXT = "Invalid response structure from AI API"


class ProviderError(Exception):
    """A provider call that did not yield usable text."""

    def __init__(self, detail: str, retryable: bool, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.retryable = retryable
        self.status_code = status_code


@dataclass
class CompletionParams:
    model: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 2000
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0


class CompletionClient:
    """Interface shared by the primary and secondary providers."""
    name = "provider"

    async def complete(self, messages: List[Dict[str, str]], params: CompletionParams) -> str:
        raise NotImplementedError


def is_retryable_status(status_code: int) -> bool:
    """Rate limits and server-side errors may succeed elsewhere; other 4xx mean a bad request."""
    return status_code == 429 or status_code >= 500


class OpenRouterClient(CompletionClient):
    """Primary provider: the OpenRouter chat-completions endpoint."""
    name = "openrouter"
    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(self, api_key: Optional[str], default_model: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.default_model = default_model
        self._transport = transport

    async def complete(self, messages: List[Dict[str, str]], params: CompletionParams) -> str:
        payload = {
            "model": params.model or self.default_model,
            "messages": messages,
            "temperature": params.temperature,
            "max_tokens": params.max_tokens,
            "top_p": params.top_p,
            "frequency_penalty": params.frequency_penalty,
            "presence_penalty": params.presence_penalty,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(f"{self.BASE_URL}/chat/completions", json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderError(f"Network error calling OpenRouter: {e}", retryable=True) from e

        if not response.is_success:
            logger.error("AI API Error: %s %s", response.status_code, response.text)
            raise ProviderError(
                response.text,
                retryable=is_retryable_status(response.status_code),
                status_code=response.status_code,
            )

        try:
            data = response.json()
            message = data["choices"][0]["message"]
            content = message.get("content") if message is not None else None
            if content is not None and not isinstance(content, str):
                raise TypeError(f"content is {type(content).__name__}, expected str")
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error("Invalid AI API response structure: %s", response.text[:500])
            raise ProviderError(INVALID_STRUCTURE_TEXT, retryable=True, status_code=response.status_code) from e

        return content or NO_RESPONSE_TEXT


def build_single_prompt(messages: List[Dict[str, str]]) -> str:
    """Flattens a chat transcript into one prompt string for single-turn APIs."""
    labels = {"system": "System", "user": "User", "assistant": "Assistant"}
    blocks = [f"{labels.get(m['role'], 'User')}: {m['content']}" for m in messages]
    blocks.append("Assistant:")
    return "\n\n".join(blocks)


class GeminiClient(CompletionClient):
    """Secondary provider: Google Gemini, fed a single flattened prompt."""
    name = "gemini"

    def __init__(self, api_key: Optional[str], model: str):
        self.api_key = api_key
        self.model = model

    async def complete(self, messages: List[Dict[str, str]], params: CompletionParams) -> str:
        prompt = build_single_prompt(messages)
        try:
            genai.configure(api_key=self.api_key)
            model = genai.GenerativeModel(self.model)
            config = GenerationConfig(
                temperature=params.temperature,
                max_output_tokens=params.max_tokens,
                top_p=params.top_p,
            )
            response = await model.generate_content_async(prompt, generation_config=config)
            # `.text` raises ValueError when the candidate holds no text parts.
            text = response.text if response.parts else ""
        except Exception as e:
            logger.error("ERROR in Gemini fallback call: %s", e)
            raise ProviderError(f"Gemini request failed: {e}", retryable=False) from e

        if not text:
            raise ProviderError("AI model returned an empty response.", retryable=False)
        return text
