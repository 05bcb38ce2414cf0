"""Chat completion backends (Gemini, OpenAI, GitHub Models).

All providers share the retry policy in ``ChatBackend.complete``: a hard
per-call timeout, bounded retries with exponential backoff, then
``LLMUnavailableError``.
"""

import asyncio
import logging
from typing import Any

from google import genai
from google.genai import types
from openai import OpenAI

from repolens.config import Settings, get_settings
from repolens.exceptions import LLMUnavailableError

logger = logging.getLogger(__name__)

ChatMessage = dict[str, str]


def system_message(content: str) -> ChatMessage:
    return {"role": "system", "content": content}


def user_message(content: str) -> ChatMessage:
    return {"role": "user", "content": content}


class ChatBackend:
    """Base class for chat completion providers."""

    provider: str = "base"

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.model = ""

    async def complete(self, messages: list[ChatMessage]) -> str:
        """Send messages and return the reply text.

        Args:
            messages: List of message dicts with 'role' and 'content'

        Returns:
            Reply text, possibly empty

        Raises:
            LLMUnavailableError: every attempt failed or timed out
        """
        max_retries = max(0, self.settings.llm_max_retries)
        timeout = self.settings.llm_timeout_seconds
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                return await asyncio.wait_for(self._complete_once(messages), timeout=timeout)
            except asyncio.TimeoutError:
                last_error = TimeoutError(f"{self.provider} call timed out after {timeout}s")
            except Exception as e:
                last_error = e

            if attempt < max_retries:
                delay = self.settings.llm_backoff_seconds * (2**attempt)
                logger.warning(
                    f"{self.provider} call failed (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{last_error}; retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        logger.error(f"{self.provider} unavailable after {max_retries + 1} attempts: {last_error}")
        raise LLMUnavailableError(
            f"{self.provider} unavailable after {max_retries + 1} attempts: {last_error}"
        ) from last_error

    async def _complete_once(self, messages: list[ChatMessage]) -> str:
        raise NotImplementedError


class GeminiChatBackend(ChatBackend):
    """Google Gemini via google-genai."""

    provider = "gemini"

    def __init__(self, settings: Settings | None = None):
        super().__init__(settings)
        self.client = genai.Client(api_key=self.settings.gemini_api_key)
        self.model = self.settings.gemini_model

    async def _complete_once(self, messages: list[ChatMessage]) -> str:
        system_prompt = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        prompt = "\n\n".join(m["content"] for m in messages if m["role"] != "system")

        config = types.GenerateContentConfig(
            max_output_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
            system_instruction=system_prompt or None,
        )
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=prompt,
            config=config,
        )
        return response.text or ""


class OpenAIChatBackend(ChatBackend):
    """OpenAI-compatible chat completions (OpenAI itself or GitHub Models)."""

    provider = "openai"

    def __init__(
        self,
        settings: Settings | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
    ):
        super().__init__(settings)
        self.client = OpenAI(
            api_key=api_key or self.settings.openai_api_key,
            base_url=base_url or self.settings.openai_base_url,
        )
        self.model = self.settings.openai_model

    async def _complete_once(self, messages: list[ChatMessage]) -> str:
        response = await asyncio.to_thread(
            self.client.chat.completions.create,
            model=self.model,
            messages=messages,
            temperature=self.settings.llm_temperature,
            max_tokens=self.settings.llm_max_tokens,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


def create_chat_backend(settings: Settings | None = None) -> ChatBackend | None:
    """Build the configured backend, or ``None`` for demo mode / missing credentials."""
    settings = settings or get_settings()
    provider = settings.ai_provider

    if provider == "gemini" and settings.gemini_api_key:
        return GeminiChatBackend(settings)
    if provider == "openai" and settings.openai_api_key:
        return OpenAIChatBackend(settings)
    if provider == "github" and settings.github_token:
        backend = OpenAIChatBackend(
            settings,
            api_key=settings.github_token,
            base_url=settings.github_models_endpoint,
        )
        backend.provider = "github"
        return backend

    if provider != "demo":
        logger.warning(f"No credentials configured for provider '{provider}', using heuristics")
    return None


def describe_backend(backend: Any) -> str:
    if backend is None:
        return "heuristic"
    return f"{getattr(backend, 'provider', 'custom')}:{getattr(backend, 'model', '')}"
