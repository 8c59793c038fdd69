"""
Клиент OpenAI Chat Completions

Ошибки SDK переводятся в доменные: RateLimitedError, QuotaExhausted,
LLMTimeoutError, TransientFetchError, LLMError. Повторы делает пайплайн,
поэтому встроенные ретраи SDK отключены (max_retries=0).
"""

import asyncio
import logging
from typing import Protocol

import openai
from openai import AsyncOpenAI

from egrz_bot.core.config import Config
from egrz_bot.core.exceptions import (
    LLMError,
    LLMTimeoutError,
    QuotaExhausted,
    RateLimitedError,
    TransientFetchError,
)


logger = logging.getLogger(__name__)

INSUFFICIENT_QUOTA = "insufficient_quota"


class CompletionClient(Protocol):
    """Минимальный интерфейс LLM для пайплайна обогащения"""

    @property
    def is_configured(self) -> bool: ...

    async def complete(self, prompt: str) -> str: ...


def translate_openai_error(error: Exception) -> Exception:
    """Исключение SDK -> доменное исключение"""
    if isinstance(error, openai.RateLimitError):
        if getattr(error, "code", None) == INSUFFICIENT_QUOTA:
            return QuotaExhausted(str(error))
        return RateLimitedError(str(error))
    if isinstance(error, (openai.APITimeoutError, asyncio.TimeoutError)):
        return LLMTimeoutError(str(error) or "OpenAI request timeout")
    if isinstance(error, openai.APIConnectionError):
        return TransientFetchError(str(error))
    if isinstance(error, openai.APIStatusError) and error.status_code >= 500:
        return TransientFetchError(str(error))
    return LLMError(str(error))


class OpenAICompletionClient:
    """Один запрос - один ответ, системный промпт"""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.api_key = Config.OPENAI_API_KEY if api_key is None else api_key
        self.model = model or Config.OPENAI_MODEL
        self.temperature = Config.AI_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or Config.AI_MAX_TOKENS
        self.timeout = timeout or Config.AI_REQUEST_TIMEOUT
        self._client = client
        if self._client is None and self.api_key:
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def complete(self, prompt: str) -> str:
        """
        Текст ответа модели (пустая строка, если ответа нет)

        Raises:
            RateLimitedError, LLMTimeoutError, TransientFetchError: Можно повторить
            QuotaExhausted: Квота исчерпана
            LLMError: Прочие ошибки API
        """
        if self._client is None:
            raise LLMError("OPENAI_API_KEY не задан")

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "system", "content": prompt}],
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout,
            )
        except (openai.APIError, asyncio.TimeoutError) as e:
            raise translate_openai_error(e) from e

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return (content or "").strip()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
