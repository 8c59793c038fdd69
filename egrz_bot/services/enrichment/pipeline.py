"""
Пайплайн обогащения: запись ЕГРЗ -> текст уведомления

(опционально) поиск сведений о застройщике -> промпт -> LLM -> проверка качества.
При любом сбое LLM возвращается резервный шаблон.
"""

import asyncio
import logging

from egrz_bot.core.config import Config
from egrz_bot.core.exceptions import (
    LLMError,
    LLMTimeoutError,
    QuotaExhausted,
    RateLimitedError,
    TransientFetchError,
)
from egrz_bot.schemas.record import RegistryRecord
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.services.enrichment.beneficiary import NOTHING_FOUND, BeneficiaryLookup
from egrz_bot.services.enrichment.llm_client import CompletionClient
from egrz_bot.services.enrichment.prompts import build_prompt, render_fallback
from egrz_bot.services.enrichment.validation import find_validation_problem
from egrz_bot.utils.retry import compute_delay


logger = logging.getLogger(__name__)


class EnrichmentPipeline:
    """
    Генерация текста уведомления для новой записи.

    Политика повторов LLM (не более max_attempts попыток):
        - RateLimitedError: пауза retry_delay * номер попытки
        - LLMTimeoutError и прочие ошибки: пауза retry_delay
        - невалидный ответ: сразу следующая попытка
        - QuotaExhausted: без повторов, сразу резервный шаблон
    """

    def __init__(
        self,
        llm: CompletionClient,
        beneficiary_lookup: BeneficiaryLookup | None = None,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
    ):
        self.llm = llm
        self.beneficiary_lookup = beneficiary_lookup
        self.max_attempts = max_attempts or Config.AI_MAX_RETRIES
        self.retry_delay = Config.AI_RETRY_DELAY if retry_delay is None else retry_delay

    @staticmethod
    def is_irrelevant(record: RegistryRecord) -> bool:
        """Застройщик "не требуется" - запись никому не отправляется"""
        return record.is_developer_not_required

    async def enrich(self, record: RegistryRecord, region: RegionLabel | str) -> str:
        """Текст уведомления (качественный или резервный)"""
        number = record.conclusion_number
        fallback = render_fallback(record, region)

        if not self.llm.is_configured:
            logger.debug(f"[AI] API ключ отсутствует, для \"{number}\" используется шаблон")
            return fallback

        beneficiary_info = None
        if self.beneficiary_lookup is not None:
            try:
                beneficiary_info = await self.beneficiary_lookup.find(record.developer_info)
            except Exception as e:
                # Сбой поиска не должен срывать обработку записи
                logger.exception(f"[SCRAPER] Ошибка поиска сведений о застройщике для \"{number}\": {e}")
                beneficiary_info = NOTHING_FOUND

        logger.info(f"[AI] Запуск обработки AI для записи \"{number}\"")
        prompt = build_prompt(record, region, beneficiary_info)
        result = await self._complete_with_retries(prompt, number)
        return result if result is not None else fallback

    async def _complete_with_retries(self, prompt: str, number: str) -> str | None:
        """Валидный ответ LLM или None, если нужен резервный шаблон"""
        for attempt in range(1, self.max_attempts + 1):
            is_last = attempt >= self.max_attempts
            wait_time = compute_delay(attempt, self.retry_delay, "fixed")

            try:
                logger.debug(f"[AI] Попытка {attempt}/{self.max_attempts} для \"{number}\"")
                text = await self.llm.complete(prompt)
            except QuotaExhausted:
                logger.error("[AI] КРИТИЧЕСКАЯ ОШИБКА: Превышена квота OpenAI API")
                return None
            except RateLimitedError:
                logger.warning(f"[AI] Rate limit превышен (попытка {attempt})")
                wait_time = compute_delay(attempt, self.retry_delay, "linear")
            except LLMTimeoutError:
                logger.warning(f"[AI] Таймаут запроса к OpenAI (попытка {attempt})")
            except (TransientFetchError, LLMError) as e:
                logger.error(f"[AI] Ошибка при обращении к OpenAI (попытка {attempt}): {e}")
            else:
                problem = find_validation_problem(text)
                if problem is None:
                    logger.info(f"[AI] Получен валидный ответ для \"{number}\" (попытка {attempt})")
                    return text
                logger.warning(f"[AI] Невалидный ответ для \"{number}\" (попытка {attempt}): {problem}")
                continue

            if not is_last:
                await asyncio.sleep(wait_time)

        logger.error(f"[AI] Все попытки для \"{number}\" исчерпаны, используется шаблон")
        return None
