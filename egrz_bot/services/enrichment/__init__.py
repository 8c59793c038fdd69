"""
Обогащение записей ЕГРЗ: поиск сведений о застройщике и генерация текста через LLM
"""

from egrz_bot.services.enrichment.beneficiary import BeneficiaryLookup, extract_search_query
from egrz_bot.services.enrichment.llm_client import CompletionClient, OpenAICompletionClient
from egrz_bot.services.enrichment.pipeline import EnrichmentPipeline
from egrz_bot.services.enrichment.prompts import build_prompt, render_fallback
from egrz_bot.services.enrichment.validation import is_quality_notification


__all__ = [
    "BeneficiaryLookup",
    "CompletionClient",
    "EnrichmentPipeline",
    "OpenAICompletionClient",
    "build_prompt",
    "extract_search_query",
    "is_quality_notification",
    "render_fallback",
]
