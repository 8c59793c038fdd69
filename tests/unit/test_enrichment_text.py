"""
Тесты текстовой части обогащения: проверка качества, промпт, шаблон, ключ поиска
"""
import pytest

from conftest import make_record, quality_text
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.services.enrichment.beneficiary import (
    build_search_queries,
    extract_company_name,
    extract_search_query,
    html_to_text,
)
from egrz_bot.services.enrichment.prompts import build_prompt, region_name, render_fallback
from egrz_bot.services.enrichment.validation import (
    find_validation_problem,
    is_quality_notification,
)


SPB = RegionLabel(name="Санкт-Петербург", code="78")


class TestValidation:
    """Тесты проверки качества уведомления"""

    def test_quality_text_passes(self):
        assert is_quality_notification(quality_text("78-1-1-3-000001-2025"))

    @pytest.mark.parametrize("text", [None, "", "Короткий ответ"])
    def test_too_short(self, text):
        assert find_validation_problem(text) == "ответ слишком короткий"

    def test_longer_than_telegram_limit(self):
        """Слишком длинный ответ не отправить одним сообщением, он не кешируется"""
        text = quality_text("1") + "\n" + "Подробности проекта. " * 250
        assert len(text) > 4096
        assert find_validation_problem(text) == "ответ длиннее лимита сообщения Telegram"

    def test_missing_section(self):
        text = quality_text("1").replace("🏭", "")
        assert "🏭" in find_validation_problem(text)

    @pytest.mark.parametrize("phrase", ["Извините", "Я не могу", "ОШИБКА"])
    def test_refusal_phrase(self, phrase):
        """Фразы отказа проверяются без учёта регистра"""
        text = f"{phrase}, но вот отчёт.\n{quality_text('1')}"
        assert not is_quality_notification(text)

    def test_fallback_is_not_quality(self):
        """Резервный шаблон не проходит проверку и поэтому не кешируется"""
        assert not is_quality_notification(render_fallback(make_record(), SPB))


class TestPrompts:
    """Тесты промпта и резервного шаблона"""

    def test_region_name(self):
        assert region_name(SPB) == "Санкт-Петербург"
        assert region_name("Санкт-Петербург - 78") == "Санкт-Петербург"

    def test_fallback(self):
        record = make_record()
        text = render_fallback(record, SPB)

        assert text.startswith("Новый лид за 01.07.2025 (регион: Санкт-Петербург - 78)")
        assert f"Номер заключения: {record.conclusion_number}" in text
        assert f"Застройщик: {record.developer_info}" in text

    def test_prompt_contains_record_fields(self):
        record = make_record()
        prompt = build_prompt(record, SPB)

        assert "(регион: Санкт-Петербург)" in prompt
        assert f"Номер заключения экспертизы: {record.conclusion_number}" in prompt
        assert record.developer_info in prompt
        assert record.object_info in prompt
        assert "открытых источников" not in prompt

    def test_prompt_with_beneficiary_info(self):
        prompt = build_prompt(make_record(), SPB, "Генеральный директор: Петров П.П.")
        assert "Генеральный директор: Петров П.П." in prompt


class TestSearchQuery:
    """Тесты выбора ключа поиска застройщика"""

    @pytest.mark.parametrize(
        ("developer_info", "expected"),
        [
            ('ООО "Ромашка" (ИНН: 7801234567, ОГРН: 1027800000000)', "ИНН 7801234567"),
            ("ООО Ромашка (ИНН 780123456789)", "ИНН 780123456789"),
            ("ИП Иванов И.И. (ОГРНИП: 321098765432101)", "ОГРН 321098765432101"),
            ("АО Стройка (Москва)", "АО Стройка"),
            ("", None),
        ],
    )
    def test_extract_search_query(self, developer_info, expected):
        assert extract_search_query(developer_info) == expected

    def test_extract_company_name(self):
        assert extract_company_name('ООО "Ромашка" (ИНН: 7801234567)') == 'ООО "Ромашка"'

    def test_build_search_queries(self):
        queries = build_search_queries('ООО "Ромашка"', "ИНН 7801234567")
        assert len(queries) == 3
        assert queries[0].startswith('"ООО "Ромашка"" ИНН 7801234567')

    def test_html_to_text(self):
        html = (
            "<html><head><title>t</title></head><body><script>var x = 1;</script>"
            "<style>p {}</style><p>Генеральный   директор</p>\n<p>Петров</p></body></html>"
        )
        assert html_to_text(html) == "Генеральный директор Петров"
