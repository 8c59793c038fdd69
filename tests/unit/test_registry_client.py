"""
Тесты клиента ЕГРЗ: фильтр, декодирование и разбор выгрузки, повторы
"""
import ssl
from datetime import date
from unittest.mock import AsyncMock

import pytest

from conftest import CSV_HEADER
from egrz_bot.core.exceptions import ParseError, TransientFetchError
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.services.registry_client import (
    RegistryClient,
    build_filter,
    create_legacy_ssl_context,
    decode_payload,
    parse_registry_csv,
)


BANNER = "Дата и время генерации файла: 01.07.2025 10:00:00"
ROW_1 = (
    '78-1-1-3-000001-2025;01.07.2025;Положительное;ООО "Проект" (ИНН: 7807654321);'
    'ООО "Застройщик" (ИНН: 7801234567);Жилой дом;Санкт-Петербург'
)
ROW_2 = "78-1-1-3-000002-2025;01.07.2025;Положительное;ИП Иванов;Не требуется;Склад;Санкт-Петербург"


def make_csv(*rows: str, banner: bool = True) -> str:
    lines = [BANNER] if banner else []
    lines.append(CSV_HEADER)
    lines.extend(rows)
    return "\n".join(lines)


class TestBuildFilter:
    """Тесты OData-фильтра"""

    def test_region_name_without_code(self):
        """В фильтр попадает только название региона"""
        region = RegionLabel(name="Санкт-Петербург", code="78")
        result = build_filter(region, date(2025, 7, 1))

        assert "tolower('Санкт-Петербург')" in result
        assert " - 78" not in result
        assert "ge 2025-07-01" in result
        assert "le 2025-07-01T23:59:59.999Z" in result

    def test_quotes_are_doubled(self):
        result = build_filter("Кот д'Ивуар", date(2025, 7, 1))
        assert "tolower('Кот д''Ивуар')" in result

    def test_build_params(self):
        client = RegistryClient(base_url="https://example.test", page_size=50)
        params = client.build_params(RegionLabel(name="Москва", code="77"), date(2025, 7, 1))
        assert params["$top"] == "50"
        assert "Москва" in params["$filter"]


class TestDecodePayload:
    """Тесты декодирования"""

    def test_utf8_with_bom(self):
        body = "\ufeffНомер;Дата".encode("utf-8")
        assert decode_payload(body) == "Номер;Дата"

    def test_cp1251_fallback(self):
        body = "Номер заключения экспертизы".encode("cp1251")
        assert decode_payload(body) == "Номер заключения экспертизы"


class TestParseRegistryCsv:
    """Тесты разбора CSV"""

    def test_banner_is_skipped(self):
        records = parse_registry_csv(make_csv(ROW_1, ROW_2))

        assert [r.conclusion_number for r in records] == [
            "78-1-1-3-000001-2025",
            "78-1-1-3-000002-2025",
        ]
        assert records[0].developer_info == 'ООО "Застройщик" (ИНН: 7801234567)'
        assert records[1].is_developer_not_required

    def test_empty_payload(self):
        assert parse_registry_csv("") == []
        assert parse_registry_csv(BANNER) == []

    def test_header_only(self):
        assert parse_registry_csv(make_csv()) == []

    def test_rows_with_wrong_field_count_are_dropped(self):
        short_row = "78-1-1-3-000003-2025;01.07.2025"
        long_row = ROW_1 + ";лишнее"
        records = parse_registry_csv(make_csv(ROW_1, short_row, long_row))

        assert len(records) == 1
        assert records[0].conclusion_number == "78-1-1-3-000001-2025"

    def test_row_without_number_is_dropped(self):
        row = ";01.07.2025;Положительное;ИП Иванов;ООО Ромашка;Склад;Санкт-Петербург"
        records = parse_registry_csv(make_csv(row, ROW_1, banner=False))
        assert [r.conclusion_number for r in records] == ["78-1-1-3-000001-2025"]

    def test_missing_number_column(self):
        with pytest.raises(ParseError):
            parse_registry_csv("Дата;Застройщик\n01.07.2025;ООО Ромашка")


class TestRegistryClientFetch:
    """Тесты запроса с повторами (HTTP подменён)"""

    @pytest.mark.asyncio
    async def test_retry_then_success(self):
        client = RegistryClient(base_url="https://example.test", max_attempts=3, retry_delay=0)
        body = make_csv(ROW_1).encode("cp1251")
        client._download = AsyncMock(
            side_effect=[TransientFetchError("HTTP 502"), TransientFetchError("timeout"), body]
        )

        records = await client.fetch(RegionLabel(name="Санкт-Петербург", code="78"), date(2025, 7, 1))

        assert len(records) == 1
        assert client._download.await_count == 3

    @pytest.mark.asyncio
    async def test_attempts_exhausted(self):
        client = RegistryClient(base_url="https://example.test", max_attempts=3, retry_delay=0)
        client._download = AsyncMock(side_effect=TransientFetchError("connection reset"))

        with pytest.raises(TransientFetchError):
            await client.fetch("Санкт-Петербург", date(2025, 7, 1))
        assert client._download.await_count == 3

    @pytest.mark.asyncio
    async def test_parse_error_is_not_retried(self):
        client = RegistryClient(base_url="https://example.test", max_attempts=3, retry_delay=0)
        client._download = AsyncMock(return_value="Дата;Застройщик\n01.07.2025;X".encode("utf-8"))

        with pytest.raises(ParseError):
            await client.fetch("Санкт-Петербург", date(2025, 7, 1))
        assert client._download.await_count == 1

    def test_legacy_ssl_context(self):
        context = create_legacy_ssl_context()
        assert isinstance(context, ssl.SSLContext)
        assert context.options & getattr(ssl, "OP_LEGACY_SERVER_CONNECT", 0x4)
