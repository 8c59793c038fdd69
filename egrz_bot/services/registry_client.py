"""
Клиент открытых данных ЕГРЗ (реестр заключений экспертизы)

Получает CSV-выгрузку за календарный день по региону и разбирает её в RegistryRecord.
"""

import asyncio
import csv
import io
import logging
import ssl
from datetime import date

import aiohttp
from pydantic import ValidationError

from egrz_bot.core.config import Config
from egrz_bot.core.constants import REGISTRY_BANNER_MARKER, REGISTRY_DELIMITER, RecordField
from egrz_bot.core.exceptions import ParseError, TransientFetchError
from egrz_bot.schemas.record import RegistryRecord
from egrz_bot.schemas.subscription import RegionLabel
from egrz_bot.utils.retry import call_with_retry


logger = logging.getLogger(__name__)

# SSL_OP_LEGACY_SERVER_CONNECT: сервер ЕГРЗ не поддерживает безопасное
# пересогласование TLS, без флага OpenSSL 3 обрывает рукопожатие
LEGACY_SERVER_CONNECT = getattr(ssl, "OP_LEGACY_SERVER_CONNECT", 0x4)


def create_legacy_ssl_context() -> ssl.SSLContext:
    """SSL контекст с разрешённым legacy renegotiation для open-api.egrz.ru"""
    context = ssl.create_default_context()
    context.options |= LEGACY_SERVER_CONNECT
    return context


def build_filter(region: RegionLabel | str, day: date) -> str:
    """
    OData-фильтр выгрузки: регион (подстрока без учёта регистра) и день целиком

    В поле SubjectRf хранится только название субъекта, поэтому для RegionLabel
    в фильтр идёт name без кода. Одинарные кавычки удваиваются по правилам OData.
    """
    region_name = region.name if isinstance(region, RegionLabel) else region
    region_value = region_name.replace("'", "''")
    iso_day = day.isoformat()
    return (
        f"(date(ExpertiseConclusionDate) ge {iso_day}Z"
        f" and date(ExpertiseConclusionDate) le {iso_day}T23:59:59.999Z"
        f" and contains(tolower(SubjectRf),tolower('{region_value}')))"
    )


def decode_payload(body: bytes) -> str:
    """
    Декодирование выгрузки: UTF-8 (с BOM или без), иначе cp1251

    Raises:
        ParseError: Если ни одна кодировка не подошла
    """
    for encoding in ("utf-8-sig", "cp1251"):
        try:
            return body.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise ParseError("Не удалось декодировать выгрузку ЕГРЗ")


def clean_csv_lines(text: str) -> list[str]:
    """Удаление служебного баннера, пустых строк и строк без разделителя"""
    return [
        line
        for line in text.splitlines()
        if line.strip() and REGISTRY_BANNER_MARKER not in line and REGISTRY_DELIMITER in line
    ]


def parse_registry_csv(text: str) -> list[RegistryRecord]:
    """
    Разбор CSV-выгрузки ЕГРЗ

    Колонки берутся из заголовка. Строки с неверным числом полей или без
    номера заключения отбрасываются (в лог), это не ошибка всего разбора.

    Raises:
        ParseError: Нет заголовка с номером заключения или CSV повреждён
    """
    lines = clean_csv_lines(text)
    if not lines:
        return []

    reader = csv.DictReader(io.StringIO("\n".join(lines)), delimiter=REGISTRY_DELIMITER)
    try:
        fieldnames = reader.fieldnames or []
        reader.fieldnames = [name.strip().lstrip("﻿") for name in fieldnames]
        if RecordField.CONCLUSION_NUMBER not in reader.fieldnames:
            raise ParseError(
                f"В заголовке выгрузки нет колонки '{RecordField.CONCLUSION_NUMBER}'"
            )

        records: list[RegistryRecord] = []
        dropped = 0
        for row in reader:
            # Лишние поля попадают под ключ None, недостающие - значением None
            if None in row or any(value is None for value in row.values()):
                dropped += 1
                continue
            try:
                records.append(RegistryRecord.model_validate(row))
            except ValidationError:
                dropped += 1
    except csv.Error as e:
        raise ParseError(f"Повреждённый CSV: {e}") from e

    if dropped:
        logger.warning(f"[EGRZ] Отброшено некорректных строк: {dropped}")
    return records


class RegistryClient:
    """
    Клиент API ЕГРЗ.

    Сетевые ошибки (обрыв соединения, таймаут, 5xx) повторяются
    EGRZ_MAX_ATTEMPTS раз с фиксированной паузой EGRZ_RETRY_DELAY,
    после чего наружу выходит TransientFetchError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        page_size: int | None = None,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
        timeout: float | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.base_url = base_url or Config.EGRZ_API_URL
        self.page_size = page_size or Config.EGRZ_PAGE_SIZE
        self.max_attempts = max_attempts or Config.EGRZ_MAX_ATTEMPTS
        self.retry_delay = Config.EGRZ_RETRY_DELAY if retry_delay is None else retry_delay
        self.timeout = timeout or Config.EGRZ_REQUEST_TIMEOUT
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=create_legacy_ssl_context())
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Закрытие HTTP-сессии (если она создана клиентом)"""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "RegistryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def build_params(self, region: RegionLabel | str, day: date) -> dict[str, str]:
        return {"$filter": build_filter(region, day), "$top": str(self.page_size)}

    async def _download(self, params: dict[str, str]) -> bytes:
        """
        Один HTTP-запрос к API

        Raises:
            TransientFetchError: Сетевая ошибка, таймаут или неуспешный HTTP статус
        """
        session = await self._get_session()
        try:
            async with session.get(self.base_url, params=params) as response:
                if response.status != 200:
                    raise TransientFetchError(f"ЕГРЗ ответил HTTP {response.status}")
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientFetchError(f"{type(e).__name__}: {e}") from e

    async def fetch(self, region: RegionLabel | str, day: date) -> list[RegistryRecord]:
        """
        Записи реестра по региону за день

        Raises:
            TransientFetchError: Попытки исчерпаны
            ParseError: Выгрузка не разбирается
        """
        params = self.build_params(region, day)
        logger.debug(f"[EGRZ] Запрос по региону \"{region}\" за {day.isoformat()}")

        body = await call_with_retry(
            self._download,
            params,
            max_attempts=self.max_attempts,
            delay=self.retry_delay,
            backoff="fixed",
            retry_on=(TransientFetchError,),
            operation=f"egrz_fetch[{region}]",
        )

        records = parse_registry_csv(decode_payload(body))
        logger.info(f"[EGRZ] Регион \"{region}\", найдено строк: {len(records)}")
        return records
