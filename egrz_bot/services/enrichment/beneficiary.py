"""
Поиск сведений о застройщике в интернете (Google Custom Search + скрапинг)

Включается флагом SCRAPER_ENABLED. Любой сбой даёт фиксированную строку-заглушку,
обработка записи при этом не прерывается.
"""

import asyncio
import logging
import re

import aiohttp
from bs4 import BeautifulSoup

from egrz_bot.core.config import Config
from egrz_bot.core.constants import DEVELOPER_NOT_REQUIRED
from egrz_bot.utils.helpers import collapse_whitespace
from egrz_bot.utils.retry import async_retry


logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
PAGE_TIMEOUT_SECONDS = 5.0
MIN_PAGE_TEXT_LENGTH = 100

SEARCH_NOT_CONFIGURED = "Поиск в интернете не настроен."
COMPANY_NAME_NOT_FOUND = "Не удалось извлечь название компании."
NOTHING_FOUND = "Не удалось найти и обработать релевантные страницы."
DEVELOPER_MISSING = "В исходных данных не указан застройщик."

INN_PATTERN = re.compile(r"ИНН:?\s*(\d{10,12})")
OGRN_PATTERN = re.compile(r"ОГРНИП?:?\s*(\d{13,15})")
COMPANY_NAME_PATTERN = re.compile(r"^([^()]+)")


def extract_company_name(developer_info: str) -> str:
    """Название до первой скобки"""
    match = COMPANY_NAME_PATTERN.match(developer_info or "")
    return match.group(1).strip() if match else ""


def extract_search_query(developer_info: str) -> str | None:
    """
    Ключ поиска: ИНН, иначе ОГРН/ОГРНИП, иначе название компании

    Returns:
        Строка запроса или None для пустого ввода
    """
    if not developer_info:
        return None

    inn = INN_PATTERN.search(developer_info)
    if inn:
        return f"ИНН {inn.group(1)}"

    ogrn = OGRN_PATTERN.search(developer_info)
    if ogrn:
        return f"ОГРН {ogrn.group(1)}"

    name = extract_company_name(developer_info)
    return name or developer_info


def build_search_queries(company_name: str, identifier: str | None) -> list[str]:
    """Варианты запроса от самого точного к самому общему"""
    identifier = identifier or ""
    return [
        f'"{company_name}" {identifier} руководитель официальный сайт',
        f'"{company_name}" {identifier} реквизиты',
        f'"{company_name}" генеральный директор контакты',
    ]


def html_to_text(html: str) -> str:
    """Текст <body> без тегов, пробелы схлопнуты"""
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup
    for tag in root(["script", "style", "noscript"]):
        tag.decompose()
    return collapse_whitespace(root.get_text(" "))


class BeneficiaryLookup:
    """Поиск страницы о застройщике и извлечение её текста"""

    def __init__(
        self,
        api_key: str | None = None,
        search_engine_id: str | None = None,
        max_chars: int | None = None,
        page_timeout: float = PAGE_TIMEOUT_SECONDS,
        session: aiohttp.ClientSession | None = None,
    ):
        self.api_key = Config.GOOGLE_SEARCH_API_KEY if api_key is None else api_key
        self.search_engine_id = (
            Config.SEARCH_ENGINE_ID if search_engine_id is None else search_engine_id
        )
        self.max_chars = max_chars or Config.SCRAPER_MAX_CHARS
        self.page_timeout = page_timeout
        self._session = session
        self._owns_session = session is None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.search_engine_id)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def find(self, developer_info: str) -> str:
        """
        Текст найденной страницы о застройщике (не длиннее max_chars)

        Returns:
            Текст страницы или одна из строк-заглушек
        """
        if not developer_info or developer_info.strip().lower() == DEVELOPER_NOT_REQUIRED:
            return DEVELOPER_MISSING
        if not self.is_configured:
            return SEARCH_NOT_CONFIGURED

        company_name = extract_company_name(developer_info)
        if not company_name:
            return COMPANY_NAME_NOT_FOUND

        identifier = extract_search_query(developer_info)
        for query in build_search_queries(company_name, identifier):
            try:
                link = await self._search_first_link(query)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.warning(f"[SCRAPER] Ошибка при поиске в Google: {e}")
                continue
            if not link:
                continue

            try:
                text = await self._fetch_page_text(link)
            except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
                logger.warning(f"[SCRAPER] Ошибка при скрапинге {link}: {e}")
                continue

            if len(text) > MIN_PAGE_TEXT_LENGTH:
                logger.info(f"[SCRAPER] Найдена страница о застройщике: {link}")
                return text[: self.max_chars]

        return NOTHING_FOUND

    @async_retry(max_attempts=2, delay=1.0, retry_on=(aiohttp.ClientConnectionError,))
    async def _search_first_link(self, query: str) -> str | None:
        session = await self._get_session()
        params = {"key": self.api_key, "cx": self.search_engine_id, "q": query}
        async with session.get(SEARCH_URL, params=params) as response:
            response.raise_for_status()
            data = await response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Неожиданный ответ поиска: {type(data).__name__}")
        items = data.get("items") or []
        if not isinstance(items, list) or not items or not isinstance(items[0], dict):
            return None
        link = items[0].get("link")
        return link if isinstance(link, str) else None

    async def _fetch_page_text(self, url: str) -> str:
        session = await self._get_session()
        async with session.get(
            url,
            headers={"User-Agent": BROWSER_USER_AGENT},
            timeout=aiohttp.ClientTimeout(total=self.page_timeout),
        ) as response:
            response.raise_for_status()
            html = await response.text()
        return html_to_text(html)
