"""Pydantic схемы подписок пользователей на регионы"""

import json

from pydantic import BaseModel, ConfigDict, Field, field_validator

from egrz_bot.core.regions import REGIONS


REGION_SEPARATOR = " - "


class RegionLabel(BaseModel):
    """
    Регион подписки: название и код субъекта РФ

    Сериализуется как "Название - Код" (например, "Санкт-Петербург - 78").
    Неизменяемый и хешируемый - используется как ключ карты регион -> подписчики.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Название субъекта РФ")
    code: str = Field(..., min_length=1, max_length=3, description="Код субъекта РФ")

    @field_validator("name", "code")
    @classmethod
    def strip_value(cls, v: str) -> str:
        """Обрезка пробелов"""
        v = v.strip()
        if not v:
            raise ValueError("Название и код региона не могут быть пустыми")
        return v

    @classmethod
    def parse(cls, value: str) -> "RegionLabel":
        """
        Разбор строки "Название - Код"

        Название может само содержать " - " (Северная Осетия - Алания),
        поэтому код берётся после последнего разделителя.

        Raises:
            ValueError: Если строка не в формате "Название - Код"
        """
        if not isinstance(value, str) or REGION_SEPARATOR not in value:
            raise ValueError(f"Некорректный регион: {value!r}")
        name, code = value.rsplit(REGION_SEPARATOR, 1)
        return cls(name=name, code=code)

    @classmethod
    def from_code(cls, code: str) -> "RegionLabel":
        """Регион по коду из справочника"""
        return cls(name=REGIONS[code], code=code)

    @property
    def label(self) -> str:
        return f"{self.name}{REGION_SEPARATOR}{self.code}"

    def __str__(self) -> str:
        return self.label


class UserConfig(BaseModel):
    """
    Конфигурация подписок пользователя

    Хранится в таблице configurations как JSON: {"regions": ["Санкт-Петербург - 78", ...]}
    """

    regions: list[RegionLabel] = Field(default_factory=list)

    @field_validator("regions", mode="before")
    @classmethod
    def parse_regions(cls, v):
        """Регионы приходят строками "Название - Код" """
        if not isinstance(v, list):
            raise ValueError("regions должен быть списком")
        return [RegionLabel.parse(item) if isinstance(item, str) else item for item in v]

    @classmethod
    def from_json(cls, raw: str | None) -> "UserConfig":
        """
        Разбор JSON-конфигурации

        Raises:
            pydantic.ValidationError: Если JSON повреждён или не соответствует схеме
        """
        if not raw:
            return cls()
        return cls.model_validate_json(raw)

    def to_json(self) -> str:
        return json.dumps({"regions": [r.label for r in self.regions]}, ensure_ascii=False)

    def has_region(self, region: RegionLabel) -> bool:
        return region in self.regions
