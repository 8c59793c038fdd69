"""Pydantic схема записи реестра ЕГРЗ"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from egrz_bot.core.constants import DEVELOPER_NOT_REQUIRED, RecordField


class RegistryRecord(BaseModel):
    """
    Одна строка выгрузки ЕГРЗ за день по региону

    Поля объявлены с алиасами - оригинальными заголовками CSV.
    Не сохраняется в БД, живёт только в рамках одного прогона.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    conclusion_number: str = Field(
        ...,
        min_length=1,
        alias=RecordField.CONCLUSION_NUMBER,
        description="Номер заключения экспертизы (естественный ключ)",
    )
    conclusion_date: str = Field(default="", alias=RecordField.CONCLUSION_DATE)
    expertise_result: str = Field(default="", alias=RecordField.EXPERTISE_RESULT)
    preparer_info: str = Field(default="", alias=RecordField.PREPARER_INFO)
    developer_info: str = Field(default="", alias=RecordField.DEVELOPER_INFO)
    object_info: str = Field(default="", alias=RecordField.OBJECT_INFO)
    subject_rf: str = Field(default="", alias=RecordField.SUBJECT_RF)

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, v: Any) -> Any:
        """Обрезка пробелов, None -> пустая строка"""
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def is_developer_not_required(self) -> bool:
        """Застройщик "Не требуется" - запись нерелевантна"""
        return self.developer_info.strip().lower() == DEVELOPER_NOT_REQUIRED

    @property
    def parsed_conclusion_date(self) -> date | None:
        """Дата заключения (DD.MM.YYYY), если её удалось разобрать"""
        value = self.conclusion_date.split(" ", 1)[0]
        for fmt in ("%d.%m.%Y", "%Y-%m-%d"):
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        return None
