"""
ЕГРЗ Lead Bot - Telegram-бот уведомлений о новых заключениях экспертизы из реестра ЕГРЗ
"""

__version__ = "1.0.0"
