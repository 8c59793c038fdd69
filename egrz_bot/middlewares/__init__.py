"""Middlewares package"""

from egrz_bot.middlewares.access_check import AccessCheckMiddleware
from egrz_bot.middlewares.dependency_injection import DependencyInjectionMiddleware
from egrz_bot.middlewares.error_handler import global_error_handler
from egrz_bot.middlewares.logging import LoggingMiddleware


__all__ = [
    "AccessCheckMiddleware",
    "DependencyInjectionMiddleware",
    "LoggingMiddleware",
    "global_error_handler",
]
