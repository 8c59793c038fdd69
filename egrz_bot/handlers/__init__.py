"""
Handlers package
"""

from egrz_bot.handlers.admin import router as admin_router
from egrz_bot.handlers.common import router as common_router
from egrz_bot.handlers.regions import router as regions_router


# Список всех роутеров
# ВАЖНО: common_router первым - /start и /cancel должны срабатывать в любом состоянии FSM,
# admin_router перед regions_router, чтобы кнопки администратора не попадали в ввод кода региона
routers = [
    common_router,
    admin_router,
    regions_router,
]

__all__ = ["routers"]
