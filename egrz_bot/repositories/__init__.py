"""
Repositories для работы с базой данных
"""

from egrz_bot.repositories.delivery_repository import DeliveryRepository
from egrz_bot.repositories.lead_cache_repository import LeadCacheRepository
from egrz_bot.repositories.subscription_repository import SubscriptionRepository
from egrz_bot.repositories.user_repository import UserRepository


__all__ = [
    "DeliveryRepository",
    "LeadCacheRepository",
    "SubscriptionRepository",
    "UserRepository",
]
