"""
Сервисы: клиент ЕГРЗ, подписки, кеш, обогащение, рассылка, планировщик
"""
