"""
Health-check сервер (aiohttp.web)

GET /        - текстовый ответ "Сервер работает"
GET /health  - JSON с состоянием планировщика и статистикой последнего прогона
"""

import logging

from aiohttp import web

from egrz_bot.services.scheduler import TaskScheduler
from egrz_bot.utils.helpers import get_now


logger = logging.getLogger(__name__)

SCHEDULER_KEY = web.AppKey("scheduler", TaskScheduler)
STARTED_AT_KEY = web.AppKey("started_at", str)


async def handle_root(request: web.Request) -> web.Response:
    return web.Response(text="Сервер работает")


async def handle_health(request: web.Request) -> web.Response:
    scheduler = request.app[SCHEDULER_KEY]
    return web.json_response(
        {
            "status": "healthy",
            "started_at": request.app[STARTED_AT_KEY],
            "scheduler": scheduler.status(),
        }
    )


def create_health_app(scheduler: TaskScheduler) -> web.Application:
    app = web.Application()
    app[SCHEDULER_KEY] = scheduler
    app[STARTED_AT_KEY] = get_now().isoformat()
    app.router.add_get("/", handle_root)
    app.router.add_get("/health", handle_health)
    return app


class HealthServer:
    """Фоновый HTTP-сервер рядом с polling"""

    def __init__(self, scheduler: TaskScheduler, port: int, host: str = "0.0.0.0"):
        self.app = create_health_app(scheduler)
        self.host = host
        self.port = port
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(f"Health-check сервер запущен на порту {self.port}")

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.info("Health-check сервер остановлен")
