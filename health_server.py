"""
HTTP Server: health checks and the inbound IPN webhook

/health does NOT touch the store - it only reads the readiness flag, so it
always responds.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from aiohttp import web
from aiogram import Bot

import redis_client
from app.api.ipn_webhook import register_ipn_route
from app.services.ledger.store import is_store_ready

logger = logging.getLogger(__name__)

SERVICE_NAME = "ipn-relay-bot"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint handler

    Response format:
        {
            "status": "ok" | "degraded",
            "store_ready": true | false,
            "redis_ready": true | false,
            "timestamp": "2024-01-01T12:00:00Z"
        }

    HTTP 200 for both statuses; monitoring distinguishes by "status".
    """
    store_ready = is_store_ready()
    response_data: Dict[str, Any] = {
        "status": "ok" if store_ready else "degraded",
        "store_ready": store_ready,
        "redis_ready": redis_client.REDIS_READY,
        "timestamp": _utc_timestamp(),
    }
    return web.json_response(response_data, status=200)


async def root_handler(request: web.Request) -> web.Response:
    return web.json_response({"service": SERVICE_NAME, "health": "/health"})


async def create_health_app(bot: Optional[Bot] = None) -> web.Application:
    """Создать aiohttp приложение с health endpoint и IPN webhook"""
    app = web.Application()

    app.router.add_get("/health", health_handler)
    app.router.add_get("/", root_handler)

    await register_ipn_route(app, bot)
    return app


async def start_health_server(host: str = "0.0.0.0", port: int = 3000, bot: Optional[Bot] = None) -> web.AppRunner:
    """
    Запустить HTTP сервер

    Returns:
        AppRunner для управления сервером
    """
    app = await create_health_app(bot)
    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"HTTP server started on http://{host}:{port} (health: /health)")
    return runner


async def health_server_task(host: str = "0.0.0.0", port: int = 3000, bot: Optional[Bot] = None):
    """
    Фоновая задача HTTP сервера. Runs until cancelled, then cleans up.
    """
    runner = await start_health_server(host, port, bot)
    try:
        # Сервер работает в фоне; задача отменяется при остановке бота
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        logger.info("HTTP server task cancelled")
        raise
    finally:
        await runner.cleanup()
        logger.info("HTTP server stopped")
