"""
Inbound IPN webhook.

Flow:
1. Read the body: form-encoded (the processor's format) or JSON.
2. Hand the fields to the IPN pipeline (parse, optional verify, convert, append).
3. Answer 200 "OK" for every business outcome: malformed, unverified,
   non-Completed, conversion unavailable, recorded.
4. Answer 503 only when the durable append could not be completed, so the
   processor retries. An unreadable body counts as malformed. Any other
   failure is logged and acknowledged with 200.

Alert fan-out and forwarding run in the background after the answer.

Registration: health_server.create_health_app() calls register_ipn_route(),
which registers POST config.IPN_PATH.
"""
import logging
from typing import Any, Optional

from aiohttp import web
from aiogram import Bot

import config
from app.services.ipn import handle_ipn
from app.services.ledger.exceptions import PersistenceUnavailableError

logger = logging.getLogger(__name__)


async def read_ipn_payload(request: web.Request) -> Any:
    """
    Fields of the inbound notification.

    Returns:
        dict for a JSON body, list of (key, value) pairs for a form body
        (order and repeated keys preserved), or None if the body is unreadable
    """
    content_type = request.content_type
    try:
        if content_type == "application/json":
            return await request.json()
        form = await request.post()
    except Exception as e:
        # Broken JSON, multipart framing or form encoding
        logger.warning(
            f"IPN_BODY_INVALID [content_type={content_type}, error={type(e).__name__}: {str(e)[:100]}]"
        )
        return None
    return list(form.items())


async def ipn_handler(request: web.Request, bot: Optional[Bot]) -> web.Response:
    try:
        payload = await read_ipn_payload(request)
        await handle_ipn(payload, bot)
    except PersistenceUnavailableError as e:
        logger.error(f"IPN_STORE_UNAVAILABLE [error={str(e)[:200]}]")
        return web.Response(status=503, text="Service Unavailable")
    except Exception:
        logger.exception("IPN_PROCESSING_FAILED")

    return web.Response(status=200, text="OK")


async def register_ipn_route(app: web.Application, bot: Optional[Bot]) -> None:
    """Register the IPN listener on config.IPN_PATH"""
    async def webhook_handler(request: web.Request) -> web.Response:
        return await ipn_handler(request, bot)

    app.router.add_post(config.IPN_PATH, webhook_handler)
    logger.info(f"IPN webhook registered: POST {config.IPN_PATH}")
