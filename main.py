import asyncio
import logging
import os
import uuid

# Configure logging FIRST (before any other imports that may log)
# Routes INFO/WARNING → stdout, ERROR/CRITICAL → stderr for correct container classification
from app.core.logging_config import setup_logging
setup_logging()

from aiogram import Bot, Dispatcher
from aiogram.exceptions import TelegramConflictError
from aiogram.types import BotCommand
import config
import database
import health_server
import redis_client
from app.core.concurrency_middleware import ConcurrencyLimiterMiddleware
from app.core.structured_logger import log_event
from app.core.telegram_error_middleware import TelegramErrorBoundaryMiddleware
from app.handlers import router as root_router
from app.i18n import DEFAULT_LANGUAGE, get_text as i18n_get_text
from app.services.ipn import drain_background_tasks
from app.services.ledger.store import LedgerStore, MemoryLedgerStore, set_ledger_store
from app.utils.retry import backoff_delay
from app.utils.security import token_fingerprint

# ====================================================================================
# LOGGING CONTRACT
# ====================================================================================
#
# Standard log fields (logical, not enforced by library):
# - component        (handler / ipn / forwarding / infra / polling / shutdown)
# - operation        (what is happening)
# - correlation_id   (update id for handlers, txn_id for webhook processing)
# - outcome          (success | degraded | failed | ...)
# - reason           (short, non-PII explanation)
#
# SECURITY:
# - DO NOT log secrets or full payloads
# - Logging configured in app.core.logging_config (STDOUT/STDERR routing)
# ====================================================================================

logger = logging.getLogger(__name__)

# Cap on the backoff exponent; the delay itself is capped by STORE_INIT_MAX_DELAY
_MAX_BACKOFF_ATTEMPT = 16

BOT_COMMANDS = ("start", "help", "menu", "balance", "transactions", "cashout", "status")


async def init_ledger_store() -> LedgerStore:
    """
    PostgreSQL store when DATABASE_URL is set, in-memory store otherwise.

    Database initialization is retried with exponential backoff until it
    succeeds; nothing else starts before the store is ready.
    """
    if not config.DATABASE_URL:
        logger.info("DATABASE_URL not set: using in-memory ledger store (state is lost on restart)")
        return MemoryLedgerStore()

    attempt = 0
    while True:
        if await database.init_db():
            store = await database.create_ledger_store()
            log_event(logger, component="infra", operation="store_init", outcome="success")
            return store

        delay = backoff_delay(min(attempt, _MAX_BACKOFF_ATTEMPT), config.STORE_INIT_BASE_DELAY, config.STORE_INIT_MAX_DELAY)
        log_event(
            logger,
            component="infra",
            operation="store_init",
            outcome="degraded",
            reason=f"attempt={attempt + 1}, retry_in={delay:.1f}s",
            level="warning",
        )
        attempt += 1
        await asyncio.sleep(delay)


async def register_bot_commands(bot: Bot) -> None:
    try:
        await bot.set_my_commands([
            BotCommand(command=command, description=i18n_get_text(DEFAULT_LANGUAGE, f"commands.{command}"))
            for command in BOT_COMMANDS
        ])
        logger.info("Bot commands registered")
    except Exception as e:
        logger.warning(f"Failed to register bot commands: {e}")


async def main():
    instance_id = os.getenv("POLLING_INSTANCE_ID", str(uuid.uuid4()))
    logger.info("BOT_INSTANCE_STARTED pid=%s instance_id=%s", os.getpid(), instance_id)
    logger.info("BOT_TOKEN_HASH=%s (sha256 prefix)", token_fingerprint(config.BOT_TOKEN))
    logger.info(f"Starting bot in {config.APP_ENV.upper()} environment")

    # Store first: the webhook must never acknowledge a notification it cannot record
    store = await init_ledger_store()
    set_ledger_store(store)

    bot = Bot(token=config.BOT_TOKEN)
    dp = Dispatcher(storage=await redis_client.create_fsm_storage())

    update_semaphore = asyncio.Semaphore(config.MAX_CONCURRENT_UPDATES)
    logger.info("CONCURRENCY_LIMIT=%s", config.MAX_CONCURRENT_UPDATES)

    # Register middlewares (order: 1 ConcurrencyLimiter, 2 TelegramErrorBoundary, 3 Routers)
    dp.update.middleware(ConcurrencyLimiterMiddleware(update_semaphore))
    dp.update.middleware(TelegramErrorBoundaryMiddleware())

    dp.include_router(root_router)

    background_tasks = []

    http_task = asyncio.create_task(
        health_server.health_server_task(host=config.HTTP_HOST, port=config.HTTP_PORT, bot=bot),
        name="http-server",
    )
    background_tasks.append(http_task)
    logger.info(f"HTTP server task started (port={config.HTTP_PORT}, ipn_path={config.IPN_PATH})")

    await register_bot_commands(bot)

    try:
        used_updates = dp.resolve_used_update_types()
        logger.info(f"DISPATCHER_READY updates={used_updates}")

        while True:
            try:
                await bot.delete_webhook(drop_pending_updates=False)
                log_event(
                    logger,
                    component="polling",
                    operation="polling_start",
                    outcome="success",
                    correlation_id=instance_id,
                )
                await dp.start_polling(
                    bot,
                    allowed_updates=used_updates,
                    polling_timeout=30,
                    handle_signals=False,
                )
                break
            except asyncio.CancelledError:
                log_event(logger, component="polling", operation="polling_cancelled", outcome="cancelled")
                break
            except TelegramConflictError:
                log_event(
                    logger,
                    component="polling",
                    operation="conflict",
                    outcome="failed",
                    reason="another bot instance is running",
                    level="critical",
                )
                raise SystemExit(1)
            except Exception as e:
                log_event(
                    logger,
                    component="polling",
                    operation="polling_crash",
                    outcome="failed",
                    reason=f"{type(e).__name__}: {str(e)[:200]}",
                    level="error",
                )
                logger.info("Restarting polling in 5 seconds...")
                await asyncio.sleep(5)
    finally:
        log_event(logger, component="shutdown", operation="shutdown_start", outcome="success")

        for task in background_tasks:
            if not task.done():
                task.cancel()
        for task in background_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Error during shutdown of task {task.get_name()}: {e}")

        # In-flight payment alerts and forwards
        await drain_background_tasks()

        try:
            await store.close()
        except Exception as e:
            logger.error(f"Error closing ledger store: {e}")

        await redis_client.close_redis_client()

        try:
            await bot.session.close()
            logger.info("Bot session closed")
        except Exception as e:
            logger.debug(f"Error closing bot session: {e}")

        log_event(logger, component="shutdown", operation="shutdown_completed", outcome="success")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Бот остановлен")
