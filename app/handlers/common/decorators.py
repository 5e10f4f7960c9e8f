"""
Handler decorators: entry/exit logging and failure classification.
Shared across all handler domains.
"""
import functools
import logging
import time

from app.utils.logging_helpers import log_handler_entry, log_handler_exit, classify_error

logger = logging.getLogger(__name__)


def _event_identity(event):
    """(correlation_id, telegram_id) for a Message or CallbackQuery"""
    correlation_id = None
    telegram_id = None

    if hasattr(event, 'message_id'):
        correlation_id = str(event.message_id)
    elif getattr(event, 'id', None) is not None:
        correlation_id = str(event.id)

    from_user = getattr(event, 'from_user', None)
    if from_user is not None:
        telegram_id = from_user.id
    return correlation_id, telegram_id


def handler_exception_boundary(handler_name: str, operation: str = None):
    """
    Decorator for handler entry/exit logging.

    Failures are classified and logged, then re-raised so that
    TelegramErrorBoundaryMiddleware sends the single user-facing reply.

    Args:
        handler_name: Name of the handler function
        operation: Operation name (defaults to handler_name)

    Usage:
        @router.message(Command("cashout"))
        @handler_exception_boundary("cmd_cashout", "cashout_open")
        async def cmd_cashout(message: Message, state: FSMContext):
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(event, *args, **kwargs):
            correlation_id, telegram_id = _event_identity(event)
            start_time = time.time()
            op_name = operation or handler_name

            log_handler_entry(
                handler_name=handler_name,
                telegram_id=telegram_id,
                operation=op_name,
                correlation_id=correlation_id,
            )

            try:
                result = await func(event, *args, **kwargs)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                error_type = classify_error(e)
                logger.error(
                    f"[FAILURE_BOUNDARY] Handler exception: handler={handler_name}, "
                    f"operation={op_name}, correlation_id={correlation_id}, "
                    f"error_type={error_type}, error={type(e).__name__}: {str(e)[:200]}"
                )
                log_handler_exit(
                    handler_name=handler_name,
                    outcome="failed",
                    telegram_id=telegram_id,
                    operation=op_name,
                    error_type=error_type,
                    duration_ms=duration_ms,
                    reason=f"Exception: {type(e).__name__}"
                )
                raise

            log_handler_exit(
                handler_name=handler_name,
                outcome="success",
                telegram_id=telegram_id,
                operation=op_name,
                duration_ms=(time.time() - start_time) * 1000,
            )
            return result

        return wrapper
    return decorator
