import os
import sys
from decimal import Decimal, InvalidOperation

# ====================================================================================
# ENVIRONMENT CONFIGURATION: Изоляция PROD / STAGE / LOCAL через префиксы
# ====================================================================================
# ВАЖНО: Все переменные окружения должны использовать префикс окружения:
#   - PROD: PROD_BOT_TOKEN, PROD_DATABASE_URL, PROD_ADMIN_TELEGRAM_ID
#   - STAGE: STAGE_BOT_TOKEN, STAGE_DATABASE_URL, STAGE_ADMIN_TELEGRAM_ID
#   - LOCAL: LOCAL_BOT_TOKEN, LOCAL_DATABASE_URL, LOCAL_ADMIN_TELEGRAM_ID
# ====================================================================================

APP_ENV = os.getenv("APP_ENV", "prod").lower()
if APP_ENV not in ("prod", "stage", "local"):
    print(f"ERROR: Invalid APP_ENV={APP_ENV}. Must be one of: prod, stage, local", file=sys.stderr)
    sys.exit(1)

IS_PROD = APP_ENV == "prod"


def env(key: str, default: str = "") -> str:
    """
    Получить переменную окружения с префиксом окружения

    Example:
        env("BOT_TOKEN") -> "STAGE_BOT_TOKEN" (если APP_ENV=stage)
        env("FORWARD_TIMEOUT", default="10") -> "10" если не задано
    """
    env_key = f"{APP_ENV.upper()}_{key}"
    return os.getenv(env_key, default)


def _env_bool(key: str, default: str = "false") -> bool:
    return env(key, default=default).strip().lower() in ("1", "true", "yes", "on")


def _env_float(key: str, default: str) -> float:
    raw = env(key, default=default)
    try:
        return float(raw)
    except ValueError:
        print(f"ERROR: {APP_ENV.upper()}_{key} must be a number, got: {raw}", file=sys.stderr)
        sys.exit(1)


# Защита от прямого использования переменных без префикса
_direct_usage_vars = ["BOT_TOKEN", "DATABASE_URL", "ADMIN_TELEGRAM_ID"]
for var in _direct_usage_vars:
    if os.getenv(var):
        print(f"ERROR: Direct usage of {var} is FORBIDDEN!", file=sys.stderr)
        print(f"ERROR: Use {APP_ENV.upper()}_{var} instead (via env('{var}'))", file=sys.stderr)
        sys.exit(1)

print(f"INFO: Config loaded for environment: {APP_ENV.upper()}", flush=True)

# ====================================================================================
# SECRETS
# ====================================================================================
# Secrets are validated at startup and never logged.
# Required: BOT_TOKEN, ADMIN_TELEGRAM_ID. DATABASE_URL is required in PROD only.
# ====================================================================================

BOT_TOKEN = env("BOT_TOKEN")
if not BOT_TOKEN:
    print(f"ERROR: {APP_ENV.upper()}_BOT_TOKEN environment variable is not set!", file=sys.stderr)
    sys.exit(1)

# Telegram ID администратора (единственная привилегированная роль)
ADMIN_TELEGRAM_ID_STR = env("ADMIN_TELEGRAM_ID")
if not ADMIN_TELEGRAM_ID_STR:
    print(f"ERROR: {APP_ENV.upper()}_ADMIN_TELEGRAM_ID environment variable is not set!", file=sys.stderr)
    sys.exit(1)

try:
    ADMIN_TELEGRAM_ID = int(ADMIN_TELEGRAM_ID_STR)
except ValueError:
    print(f"ERROR: ADMIN_TELEGRAM_ID must be a number, got: {ADMIN_TELEGRAM_ID_STR}", file=sys.stderr)
    sys.exit(1)

# Без DATABASE_URL (STAGE/LOCAL) используется in-memory хранилище
DATABASE_URL = env("DATABASE_URL")
if not DATABASE_URL and IS_PROD:
    print(f"ERROR: {APP_ENV.upper()}_DATABASE_URL is REQUIRED in PROD!", file=sys.stderr)
    sys.exit(1)

# Redis для FSM (pending interactions). Optional
REDIS_URL = env("REDIS_URL")

# ====================================================================================
# LEDGER
# ====================================================================================

# Все суммы приводятся к одной валюте учёта
ACCOUNTING_CURRENCY = "USD"

_fee_raw = env("DEFAULT_CASHOUT_FEE_PERCENT", default="10")
try:
    DEFAULT_CASHOUT_FEE_PERCENT = Decimal(_fee_raw)
except InvalidOperation:
    print(f"ERROR: DEFAULT_CASHOUT_FEE_PERCENT must be a number, got: {_fee_raw}", file=sys.stderr)
    sys.exit(1)
if not DEFAULT_CASHOUT_FEE_PERCENT.is_finite() or not (0 <= DEFAULT_CASHOUT_FEE_PERCENT <= 100):
    print(f"ERROR: DEFAULT_CASHOUT_FEE_PERCENT must be within 0..100, got: {_fee_raw}", file=sys.stderr)
    sys.exit(1)

# Cash out only for the administrator (otherwise any registered user)
CASHOUT_ADMIN_ONLY = _env_bool("CASHOUT_ADMIN_ONLY")

# Сколько транзакций показывать в /transactions
RECENT_TRANSACTIONS_LIMIT = 10

# ====================================================================================
# EXCHANGE RATES
# ====================================================================================

EXCHANGE_RATES_URL = env(
    "EXCHANGE_RATES_URL",
    default="https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1/currencies/{currency}.json",
)
EXCHANGE_RATES_TIMEOUT = _env_float("EXCHANGE_RATES_TIMEOUT", "5.0")
# 0 = fetch fresh on every conversion. Capped so stale rates never live long
EXCHANGE_RATES_CACHE_TTL = min(max(_env_float("EXCHANGE_RATES_CACHE_TTL", "0"), 0.0), 60.0)

# ====================================================================================
# IPN WEBHOOK
# ====================================================================================

IPN_PATH = env("IPN_PATH", default="/ipn")
IPN_VERIFY_ENABLED = _env_bool("IPN_VERIFY_ENABLED")
IPN_VERIFY_URL = env("IPN_VERIFY_URL", default="https://ipnpb.paypal.com/cgi-bin/webscr")
IPN_VERIFY_TIMEOUT = _env_float("IPN_VERIFY_TIMEOUT", "10.0")

# Таймаут пересылки уведомлений на сторонние endpoints
FORWARD_TIMEOUT = _env_float("FORWARD_TIMEOUT", "10.0")

# ====================================================================================
# HTTP SERVER
# ====================================================================================

HTTP_HOST = env("HTTP_HOST", default="0.0.0.0")
# PORT (без префикса) задаётся платформой и имеет приоритет
HTTP_PORT = int(os.getenv("PORT") or env("HTTP_PORT", default="3000"))

# ====================================================================================
# RUNTIME
# ====================================================================================

MAX_CONCURRENT_UPDATES = int(env("MAX_CONCURRENT_UPDATES", default="20"))

# Startup: store initialization is retried with exponential backoff until it succeeds
STORE_INIT_BASE_DELAY = _env_float("STORE_INIT_BASE_DELAY", "1.0")
STORE_INIT_MAX_DELAY = _env_float("STORE_INIT_MAX_DELAY", "30.0")
