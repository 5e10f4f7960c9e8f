"""
Pytest configuration and shared fixtures.

config.py validates the environment at import time, so the LOCAL_* defaults
are set here before any project module is imported.
"""
import os

os.environ["APP_ENV"] = "local"
for _var in ("BOT_TOKEN", "DATABASE_URL", "ADMIN_TELEGRAM_ID"):
    os.environ.pop(_var, None)
os.environ.setdefault("LOCAL_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ["LOCAL_ADMIN_TELEGRAM_ID"] = "1000"
for _var in ("LOCAL_DATABASE_URL", "LOCAL_REDIS_URL", "LOCAL_CASHOUT_ADMIN_ONLY", "LOCAL_IPN_VERIFY_ENABLED"):
    os.environ.pop(_var, None)

import pytest
from decimal import Decimal

from app.services.ledger.store import MemoryLedgerStore, set_ledger_store
from app.services.rates import reset_cache


@pytest.fixture
def store():
    """Fresh in-memory ledger store with a 10% fee, installed as the active store"""
    ledger_store = MemoryLedgerStore(fee_percent=Decimal("10"))
    set_ledger_store(ledger_store)
    reset_cache()
    yield ledger_store
    set_ledger_store(None)
    reset_cache()
