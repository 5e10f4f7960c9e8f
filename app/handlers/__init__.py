"""
Handlers module - modularized handlers for Telegram bot.

Root aggregation: user, cashout, admin.
Pending-interaction handlers ignore text starting with "/", so commands are
always reachable regardless of router order.
"""
from aiogram import Router

from .user import router as user_router
from .cashout import router as cashout_router
from .admin import router as admin_router

router = Router()

router.include_router(user_router)
router.include_router(cashout_router)
router.include_router(admin_router)
