from aiogram import Router

from .start import user_router as start_router
from .balance import user_router as balance_router
from .menu import user_router as menu_router

router = Router()

router.include_router(start_router)
router.include_router(balance_router)
router.include_router(menu_router)
