from aiogram import Router

from .fee import admin_fee_router
from .notify import admin_notify_router
from .forward import admin_forward_router
from .forward_fsm import admin_forward_fsm_router

router = Router()

router.include_router(admin_fee_router)
router.include_router(admin_notify_router)
router.include_router(admin_forward_router)
router.include_router(admin_forward_fsm_router)
