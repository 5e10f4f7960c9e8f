from aiogram import Router

from .command import cashout_command_router
from .callbacks import cashout_callbacks_router
from .amount_fsm import cashout_amount_router

router = Router()

router.include_router(cashout_command_router)
router.include_router(cashout_callbacks_router)
router.include_router(cashout_amount_router)
