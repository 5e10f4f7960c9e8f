"""
Keyboard builders shared by user-facing handlers.
"""
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from app.i18n import get_text as i18n_get_text
from app.services.ledger.models import CashOutMode

CASHOUT_PREFIX = "cashout:"


def get_main_menu_keyboard(language: str) -> InlineKeyboardMarkup:
    """Главное меню"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text=i18n_get_text(language, "menu.balance"), callback_data="menu:balance"),
            InlineKeyboardButton(text=i18n_get_text(language, "menu.transactions"), callback_data="menu:transactions"),
        ],
        [
            InlineKeyboardButton(text=i18n_get_text(language, "menu.cashout"), callback_data="menu:cashout"),
            InlineKeyboardButton(text=i18n_get_text(language, "menu.status"), callback_data="menu:status"),
        ],
        [
            InlineKeyboardButton(text=i18n_get_text(language, "menu.notifications"), callback_data="menu:notifications"),
        ],
    ])


def cashout_callback_data(mode: CashOutMode, principal_id: int) -> str:
    """cashout:<mode>:<principal_id>; the button is bound to the principal it was issued to"""
    return f"{CASHOUT_PREFIX}{CashOutMode(mode).value}:{principal_id}"


def get_cashout_keyboard(language: str, principal_id: int) -> InlineKeyboardMarkup:
    """Варианты вывода: всё / половина / своя сумма"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(
                text=i18n_get_text(language, "cashout.btn_all"),
                callback_data=cashout_callback_data(CashOutMode.ALL, principal_id),
            ),
            InlineKeyboardButton(
                text=i18n_get_text(language, "cashout.btn_half"),
                callback_data=cashout_callback_data(CashOutMode.HALF, principal_id),
            ),
        ],
        [
            InlineKeyboardButton(
                text=i18n_get_text(language, "cashout.btn_custom"),
                callback_data=cashout_callback_data(CashOutMode.CUSTOM, principal_id),
            ),
        ],
    ])
