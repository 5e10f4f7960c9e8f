"""
Admin keyboard builders. Shared across admin handlers.
"""
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from app.i18n import get_text as i18n_get_text


def get_forward_menu_keyboard(language: str) -> InlineKeyboardMarkup:
    """Клавиатура управления IPN-пересылкой"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=i18n_get_text(language, "forward.btn_add"), callback_data="forward:add")],
        [InlineKeyboardButton(text=i18n_get_text(language, "forward.btn_remove"), callback_data="forward:remove")],
        [InlineKeyboardButton(text=i18n_get_text(language, "forward.btn_list"), callback_data="forward:list")],
        [InlineKeyboardButton(text=i18n_get_text(language, "forward.btn_clear"), callback_data="forward:clear")],
        [InlineKeyboardButton(text=i18n_get_text(language, "forward.btn_refresh"), callback_data="forward:refresh")],
    ])
