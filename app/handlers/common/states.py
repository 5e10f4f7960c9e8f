"""
FSM state groups for handlers. Shared across domains.
"""
from aiogram.fsm.state import State, StatesGroup


class PendingInteraction(StatesGroup):
    """
    The single slot of free-text input a principal may owe the bot.

    Setting any state replaces the previous one. Commands never clear it;
    it is cleared only when the awaited input is accepted (or, for removal,
    answered either way).
    """
    awaiting_cashout_amount = State()
    awaiting_forward_url = State()
    awaiting_forward_url_removal = State()
