"""
Unit tests for payment alert fan-out.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.services.ledger.models import Registry
from app.services.notifications import build_admin_alert, build_user_alert, notify_payment, resolve_audience
from tests.factories import ADMIN_ID, OTHER_USER_ID, USER_ID, make_record


def _bot(failing=()):
    bot = MagicMock()

    async def send_message(chat_id, text, **kwargs):
        if chat_id in failing:
            raise RuntimeError("network down")
        return MagicMock(chat=MagicMock(id=chat_id))

    bot.send_message = AsyncMock(side_effect=send_message)
    return bot


class TestResolveAudience:
    """Tests for resolve_audience"""

    @pytest.mark.asyncio
    async def test_intersection_of_notified_and_registered(self, store):
        """Only notified members that used /start receive alerts"""
        await store.add_member(Registry.NOTIFIED, str(USER_ID))
        await store.add_member(Registry.NOTIFIED, str(OTHER_USER_ID))
        await store.add_member(Registry.REGISTERED, str(OTHER_USER_ID))

        assert await resolve_audience() == [OTHER_USER_ID]

    @pytest.mark.asyncio
    async def test_empty_lists(self, store):
        """Nobody notified -> empty audience"""
        await store.add_member(Registry.REGISTERED, str(USER_ID))
        assert await resolve_audience() == []


class TestAlertText:
    """Tests for alert builders"""

    def test_user_alert_mentions_amounts(self):
        """User alert shows gross, converted amount and txn id"""
        text = build_user_alert(make_record("TX9", "50", "EUR", accounting="54.347"))
        assert "TX9" in text
        assert "54.35" in text
        assert "EUR" in text

    def test_admin_alert_mentions_amount(self):
        """Admin alert shows the converted amount"""
        text = build_admin_alert(make_record("TX9", "100"))
        assert "100.00" in text


class TestNotifyPayment:
    """Tests for notify_payment"""

    @pytest.mark.asyncio
    async def test_failing_recipient_does_not_block_others(self, store):
        """One failed send is reported, the rest still go out"""
        for principal_id in (USER_ID, OTHER_USER_ID):
            await store.add_member(Registry.NOTIFIED, str(principal_id))
            await store.add_member(Registry.REGISTERED, str(principal_id))
        bot = _bot(failing={USER_ID})

        report = await notify_payment(bot, make_record())

        assert report.delivered == [OTHER_USER_ID]
        assert report.failed == [USER_ID]
        assert report.admin_delivered is True
        recipients = [call.args[0] for call in bot.send_message.await_args_list]
        assert sorted(recipients) == sorted([USER_ID, OTHER_USER_ID, ADMIN_ID])

    @pytest.mark.asyncio
    async def test_admin_failure_is_reported(self, store):
        """Admin send failure is reported, never raised"""
        bot = _bot(failing={ADMIN_ID})

        report = await notify_payment(bot, make_record())

        assert report.admin_delivered is False
        assert report.delivered == []

    @pytest.mark.asyncio
    async def test_unregistered_subscriber_not_alerted(self, store):
        """Notify-list members that never used /start get nothing"""
        await store.add_member(Registry.NOTIFIED, str(USER_ID))
        bot = _bot()

        report = await notify_payment(bot, make_record())

        assert report.delivered == []
        assert [call.args[0] for call in bot.send_message.await_args_list] == [ADMIN_ID]
