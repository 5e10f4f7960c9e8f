"""
Unit tests for the IPN pipeline.

Tests focus on:
- Parsing form and JSON payloads
- Postback verification
- Ingestion outcomes (recorded / ignored / conversion unavailable)
- Background alert and forward tasks
"""
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from app.services.ipn import service as ipn_service
from app.services.ipn.exceptions import InvalidNotificationError, VerificationFailedError
from app.services.ipn.service import IngestOutcome
from app.services.rates.exceptions import ConversionUnavailableError

COMPLETED_FIELDS = [
    ("payment_status", "Completed"),
    ("mc_gross", "100.00"),
    ("mc_currency", "USD"),
    ("payer_email", "payer@example.com"),
    ("txn_id", "TX1"),
    ("payment_date", "10:00:00 Jan 15, 2024 PST"),
    ("item_name", "Donation"),
]


def _fields(**overrides):
    fields = dict(COMPLETED_FIELDS)
    fields.update(overrides)
    return list(fields.items())


class TestParseNotification:
    """Tests for parse_notification"""

    def test_form_pairs(self):
        """Known fields are extracted and raw pairs kept"""
        notification = ipn_service.parse_notification(COMPLETED_FIELDS)

        assert notification.is_completed is True
        assert notification.gross_amount == Decimal("100.00")
        assert notification.currency == "USD"
        assert notification.txn_id == "TX1"
        assert notification.subject == "Donation"
        assert notification.raw == tuple(COMPLETED_FIELDS)

    def test_json_mapping(self):
        """A JSON object is accepted as well"""
        notification = ipn_service.parse_notification({"payment_status": "Completed", "mc_gross": 5, "txn_id": "TX2"})
        assert notification.gross_amount == Decimal("5")
        assert notification.txn_id == "TX2"

    def test_first_occurrence_wins(self):
        """Repeated keys: the first value is used, raw keeps both"""
        notification = ipn_service.parse_notification([("txn_id", "A"), ("txn_id", "B")])
        assert notification.txn_id == "A"
        assert len(notification.raw) == 2

    def test_bad_amount_is_none(self):
        """Non-numeric mc_gross parses as missing"""
        assert ipn_service.parse_notification(_fields(mc_gross="abc")).gross_amount is None

    @pytest.mark.parametrize("payload", [None, [], {}, 42])
    def test_invalid_payload(self, payload):
        """Empty or non key/value payloads are invalid"""
        with pytest.raises(InvalidNotificationError):
            ipn_service.parse_notification(payload)


class TestVerifyNotification:
    """Tests for verify_notification"""

    @pytest.mark.asyncio
    async def test_verified(self):
        """Postback body starts with cmd=_notify-validate followed by the original fields"""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content.decode())
            return httpx.Response(200, text="VERIFIED")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await ipn_service.verify_notification(COMPLETED_FIELDS, client=client)

        assert bodies[0].startswith("cmd=_notify-validate&payment_status=Completed&mc_gross=100.00")

    @pytest.mark.asyncio
    async def test_invalid_answer(self):
        """Anything but VERIFIED fails"""
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="INVALID"))) as client:
            with pytest.raises(VerificationFailedError):
                await ipn_service.verify_notification(COMPLETED_FIELDS, client=client)

    @pytest.mark.asyncio
    async def test_network_failure(self):
        """Unreachable endpoint fails verification"""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(VerificationFailedError):
                await ipn_service.verify_notification(COMPLETED_FIELDS, client=client)


class TestIngestNotification:
    """Tests for ingest_notification"""

    @pytest.mark.asyncio
    async def test_completed_usd_recorded(self, store):
        """Completed positive notification is appended"""
        result = await ipn_service.ingest_notification(ipn_service.parse_notification(COMPLETED_FIELDS))

        assert result.outcome == IngestOutcome.RECORDED
        assert result.record.amount_accounting == Decimal("100.00")
        assert await store.total_received() == Decimal("100.00")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"payment_status": "Pending"},
        {"mc_gross": "0"},
        {"mc_gross": "-10"},
        {"txn_id": ""},
    ])
    async def test_not_recordable_ignored(self, store, overrides):
        """Pending, non-positive and id-less notifications are ignored"""
        result = await ipn_service.ingest_notification(ipn_service.parse_notification(_fields(**overrides)))

        assert result.outcome == IngestOutcome.IGNORED
        assert await store.transaction_count() == 0

    @pytest.mark.asyncio
    async def test_conversion_unavailable(self, store):
        """Unknown currency is not recorded"""
        with patch.object(
            ipn_service.rates_service,
            "convert",
            new=AsyncMock(side_effect=ConversionUnavailableError("XYZ", "missing rate")),
        ):
            result = await ipn_service.ingest_notification(ipn_service.parse_notification(_fields(mc_currency="XYZ")))

        assert result.outcome == IngestOutcome.CONVERSION_UNAVAILABLE
        assert await store.transaction_count() == 0

    @pytest.mark.asyncio
    async def test_eur_converted(self, store):
        """Foreign amounts are stored in the accounting currency"""
        with patch.object(ipn_service.rates_service, "convert", new=AsyncMock(return_value=Decimal("54.347"))):
            result = await ipn_service.ingest_notification(
                ipn_service.parse_notification(_fields(mc_gross="50", mc_currency="EUR"))
            )

        assert result.record.gross_amount == Decimal("50")
        assert result.record.currency == "EUR"
        assert await store.total_received() == Decimal("54.347")


class TestHandleIpn:
    """Tests for handle_ipn"""

    @pytest.mark.asyncio
    async def test_recorded_spawns_alerts_and_forwarding(self, store):
        """Recorded notification: alerts and forwarding run in the background"""
        bot = MagicMock()
        with patch.object(ipn_service.notification_service, "notify_payment", new=AsyncMock()) as mock_notify, \
                patch.object(ipn_service.forwarding_service, "forward_notification", new=AsyncMock()) as mock_forward:
            result = await ipn_service.handle_ipn(COMPLETED_FIELDS, bot)
            await ipn_service.drain_background_tasks()

        assert result.outcome == IngestOutcome.RECORDED
        mock_notify.assert_awaited_once_with(bot, result.record)
        assert mock_forward.await_args.args[0] == tuple(COMPLETED_FIELDS)

    @pytest.mark.asyncio
    async def test_ignored_still_forwarded(self, store):
        """Non-recorded notifications are forwarded but not alerted"""
        with patch.object(ipn_service.notification_service, "notify_payment", new=AsyncMock()) as mock_notify, \
                patch.object(ipn_service.forwarding_service, "forward_notification", new=AsyncMock()) as mock_forward:
            result = await ipn_service.handle_ipn(_fields(payment_status="Refunded"), MagicMock())
            await ipn_service.drain_background_tasks()

        assert result.outcome == IngestOutcome.IGNORED
        mock_notify.assert_not_called()
        mock_forward.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_payload_not_forwarded(self, store):
        """Unparseable payloads go nowhere"""
        with patch.object(ipn_service.forwarding_service, "forward_notification", new=AsyncMock()) as mock_forward:
            result = await ipn_service.handle_ipn(None, MagicMock())

        assert result.outcome == IngestOutcome.INVALID
        mock_forward.assert_not_called()

    @pytest.mark.asyncio
    async def test_unverified_dropped(self, store):
        """With verification on, a failed postback records and forwards nothing"""
        with patch.object(ipn_service.config, "IPN_VERIFY_ENABLED", True), \
                patch.object(ipn_service, "verify_notification", new=AsyncMock(side_effect=VerificationFailedError("INVALID"))), \
                patch.object(ipn_service.forwarding_service, "forward_notification", new=AsyncMock()) as mock_forward:
            result = await ipn_service.handle_ipn(COMPLETED_FIELDS, MagicMock())

        assert result.outcome == IngestOutcome.UNVERIFIED
        assert await store.transaction_count() == 0
        mock_forward.assert_not_called()
