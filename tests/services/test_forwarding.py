"""
Unit tests for IPN forwarding.

httpx calls run against httpx.MockTransport.
"""
import pytest

import httpx

from app.services.forwarding import service as forwarding_service
from app.services.ledger.models import Registry

FIELDS = [
    ("txn_id", "TX1"),
    ("item_name", "Gift & more"),
    ("custom", "a"),
    ("custom", "b"),
    ("mc_gross", "100.00"),
]


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestEncodePayload:
    """Tests for encode_payload"""

    def test_order_and_repeats_preserved(self):
        """Keys keep their order, repeated keys are kept"""
        body = forwarding_service.encode_payload(FIELDS)
        assert body == "txn_id=TX1&item_name=Gift+%26+more&custom=a&custom=b&mc_gross=100.00"


class TestForwardNotification:
    """Tests for forward_notification"""

    @pytest.mark.asyncio
    async def test_posts_unmodified_form_to_each_endpoint(self):
        """Every endpoint receives the same form body"""
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append((str(request.url), request.headers["content-type"], request.content))
            return httpx.Response(200)

        async with _client(handler) as client:
            report = await forwarding_service.forward_notification(
                FIELDS,
                endpoints=["https://a.example/ipn", "https://b.example/ipn"],
                client=client,
            )

        assert report.delivered == ["https://a.example/ipn", "https://b.example/ipn"]
        assert report.failed == []
        expected = forwarding_service.encode_payload(FIELDS).encode()
        assert {body for _, _, body in received} == {expected}
        assert {ctype for _, ctype, _ in received} == {"application/x-www-form-urlencoded"}

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_others(self):
        """Non-2xx and network errors are reported per endpoint"""
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "down.example":
                raise httpx.ConnectError("refused", request=request)
            if request.url.host == "bad.example":
                return httpx.Response(500)
            return httpx.Response(204)

        async with _client(handler) as client:
            report = await forwarding_service.forward_notification(
                FIELDS,
                endpoints=["https://down.example/ipn", "https://bad.example/ipn", "https://ok.example/ipn"],
                client=client,
            )

        assert report.delivered == ["https://ok.example/ipn"]
        assert report.failed == ["https://down.example/ipn", "https://bad.example/ipn"]
        bad = [attempt for attempt in report.attempts if attempt.url == "https://bad.example/ipn"][0]
        assert bad.status_code == 500

    @pytest.mark.asyncio
    async def test_timeout_reported(self):
        """Timeouts are a failed attempt, never raised"""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with _client(handler) as client:
            report = await forwarding_service.forward_notification(
                FIELDS, endpoints=["https://slow.example/ipn"], client=client
            )

        assert report.failed == ["https://slow.example/ipn"]
        assert report.attempts[0].error.startswith("timeout")

    @pytest.mark.asyncio
    async def test_defaults_to_registry(self, store):
        """Without explicit endpoints the forward registry is used"""
        await store.add_member(Registry.FORWARD, "https://a.example/ipn")
        hits = []

        def handler(request: httpx.Request) -> httpx.Response:
            hits.append(str(request.url))
            return httpx.Response(200)

        async with _client(handler) as client:
            report = await forwarding_service.forward_notification(FIELDS, client=client)

        assert hits == ["https://a.example/ipn"]
        assert report.delivered == ["https://a.example/ipn"]

    @pytest.mark.asyncio
    async def test_no_endpoints(self, store):
        """Empty registry -> nothing sent"""
        report = await forwarding_service.forward_notification(FIELDS)
        assert report.attempts == []
