"""
Unit tests for the currency rate service.

httpx calls run against httpx.MockTransport.
"""
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx

from app.services.rates import service as rates_service
from app.services.rates.exceptions import ConversionUnavailableError


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestConvertWithRates:
    """Tests for the pure conversion"""

    def test_eur_divides_by_rate(self):
        """50 EUR at 0.92 per USD -> ~54.35 USD"""
        result = rates_service.convert_with_rates(Decimal("50"), "eur", {"eur": Decimal("0.92")}, "USD")
        assert result.quantize(Decimal("0.01")) == Decimal("54.35")

    def test_accounting_currency_passes_through(self):
        """Same currency is returned unchanged"""
        assert rates_service.convert_with_rates(Decimal("50"), "usd", {}, "USD") == Decimal("50")

    def test_missing_rate(self):
        """Unknown currency is never guessed"""
        with pytest.raises(ConversionUnavailableError):
            rates_service.convert_with_rates(Decimal("50"), "xyz", {"eur": Decimal("0.92")}, "USD")

    def test_zero_rate(self):
        """A non-positive rate counts as missing"""
        with pytest.raises(ConversionUnavailableError):
            rates_service.convert_with_rates(Decimal("50"), "eur", {"eur": Decimal("0")}, "USD")


class TestFetchRates:
    """Tests for fetch_rates"""

    @pytest.mark.asyncio
    async def test_parses_table(self):
        """Rate table keyed by the lower-case accounting currency"""
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/usd.json")
            return httpx.Response(200, json={"date": "2024-01-15", "usd": {"eur": 0.92, "gbp": 0.79, "bad": "x"}})

        async with _client(handler) as client:
            rates = await rates_service.fetch_rates(client)

        assert rates["eur"] == Decimal("0.92")
        assert rates["gbp"] == Decimal("0.79")
        assert "bad" not in rates

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        """Non-2xx is conversion unavailable"""
        async with _client(lambda request: httpx.Response(503)) as client:
            with pytest.raises(ConversionUnavailableError):
                await rates_service.fetch_rates(client)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        """Malformed body is conversion unavailable"""
        async with _client(lambda request: httpx.Response(200, content=b"not json")) as client:
            with pytest.raises(ConversionUnavailableError):
                await rates_service.fetch_rates(client)

    @pytest.mark.asyncio
    async def test_network_failure_after_retry(self):
        """Transport errors are retried once, then reported"""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with patch("app.utils.retry.asyncio.sleep", new=AsyncMock()):
            async with _client(handler) as client:
                with pytest.raises(ConversionUnavailableError):
                    await rates_service.fetch_rates(client)

        assert len(calls) == 2


class TestConvert:
    """Tests for convert"""

    @pytest.mark.asyncio
    async def test_usd_skips_lookup(self, store):
        """Accounting currency converts without fetching rates"""
        with patch.object(rates_service, "fetch_rates", new=AsyncMock()) as mock_fetch:
            assert await rates_service.convert(Decimal("50"), "USD") == Decimal("50")
            mock_fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_foreign_currency_uses_rates(self, store):
        """Foreign currency fetches the table and divides"""
        with patch.object(rates_service, "fetch_rates", new=AsyncMock(return_value={"eur": Decimal("0.92")})):
            result = await rates_service.convert(Decimal("50"), "EUR")
        assert result.quantize(Decimal("0.01")) == Decimal("54.35")

    @pytest.mark.asyncio
    async def test_cache_disabled_by_default(self, store):
        """With TTL 0 every conversion fetches fresh rates"""
        mock_fetch = AsyncMock(return_value={"eur": Decimal("0.92")})
        with patch.object(rates_service, "fetch_rates", new=mock_fetch), \
                patch.object(rates_service.config, "EXCHANGE_RATES_CACHE_TTL", 0):
            await rates_service.convert(Decimal("1"), "EUR")
            await rates_service.convert(Decimal("1"), "EUR")
        assert mock_fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_cache_reused_within_ttl(self, store):
        """With a TTL the table is fetched once"""
        mock_fetch = AsyncMock(return_value={"eur": Decimal("0.92")})
        with patch.object(rates_service, "fetch_rates", new=mock_fetch), \
                patch.object(rates_service.config, "EXCHANGE_RATES_CACHE_TTL", 30):
            await rates_service.convert(Decimal("1"), "EUR")
            await rates_service.convert(Decimal("1"), "EUR")
        assert mock_fetch.await_count == 1
