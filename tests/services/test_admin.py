"""
Unit tests for admin service layer.

Tests focus on business logic:
- Authorization before any state change
- Fee validation
- Notification registry
- Forward endpoint validation and removal
"""
import asyncio
import pytest
from decimal import Decimal

from app.services.admin.exceptions import (
    InvalidFeeError,
    InvalidForwardUrlError,
    InvalidPrincipalError,
    RegistryMemberNotFoundError,
    UnauthorizedError,
)
from app.services.admin.service import (
    add_forward_endpoint,
    add_notified,
    clear_forward_endpoints,
    list_forward_endpoints,
    list_notified,
    remove_forward_endpoint,
    remove_notified,
    set_fee,
    validate_forward_url,
)
from tests.factories import ADMIN_ID, USER_ID


class TestSetFee:
    """Tests for set_fee"""

    @pytest.mark.asyncio
    async def test_admin_sets_fee(self, store):
        """Admin can change the fee"""
        fee = await set_fee(ADMIN_ID, "2.5")
        assert fee == Decimal("2.5")
        assert await store.get_fee_percent() == Decimal("2.5")

    @pytest.mark.asyncio
    async def test_non_admin_leaves_fee_unchanged(self, store):
        """Unauthorized /setfee changes nothing"""
        with pytest.raises(UnauthorizedError):
            await set_fee(USER_ID, "50")
        assert await store.get_fee_percent() == Decimal("10")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["abc", "-1", "100.5", "", "inf"])
    async def test_invalid_fee(self, store, raw):
        """Fee must be a number within 0..100"""
        with pytest.raises(InvalidFeeError):
            await set_fee(ADMIN_ID, raw)
        assert await store.get_fee_percent() == Decimal("10")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["0", "100"])
    async def test_fee_bounds_inclusive(self, store, raw):
        """0 and 100 are both valid"""
        assert await set_fee(ADMIN_ID, raw) == Decimal(raw)


class TestNotificationRegistry:
    """Tests for the notify list"""

    @pytest.mark.asyncio
    async def test_add_and_list(self, store):
        """Added principals appear once"""
        assert await add_notified(ADMIN_ID, "2000") == (2000, True)
        assert await add_notified(ADMIN_ID, " 2000 ") == (2000, False)
        assert await list_notified(ADMIN_ID) == ["2000"]

    @pytest.mark.asyncio
    async def test_remove_missing(self, store):
        """Removing an absent principal reports not found"""
        with pytest.raises(RegistryMemberNotFoundError) as exc_info:
            await remove_notified(ADMIN_ID, "2000")
        assert exc_info.value.member == "2000"

    @pytest.mark.asyncio
    async def test_remove_present(self, store):
        """Removed principals leave the list"""
        await add_notified(ADMIN_ID, "2000")
        assert await remove_notified(ADMIN_ID, "2000") == 2000
        assert await list_notified(ADMIN_ID) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["abc", "0", "-0", "", "1.5", str(2**63)])
    async def test_invalid_principal(self, store, raw):
        """Ids must be nonzero 64-bit integers"""
        with pytest.raises(InvalidPrincipalError):
            await add_notified(ADMIN_ID, raw)

    @pytest.mark.asyncio
    async def test_group_chat_id_accepted(self, store):
        """Negative group chat ids can receive alerts"""
        assert await add_notified(ADMIN_ID, "-1001234567890") == (-1001234567890, True)
        assert await list_notified(ADMIN_ID) == ["-1001234567890"]
        assert await remove_notified(ADMIN_ID, "-1001234567890") == -1001234567890

    @pytest.mark.asyncio
    async def test_non_admin_cannot_list(self, store):
        """Listing is admin-only"""
        with pytest.raises(UnauthorizedError):
            await list_notified(USER_ID)


class TestForwardEndpoints:
    """Tests for forward endpoint management"""

    @pytest.mark.parametrize("url", [
        "https://hooks.example.com/ipn",
        "http://10.0.0.5:8080/paypal",
        "  https://example.com  ",
    ])
    def test_valid_urls(self, url):
        """Absolute http(s) URLs with a host are accepted"""
        assert validate_forward_url(url) == url.strip()

    @pytest.mark.parametrize("url", [
        "",
        "example.com/ipn",
        "ftp://example.com/ipn",
        "https://",
        "https://exa mple.com",
        "https://example.com:99999/",
        None,
    ])
    def test_invalid_urls(self, url):
        """Anything else is rejected"""
        with pytest.raises(InvalidForwardUrlError):
            validate_forward_url(url)

    @pytest.mark.asyncio
    async def test_add_duplicate(self, store):
        """The same URL is stored once"""
        assert await add_forward_endpoint(ADMIN_ID, "https://a.example/ipn") == ("https://a.example/ipn", True)
        assert await add_forward_endpoint(ADMIN_ID, "https://a.example/ipn") == ("https://a.example/ipn", False)
        assert await list_forward_endpoints(ADMIN_ID) == ["https://a.example/ipn"]

    @pytest.mark.asyncio
    async def test_non_admin_add_changes_nothing(self, store):
        """Unauthorized add leaves the list empty"""
        with pytest.raises(UnauthorizedError):
            await add_forward_endpoint(USER_ID, "https://a.example/ipn")
        assert await list_forward_endpoints(ADMIN_ID) == []

    @pytest.mark.asyncio
    async def test_remove_by_index(self, store):
        """A 1-based position removes that endpoint"""
        await add_forward_endpoint(ADMIN_ID, "https://a.example/ipn")
        await add_forward_endpoint(ADMIN_ID, "https://b.example/ipn")

        removed = await remove_forward_endpoint(ADMIN_ID, "2")

        assert removed == "https://b.example/ipn"
        assert await list_forward_endpoints(ADMIN_ID) == ["https://a.example/ipn"]

    @pytest.mark.asyncio
    async def test_remove_by_url(self, store):
        """An exact URL removes that endpoint"""
        await add_forward_endpoint(ADMIN_ID, "https://a.example/ipn")
        assert await remove_forward_endpoint(ADMIN_ID, "https://a.example/ipn") == "https://a.example/ipn"
        assert await list_forward_endpoints(ADMIN_ID) == []

    @pytest.mark.asyncio
    async def test_remove_out_of_range(self, store):
        """Unknown position or URL reports not found"""
        await add_forward_endpoint(ADMIN_ID, "https://a.example/ipn")
        with pytest.raises(RegistryMemberNotFoundError):
            await remove_forward_endpoint(ADMIN_ID, "5")
        with pytest.raises(RegistryMemberNotFoundError):
            await remove_forward_endpoint(ADMIN_ID, "https://missing.example/ipn")

    @pytest.mark.asyncio
    async def test_concurrent_index_removals(self, store):
        """Two removals of position 1 take the first two endpoints, one each"""
        for url in ("https://a.example/ipn", "https://b.example/ipn", "https://c.example/ipn"):
            await add_forward_endpoint(ADMIN_ID, url)

        removed = await asyncio.gather(
            remove_forward_endpoint(ADMIN_ID, "1"),
            remove_forward_endpoint(ADMIN_ID, "1"),
        )

        assert sorted(removed) == ["https://a.example/ipn", "https://b.example/ipn"]
        assert await list_forward_endpoints(ADMIN_ID) == ["https://c.example/ipn"]

    @pytest.mark.asyncio
    async def test_clear(self, store):
        """Clear reports how many endpoints were removed"""
        await add_forward_endpoint(ADMIN_ID, "https://a.example/ipn")
        await add_forward_endpoint(ADMIN_ID, "https://b.example/ipn")
        assert await clear_forward_endpoints(ADMIN_ID) == 2
        assert await list_forward_endpoints(ADMIN_ID) == []
