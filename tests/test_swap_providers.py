"""Tests for swap providers, route selection and swap error handling."""

import json
from decimal import Decimal

import httpx
import pytest

from conftest import make_address

from xmrsplit.ledger.models import SwapOrderStatus
from xmrsplit.swap_providers import (
    APIError,
    NetworkError,
    ProviderError,
    RouteAggregator,
    SwapError,
    SwapTimeoutError,
    get_error_message,
    is_retryable,
    normalize_status,
    parse_swap_error,
)
from xmrsplit.swap_providers.btcswapxmr import BTCSwapXMRProvider
from xmrsplit.swap_providers.changenow import ChangeNowProvider
from xmrsplit.swap_providers.ghostswap import GhostSwapProvider
from xmrsplit.swap_providers.simulated import SIMULATED_DEPOSIT_PREFIX

XMR_ADDRESS = make_address("X")


def changenow_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/v2/exchange/range":
        return httpx.Response(200, json={"minAmount": 0.01, "maxAmount": None})
    if path == "/v2/exchange/estimated-amount":
        amount = Decimal(request.url.params["fromAmount"])
        return httpx.Response(
            200,
            json={"toAmount": str(amount * 14), "transactionSpeedForecast": "10-60"},
        )
    if path == "/v2/exchange" and request.method == "POST":
        body = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "id": "cn123",
                "payinAddress": "bc1qdeposit",
                "payoutAddress": body["address"],
                "fromCurrency": body["fromCurrency"],
                "toCurrency": body["toCurrency"],
                "fromAmount": body["fromAmount"],
                "toAmount": "1.4",
                "status": "new",
            },
        )
    if path == "/v2/exchange/by-id":
        return httpx.Response(
            200,
            json={"id": request.url.params["id"], "status": "exchanging", "payinHash": "abc"},
        )
    return httpx.Response(404, json={"message": "not found"})


def failing_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def changenow(handler=changenow_handler, dry_run=False) -> ChangeNowProvider:
    return ChangeNowProvider(
        "http://changenow.test/v2",
        api_key="key",
        dry_run=dry_run,
        transport=httpx.MockTransport(handler),
    )


class TestChangeNow:
    """Tests for the ChangeNOW provider."""

    @pytest.mark.asyncio
    async def test_quote(self):
        quote = await changenow().get_quote("ETH", "XMR", Decimal("0.1"))

        assert quote.provider == "ChangeNOW"
        assert quote.to_amount == Decimal("1.4")
        assert quote.fee == Decimal("0.1") * Decimal("0.0025")
        assert quote.estimated_time == "10-60 min"
        assert quote.available
        assert not quote.is_simulated

    @pytest.mark.asyncio
    async def test_quote_below_minimum(self):
        quote = await changenow().get_quote("ETH", "XMR", Decimal("0.001"))

        assert not quote.available
        assert "min/max" in quote.message

    @pytest.mark.asyncio
    async def test_range_without_upper_bound(self):
        min_amount, max_amount = await changenow().get_range("ETH", "XMR")

        assert min_amount == Decimal("0.01")
        assert max_amount == Decimal("Infinity")

    @pytest.mark.asyncio
    async def test_range_falls_back_to_defaults(self):
        assert await changenow(failing_handler).get_range("USDC", "XMR") == (
            Decimal("10"),
            Decimal("100000"),
        )

    @pytest.mark.asyncio
    async def test_create_order(self):
        order = await changenow().create_order("ETH", "XMR", Decimal("0.1"), XMR_ADDRESS)

        assert order.order_id == "cn123"
        assert order.deposit_address == "bc1qdeposit"
        assert order.withdrawal_address == XMR_ADDRESS
        assert order.from_coin == "ETH"
        assert order.expected_to_amount == Decimal("1.4")
        assert order.expires_at is not None
        assert not order.is_simulated

    @pytest.mark.asyncio
    async def test_status(self):
        status = await changenow().get_status("cn123")

        assert status.order_id == "cn123"
        assert status.normalized_status == SwapOrderStatus.EXCHANGING
        assert status.deposit_tx_hash == "abc"

    @pytest.mark.asyncio
    async def test_network_failure_raises(self):
        with pytest.raises(NetworkError):
            await changenow(failing_handler).create_order("ETH", "XMR", Decimal("0.1"), XMR_ADDRESS)

    @pytest.mark.asyncio
    async def test_api_error_message(self):
        def handler(request):
            return httpx.Response(400, json={"error": "out_of_range", "message": "Amount too small"})

        with pytest.raises(APIError) as exc_info:
            await changenow(handler).create_order("ETH", "XMR", Decimal("0.1"), XMR_ADDRESS)

        assert "out_of_range" in exc_info.value.message
        assert exc_info.value.status_code == 400
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_dry_run_simulates(self):
        """With dry-run on, a failing provider yields a flagged simulated order."""
        order = await changenow(failing_handler, dry_run=True).create_order(
            "ETH", "XMR", Decimal("1"), XMR_ADDRESS
        )

        assert order.is_simulated
        assert order.deposit_address.startswith(SIMULATED_DEPOSIT_PREFIX)
        assert order.expected_to_amount == Decimal("1.496250000000")

    @pytest.mark.asyncio
    async def test_unsupported_pair(self):
        with pytest.raises(SwapError) as exc_info:
            await changenow().get_quote("DOGE", "XMR", Decimal("1"))
        assert exc_info.value.code == "UNSUPPORTED_PAIR"


class TestBTCSwapXMR:
    """Tests for the BTCSwapXMR provider."""

    @pytest.mark.asyncio
    async def test_quote_from_rate(self):
        def handler(request):
            return httpx.Response(200, json={"rate": "100"})

        provider = BTCSwapXMRProvider("http://btcswap.test", transport=httpx.MockTransport(handler))

        quote = await provider.get_quote("BTC", "XMR", Decimal("1"))

        assert quote.to_amount == Decimal("99.85")
        assert quote.fee == Decimal("0.0015")

    @pytest.mark.asyncio
    async def test_create_order(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "swap_id": "s1",
                    "btc_address": "bc1qswap",
                    "amount_btc": 0.5,
                    "amount_xmr": 50,
                    "expires_at": 1_900_000_000_000,
                },
            )

        provider = BTCSwapXMRProvider("http://btcswap.test", transport=httpx.MockTransport(handler))

        order = await provider.create_order("BTC", "XMR", Decimal("0.5"), XMR_ADDRESS)

        assert order.order_id == "s1"
        assert order.status == "waiting_deposit"
        assert order.expires_at.year == 2030

    @pytest.mark.asyncio
    async def test_btc_only(self):
        provider = BTCSwapXMRProvider("http://btcswap.test")

        assert provider.supports_pair("btc", "xmr")
        assert not provider.supports_pair("ETH", "XMR")


class TestGhostSwap:
    @pytest.mark.asyncio
    async def test_quote_unavailable(self):
        provider = GhostSwapProvider("http://ghost.test", transport=httpx.MockTransport(failing_handler))

        quote = await provider.get_quote("BTC", "XMR", Decimal("1"))

        assert not quote.available
        assert quote.is_simulated

    @pytest.mark.asyncio
    async def test_create_order_refused(self):
        provider = GhostSwapProvider("http://ghost.test")

        with pytest.raises(ProviderError) as exc_info:
            await provider.create_order("BTC", "XMR", Decimal("1"), XMR_ADDRESS)
        assert exc_info.value.provider == "GhostSwap"

    @pytest.mark.asyncio
    async def test_status_unavailable(self):
        status = await GhostSwapProvider("http://ghost.test").get_status("x")

        assert status.normalized_status == SwapOrderStatus.UNAVAILABLE


class TestRouteAggregator:
    """Tests for best-route selection."""

    @pytest.mark.asyncio
    async def test_lowest_fee_wins(self):
        def btcswap(request):
            return httpx.Response(200, json={"to_amount": "9.9"})

        aggregator = RouteAggregator(
            [
                BTCSwapXMRProvider("http://btcswap.test", transport=httpx.MockTransport(btcswap)),
                changenow(),
                GhostSwapProvider("http://ghost.test", transport=httpx.MockTransport(failing_handler)),
            ]
        )

        best = await aggregator.get_best_quote("BTC", "XMR", Decimal("1"))

        assert best.provider == "BTCSwapXMR"

    @pytest.mark.asyncio
    async def test_failed_provider_skipped(self):
        aggregator = RouteAggregator(
            [
                BTCSwapXMRProvider("http://btcswap.test", transport=httpx.MockTransport(failing_handler)),
                changenow(),
            ]
        )

        quotes = await aggregator.get_all_quotes("BTC", "XMR", Decimal("1"))
        best = await aggregator.get_best_quote("BTC", "XMR", Decimal("1"))

        assert [q.provider for q in quotes] == ["ChangeNOW"]
        assert best.provider == "ChangeNOW"

    @pytest.mark.asyncio
    async def test_no_route(self):
        aggregator = RouteAggregator([GhostSwapProvider("http://ghost.test", transport=httpx.MockTransport(failing_handler))])

        assert await aggregator.get_best_quote("BTC", "XMR", Decimal("1")) is None
        assert await aggregator.get_best_quote("DOGE", "XMR", Decimal("1")) is None

    def test_provider_lookup(self):
        aggregator = RouteAggregator([changenow(), GhostSwapProvider("http://ghost.test")])

        assert aggregator.get_provider("changenow").name == "ChangeNOW"
        assert aggregator.get_provider("Unknown") is None
        assert aggregator.supported_coins == ["ETH", "USDC", "LTC", "BTC", "SOL"]


class TestStatusAndErrors:
    def test_normalize_status(self):
        assert normalize_status("Finished") == SwapOrderStatus.FINISHED
        assert normalize_status("waiting_deposit") == SwapOrderStatus.WAITING
        assert normalize_status("something-new") is None
        assert normalize_status(None) is None

    def test_parse_swap_error(self):
        request = httpx.Request("GET", "http://provider.test")

        assert isinstance(parse_swap_error(httpx.ReadTimeout("slow", request=request)), SwapTimeoutError)
        assert isinstance(parse_swap_error(httpx.ConnectError("down", request=request)), NetworkError)
        assert isinstance(parse_swap_error(RuntimeError("connection reset")), NetworkError)
        assert type(parse_swap_error(RuntimeError("boom"))) is SwapError

    def test_retryable(self):
        assert is_retryable(NetworkError("down"))
        assert is_retryable(APIError("bad gateway", status_code=502))
        assert not is_retryable(APIError("bad request", status_code=400))
        assert not is_retryable(ValueError("x"))
        assert get_error_message(ValueError()) == "An unexpected error occurred"
