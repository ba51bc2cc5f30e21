"""Pytest configuration and fixtures."""

import json
import os
from decimal import Decimal
from typing import AsyncGenerator, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "false"
os.environ["WALLET_SERVER_URL"] = "http://walletd.test"
os.environ["WALLET_SERVER_SECRET"] = "test-secret"
os.environ["DRY_RUN"] = "false"
os.environ["TESTNET"] = "false"

from xmrsplit.api.ratelimit import limiter
from xmrsplit.config import get_settings
from xmrsplit.ledger import database
from xmrsplit.ledger.models import Base
from xmrsplit.ledger.repository import LedgerRepository
from xmrsplit.monitoring import set_tx_monitor
from xmrsplit.payment import PaymentService, set_payment_service
from xmrsplit.pricing import set_price_service
from xmrsplit.services import set_address_book_service, set_swap_service
from xmrsplit.swap_providers.factory import set_aggregator
from xmrsplit.utils.locks import clear_locks
from xmrsplit.walletrpc import WalletServerClient, set_wallet_client
from xmrsplit.wallets import WalletService, set_wallet_service

BASE58 = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def make_address(char: str = "A", prefix: str = "4", length: int = 95) -> str:
    """A format-valid Monero address."""
    return prefix + char * (length - 1)


def make_seed(n: int) -> str:
    return " ".join(f"w{n}x{i}" for i in range(25))


def make_tx_hash(n: int) -> str:
    return f"{n:064x}"


class FakeWalletServer:
    """In-memory stand-in for the wallet server, served through httpx.MockTransport.

    Funds moved by consolidation arrive locked unless unlock_instantly is set,
    like freshly received Monero outputs.
    """

    def __init__(self):
        self.balances: dict[int, Decimal] = {i: Decimal("0") for i in range(5)}
        self.unlocked: dict[int, Decimal] = {i: Decimal("0") for i in range(5)}
        self.unlock_instantly = False
        self.fail_create = False
        self.fail_transfer: Optional[str] = None
        self.fee = Decimal("0.00003")
        self.requests: list[tuple[str, str, dict]] = []
        self.restore_heights: dict[int, int] = {}
        self._tx = 0

    def fund(self, index: int, amount: str, unlocked: Optional[str] = None) -> None:
        self.balances[index] = Decimal(amount)
        self.unlocked[index] = Decimal(unlocked if unlocked is not None else amount)

    def _tx_hash(self) -> str:
        self._tx += 1
        return make_tx_hash(self._tx)

    def calls(self, path: str) -> list[dict]:
        return [body for _, p, body in self.requests if p == path]

    def _move(self, source: int, target: int, amount: Decimal) -> None:
        self.balances[source] -= amount
        self.unlocked[source] -= amount
        self.balances[target] += amount
        if self.unlock_instantly:
            self.unlocked[target] += amount

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else {}
        self.requests.append((request.method, path, body))

        if path == "/health":
            return httpx.Response(200, json={"status": "ok", "timestamp": 0})

        if request.headers.get("x-api-secret") != "test-secret":
            return httpx.Response(401, json={"error": "Unauthorized"})

        if path == "/api/wallet/create":
            if self.fail_create:
                return httpx.Response(500, json={"success": False, "error": "RPC unreachable"})
            index = body["walletIndex"]
            return httpx.Response(
                200,
                json={"success": True, "address": make_address(BASE58[index + 9]), "seed": make_seed(index)},
            )

        if path == "/api/wallet/restore":
            index = body["walletIndex"]
            self.restore_heights[index] = body.get("restoreHeight", 0)
            return httpx.Response(200, json={"success": True, "address": make_address(BASE58[index + 9])})

        if path == "/api/wallet/balance":
            index = int(request.url.params["walletIndex"])
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "balance": str(self.balances[index]),
                    "unlockedBalance": str(self.unlocked[index]),
                },
            )

        if path == "/api/wallet/transfer":
            if self.fail_transfer:
                return httpx.Response(500, json={"success": False, "error": self.fail_transfer})
            index = body["walletIndex"]
            amount = Decimal(str(body["amount"]))
            self.balances[index] -= amount + self.fee
            self.unlocked[index] -= amount + self.fee
            return httpx.Response(
                200, json={"success": True, "txHash": self._tx_hash(), "fee": str(self.fee)}
            )

        if path == "/api/wallet/consolidate":
            target = body["targetWallet"]
            hashes = []
            for source in body["sources"]:
                index = source["walletIndex"]
                amount = Decimal(str(source["amount"])) if source.get("amount") else self.unlocked[index]
                if amount > 0:
                    self._move(index, target, amount)
                    hashes.append(self._tx_hash())
            return httpx.Response(200, json={"success": True, "txHashes": hashes})

        if path == "/api/wallet/distribute":
            return httpx.Response(200, json={"success": True, "txHashes": [self._tx_hash()]})

        return httpx.Response(404, json={"error": "Not found"})


class FakeDaemon:
    """monerod RPC stand-in: known transactions by hash plus a chain height."""

    def __init__(self, height: int = 1000):
        self.height = height
        self.txs: dict[str, dict] = {}
        self.down = False

    def add(self, tx_hash: str, block_height: Optional[int] = None, in_pool: bool = False) -> None:
        self.txs[tx_hash] = {"tx_hash": tx_hash, "block_height": block_height, "in_pool": in_pool}

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)
        body = json.loads(request.content)
        if request.url.path == "/get_transactions":
            found = [self.txs[h] for h in body["txs_hashes"] if h in self.txs]
            missed = [h for h in body["txs_hashes"] if h not in self.txs]
            return httpx.Response(
                200, json={"status": "OK", "txs": found, "missed_tx": missed}
            )
        if request.url.path == "/json_rpc" and body["method"] == "get_info":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": "0", "result": {"height": self.height}})
        return httpx.Response(404)


@pytest.fixture(autouse=True)
def reset_state():
    """Reset process-wide singletons, locks and rate limits between tests."""
    get_settings.cache_clear()
    clear_locks()
    limiter.reset()
    yield
    for setter in (
        set_wallet_client,
        set_wallet_service,
        set_payment_service,
        set_tx_monitor,
        set_price_service,
        set_swap_service,
        set_address_book_service,
        set_aggregator,
    ):
        setter(None)
    clear_locks()


@pytest_asyncio.fixture(autouse=True)
async def db_engine():
    """In-memory database shared by every session in the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    database.set_engine(engine)
    yield engine

    await engine.dispose()
    database.set_engine(None)


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def ledger_repo(db_session: AsyncSession) -> LedgerRepository:
    """Create ledger repository for testing."""
    return LedgerRepository(db_session)


@pytest.fixture
def fake_server() -> FakeWalletServer:
    return FakeWalletServer()


@pytest.fixture
def wallet_client(fake_server) -> WalletServerClient:
    client = WalletServerClient(
        "http://walletd.test",
        "test-secret",
        transport=httpx.MockTransport(fake_server.handler),
    )
    set_wallet_client(client)
    return client


@pytest.fixture
def wallet_service(wallet_client) -> WalletService:
    service = WalletService(wallet_client, balance_cache_ttl=300)
    set_wallet_service(service)
    return service


@pytest.fixture
def payment_service(wallet_service, wallet_client) -> PaymentService:
    service = PaymentService(wallet_service, wallet_client)
    set_payment_service(service)
    return service


@pytest_asyncio.fixture
async def wallets(wallet_service):
    """Five freshly created wallets, vault password "correct horse"."""
    created = await wallet_service.create_wallets("correct horse")
    return created


@pytest.fixture
def daemon() -> FakeDaemon:
    return FakeDaemon()


@pytest.fixture
def shop_address() -> str:
    return make_address("S")
