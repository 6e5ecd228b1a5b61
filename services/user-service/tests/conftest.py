from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import fakeredis
import httpx
import pytest

from app.domain.account import Account
from app.domain.contracts import CreateAccountInput
from app.domain.errors import AlreadyExistsError
from app.domain.service import AccountService
from app.infrastructure.cache import SessionCache
from app.infrastructure.events import RedisStreamPublisher
from app.infrastructure.wallet import WalletClient
from app.security.passwords import PasswordHasher
from app.security.tokens import TokenIssuer


class FakeRepository:
    """In-memory repository mimicking the Postgres-backed credential store."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.reads = 0

    def create_account(self, payload: CreateAccountInput) -> Account:
        if any(account.email == payload.email for account in self._accounts.values()):
            raise AlreadyExistsError()
        # strictly increasing timestamps keep ordering deterministic
        self._clock += timedelta(seconds=1)
        account = Account(
            id=str(uuid.uuid4()),
            email=payload.email,
            password_hash=payload.password_hash,
            name=payload.name,
            is_active=payload.is_active,
            created_at=self._clock,
            updated_at=self._clock,
        )
        self._accounts[account.id] = account
        return account

    def find_by_email(self, email: str) -> Account | None:
        self.reads += 1
        for account in self._accounts.values():
            if account.email == email:
                return account
        return None

    def find_by_id(self, account_id: str) -> Account | None:
        self.reads += 1
        return self._accounts.get(account_id)

    def list_accounts(self) -> list[Account]:
        self.reads += 1
        return sorted(self._accounts.values(), key=lambda a: a.created_at, reverse=True)

    def deactivate(self, account_id: str) -> None:
        self._accounts[account_id].is_active = False


@dataclass
class WalletStub:
    """httpx.MockTransport handler standing in for the wallet service."""

    requests: list[httpx.Request] = field(default_factory=list)
    events_status: int = 202
    balance: dict | None = field(default_factory=lambda: {"userId": "?", "balance": 150.0})
    transactions_down: bool = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/internal/events"):
            return httpx.Response(self.events_status, json={"received": True})
        if "/internal/balance/" in path:
            if self.balance is None:
                return httpx.Response(503, json={"message": "unavailable"})
            return httpx.Response(200, json=self.balance)
        if "/internal/transactions/" in path:
            if self.transactions_down:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=[{"id": "tx-1", "amount": 50, "type": "CREDIT"}])
        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture()
def redis_client() -> fakeredis.FakeStrictRedis:
    client = fakeredis.FakeStrictRedis()
    client.flushall()
    return client


@pytest.fixture()
def tokens() -> TokenIssuer:
    return TokenIssuer(
        user_secret="user-secret-for-tests",
        user_ttl_seconds=86400,
        service_secret="service-secret-for-tests",
        service_ttl_seconds=3600,
        issuer="user-service-test",
    )


@pytest.fixture()
def hasher() -> PasswordHasher:
    # lowest cost bcrypt accepts; production uses 10
    return PasswordHasher(rounds=4)


@pytest.fixture()
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture()
def wallet_stub() -> WalletStub:
    return WalletStub()


@pytest.fixture()
def wallet(tokens: TokenIssuer, wallet_stub: WalletStub):
    client = WalletClient(
        base_url="http://wallet.test/api",
        token_factory=lambda: tokens.issue_service_token("user-service"),
        enabled=True,
        timeout_seconds=5,
        transport=httpx.MockTransport(wallet_stub),
    )
    yield client
    client.close()


@pytest.fixture()
def cache(redis_client) -> SessionCache:
    return SessionCache(redis_client, ttl_seconds=3600)


@pytest.fixture()
def publisher(redis_client) -> RedisStreamPublisher:
    return RedisStreamPublisher(redis_client, stream="user-events", attempts=2)


@pytest.fixture()
def service(repository, hasher, tokens, cache, publisher, wallet) -> AccountService:
    return AccountService(
        repository,
        hasher=hasher,
        tokens=tokens,
        cache=cache,
        publisher=publisher,
        wallet=wallet,
    )


@pytest.fixture()
def offline_redis() -> fakeredis.FakeStrictRedis:
    """A Redis client whose server refuses every command."""
    server = fakeredis.FakeServer()
    server.connected = False
    return fakeredis.FakeStrictRedis(server=server)
