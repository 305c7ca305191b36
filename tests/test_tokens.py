"""Unit tests for the bearer token cache in kycgate/services/tokens.py."""

import base64
import json

import httpx
import pytest

from kycgate.domain.errors import TokenExchangeError
from kycgate.services.tokens import (
    CachedToken,
    TokenCache,
    TokenGrant,
    basic_credential,
    client_credentials_exchange,
    compute_expiry,
)

from .conftest import json_response, mock_client


class FakeClock:
    def __init__(self, now_ms: int = 1_000_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: int) -> None:
        self.now_ms += seconds * 1000


class CountingExchange:
    def __init__(self, expires_in: int = 3600) -> None:
        self.calls = 0
        self.expires_in = expires_in

    async def __call__(self) -> TokenGrant:
        self.calls += 1
        return TokenGrant(access_token=f"token-{self.calls}", expires_in=self.expires_in)


class TestExpiry:

    def test_safety_margin_applied(self) -> None:
        assert compute_expiry(0, 3600) == 3300 * 1000

    def test_floor_for_short_grants(self) -> None:
        assert compute_expiry(0, 100) == 60 * 1000
        assert compute_expiry(0, 0) == 60 * 1000


class TestGetToken:

    @pytest.mark.asyncio
    async def test_one_exchange_within_validity_window(self) -> None:
        clock = FakeClock()
        cache = TokenCache(clock=clock)
        exchange = CountingExchange()

        first = await cache.get_token("digitap", exchange)
        clock.advance(60)
        second = await cache.get_token("digitap", exchange)

        assert first == second == "token-1"
        assert exchange.calls == 1

    @pytest.mark.asyncio
    async def test_refresh_after_expiry(self) -> None:
        clock = FakeClock()
        cache = TokenCache(clock=clock)
        exchange = CountingExchange(expires_in=3600)

        await cache.get_token("digitap", exchange)
        clock.advance(3300)
        token = await cache.get_token("digitap", exchange)

        assert token == "token-2"
        assert exchange.calls == 2

    @pytest.mark.asyncio
    async def test_providers_cached_independently(self) -> None:
        cache = TokenCache(clock=FakeClock())
        exchange = CountingExchange()

        await cache.get_token("a", exchange)
        await cache.get_token("b", exchange)

        assert exchange.calls == 2
        assert cache.peek("a").token == "token-1"
        assert cache.peek("b").token == "token-2"

    @pytest.mark.asyncio
    async def test_exchange_failure_is_surfaced(self) -> None:
        cache = TokenCache(clock=FakeClock())

        async def broken() -> TokenGrant:
            raise RuntimeError("boom")

        with pytest.raises(TokenExchangeError):
            await cache.get_token("digitap", broken)
        assert cache.peek("digitap") is None

    @pytest.mark.asyncio
    async def test_invalidate_forces_exchange(self) -> None:
        cache = TokenCache(clock=FakeClock())
        exchange = CountingExchange()

        await cache.get_token("digitap", exchange)
        cache.invalidate("digitap")
        await cache.get_token("digitap", exchange)

        assert exchange.calls == 2


class TestSwap:

    def test_concurrent_longer_lived_token_kept(self) -> None:
        cache = TokenCache(clock=FakeClock())
        winner = CachedToken("digitap", "winner", expires_at_epoch_ms=10_000)
        cache._swap(None, winner)

        loser = CachedToken("digitap", "loser", expires_at_epoch_ms=5_000)
        assert cache._swap(None, loser) is winner
        assert cache.peek("digitap") is winner

    def test_expected_entry_replaced(self) -> None:
        cache = TokenCache(clock=FakeClock())
        stale = CachedToken("digitap", "stale", expires_at_epoch_ms=10_000)
        cache._swap(None, stale)

        fresh = CachedToken("digitap", "fresh", expires_at_epoch_ms=9_000)
        assert cache._swap(stale, fresh) is fresh


class TestClientCredentials:

    @pytest.mark.asyncio
    async def test_exchange_posts_credentials(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return json_response(200, {"access_token": "abc", "expires_in": 1800})

        async with mock_client(handler) as http:
            exchange = client_credentials_exchange(http, "https://auth.test/token", "id", "secret", "digitap")
            grant = await exchange()

        assert grant == TokenGrant(access_token="abc", expires_in=1800)
        assert seen["body"] == {"client_id": "id", "client_secret": "secret", "grant_type": "client_credentials"}

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        async with mock_client(lambda request: json_response(401, {"message": "bad creds"})) as http:
            exchange = client_credentials_exchange(http, "https://auth.test/token", "id", "secret", "digitap")
            with pytest.raises(TokenExchangeError):
                await exchange()


def test_basic_credential() -> None:
    assert base64.b64decode(basic_credential("id", "secret")) == b"id:secret"
