"""
Authentication token cache for providers using client-credential exchange.

One bearer token per provider, refreshed lazily when it expires. The
cache is an explicitly constructed object (one per service instance)
rather than module state, so tests can drive it with a fake clock.

Concurrency: refreshes for the same provider may race and produce a few
redundant exchanges. That is acceptable; what is not acceptable is a
reader seeing a token from one exchange paired with the expiry of
another. Entries are immutable CachedToken values replaced under a lock.
"""

import base64
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from kycgate.domain.errors import TokenExchangeError

logger = logging.getLogger(__name__)

# Tokens are treated as expired this long before the server says they are.
SAFETY_MARGIN_SECONDS = 300
# Floor on cached validity, even when the server grants less than the margin.
MIN_VALIDITY_SECONDS = 60


@dataclass(frozen=True)
class CachedToken:
    """A bearer token and the moment it stops being served from cache."""
    provider_id: str
    token: str
    expires_at_epoch_ms: int

    def is_valid(self, now_ms: int) -> bool:
        return now_ms < self.expires_at_epoch_ms


@dataclass(frozen=True)
class TokenGrant:
    """What a token endpoint hands back."""
    access_token: str
    expires_in: int


TokenExchange = Callable[[], Awaitable[TokenGrant]]


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def compute_expiry(now_ms: int, expires_in_seconds: int) -> int:
    """Expiry timestamp with the safety margin applied, floored at MIN_VALIDITY_SECONDS."""
    validity = max(expires_in_seconds - SAFETY_MARGIN_SECONDS, MIN_VALIDITY_SECONDS)
    return now_ms + validity * 1000


class TokenCache:
    """
    Process-wide cache of bearer tokens keyed by provider id.

    Example:
        cache = TokenCache()
        token = await cache.get_token("digitap", exchange)
    """

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        """
        Args:
            clock: Returns the current time in epoch milliseconds
        """
        self._clock = clock or _epoch_ms
        self._tokens: dict[str, CachedToken] = {}
        self._lock = threading.Lock()

    def peek(self, provider_id: str) -> CachedToken | None:
        """Current cache entry, valid or not."""
        with self._lock:
            return self._tokens.get(provider_id)

    async def get_token(self, provider_id: str, exchange: TokenExchange) -> str:
        """
        Return a valid token, exchanging credentials only when needed.

        Raises:
            TokenExchangeError: If the exchange fails; never retried here
        """
        cached = self.peek(provider_id)
        if cached is not None and cached.is_valid(self._clock()):
            return cached.token

        logger.info(f"Refreshing {provider_id} access token")
        try:
            grant = await exchange()
        except TokenExchangeError:
            raise
        except Exception as e:
            raise TokenExchangeError(f"{provider_id} authentication failed: {e}", provider_id) from e

        fresh = CachedToken(
            provider_id=provider_id,
            token=grant.access_token,
            expires_at_epoch_ms=compute_expiry(self._clock(), grant.expires_in),
        )
        return self._swap(cached, fresh).token

    def _swap(self, expected: CachedToken | None, fresh: CachedToken) -> CachedToken:
        """
        Install a refreshed token unless a concurrent refresh already
        installed one that lives at least as long.
        """
        with self._lock:
            current = self._tokens.get(fresh.provider_id)
            if (
                current is not None
                and current is not expected
                and current.expires_at_epoch_ms >= fresh.expires_at_epoch_ms
            ):
                return current
            self._tokens[fresh.provider_id] = fresh
            return fresh

    def invalidate(self, provider_id: str) -> None:
        """Drop a provider's token (e.g. after the provider answered 401)."""
        with self._lock:
            self._tokens.pop(provider_id, None)


def client_credentials_exchange(
    http: httpx.AsyncClient,
    token_url: str,
    client_id: str,
    client_secret: str,
    provider_id: str,
    timeout: float = 30.0,
) -> TokenExchange:
    """Build an exchange coroutine for an OAuth-style client-credentials endpoint."""

    async def exchange() -> TokenGrant:
        try:
            response = await http.post(
                token_url,
                json={
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "grant_type": "client_credentials",
                },
                timeout=timeout,
            )
            response.raise_for_status()
            body = response.json()
            return TokenGrant(
                access_token=body["access_token"],
                expires_in=int(body.get("expires_in") or 0),
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error(f"{provider_id} token exchange failed: {e}")
            raise TokenExchangeError(f"{provider_id} authentication failed", provider_id) from e

    return exchange


def basic_credential(client_id: str, client_secret: str) -> str:
    """Static credential: base64 of 'clientId:clientSecret'. Recomputed per call, never cached."""
    return base64.b64encode(f"{client_id}:{client_secret}".encode()).decode("ascii")
