"""Client for the wallet service's internal API."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Generator

import httpx

from schemas import DomainEvent

from ..metrics import SIDE_EFFECT_FAILURES

logger = logging.getLogger(__name__)


class ServiceTokenAuth(httpx.Auth):
    """Attach a freshly minted service token to every outgoing request."""

    def __init__(self, token_factory: Callable[[], str]) -> None:
        self._token_factory = token_factory

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token_factory()}"
        yield request


class WalletClient:
    """Best-effort calls into the wallet service.

    Nothing here raises: notifications are fire-and-forget and lookups return
    ``None`` whenever the wallet is disabled, slow, or failing.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token_factory: Callable[[], str],
        enabled: bool = True,
        timeout_seconds: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._enabled = enabled
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            auth=ServiceTokenAuth(token_factory),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        # per-phase httpx timeouts bound each socket operation; this bounds the whole call
        self._deadline = timeout_seconds
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="wallet")
        self._requests = ThreadPoolExecutor(max_workers=8, thread_name_prefix="wallet-http")

    @property
    def enabled(self) -> bool:
        return self._enabled

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self._requests.shutdown(wait=False)
        self._client.close()

    def notify_event(self, event: str, data: dict[str, Any]) -> None:
        """Post ``event`` to the wallet; failures are logged and swallowed."""
        if not self._enabled:
            logger.info("wallet service communication disabled, skipping %s", event)
            return

        body = DomainEvent(event=event, data=data).to_wire()
        try:
            response = self._send("POST", "/internal/events", json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            SIDE_EFFECT_FAILURES.labels(kind="wallet_notify").inc()
            logger.error(
                "wallet service rejected %s: %s %s",
                event,
                exc.response.status_code,
                exc.response.text,
            )
            return
        except httpx.HTTPError as exc:
            SIDE_EFFECT_FAILURES.labels(kind="wallet_notify").inc()
            logger.error("failed to notify wallet service of %s: %s", event, exc)
            return
        logger.info("event %s sent to wallet service", event)

    def get_balance(self, user_id: str) -> Any | None:
        return self._get_json(f"/internal/balance/{user_id}", "balance", user_id)

    def get_transactions(self, user_id: str) -> Any | None:
        return self._get_json(f"/internal/transactions/{user_id}", "transactions", user_id)

    def get_financial_data(self, user_id: str) -> dict[str, Any]:
        """Fetch balance and transactions concurrently; either may be ``None``."""
        balance = self._executor.submit(self.get_balance, user_id)
        transactions = self._executor.submit(self.get_transactions, user_id)
        return {"balance": balance.result(), "transactions": transactions.result()}

    def _get_json(self, path: str, what: str, user_id: str) -> Any | None:
        if not self._enabled:
            return None
        try:
            response = self._send("GET", path)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            SIDE_EFFECT_FAILURES.labels(kind=f"wallet_{what}").inc()
            logger.error("failed to get %s for user %s from wallet service: %s", what, user_id, exc)
            return None

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Issue a request that must complete within the configured deadline.

        Raises
        ------
        httpx.TimeoutException
            When the whole exchange overruns the deadline.
        """
        future = self._requests.submit(self._client.request, method, path, **kwargs)
        try:
            return future.result(timeout=self._deadline)
        except FutureTimeoutError:
            future.cancel()
            raise httpx.TimeoutException(
                f"{method} {path} exceeded the {self._deadline}s deadline"
            ) from None
