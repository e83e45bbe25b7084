from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any

import httpx

from app.application.ports.amm_host_port import AmmHostPort
from app.domain.entities.host_callback import (
    BalanceDelta,
    HostCallbackRequest,
    ModifyPositionRequest,
    SwapRequest,
)
from app.domain.exceptions import AmmHostError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AmmHostClientSettings:
    base_url: str
    timeout_seconds: float
    max_retries: int


class AmmHostClient(AmmHostPort):
    """Cliente HTTP do motor AMM hospedeiro.

    Inteiros grandes trafegam como string decimal. Leituras sao repetidas com backoff;
    escritas nunca, para nao duplicar efeitos no host.
    """

    def __init__(self, settings: AmmHostClientSettings, *, transport: httpx.BaseTransport | None = None):
        self._settings = settings
        self._transport = transport

    def get_current_tick(self, *, pool_id: str) -> int:
        payload = self._get(f"/pools/{pool_id}/slot0")
        return int(payload["tick"])

    def get_usable_tick_bounds(self, *, pool_id: str) -> tuple[int, int]:
        payload = self._get(f"/pools/{pool_id}/tick-bounds")
        return int(payload["min_usable_tick"]), int(payload["max_usable_tick"])

    def get_position_liquidity(
        self,
        *,
        pool_id: str,
        owner: str,
        tick_lower: int,
        tick_upper: int,
    ) -> int:
        payload = self._get(
            f"/pools/{pool_id}/positions",
            params={"owner": owner, "tick_lower": tick_lower, "tick_upper": tick_upper},
        )
        return int(payload.get("liquidity") or 0)

    def execute(self, *, pool_id: str, request: HostCallbackRequest) -> BalanceDelta:
        payload = self._post(f"/pools/{pool_id}/unlock", json=self._encode_request(request))
        return BalanceDelta(amount0=int(payload["amount0"]), amount1=int(payload["amount1"]))

    def settle(self, *, pool_id: str, currency: int, payer: str, amount: int) -> None:
        self._post(
            f"/pools/{pool_id}/settle",
            json={"currency": currency, "payer": payer, "amount": str(amount)},
        )

    def take(self, *, pool_id: str, currency: int, recipient: str, amount: int) -> None:
        self._post(
            f"/pools/{pool_id}/take",
            json={"currency": currency, "recipient": recipient, "amount": str(amount)},
        )

    def balance_of(self, *, pool_id: str, currency: int, account: str) -> int:
        payload = self._get(f"/pools/{pool_id}/balances/{account}", params={"currency": currency})
        return int(payload.get("balance") or 0)

    def transfer(
        self,
        *,
        pool_id: str,
        currency: int,
        sender: str,
        recipient: str,
        amount: int,
    ) -> None:
        self._post(
            f"/pools/{pool_id}/transfer",
            json={
                "currency": currency,
                "sender": sender,
                "recipient": recipient,
                "amount": str(amount),
            },
        )

    @staticmethod
    def _encode_request(request: HostCallbackRequest) -> dict[str, Any]:
        match request:
            case ModifyPositionRequest(tick_lower=tick_lower, tick_upper=tick_upper, liquidity_delta=liquidity_delta):
                return {
                    "action": "modify_position",
                    "tick_lower": tick_lower,
                    "tick_upper": tick_upper,
                    "liquidity_delta": str(liquidity_delta),
                }
            case SwapRequest(zero_for_one=zero_for_one, amount_in=amount_in, sqrt_price_limit_x96=limit):
                return {
                    "action": "swap",
                    "zero_for_one": zero_for_one,
                    "amount_in": str(amount_in),
                    "sqrt_price_limit_x96": str(limit),
                }
        raise ValueError(f"Unsupported host request: {type(request).__name__}.")

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        )

    def _get(self, path: str, *, params: dict | None = None) -> dict:
        attempts = max(1, self._settings.max_retries)
        delay = 0.25
        last_exc: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                with self._client() as client:
                    response = client.get(path, params=params)
                    response.raise_for_status()
                    return response.json()
            except (httpx.HTTPError, ValueError) as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "amm_host_client: get_retry path=%s attempt=%s/%s error=%s",
                    path,
                    attempt,
                    attempts,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        raise AmmHostError(f"AMM host request failed after retries: {last_exc}") from last_exc

    def _post(self, path: str, *, json: dict) -> dict:
        try:
            with self._client() as client:
                response = client.post(path, json=json)
                response.raise_for_status()
                payload = response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("amm_host_client: post_failed path=%s error=%s", path, exc)
            raise AmmHostError(f"AMM host request failed: {exc}") from exc
        logger.debug("amm_host_client: post path=%s action=%s", path, json.get("action"))
        return payload
