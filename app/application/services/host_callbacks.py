from __future__ import annotations

import logging

from app.application.ports.amm_host_port import AmmHostPort
from app.domain.entities.host_callback import BalanceDelta, HostCallbackRequest


logger = logging.getLogger(__name__)


class HostCallbackAdapter:
    def __init__(self, *, host_port: AmmHostPort, custody_address: str):
        self._host_port = host_port
        self._custody_address = custody_address

    @property
    def custody_address(self) -> str:
        return self._custody_address

    def apply(
        self,
        *,
        pool_id: str,
        request: HostCallbackRequest,
        recipient: str | None = None,
    ) -> BalanceDelta:
        """Executa o pedido no host e liquida os saldos resultantes.

        Saldo negativo e pago a partir da custodia; positivo vai para `recipient`
        (custodia quando omitido).
        """
        delta = self._host_port.execute(pool_id=pool_id, request=request)
        target = recipient or self._custody_address
        for currency in (0, 1):
            amount = delta.for_currency(currency)
            if amount < 0:
                self._host_port.settle(
                    pool_id=pool_id,
                    currency=currency,
                    payer=self._custody_address,
                    amount=-amount,
                )
            elif amount > 0:
                self._host_port.take(
                    pool_id=pool_id,
                    currency=currency,
                    recipient=target,
                    amount=amount,
                )
        logger.info(
            "host_callbacks: applied pool=%s request=%s amount0=%s amount1=%s recipient=%s",
            pool_id,
            type(request).__name__,
            delta.amount0,
            delta.amount1,
            target,
        )
        return delta

    def custody_balance(self, *, pool_id: str, currency: int) -> int:
        return self._host_port.balance_of(
            pool_id=pool_id,
            currency=currency,
            account=self._custody_address,
        )
