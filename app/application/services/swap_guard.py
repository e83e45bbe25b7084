from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging
from threading import Lock


logger = logging.getLogger(__name__)


class SwapGuard:
    """Marca, por pool, que um swap iniciado pela reconciliacao esta em andamento.

    Enquanto marcado, a notificacao pre-swap do host nao roda `sync` de novo.
    Nao e um lock de concorrencia: protege apenas contra recursao aninhada.
    """

    def __init__(self):
        self._lock = Lock()
        self._active: set[str] = set()

    def is_active(self, pool_id: str) -> bool:
        with self._lock:
            return pool_id in self._active

    @contextmanager
    def hold(self, pool_id: str) -> Iterator[None]:
        with self._lock:
            if pool_id in self._active:
                raise RuntimeError(f"swap guard already held for pool {pool_id}.")
            self._active.add(pool_id)
        logger.debug("swap_guard: acquired pool=%s", pool_id)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(pool_id)
            logger.debug("swap_guard: released pool=%s", pool_id)
