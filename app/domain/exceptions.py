from __future__ import annotations


class DomainError(Exception):
    """Base para erros de dominio."""


class ReleaseScheduleNotFoundError(DomainError):
    """Pool solicitada nao possui cronograma de liberacao."""


class AlreadyInitializedError(DomainError):
    """Pool ja possui cronograma de liberacao."""


class InvalidTimeRangeError(DomainError):
    """Janela de liberacao invalida (inicio/fim)."""


class InvalidTickRangeError(DomainError):
    """Faixa de ticks invalida ou fora dos limites utilizaveis da pool."""


class InvalidEpochSizeError(DomainError):
    """Tamanho de epoca deve ser positivo."""


class BeforeStartTimeError(DomainError):
    """Curva consultada antes do inicio da janela."""


class BeforeEndTimeError(DomainError):
    """Finalizacao solicitada antes do fim da janela."""


class UnauthorizedError(DomainError):
    """Chamador nao e o owner da pool."""


class ReconciliationDisabledError(DomainError):
    """Cronograma ja finalizado; reconciliacao desativada."""


class AmmHostError(DomainError):
    """Falha ao falar com o motor AMM hospedeiro."""
