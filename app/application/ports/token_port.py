from __future__ import annotations

from datetime import datetime
from typing import Protocol

from app.application.dto.auth import TokenPayload


class TokenPort(Protocol):
    def create_token(self, *, subject: str, token_type: str, now: datetime) -> tuple[str, datetime]:
        ...

    def decode_token(self, *, token: str, token_type: str) -> TokenPayload:
        """Valida assinatura, expiracao e tipo; levanta ValueError se algo falhar."""
        ...
