from __future__ import annotations

from dataclasses import dataclass

ACCESS_TOKEN = "access"
HOST_TOKEN = "host"


@dataclass(frozen=True)
class TokenPayload:
    subject: str
    token_type: str
