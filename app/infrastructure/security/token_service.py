from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from app.application.dto.auth import TokenPayload
from app.application.ports.token_port import TokenPort


class JwtTokenService(TokenPort):
    def __init__(
        self,
        *,
        jwt_secret: str,
        access_ttl_minutes: int,
    ):
        self._jwt_secret = jwt_secret
        self._access_ttl_minutes = access_ttl_minutes

    def create_token(self, *, subject: str, token_type: str, now: datetime) -> tuple[str, datetime]:
        exp = now + timedelta(minutes=self._access_ttl_minutes)
        payload = {
            "sub": subject,
            "type": token_type,
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        token = jwt.encode(payload, self._jwt_secret, algorithm="HS256")
        return token, exp

    def decode_token(self, *, token: str, token_type: str) -> TokenPayload:
        try:
            payload = jwt.decode(token, self._jwt_secret, algorithms=["HS256"])
        except jwt.PyJWTError as exc:
            raise ValueError("Invalid access token.") from exc

        if payload.get("type") != token_type:
            raise ValueError("Invalid token type.")

        subject = payload.get("sub")
        if not subject or not isinstance(subject, str):
            raise ValueError("Invalid token subject.")

        return TokenPayload(subject=subject, token_type=token_type)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
