from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: str = "false") -> bool:
    return (_env(name, default) or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    auto_create_schema: bool
    amm_host_base_url: str
    amm_host_timeout_seconds: float
    amm_host_max_retries: int
    custody_address: str
    jwt_secret: str
    jwt_access_ttl_minutes: int


def get_settings() -> Settings:
    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        auto_create_schema=_bool("AUTO_CREATE_SCHEMA"),
        amm_host_base_url=_env("AMM_HOST_BASE_URL", "http://localhost:8545"),
        amm_host_timeout_seconds=float(_env("AMM_HOST_TIMEOUT_SECONDS", "10")),
        amm_host_max_retries=int(_env("AMM_HOST_MAX_RETRIES", "3")),
        custody_address=_env("CUSTODY_ADDRESS", "release-engine"),
        jwt_secret=_env("JWT_SECRET", ""),
        jwt_access_ttl_minutes=int(_env("JWT_ACCESS_TTL_MINUTES", "60")),
    )
