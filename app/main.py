from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routers import hooks, release_schedule
from app.infrastructure.db.engine import create_schema, get_engine
from app.shared.config import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    if settings.auto_create_schema and settings.postgres_dsn:
        create_schema(get_engine(settings.postgres_dsn))
    yield


app = FastAPI(title="Liquidity Release API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(hooks.router)
app.include_router(release_schedule.router)
