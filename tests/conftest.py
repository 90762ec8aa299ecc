import os

os.environ.setdefault("DB_CONN_STRING", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENABLE_RATE_LIMITING", "false")
os.environ.setdefault("DEFAULT_TIMEZONE", "UTC")

import pytest_asyncio
from asgi_lifespan import LifespanManager

from main import app
from src.core.repositories.models import Base
import src.infrastructure.database as database


@pytest_asyncio.fixture(autouse=True)
async def app_lifespan():
    async with LifespanManager(app):
        yield


@pytest_asyncio.fixture(autouse=True)
async def db_setup(app_lifespan):
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db():
    async with database.SessionLocal() as session:
        yield session
