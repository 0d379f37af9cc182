"""Shared fixtures — a fresh SQLite-backed store and service graph per test."""

import os

os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from ledger.config import Settings
from ledger.database import init_db
from ledger.dependencies import build_services
from ledger.store import RecordStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def settings(database_url) -> Settings:
    return Settings(
        environment="development",
        database_url=database_url,
        api_key="",
        store_timeout_seconds=10,
        feed_concurrency=4,
    )


@pytest.fixture
async def engine(anyio_backend, database_url):
    eng = create_async_engine(database_url, connect_args={"timeout": 10})
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
async def store(engine) -> RecordStore:
    return RecordStore(engine, timeout=10)


@pytest.fixture
async def services(engine, settings):
    return build_services(engine, settings)


@pytest.fixture
def make_product(services):
    """Create a product, optionally moving it straight to another status."""
    async def _make(title="Notion Planner", niche="productivity", price="29", status="listed"):
        product = await services.catalog.create_product(title, niche, price)
        if status != "draft":
            product = await services.catalog.set_product_status(product["id"], status)
        return product
    return _make


@pytest.fixture
def make_listing(services):
    """Create a listing and drive it to the requested status."""
    async def _make(product_id, platform="pinterest", status="published", url=None):
        listing = await services.lifecycle.create_listing(product_id, platform)
        if status == "published":
            listing = await services.lifecycle.mark_published(listing["id"], url or f"https://{platform}.example/p")
        elif status == "failed":
            listing = await services.lifecycle.mark_failed(listing["id"], "rejected by platform")
        return listing
    return _make
