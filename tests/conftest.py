"""
Shared fixtures: an in-memory stand-in for an asyncpg pool.

The real lib.db.Database is used everywhere; only asyncpg.create_pool is
replaced, so lazy init, acquisition and release logic all run for real.
"""
import asyncio
from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient

import lib.db as db_module
from api.main import create_app
from lib.db import Database
from lib.settings import Settings


class NotesStore:
    """What the notes table would hold"""

    def __init__(self):
        self.table_exists = False
        self.create_calls = 0
        self.rows = []
        self.next_id = 1

    def add(self, content, created_at="2026-10-18 12:00:00"):
        row = {"id": self.next_id, "content": content, "created_at": created_at}
        self.next_id += 1
        self.rows.append(row)
        return row


class FakeConnection:
    def __init__(self, store: NotesStore):
        self.store = store
        self.version_error = None
        self.ping_error = None
        self.ping_delay = 0.0

    async def fetchval(self, sql, *args, timeout=None):
        if "version()" in sql:
            if self.version_error:
                raise self.version_error
            return "PostgreSQL 16.4 (fake)"
        if "information_schema.tables" in sql:
            return self.store.table_exists
        if sql.strip() == "SELECT 1":
            if self.ping_delay:
                await asyncio.sleep(self.ping_delay)
            if self.ping_error:
                raise self.ping_error
            return 1
        raise AssertionError(f"unexpected fetchval: {sql}")

    async def fetch(self, sql, *args, timeout=None):
        if not self.store.table_exists:
            raise RuntimeError('relation "notes" does not exist')
        limit = args[0]
        rows = sorted(self.store.rows, key=lambda r: r["id"], reverse=True)
        return [dict(r) for r in rows[:limit]]

    async def execute(self, sql, *args, timeout=None):
        if "CREATE TABLE IF NOT EXISTS notes" in sql:
            self.store.create_calls += 1
            self.store.table_exists = True
            return "CREATE TABLE"
        if "INSERT INTO notes" in sql:
            if not self.store.table_exists:
                raise RuntimeError('relation "notes" does not exist')
            self.store.add(args[0])
            return "INSERT 0 1"
        raise AssertionError(f"unexpected execute: {sql}")


class FakePool:
    def __init__(self, store: NotesStore, **options):
        self.options = options
        self.conn = FakeConnection(store)
        self.acquire_error = None
        self.in_use = 0
        self.released = 0
        self.expire_calls = 0
        self.expire_error = None
        self.closed = False

    @asynccontextmanager
    async def acquire(self, timeout=None):
        if self.acquire_error:
            raise self.acquire_error
        self.in_use += 1
        try:
            yield self.conn
        finally:
            self.in_use -= 1
            self.released += 1

    async def expire_connections(self):
        self.expire_calls += 1
        if self.expire_error:
            raise self.expire_error

    async def close(self):
        self.closed = True

    def get_size(self):
        return 1

    def get_idle_size(self):
        return 1 - self.in_use

    def get_min_size(self):
        return self.options.get("min_size", 1)

    def get_max_size(self):
        return self.options.get("max_size", 5)


class FakeBackend:
    """Replacement for asyncpg.create_pool, recording every attempt"""

    def __init__(self):
        self.store = NotesStore()
        self.pools = []
        self.attempts = 0
        self.fail_with = None
        self.hang_seconds = 0

    @property
    def pool(self):
        return self.pools[-1] if self.pools else None

    async def create_pool(self, **options):
        self.attempts += 1
        await asyncio.sleep(0)
        if self.hang_seconds:
            await asyncio.sleep(self.hang_seconds)
        if self.fail_with:
            raise self.fail_with
        pool = FakePool(self.store, **options)
        self.pools.append(pool)
        return pool


def build_settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "db_host": "db.test",
        "db_port": "5432",
        "db_name": "appdb",
        "db_user": "appuser",
        "db_password": "secret",
        "db_sslmode": "disable",
        "db_init_retry_seconds": 60.0,
        "_env_file": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(db_module.asyncpg, "create_pool", fake.create_pool)
    return fake


@pytest.fixture
def make_settings():
    return build_settings


@pytest.fixture
def settings():
    return build_settings()


@pytest.fixture
def app(backend, settings):
    return create_app(settings=settings, database=Database(settings))


@pytest.fixture
def client(app):
    """Test client with lifespan (pool connects on enter, closes on exit)"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def degraded_client(backend, settings):
    """Client whose database was unreachable at startup"""
    backend.fail_with = OSError("connection refused")
    app = create_app(settings=settings, database=Database(settings))
    with TestClient(app) as test_client:
        yield test_client
