"""Root conftest — shared fixtures for service and route tests.

Invariants:
    - Every test gets a fresh InMemoryKeyValueStore and an upload root under tmp_path
    - Services are built directly from those fixtures (no app involved)
    - browser() returns a new httpx client per identity, so each keeps its own cookie jar
    - app.state is populated by hand: ASGITransport does not run the lifespan

Design Decisions:
    - get_settings overridden per test so upload limits and policy can be tuned
      without touching the environment
"""

import logging
import os

import pytest
from httpx import ASGITransport, AsyncClient

# Keep app import from picking up a developer's .env / real Redis
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("LOG_FORMAT", "text")

from soundround.config import Settings, get_settings
from soundround.infrastructure.file_storage import UploadStorage
from soundround.infrastructure.observability import setup_logging
from soundround.main import app
from soundround.services.export_bundler import ExportBundler
from soundround.services.round_lifecycle import RoundLifecycle
from soundround.services.round_store import RoundLocks, RoundStore
from soundround.services.session_auth import SessionAuthenticator
from soundround.services.submissions import SubmissionService
from tests.fakes import InMemoryKeyValueStore


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        upload_dir=str(tmp_path / "uploads"),
        round_ttl_seconds=3600,
        join_code_max_attempts=5,
    )


@pytest.fixture
def upload_storage(settings):
    return UploadStorage(settings.upload_dir)


@pytest.fixture
def round_locks():
    return RoundLocks()


@pytest.fixture
def round_store(kv, settings, round_locks):
    return RoundStore(kv, settings.round_ttl_seconds, round_locks)


@pytest.fixture
def authenticator(kv, settings):
    return SessionAuthenticator(kv, settings.round_ttl_seconds)


@pytest.fixture
def lifecycle(round_store, authenticator, upload_storage, settings):
    return RoundLifecycle(round_store, authenticator, upload_storage, settings)


@pytest.fixture
def submissions(round_store, upload_storage, settings):
    return SubmissionService(round_store, upload_storage, settings)


@pytest.fixture
def bundler(round_store, upload_storage):
    return ExportBundler(round_store, upload_storage)


@pytest.fixture
async def browser(kv, upload_storage, round_locks, settings):
    """Factory for independent clients against one app instance.

    Usage: host = await browser(); guest = await browser()
    """
    app.state.store = kv
    app.state.upload_storage = upload_storage
    app.state.round_locks = round_locks
    app.dependency_overrides[get_settings] = lambda: settings

    clients: list[AsyncClient] = []

    async def _open() -> AsyncClient:
        client = AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test",
        )
        clients.append(client)
        return client

    yield _open

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()
    for name in ("store", "upload_storage", "round_locks"):
        if hasattr(app.state, name):
            delattr(app.state, name)


@pytest.fixture
def production_logging():
    """setup_logging as the lifespan runs it; root logger restored afterwards."""
    previous_level = logging.root.level
    previous_handlers = list(logging.root.handlers)
    setup_logging("INFO", "json")
    yield
    for handler in list(logging.root.handlers):
        if handler not in previous_handlers:
            logging.root.removeHandler(handler)
    logging.root.setLevel(previous_level)
