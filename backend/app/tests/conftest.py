# Ensure the backend directory is on sys.path so tests can import the `app` package
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# tests/ -> app/ -> backend/
BACKEND_DIR = Path(__file__).resolve().parents[2]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.main import app  # noqa: E402
from app.services.store import store  # noqa: E402


@pytest.fixture(autouse=True)
def empty_store():
    store.reset()
    yield store
    store.reset()


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
