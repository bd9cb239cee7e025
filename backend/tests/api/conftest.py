"""API test fixtures: FastAPI app with get_store overridden to a FakeBackend store.

Invariants:
    - Lifespan is not run (no real Redis); the store singleton is patched instead
    - Overrides are cleared after every test
"""

import pytest
from httpx import ASGITransport, AsyncClient

from recordstore.api import dependencies
from recordstore.api.dependencies import get_store
from recordstore.core.domain_types import StoreOptions
from recordstore.main import app
from recordstore.services.record_store import RecordStore
from tests.fake_backend import JSON_TYPE


@pytest.fixture
def api_store(backend, clock, id_factory):
    options = StoreOptions.build("thing", lookups={"category": "category"})
    return RecordStore(
        backend, options, clock=clock, id_factory=id_factory, json_type=JSON_TYPE,
    )


@pytest.fixture
async def client(api_store):
    async def override_get_store():
        return api_store

    app.dependency_overrides[get_store] = override_get_store
    original_store = dependencies.store
    dependencies.store = api_store

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    dependencies.store = original_store
