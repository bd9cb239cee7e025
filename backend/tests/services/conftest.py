"""Service test fixtures: a RecordStore wired to the in-memory FakeBackend.

Invariants:
    - Every test gets a fresh backend, clock and id sequence
    - The default store indexes `user` -> userId and `category` -> category
"""

import pytest

from recordstore.core.domain_types import StoreOptions
from recordstore.services.record_store import RecordStore
from tests.fake_backend import JSON_TYPE


@pytest.fixture
def make_store(backend, clock, id_factory):
    """Factory for stores sharing the test backend."""
    def _make(key="thing", lookups=None, **kwargs):
        options = StoreOptions.build(
            key,
            kwargs.pop("index_name", None),
            {"user": "userId", "category": "category"} if lookups is None else lookups,
            **{
                k: kwargs.pop(k)
                for k in ("no_lookup", "no_index", "expire", "hard_delete")
                if k in kwargs
            },
        )
        return RecordStore(
            backend, options, clock=clock, id_factory=id_factory,
            json_type=JSON_TYPE, **kwargs,
        )
    return _make


@pytest.fixture
def store(make_store):
    return make_store()
