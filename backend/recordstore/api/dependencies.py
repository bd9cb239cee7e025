"""Store Dependencies: process-wide backend + store singletons for the HTTP shell.

Invariants:
    - init_store() runs once on startup (lifespan); get_store() fails fast before that
    - One RecordStore per process, configured from Settings

Design Decisions:
    - Module-level singletons set by init_store(): routes depend on get_store(),
      tests override it through app.dependency_overrides
"""

import logging

from recordstore.config import Settings
from recordstore.core.repository_protocols import DocumentBackend
from recordstore.infrastructure.redis_backend import RedisBackend
from recordstore.services.record_store import RecordStore

logger = logging.getLogger(__name__)

# Singletons (initialized on startup)
backend: RedisBackend | None = None
store: RecordStore | None = None


def build_store(settings: Settings, store_backend: DocumentBackend) -> RecordStore:
    """RecordStore for the configured namespace and lookups."""
    return RecordStore.create_store(
        store_backend,
        settings.store_key,
        index_name=settings.store_index_name,
        lookups=settings.store_lookups,
        expire=settings.store_expire_seconds,
        json_type=settings.kv_json_type,
        block_size=settings.mget_block_size,
        warn_threshold=settings.find_warn_threshold,
        default_scan_count=settings.scan_default_count,
    )


def init_store(settings: Settings) -> RecordStore:
    global backend, store
    backend = RedisBackend.from_settings(settings)
    store = build_store(settings, backend)
    logger.info(
        "Record store ready: key=%s index=%s lookups=%s",
        store.key, store.index_name, [s.name for s in store.lookups],
    )
    return store


async def close_store() -> None:
    global backend, store
    if backend:
        await backend.close()
    backend = None
    store = None


async def get_store() -> RecordStore:
    """FastAPI dependency for the configured record store."""
    if not store:
        raise RuntimeError("Record store not initialized")
    return store
