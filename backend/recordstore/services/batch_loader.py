"""Batch Loader: hydrate resolved ids into live records with chunked multi-gets.

Invariants:
    - At most block_size keys per JSON.MGET; chunks are fetched concurrently
    - Absent documents and documents with a truthy deletedAt are dropped
    - Order within a chunk follows the id order; no cross-chunk guarantee beyond
      chunks being concatenated in request order
    - More than warn_threshold ids logs a WARNING (read amplification), never fails
"""

import asyncio
import logging
from typing import Iterable

from recordstore.core.domain_types import Record
from recordstore.core.index_keys import value_key
from recordstore.core.repository_protocols import DocumentBackend

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE = 256
DEFAULT_WARN_THRESHOLD = 100


def chunked(items: list[str], size: int) -> list[list[str]]:
    """Split items into consecutive lists of at most size elements."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


class BatchLoader:
    def __init__(
        self,
        backend: DocumentBackend,
        key: str,
        block_size: int = DEFAULT_BLOCK_SIZE,
        warn_threshold: int = DEFAULT_WARN_THRESHOLD,
    ):
        self._backend = backend
        self._key = key
        self.block_size = block_size
        self._warn_threshold = warn_threshold

    async def load(self, ids: Iterable[str]) -> list[Record]:
        """Fetch documents for ids, skipping absent and soft-deleted ones."""
        keys = [value_key(self._key, i) for i in dict.fromkeys(ids) if i]
        if not keys:
            return []

        if len(keys) > self._warn_threshold:
            logger.warning(
                "Loading %d %s documents in one find", len(keys), self._key,
                extra={"store_key": self._key, "id_count": len(keys)},
            )
        else:
            logger.debug("Loading %s documents: %s", self._key, keys)

        blocks = chunked(keys, self.block_size)
        results = await asyncio.gather(
            *(self._backend.multi_document_get(block) for block in blocks)
        )
        return [
            doc
            for block in results
            for doc in block
            if doc and not doc.get("deletedAt")
        ]
