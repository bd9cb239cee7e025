"""Record Store: record lifecycle on a JSON document + sorted-set index backend.

Invariants:
    - Document key "<key>:<id>"; primary index "<index_name>" scored by createdAt
    - Validation (falsy id, missing criterion value) fails before any backend IO
    - Multi-write operations dispatch every write concurrently and wait for all of
      them to settle; the first failure is re-raised afterwards
    - No rollback: a failed write leaves earlier successful writes in place. The
      document and its indexes may disagree until repair_index() runs
    - Soft delete patches $.deletedAt and keeps the document; hard delete removes it;
      both remove the id from the primary index and every lookup set

Design Decisions:
    - Write intents come from pure core functions (index_keys) before dispatch
    - Clock and id factory are injected callables so lifecycles are reproducible in tests
    - Per-call options are keyword arguments merged over StoreOptions (None = default)
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping

from recordstore.core.domain_types import NO_INDEX_FIELD, LookupSpec, Record, StoreOptions
from recordstore.core.errors import (
    ErrorContext, InvalidArgumentError, NotFoundError,
)
from recordstore.core.index_keys import (
    LookupPair, diff_lookup_keys, lookup_keys, value_key,
)
from recordstore.core.query_plan import DEFAULT_SCAN_COUNT
from recordstore.core.repository_protocols import DocumentBackend
from recordstore.services.batch_loader import (
    DEFAULT_BLOCK_SIZE, DEFAULT_WARN_THRESHOLD, BatchLoader, chunked,
)
from recordstore.services.query_resolver import DEFAULT_JSON_TYPE, QueryResolver

logger = logging.getLogger(__name__)

# Scan cap for repair_index when no count is given
REPAIR_SCAN_COUNT = 100_000


def now_ms() -> int:
    """Wall-clock time in integer milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def new_id() -> str:
    """Short random unique identifier."""
    return uuid.uuid4().hex[:16]


async def settle(*writes: Awaitable[Any]) -> list[Any]:
    """Await every write; raise the first failure only after all have finished."""
    results = await asyncio.gather(*writes, return_exceptions=True)
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        logger.error(
            "%d of %d backend writes failed", len(failures), len(results),
        )
        raise failures[0]
    return results


@dataclass(frozen=True)
class RepairReport:
    """Outcome of a repair_index() pass."""
    scanned: int = 0
    reindexed: int = 0
    deindexed: int = 0
    orphans_removed: int = 0

    def to_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "reindexed": self.reindexed,
            "deindexed": self.deindexed,
            "orphans_removed": self.orphans_removed,
        }


class RecordStore:
    """Indexed record store for one entity type (one key namespace)."""

    def __init__(
        self,
        backend: DocumentBackend,
        options: StoreOptions,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
        json_type: str | None = DEFAULT_JSON_TYPE,
        block_size: int = DEFAULT_BLOCK_SIZE,
        warn_threshold: int = DEFAULT_WARN_THRESHOLD,
        default_scan_count: int = DEFAULT_SCAN_COUNT,
    ):
        self.backend = backend
        self.options = options
        self._clock = clock
        self._id_factory = id_factory
        self.resolver = QueryResolver(
            backend, options.key, options.index_name,
            json_type=json_type, default_scan_count=default_scan_count,
        )
        self.loader = BatchLoader(
            backend, options.key,
            block_size=block_size, warn_threshold=warn_threshold,
        )

    @classmethod
    def create_store(
        cls,
        backend: DocumentBackend,
        key: str,
        index_name: str | None = None,
        lookups: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> "RecordStore":
        """Build a store from the plain {lookup_name: field} mapping form."""
        store_defaults = {
            k: kwargs.pop(k) for k in ("no_lookup", "no_index", "expire", "hard_delete")
            if k in kwargs
        }
        options = StoreOptions.build(key, index_name, lookups, **store_defaults)
        return cls(backend, options, **kwargs)

    # ─── Naming ─────────────────────────────────────────────────

    @property
    def key(self) -> str:
        return self.options.key

    @property
    def index_name(self) -> str:
        return self.options.index_name

    @property
    def lookups(self) -> tuple[LookupSpec, ...]:
        return self.options.lookups

    def value_key(self, record_id: str) -> str:
        return value_key(self.key, record_id)

    def lookup_keys(self, record: Record, no_lookup: bool | None = None) -> list[LookupPair]:
        opts = self.options.merged(no_lookup=no_lookup)
        return lookup_keys(record, opts.index_name, opts.lookups, opts.no_lookup)

    def _context(self, operation: str, record_id: str | None = None) -> ErrorContext:
        return ErrorContext(store_key=self.key, record_id=record_id, operation=operation)

    # ─── Reads ──────────────────────────────────────────────────

    async def exists(self, record_id: str) -> bool:
        return await self.backend.key_exists(self.value_key(record_id))

    async def get(self, record_id: str, deleted: bool = False) -> Record | None:
        """Record by id; soft-deleted records only when deleted=True."""
        record = await self.backend.document_get(self.value_key(record_id))
        if not record:
            return None
        if record.get("deletedAt") and not deleted:
            return None
        return record

    async def ids(self, query: Mapping[str, Any] | None = None) -> list[str]:
        return await self.resolver.resolve(query)

    async def scan(self, pattern: str = "*", count: int | None = None) -> list[str]:
        return await self.resolver.scan(pattern, count)

    async def find(self, query: Mapping[str, Any] | None = None) -> list[Record]:
        """Live records matching the query (see QueryResolver for the forms)."""
        ids = await self.resolver.resolve(query)
        return await self.loader.load(ids)

    # ─── Writes ─────────────────────────────────────────────────

    async def create(
        self,
        record: Mapping[str, Any],
        expire: int | None = None,
        no_index: bool | None = None,
        no_lookup: bool | None = None,
    ) -> Record:
        """Write a new record and all of its index memberships."""
        opts = self.options.merged(expire=expire, no_index=no_index, no_lookup=no_lookup)
        created = dict(record)
        created["id"] = record.get("id") or self._id_factory()
        created["createdAt"] = record.get("createdAt") or self._clock()
        if opts.no_index:
            created[NO_INDEX_FIELD] = True

        doc_key = self.value_key(created["id"])
        pairs = lookup_keys(created, opts.index_name, opts.lookups, opts.no_lookup)
        score = created["createdAt"]

        writes = [self.backend.document_set(doc_key, created)]
        if opts.expire:
            writes.append(self.backend.set_expiry(doc_key, opts.expire))
        if not opts.no_index:
            writes.append(
                self.backend.ordered_set_add(opts.index_name, score, created["id"]),
            )
        writes.extend(
            self.backend.ordered_set_add(set_key, score, member)
            for set_key, member in pairs
        )
        logger.debug(
            "Creating %s with %d writes", doc_key, len(writes),
            extra={"store_key": self.key, "record_id": created["id"]},
        )
        await settle(*writes)
        return created

    async def update(
        self,
        record: Mapping[str, Any],
        expire: int | None = None,
        no_lookup: bool | None = None,
    ) -> Record:
        """Replace a live record, moving only the lookup memberships that changed."""
        record_id = record.get("id")
        if not record_id:
            raise NotFoundError(self.key, None, self._context("update"))

        previous = await self.get(record_id)
        if not previous:
            raise NotFoundError(self.key, record_id, self._context("update", record_id))

        opts = self.options.merged(expire=expire, no_lookup=no_lookup)
        updated = dict(record)
        updated["updatedAt"] = self._clock()
        if previous.get(NO_INDEX_FIELD):
            updated[NO_INDEX_FIELD] = True

        diff = diff_lookup_keys(
            lookup_keys(previous, opts.index_name, opts.lookups, opts.no_lookup),
            lookup_keys(updated, opts.index_name, opts.lookups, opts.no_lookup),
        )
        logger.debug(
            "Updating %s: remove %s, add %s", record_id, diff.to_remove, diff.to_add,
            extra={"store_key": self.key, "record_id": record_id},
        )

        if diff.to_remove:
            await settle(*(
                self.backend.ordered_set_remove(set_key, member)
                for set_key, member in diff.to_remove
            ))

        doc_key = self.value_key(record_id)
        score = updated.get("createdAt") or updated["updatedAt"]
        writes = [self.backend.document_set(doc_key, updated)]
        if opts.expire:
            writes.append(self.backend.set_expiry(doc_key, opts.expire))
        writes.extend(
            self.backend.ordered_set_add(set_key, score, member)
            for set_key, member in diff.to_add
        )
        await settle(*writes)
        return updated

    async def delete(
        self,
        record_id: str,
        hard_delete: bool | None = None,
        no_lookup: bool | None = None,
    ) -> Record | None:
        """Soft (default) or hard delete; always clears index memberships."""
        if not record_id:
            raise InvalidArgumentError(
                f"Cannot delete {self.key}: id is required", "id",
                self._context("delete"),
            )

        opts = self.options.merged(hard_delete=hard_delete, no_lookup=no_lookup)
        previous = await self.get(record_id, deleted=True)
        if not previous:
            logger.warning(
                "Cannot delete %s: does not exist: %s", self.key, record_id,
                extra={"store_key": self.key, "record_id": record_id, "operation": "delete"},
            )

        deleted_at = self._clock()
        doc_key = self.value_key(record_id)
        writes = [self.backend.ordered_set_remove(opts.index_name, record_id)]
        if previous:
            if opts.hard_delete:
                writes.append(self.backend.document_delete(doc_key))
            else:
                writes.append(self.backend.document_patch(doc_key, "deletedAt", deleted_at))
            writes.extend(
                self.backend.ordered_set_remove(set_key, member)
                for set_key, member in lookup_keys(
                    previous, opts.index_name, opts.lookups, opts.no_lookup,
                )
            )
        await settle(*writes)

        if not previous:
            return None
        return {**previous, "deletedAt": deleted_at}

    # ─── Maintenance ────────────────────────────────────────────

    async def repair_index(self, count: int | None = None) -> RepairReport:
        """Re-derive index memberships from stored documents.

        Re-adds the primary and lookup memberships of every live document (no
        primary membership for documents flagged noIndex), removes
        those of soft-deleted documents, and drops primary index members whose
        document is gone. Lookup memberships for stale field values can't be
        found this way, since lookup sets are not enumerated.
        """
        opts = self.options
        ids = await self.resolver.scan("*", count or REPAIR_SCAN_COUNT)
        reindexed = deindexed = 0

        for block in chunked(ids, self.loader.block_size):
            docs = await self.backend.multi_document_get(
                [self.value_key(i) for i in block],
            )
            writes = []
            for doc in docs:
                if not doc or not doc.get("id"):
                    continue
                pairs = lookup_keys(doc, opts.index_name, opts.lookups, opts.no_lookup)
                if doc.get("deletedAt"):
                    deindexed += 1
                    writes.append(self.backend.ordered_set_remove(opts.index_name, doc["id"]))
                    writes.extend(
                        self.backend.ordered_set_remove(k, m) for k, m in pairs
                    )
                    continue
                reindexed += 1
                score = doc.get("createdAt") or doc.get("updatedAt") or 0
                if not (opts.no_index or doc.get(NO_INDEX_FIELD)):
                    writes.append(
                        self.backend.ordered_set_add(opts.index_name, score, doc["id"]),
                    )
                writes.extend(
                    self.backend.ordered_set_add(k, score, m) for k, m in pairs
                )
            await settle(*writes)

        members = await self.backend.ordered_set_range(opts.index_name, 0, -1)
        orphans = []
        for block in chunked(members, self.loader.block_size):
            docs = await self.backend.multi_document_get(
                [self.value_key(i) for i in block],
            )
            orphans.extend(m for m, doc in zip(block, docs) if not doc)
        await settle(*(
            self.backend.ordered_set_remove(opts.index_name, m) for m in orphans
        ))

        report = RepairReport(
            scanned=len(ids), reindexed=reindexed,
            deindexed=deindexed, orphans_removed=len(orphans),
        )
        logger.info(
            "Repaired %s indexes: %s", self.key, report.to_dict(),
            extra={"store_key": self.key, "operation": "repair_index"},
        )
        return report
