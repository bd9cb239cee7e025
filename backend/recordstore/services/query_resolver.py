"""Query Resolver: executes a QueryPlan against the backend and returns record ids.

Invariants:
    - Plan warnings are logged, never raised
    - Lookup criteria are range-read concurrently, then intersected in the first
      criterion's order (see core/query_plan.py for the pagination caveat)
    - Scan stops when the cap is reached or the cursor returns to 0 / is falsy;
      ids are the key suffix after the first ":" and are never repeated
"""

import asyncio
import logging
from typing import Any, Mapping

from recordstore.core.query_plan import (
    DEFAULT_SCAN_COUNT, QueryKind, QueryPlan, intersect_ordered, plan_query,
)
from recordstore.core.repository_protocols import DocumentBackend

logger = logging.getLogger(__name__)

DEFAULT_JSON_TYPE = "ReJSON-RL"


def _id_from_key(key: str) -> str:
    return key[key.index(":") + 1:] if ":" in key else key


class QueryResolver:
    def __init__(
        self,
        backend: DocumentBackend,
        key: str,
        index_name: str,
        json_type: str | None = DEFAULT_JSON_TYPE,
        default_scan_count: int = DEFAULT_SCAN_COUNT,
    ):
        self._backend = backend
        self._key = key
        self._index_name = index_name
        self._json_type = json_type
        self._default_scan_count = default_scan_count

    def plan(self, query: Mapping[str, Any] | None) -> QueryPlan:
        plan = plan_query(
            query, self._key, self._index_name, self._default_scan_count,
        )
        for warning in plan.warnings:
            logger.warning(
                "%s query: %s", self._key, warning,
                extra={"store_key": self._key, "operation": plan.kind.value},
            )
        return plan

    async def resolve(self, query: Mapping[str, Any] | None = None) -> list[str]:
        """Ordered, de-duplicated ids matching the query."""
        plan = self.plan(query)
        logger.debug("Resolving %s query %s as %s", self._key, query, plan)

        if plan.kind is QueryKind.IDS:
            return plan.ids
        if plan.kind is QueryKind.SCAN:
            return await self._scan(plan.scan_match, plan.scan_count)

        results = await asyncio.gather(*(
            self._backend.ordered_set_range(
                set_key, plan.page.start, plan.page.stop, reverse=True,
            )
            for set_key in plan.set_keys
        ))
        if plan.kind is QueryKind.ALL:
            return list(dict.fromkeys(results[0]))

        ids = intersect_ordered(results)
        logger.debug(
            "Intersected %d lookup sets into %d ids", len(results), len(ids),
            extra={"store_key": self._key, "id_count": len(ids)},
        )
        return ids

    async def scan(self, pattern: str, count: int | None = None) -> list[str]:
        return await self.resolve({"scan": pattern, "count": count})

    async def _scan(self, match: str, count: int) -> list[str]:
        ids: dict[str, None] = {}
        cursor = 0
        while True:
            cursor, keys = await self._backend.scan_keys(
                cursor, match, self._json_type, count - len(ids),
            )
            for key in keys:
                if len(ids) >= count:
                    break
                ids.setdefault(_id_from_key(key), None)
            if len(ids) >= count or not cursor:
                break
        logger.debug(
            "Scanned %s: %d ids", match, len(ids),
            extra={"store_key": self._key, "id_count": len(ids)},
        )
        return list(ids)
