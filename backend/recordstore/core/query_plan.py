"""Query Planning: turns a find/ids query mapping into a concrete read plan.

Invariants:
    - Priority: explicit id list > scan pattern > no criteria > lookup criteria
    - The caller's query mapping is never mutated
    - Non-integer or negative offset/count are dropped and reported in plan.warnings
    - A lookup criterion with a falsy value raises InvalidArgumentError (no IO issued yet)
    - Pure: the plan names set keys and ranks, the query resolver performs the reads

Design Decisions:
    - Paginate-then-intersect: each lookup criterion gets the same rank window
      [offset, offset + count - 1] BEFORE intersection. A multi-criterion page is the
      intersection of independently paginated windows and can hold fewer matches than
      a globally paginated intersection would. Kept for compatibility with existing
      stores; callers needing exact pages query with no count and slice the result.
    - Missing count means "to the end of the set" (stop rank -1)
    - Intersection preserves the first criterion's order (most recent first)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from recordstore.core.domain_types import RESERVED_QUERY_KEYS
from recordstore.core.errors import ErrorContext, InvalidArgumentError
from recordstore.core.index_keys import has_lookup_value, lookup_set_key, value_key

# Scan cap used when a scan query carries no count
DEFAULT_SCAN_COUNT = 999


class QueryKind(str, Enum):
    """Which resolution strategy a query maps to."""
    IDS = "ids"
    SCAN = "scan"
    ALL = "all"
    LOOKUP = "lookup"


@dataclass(frozen=True)
class Page:
    """Rank window over a reverse-ordered sorted set."""
    offset: int = 0
    count: int | None = None

    @property
    def start(self) -> int:
        return self.offset

    @property
    def stop(self) -> int:
        if self.count is None:
            return -1
        return self.offset + self.count - 1


@dataclass(frozen=True)
class QueryPlan:
    kind: QueryKind
    ids: list[str] = field(default_factory=list)
    set_keys: list[str] = field(default_factory=list)
    page: Page = field(default_factory=Page)
    scan_match: str | None = None
    scan_count: int = DEFAULT_SCAN_COUNT
    warnings: list[str] = field(default_factory=list)


def _valid_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _pagination(query: Mapping[str, Any], warnings: list[str]) -> tuple[int | None, int | None]:
    count = query.get("count")
    if count is not None and not _valid_int(count):
        warnings.append(f"query.count must be a non-negative integer, ignoring {count!r}")
        count = None
    offset = query.get("offset")
    if offset is not None and not _valid_int(offset):
        warnings.append(f"query.offset must be a non-negative integer, ignoring {offset!r}")
        offset = None
    return offset, count


def _explicit_ids(value: Any) -> list[str]:
    values = value if isinstance(value, (list, tuple)) else [value]
    return list(dict.fromkeys(v for v in values if v))


def plan_query(
    query: Mapping[str, Any] | None,
    key: str,
    index_name: str,
    default_scan_count: int = DEFAULT_SCAN_COUNT,
) -> QueryPlan:
    """Build the read plan for a query. Pure, no IO."""
    query = dict(query or {})
    warnings: list[str] = []

    if "id" in query and query["id"] is not None:
        return QueryPlan(kind=QueryKind.IDS, ids=_explicit_ids(query["id"]))

    offset, count = _pagination(query, warnings)

    if query.get("scan"):
        if count is None:
            warnings.append(
                f"scan with no count provided: capping at {default_scan_count}",
            )
        return QueryPlan(
            kind=QueryKind.SCAN,
            scan_match=value_key(key, query["scan"]),
            scan_count=count if count else default_scan_count,
            warnings=warnings,
        )

    page = Page(offset=offset or 0, count=count)
    criteria = {
        k: v for k, v in query.items() if k not in RESERVED_QUERY_KEYS
    }
    if not criteria:
        return QueryPlan(
            kind=QueryKind.ALL, set_keys=[index_name], page=page, warnings=warnings,
        )

    set_keys = []
    for name, value in criteria.items():
        if not has_lookup_value(value):
            raise InvalidArgumentError(
                f"Query criterion '{name}' must have a value",
                name,
                ErrorContext(store_key=key, operation="find"),
            )
        set_keys.append(lookup_set_key(index_name, name, value))
    return QueryPlan(
        kind=QueryKind.LOOKUP, set_keys=set_keys, page=page, warnings=warnings,
    )


def intersect_ordered(results: Iterable[list[str]]) -> list[str]:
    """Members present in every result list, in the first list's order."""
    results = list(results)
    if not results:
        return []
    first, *rest = results
    others = [set(r) for r in rest]
    return [m for m in dict.fromkeys(first) if all(m in o for o in others)]
