"""Index Keys: pure derivation of lookup index memberships and their update diff.

Invariants:
    - No IO: every function takes a record snapshot and returns write intents
    - Lookup key format is "<index_name>:<lookup_name>:<field_value>"
    - Pairs are emitted in lookup declaration order
    - A lookup whose field is absent or falsy yields no pair (the same values
      query planning rejects as criteria)
    - Field values render identically here and in query planning (format_lookup_value)

Design Decisions:
    - Pairs as (set_key, member) tuples: the record store turns each into one
      sorted-set add/remove call
    - diff compares key->member maps, so an unchanged bucket produces no write
"""

import json
from dataclasses import dataclass
from typing import Any, Iterable

from recordstore.core.domain_types import LookupSpec, Record

LookupPair = tuple[str, str]


@dataclass(frozen=True)
class LookupDiff:
    """Memberships to drop and to add when a record changes."""
    to_remove: list[LookupPair]
    to_add: list[LookupPair]

    @property
    def is_empty(self) -> bool:
        return not self.to_remove and not self.to_add


def value_key(key: str, record_id: str) -> str:
    """Document key for a record: "<key>:<id>"."""
    return f"{key}:{record_id}"


def format_lookup_value(value: Any) -> str:
    """Render a field value as it appears inside a lookup set key."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def has_lookup_value(value: Any) -> bool:
    """Whether a field value can be indexed and queried."""
    return bool(value)


def lookup_set_key(index_name: str, lookup_name: str, value: Any) -> str:
    return f"{index_name}:{lookup_name}:{format_lookup_value(value)}"


def lookup_keys(
    record: Record,
    index_name: str,
    lookups: Iterable[LookupSpec],
    no_lookup: bool = False,
) -> list[LookupPair]:
    """Lookup set memberships a record should have. Pure, no IO."""
    if no_lookup:
        return []
    record_id = record.get("id")
    pairs = []
    for spec in lookups:
        value = record.get(spec.field)
        if not has_lookup_value(value):
            continue
        pairs.append((lookup_set_key(index_name, spec.name, value), record_id))
    return pairs


def diff_lookup_keys(
    before: list[LookupPair], after: list[LookupPair],
) -> LookupDiff:
    """Set difference between two lookup snapshots, keyed by set key."""
    before_map = dict(before)
    after_map = dict(after)
    to_remove = [
        (k, v) for k, v in before_map.items() if after_map.get(k) != v
    ]
    to_add = [
        (k, v) for k, v in after_map.items() if before_map.get(k) != v
    ]
    return LookupDiff(to_remove=to_remove, to_add=to_add)
