"""Domain Types: record shape, lookup mapping and per-store options.

Invariants:
    - A record is a plain JSON object (dict) with at least `id` and `createdAt`
    - A record created outside the primary index carries `noIndex: true`
    - LookupSpec values are resolved once, when StoreOptions is built
    - Lookup names never collide with reserved query words (id, scan, offset, count)
    - StoreOptions is immutable; per-call overrides produce a new instance

Design Decisions:
    - Records stay plain dicts end to end, the shape the JSON backend stores
    - Frozen dataclass + merged(): per-call overrides are explicit keyword arguments,
      None means "use the store default"
"""

from dataclasses import dataclass, field, replace
from typing import Any

from recordstore.core.errors import ConfigError


# ─── Record ──────────────────────────────────────────────────────

# id (str) and createdAt (int millis) always; updatedAt, deletedAt optional
Record = dict[str, Any]


# Query keys with a fixed meaning; they can't be used as lookup names
RESERVED_QUERY_KEYS = frozenset({"id", "scan", "offset", "count"})

# Set on documents created with no_index; index repair leaves them out of the primary index
NO_INDEX_FIELD = "noIndex"


# ─── Configuration ───────────────────────────────────────────────

@dataclass(frozen=True)
class LookupSpec:
    """One secondary index: query alias -> record field."""
    name: str
    field: str


def resolve_lookups(lookups: dict[str, str] | None) -> tuple[LookupSpec, ...]:
    """Validate a {lookup_name: field_name} mapping into LookupSpec values."""
    specs = []
    for name, field_name in (lookups or {}).items():
        if not isinstance(name, str) or not name:
            raise ConfigError(f"Lookup name must be a non-empty string: {name!r}", "lookups")
        if not isinstance(field_name, str) or not field_name:
            raise ConfigError(
                f"Lookup '{name}' must map to a non-empty field name", "lookups",
            )
        if name in RESERVED_QUERY_KEYS:
            raise ConfigError(
                f"Lookup name '{name}' is reserved for queries", "lookups",
            )
        specs.append(LookupSpec(name=name, field=field_name))
    return tuple(specs)


@dataclass(frozen=True)
class StoreOptions:
    """Store-level defaults, overridable per call via merged()."""
    key: str
    index_name: str = ""
    lookups: tuple[LookupSpec, ...] = field(default_factory=tuple)
    no_lookup: bool = False
    no_index: bool = False
    expire: int | None = None
    hard_delete: bool = False

    def __post_init__(self):
        if not self.key:
            raise ConfigError("Store key is required", "key")
        if not self.index_name:
            object.__setattr__(self, "index_name", self.key + "s")

    @classmethod
    def build(
        cls,
        key: str,
        index_name: str | None = None,
        lookups: dict[str, str] | None = None,
        **defaults: Any,
    ) -> "StoreOptions":
        """Build options from the plain mapping form used in settings."""
        return cls(
            key=key,
            index_name=index_name or "",
            lookups=resolve_lookups(lookups),
            **defaults,
        )

    def merged(self, **overrides: Any) -> "StoreOptions":
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self
