"""Boundary Protocols: the backend contract the record store is written against.

Invariants:
    - Core NEVER imports from infrastructure; the shell injects a DocumentBackend
    - Every method is one backend round trip (no hidden batching or retries)
    - Absent documents come back as None, never raise
    - Scan cursor 0 is both the start and the end-of-iteration sentinel

Design Decisions:
    - Protocol over ABC: RedisBackend and the test FakeBackend satisfy it structurally
    - Async in Protocol: implementations do network IO; the pure core
      (index_keys, query_plan) never calls these itself
"""

from typing import Any, Protocol


class DocumentBackend(Protocol):
    """JSON documents + sorted sets + key scan: implemented by infrastructure."""

    # Documents
    async def document_get(self, key: str) -> dict | None: ...
    async def document_set(self, key: str, document: dict) -> None: ...
    async def document_patch(self, key: str, path: str, value: Any) -> None: ...
    async def document_delete(self, key: str) -> None: ...
    async def multi_document_get(self, keys: list[str]) -> list[dict | None]: ...

    # Keys
    async def key_exists(self, key: str) -> bool: ...
    async def set_expiry(self, key: str, seconds: int) -> None: ...
    async def scan_keys(
        self, cursor: int, match: str, type_filter: str | None, count: int,
    ) -> tuple[int, list[str]]: ...

    # Sorted sets
    async def ordered_set_add(self, set_key: str, score: float, member: str) -> None: ...
    async def ordered_set_remove(self, set_key: str, member: str) -> None: ...
    async def ordered_set_range(
        self, set_key: str, start: int, stop: int, reverse: bool = False,
    ) -> list[str]: ...

    # Health
    async def ping(self) -> bool: ...
