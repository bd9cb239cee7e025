"""Core Layer: pure store logic, no IO, no async, no backend client.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - Key naming, lookup diffs and query plans are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: every write intent is
      computed here before the record store dispatches any backend call
"""
