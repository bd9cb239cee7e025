"""Record Store Package: indexed JSON records on Redis sorted-set indexes.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
