"""Services Layer: the imperative shell around the pure core.

Invariants:
    - Every backend call is issued from here, through the DocumentBackend protocol
    - RecordStore composes QueryResolver and BatchLoader; callers only need RecordStore
"""
