"""Infrastructure Layer: backend client adapter and logging setup.

Invariants:
    - Everything that touches the network or process-wide state lives here
    - Modules here may import core/, never services/ or api/
"""
