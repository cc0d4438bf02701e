"""Infrastructure Layer — store client, upload storage and logging setup.

Invariants:
    - Transport failures are mapped to core.errors types before leaving this layer
"""
