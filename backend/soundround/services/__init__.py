"""Services Layer — imperative shell around the pure core.

Invariants:
    - Every round mutation is load whole, mutate a local copy, save whole
    - File side effects happen only after the round save is confirmed
"""
