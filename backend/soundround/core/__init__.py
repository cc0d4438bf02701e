"""Core Layer — pure domain logic, no IO, no async, no store access.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - Functions take the current time and fresh ids as arguments when they need them
"""
