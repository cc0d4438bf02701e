"""Pydantic Schemas — request validation and response payloads for API endpoints.

Invariants:
    - Schemas validate at the system boundary (user input)
    - Domain enums from core/ used for mode and state fields
"""
