"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All JSON endpoints answer with {"success": bool, ...}
"""
