"""API Layer — dispatcher, codec, auth resolution, data delivery, error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every dispatcher and data response carries the security headers
"""
