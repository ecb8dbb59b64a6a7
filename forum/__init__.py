"""Forum Server Package — JSON API dispatch, session auth, hardened delivery.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
