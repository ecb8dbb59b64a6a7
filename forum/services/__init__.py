"""Services — business handlers plugged into the API dispatcher.

Invariants:
    - Every handler has the (request_map, username, authenticated) signature
    - Handlers raise ApiError subclasses for client-visible failures
"""
