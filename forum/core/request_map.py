"""Request Map — schema-less request payload with default-on-miss accessors.

Invariants:
    - Keys are case-sensitive strings
    - Typed accessors never raise: absent key or wrong type returns the zero value
    - bool is never accepted where a number is expected (JSON true is not 1)
    - Read-only after construction

Design Decisions:
    - Zero values mean "not provided"; handlers validate required fields themselves
"""

import json
from collections.abc import Mapping
from typing import Any, Iterator


class RequestMap(Mapping[str, Any]):
    """Decoded JSON object body of an API request."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data: dict[str, Any] = dict(data) if data else {}

    @classmethod
    def from_body(cls, body: bytes | str | None) -> "RequestMap":
        """Parse a JSON body. Anything but a JSON object yields an empty map."""
        if not body:
            return cls()
        try:
            parsed = json.loads(body)
        except (ValueError, TypeError, RecursionError):
            return cls()
        if not isinstance(parsed, dict):
            return cls()
        return cls(parsed)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"RequestMap({sorted(self._data)})"

    # ─── Typed accessors ─────────────────────────────────────────

    def get_string(self, key: str) -> str:
        value = self._data.get(key)
        return value if isinstance(value, str) else ""

    def get_int(self, key: str) -> int:
        value = self._data.get(key)
        if isinstance(value, bool):
            return 0
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return 0

    def get_float(self, key: str) -> float:
        value = self._data.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0.0
        return float(value)

    def get_bool(self, key: str) -> bool:
        value = self._data.get(key)
        return value if isinstance(value, bool) else False

    def get_map(self, key: str) -> "RequestMap":
        value = self._data.get(key)
        return RequestMap(value) if isinstance(value, dict) else RequestMap()

    def get_list(self, key: str) -> list:
        value = self._data.get(key)
        return list(value) if isinstance(value, list) else []
