"""Data Path Sanitation — pure checks for /data/ requests, applied before any IO.

Invariants:
    - Any path whose fully percent-decoded form contains ".." is rejected
    - NUL bytes and backslash-separated traversal are rejected the same way
    - Aliases are looked up only after sanitation succeeded
    - A resolved path must stay inside the served root
"""

from pathlib import Path
from urllib.parse import unquote

PARENT_TOKEN = ".."
MAX_DECODE_ROUNDS = 5

# virtual path (relative, no leading slash) -> real path under the served root
DATA_ALIASES: dict[str, str] = {
    "data/avatar/default": "assets/avatar.png",
}


def fully_decode(path: str) -> str:
    """Percent-decode until the value stops changing (bounded)."""
    for _ in range(MAX_DECODE_ROUNDS):
        decoded = unquote(path)
        if decoded == path:
            break
        path = decoded
    return path


def is_safe_data_path(path: str) -> bool:
    decoded = fully_decode(path)
    for candidate in (path, decoded):
        if PARENT_TOKEN in candidate or "\x00" in candidate:
            return False
    return True


def resolve_alias(relative: str) -> str:
    return DATA_ALIASES.get(relative, relative)


def resolve_under_root(root: Path, relative: str) -> Path | None:
    """Join relative onto root; None if the result escapes root."""
    base = root.resolve()
    target = (base / relative.lstrip("/")).resolve()
    if target != base and base not in target.parents:
        return None
    return target
