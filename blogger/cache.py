from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable

CREATED = "created"
MODIFIED = "modified"
DELETED = "deleted"


def list_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return [path for path in root.rglob("*") if path.is_file()]


def list_dirs(root: Path) -> list[Path]:
    if not root.is_dir():
        return []
    return [root] + sorted((path for path in root.rglob("*") if path.is_dir()), key=lambda p: p.as_posix())


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hash_file(path: Path) -> str:
    return hash_bytes(path.read_bytes())


def snapshot(roots: Iterable[Path]) -> dict[str, str]:
    """Map every file below ``roots`` to the hash of its content."""
    state = {}
    for root in roots:
        for path in list_files(root):
            try:
                state[path.as_posix()] = hash_file(path)
            except OSError:
                # Vanished or unreadable between listing and hashing.
                continue
    return state


def diff_snapshots(old: dict[str, str], new: dict[str, str]) -> list[tuple[str, str]]:
    changes = []
    for key in sorted(new):
        if key not in old:
            changes.append((key, CREATED))
        elif old[key] != new[key]:
            changes.append((key, MODIFIED))
    for key in sorted(old):
        if key not in new:
            changes.append((key, DELETED))
    return changes
