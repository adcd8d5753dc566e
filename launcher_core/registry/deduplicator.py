"""Per-run "seen" set: the first source to claim a name keeps it."""

from __future__ import annotations

from typing import Set


def normalize_key(name: str) -> str:
    return name.strip().lower()


class Deduplicator:
    """
    Session-scoped set of lowercase name keys.

    Create one per discovery run and drop it afterwards.  ``claim`` is a
    check-then-insert with no suspension point in between, so items
    running concurrently on the same event loop cannot both win.
    """

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def claim(self, name: str) -> bool:
        """Record ``name``; False when an earlier item already claimed it."""
        key = normalize_key(name)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

