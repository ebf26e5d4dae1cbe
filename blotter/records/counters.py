"""Lifetime "ever issued" counters for citations and arrests.

The counter may run ahead of the live collection size (single deletes never
decrement it) but is never reported below it.
"""

from __future__ import annotations


class CountReconciler:
    """Counter tied to one collection.

    The stored value is persisted by whoever owns it (the users file); this
    class only enforces the arithmetic.
    """

    def __init__(self, name: str, value: int = 0) -> None:
        self.name = name
        self.value = max(int(value or 0), 0)

    def on_create(self, size: int) -> int:
        self.value = max(self.value + 1, size)
        return self.value

    def get_count(self, size: int) -> int:
        self.value = max(self.value, size)
        return self.value

    def on_delete_all(self) -> int:
        self.value = 0
        return self.value

    def __repr__(self) -> str:
        return f"CountReconciler({self.name!r}, value={self.value})"
