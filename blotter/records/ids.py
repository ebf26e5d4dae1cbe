"""Id strategies injected into each collection at construction time."""

from __future__ import annotations

import secrets
import string
from typing import Any, Callable, Protocol

# Same alphabet and length as nanoid's defaults.
TOKEN_ALPHABET = string.ascii_letters + string.digits + "_-"
TOKEN_LENGTH = 21


class IdStrategy(Protocol):
    def next_id(self, taken: Callable[[Any], bool]) -> Any: ...

    def observe(self, existing_id: Any) -> None: ...


class SequentialIds:
    """Monotonic integers starting at ``start``.

    ``observe`` lets a collection loaded from disk push the cursor past ids
    already in use, so a stale ``nextUserId`` can never hand out a duplicate.
    """

    def __init__(self, start: int = 1) -> None:
        self.next_value = max(int(start), 1)

    def next_id(self, taken: Callable[[Any], bool]) -> int:
        while taken(self.next_value):
            self.next_value += 1
        value = self.next_value
        self.next_value += 1
        return value

    def observe(self, existing_id: Any) -> None:
        try:
            self.next_value = max(self.next_value, int(existing_id) + 1)
        except (TypeError, ValueError):
            pass


class RandomTokenIds:
    """URL-safe random string ids (21 characters by default)."""

    def __init__(self, length: int = TOKEN_LENGTH) -> None:
        self.length = length

    def next_id(self, taken: Callable[[Any], bool]) -> str:
        while True:
            token = "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(self.length))
            if not taken(token):
                return token

    def observe(self, existing_id: Any) -> None:
        return None
