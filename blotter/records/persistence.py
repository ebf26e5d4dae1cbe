"""Whole-file JSON persistence for a single collection document.

Every save serialises the complete document and atomically replaces the
target file, so a reader never observes a half-written collection.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from blotter.errors import StorageError

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def camelize(d: dict[str, Any]) -> dict[str, Any]:
    """Rename top-level snake_case keys to camelCase (file format)."""
    return {to_camel(k): v for k, v in d.items()}


def snakify(d: dict[str, Any]) -> dict[str, Any]:
    """Rename top-level camelCase keys to snake_case (Python side)."""
    return {to_snake(k): v for k, v in d.items()}


def as_list(value: Any, what: str) -> list:
    """Return ``value`` if it is a list, else log and return an empty one."""
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Expected a list for %s, got %s; ignoring it", what, type(value).__name__)
        return []
    return value


def as_int(value: Any, default: int, what: str) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s: %r", what, value)
        return default


class JsonDocument:
    """One JSON file holding one collection.

    ``load`` never raises: a missing file means an empty collection and an
    unparseable file is moved aside and treated the same way. ``save`` raises
    :class:`StorageError` so the owning store can roll back.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self, default: Any) -> Any:
        if not self.path.exists():
            logger.info("No existing %s found, starting fresh", self.path.name)
            return default
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError
            self._quarantine(exc)
            return default
        except OSError as exc:
            logger.error("Could not read %s: %s", self.path, exc)
            return default

    def save(self, data: Any) -> None:
        try:
            payload = json.dumps(data, indent=2, default=str)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Cannot serialise {self.path.name}: {exc}") from exc

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as exc:
            logger.error("Failed to save %s: %s", self.path, exc)
            raise StorageError(f"Failed to save {self.path.name}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except OSError as exc:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            logger.error("Failed to save %s: %s", self.path, exc)
            raise StorageError(f"Failed to save {self.path.name}: {exc}") from exc

    def _quarantine(self, exc: Exception) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, target)
        except OSError:
            target = self.path
        logger.warning(
            "Could not parse %s (%s); starting fresh, original kept at %s",
            self.path.name, exc, target.name,
        )
