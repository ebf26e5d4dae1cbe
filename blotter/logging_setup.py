"""Root logging configuration for the CLI and the web app."""

from __future__ import annotations

import logging

from blotter import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger.

    Calling it more than once only adjusts the level.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    if not any(getattr(h, "_blotter", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._blotter = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    # httpx logs every request at INFO; keep it quieter than our own lines.
    logging.getLogger("httpx").setLevel(logging.WARNING)
