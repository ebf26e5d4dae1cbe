"""Tests for bearer session persistence."""

import json
import tempfile
from pathlib import Path

from blotter.auth.sessions import SessionStore


def test_create_resolve_revoke():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "sessions.json"
        store = SessionStore(path)
        session = store.create(7)

        assert store.resolve(session.token) == 7
        assert SessionStore(path).resolve(session.token) == 7
        assert store.revoke(session.token) is True
        assert store.resolve(session.token) is None


def test_expired_sessions_are_dropped_on_create():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "sessions.json"
        path.write_text(
            json.dumps(
                [
                    {"token": "old", "userId": 1, "createdAt": "2020-01-01T00:00:00+00:00",
                     "expiresAt": "2020-01-08T00:00:00+00:00"},
                    {"token": "live", "userId": 2, "createdAt": "2020-01-01T00:00:00+00:00",
                     "expiresAt": "2999-01-01T00:00:00+00:00"},
                ]
            ),
            encoding="utf-8",
        )
        store = SessionStore(path)
        fresh = store.create(3)

        tokens = {s["token"] for s in json.loads(path.read_text(encoding="utf-8"))}
        assert tokens == {"live", fresh.token}
        assert store.resolve("live") == 2


def test_wrong_shape_file_starts_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "sessions.json"
        path.write_text(json.dumps({"sessions": None}), encoding="utf-8")
        assert SessionStore(path).resolve("anything") is None
