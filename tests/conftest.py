from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient

from blotter import settings
from blotter.discord.messages import OutgoingMessage
from blotter.errors import SinkError
from blotter.storage import RecordStore


class FakeSink:
    """In-memory notification sink recording every call."""

    def __init__(self, fail_post: bool = False, fail_retract: bool = False) -> None:
        self.fail_post = fail_post
        self.fail_retract = fail_retract
        self.posted: list[OutgoingMessage] = []
        self.retracted: list[str] = []
        self.closed = False

    async def post(self, message: OutgoingMessage) -> str:
        if self.fail_post:
            raise SinkError("channel unreachable")
        self.posted.append(message)
        return f"msg-{len(self.posted)}"

    async def retract(self, message_id: str) -> None:
        self.retracted.append(message_id)
        if self.fail_retract:
            raise SinkError("channel unreachable")

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Cheap password hashing, demo-mode OAuth, no real Discord and no root log handler."""
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(settings, "DISCORD_CLIENT_ID", "")
    monkeypatch.setattr(settings, "DISCORD_CLIENT_SECRET", "")
    monkeypatch.setattr(settings, "DISCORD_BOT_TOKEN", "")
    monkeypatch.setattr(settings, "DISCORD_CHANNEL_ID", "")
    monkeypatch.setattr(settings, "ADMIN_USERNAMES", ["popfork1", "admin", "administrator"])
    monkeypatch.setattr(settings, "PROTECTED_USERNAMES", ["popfork1"])
    monkeypatch.setattr("web.backend.app.main.configure_logging", lambda level=None: None)
    monkeypatch.setattr("blotter.cli.configure_logging", lambda level=None: None)


@pytest.fixture()
def data_dir() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture()
def records(data_dir: Path) -> Generator[RecordStore, None, None]:
    store = RecordStore.open(data_dir)
    yield store
    store.close()


@pytest.fixture()
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture()
def client(records: RecordStore, sink: FakeSink) -> Generator[TestClient, None, None]:
    from web.backend.app.main import create_app

    with TestClient(create_app(records=records, sink=sink)) as test_client:
        yield test_client


def citation_payload(**overrides) -> dict:
    data = {
        "officer_badges": ["101"],
        "officer_usernames": ["officer1"],
        "officer_ranks": ["Deputy"],
        "officer_user_ids": ["111111111111111111"],
        "violator_username": "speedy",
        "violator_signature": "speedy",
        "penal_codes": ["(8)15"],
        "amounts_due": ["250.00"],
        "jail_times": ["None"],
    }
    data.update(overrides)
    return data


def arrest_payload(**overrides) -> dict:
    data = {
        "officer_badges": ["101"],
        "officer_usernames": ["officer1"],
        "officer_ranks": ["Deputy"],
        "officer_user_ids": ["111111111111111111"],
        "arrestee_username": "robber",
        "arrestee_signature": "robber",
        "penal_codes": ["(2)08"],
        "amounts_due": ["500.00"],
        "jail_times": ["60 Seconds"],
        "court_date": "01/02/26",
        "court_location": "4000 Capitol Drive",
        "court_phone": "(262) 785-4700",
    }
    data.update(overrides)
    return data
