"""Tests for whole-file JSON persistence."""

import json
import tempfile
from pathlib import Path

import pytest

from blotter.errors import StorageError
from blotter.records.persistence import JsonDocument, camelize, snakify, to_camel, to_snake


def test_missing_file_loads_default():
    with tempfile.TemporaryDirectory() as tmpdir:
        doc = JsonDocument(Path(tmpdir) / "citations.json")
        assert not doc.exists()
        assert doc.load(default={"citations": []}) == {"citations": []}


def test_save_and_load():
    with tempfile.TemporaryDirectory() as tmpdir:
        doc = JsonDocument(Path(tmpdir) / "nested" / "arrests.json")
        doc.save({"arrests": [{"id": "abc", "totalAmount": "10.00"}]})

        assert doc.exists()
        assert doc.load(default={}) == {"arrests": [{"id": "abc", "totalAmount": "10.00"}]}
        # No temp files are left next to the target.
        assert [p.name for p in doc.path.parent.iterdir()] == ["arrests.json"]


def test_corrupt_file_is_moved_aside():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "users.json"
        path.write_text("{not json", encoding="utf-8")

        doc = JsonDocument(path)
        assert doc.load(default={}) == {}

        assert not path.exists()
        quarantined = list(Path(tmpdir).glob("users.json.corrupt-*"))
        assert len(quarantined) == 1
        assert quarantined[0].read_text(encoding="utf-8") == "{not json"


def test_failed_replace_raises_storage_error_and_keeps_old_file(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        doc = JsonDocument(Path(tmpdir) / "citations.json")
        doc.save({"citations": [{"id": "one"}]})

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("blotter.records.persistence.os.replace", boom)
        with pytest.raises(StorageError):
            doc.save({"citations": []})
        monkeypatch.undo()

        assert json.loads(doc.path.read_text(encoding="utf-8")) == {"citations": [{"id": "one"}]}
        assert [p.name for p in Path(tmpdir).iterdir()] == ["citations.json"]


def test_unwritable_directory_raises_storage_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        blocker = Path(tmpdir) / "data"
        blocker.write_text("a file, not a directory", encoding="utf-8")

        with pytest.raises(StorageError):
            JsonDocument(blocker / "users.json").save({"users": []})


def test_key_case_conversion():
    assert to_camel("officer_user_ids") == "officerUserIds"
    assert to_camel("id") == "id"
    assert to_snake("officerUserIds") == "officer_user_ids"
    assert to_snake("mugshotBase64") == "mugshot_base64"

    record = {"total_jail_time": "60 Seconds", "discord_message_id": None}
    assert camelize(record) == {"totalJailTime": "60 Seconds", "discordMessageId": None}
    assert snakify(camelize(record)) == record


def test_undecodable_file_is_moved_aside():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "citations.json"
        path.write_bytes(b'{"citations": [\xff\xfe]}')

        assert JsonDocument(path).load(default={}) == {}
        assert not path.exists()
        assert len(list(Path(tmpdir).glob("citations.json.corrupt-*"))) == 1
