"""Tests for the citation/arrest collections and the store handle."""

import json
import tempfile
from pathlib import Path

import pytest

from blotter.errors import RecordValidationError, StorageError
from blotter.records.ids import TOKEN_ALPHABET, TOKEN_LENGTH
from blotter.records.models import Arrest, Citation
from blotter.records.store import ReportStore
from blotter.storage import RecordStore


def _citation(**overrides) -> Citation:
    fields = dict(
        officer_badges=["101"],
        officer_usernames=["officer1"],
        officer_ranks=["Deputy"],
        officer_user_ids=["1"],
        violator_username="speedy",
        violator_signature="speedy",
        penal_codes=["(8)15"],
        amounts_due=["250.00"],
        jail_times=["None"],
        issued_by=1,
    )
    fields.update(overrides)
    return Citation(**fields)


def _arrest(**overrides) -> Arrest:
    fields = dict(
        officer_badges=["101"],
        officer_usernames=["officer1"],
        officer_ranks=["Deputy"],
        officer_user_ids=["1"],
        arrestee_username="robber",
        arrestee_signature="robber",
        penal_codes=["(2)08"],
        amounts_due=["500.00"],
        jail_times=["60 Seconds"],
    )
    fields.update(overrides)
    return Arrest(**fields)


def _store(tmpdir: str) -> ReportStore:
    return ReportStore(Path(tmpdir) / "citations.json", Citation, "citations")


def test_create_assigns_token_id_and_timestamps():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        created = store.create(_citation(id="ignored"))

        assert created.id != "ignored"
        assert len(created.id) == TOKEN_LENGTH
        assert set(created.id) <= set(TOKEN_ALPHABET)
        assert created.created_at and created.updated_at
        assert created.total_amount == "250.00"
        assert store.get(created.id) == created


def test_n_creates_count_n():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        for _ in range(4):
            store.create(_citation())
        assert store.get_count() == 4
        assert len(store.list()) == 4


def test_three_creates_one_delete():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        ids = [store.create(_citation()).id for _ in range(3)]

        assert store.delete(ids[1]) is True
        assert store.get_count() == 3
        assert len(store.list()) == 2
        assert store.get_count() >= len(store.list())


def test_delete_missing_returns_false():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert _store(tmpdir).delete("nope") is False


def test_delete_all_resets_counter():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        for _ in range(5):
            store.create(_citation())

        assert store.delete_all() == 5
        assert store.get_count() == 0
        assert store.list() == []


def test_invalid_record_is_not_persisted():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        with pytest.raises(RecordValidationError):
            store.create(_citation(officer_ranks=["Deputy", "Sergeant"]))

        assert len(store) == 0
        assert store.get_count() == 0
        assert not store.path.exists()


def test_get_returns_a_copy():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        created = store.create(_citation())

        fetched = store.get(created.id)
        fetched.penal_codes.append("(1)01")
        fetched.total_amount = "0.00"

        assert store.get(created.id).penal_codes == ["(8)15"]
        assert store.get(created.id).total_amount == "250.00"


def test_update_changes_only_given_fields():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ReportStore(Path(tmpdir) / "arrests.json", Arrest, "arrests")
        created = store.create(_arrest(description="tall"))

        updated = store.update(created.id, time_served=True, description=None)
        assert updated.time_served is True
        assert updated.description is None
        assert updated.arrestee_username == "robber"
        assert updated.created_at == created.created_at

        assert store.update("missing", time_served=True) is None


def test_update_rejects_immutable_and_unknown_fields():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        created = store.create(_citation())
        with pytest.raises(RecordValidationError):
            store.update(created.id, id="other")
        with pytest.raises(RecordValidationError):
            store.update(created.id, colour="blue")


def test_failed_write_rolls_back(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        kept = store.create(_citation())

        def fail(data):
            raise StorageError("disk full")

        monkeypatch.setattr(store._doc, "save", fail)

        with pytest.raises(StorageError):
            store.create(_citation())
        assert [c.id for c in store.list()] == [kept.id]
        assert store.get_count() == 1

        with pytest.raises(StorageError):
            store.delete(kept.id)
        assert store.get(kept.id) is not None

        with pytest.raises(StorageError):
            store.delete_all()
        assert len(store) == 1
        assert store.get_count() == 1


def test_file_uses_camel_case_keys():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = _store(tmpdir)
        created = store.create(_citation())

        data = json.loads(store.path.read_text(encoding="utf-8"))
        [raw] = data["citations"]
        assert raw["id"] == created.id
        assert raw["officerBadges"] == ["101"]
        assert raw["totalAmount"] == "250.00"
        assert "officer_badges" not in raw


def test_round_trip_through_reopen():
    with tempfile.TemporaryDirectory() as tmpdir:
        with RecordStore.open(Path(tmpdir)) as records:
            ids = [records.citations.create(_citation()).id for _ in range(3)]
            records.citations.delete(ids[0])
            arrest = records.arrests.create(_arrest(mugshot_base64="aGk=", time_served=True))

        with RecordStore.open(Path(tmpdir)) as reopened:
            assert reopened.citations.get_count() == 3
            assert sorted(c.id for c in reopened.citations.list()) == sorted(ids[1:])
            loaded = reopened.arrests.get(arrest.id)
            assert loaded == arrest
            assert loaded.warrant_required is False
            assert reopened.arrests.get_count() == 1


def test_counters_live_in_users_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        with RecordStore.open(Path(tmpdir)) as records:
            records.citations.create(_citation())
            records.arrests.create(_arrest())
            records.arrests.create(_arrest())

        users_doc = json.loads((Path(tmpdir) / "users.json").read_text(encoding="utf-8"))
        assert users_doc["citationCount"] == 1
        assert users_doc["arrestCount"] == 2


def test_stale_counter_is_reconciled_on_open():
    with tempfile.TemporaryDirectory() as tmpdir:
        with RecordStore.open(Path(tmpdir)) as records:
            for _ in range(3):
                records.citations.create(_citation())

        users_path = Path(tmpdir) / "users.json"
        users_doc = json.loads(users_path.read_text(encoding="utf-8"))
        users_doc["citationCount"] = 0
        users_path.write_text(json.dumps(users_doc), encoding="utf-8")

        with RecordStore.open(Path(tmpdir)) as reopened:
            assert reopened.users.citation_counter.value == 3
        assert json.loads(users_path.read_text(encoding="utf-8"))["citationCount"] == 3


def test_close_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        records = RecordStore.open(Path(tmpdir))
        records.close()
        records.close()
        assert records.closed
        assert (Path(tmpdir) / "citations.json").exists()


def test_update_cannot_touch_charges_or_amounts():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "citations.json"
        store = ReportStore(path, Citation, "citations")
        created = store.create(_citation())

        with pytest.raises(RecordValidationError):
            store.update(created.id, penal_codes=["(8)15", "(1)01"], total_amount="9999.00")
        with pytest.raises(RecordValidationError):
            store.update(created.id, officer_badges=["101", "102"])

        reopened = ReportStore(path, Citation, "citations")
        kept = reopened.get(created.id)
        assert kept.penal_codes == ["(8)15"]
        assert len(kept.penal_codes) == len(kept.amounts_due) == len(kept.jail_times)
        assert kept.total_amount == "250.00"


def test_update_normalises_jail_total():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ReportStore(Path(tmpdir) / "arrests.json", Arrest, "arrests")
        created = store.create(_arrest())

        assert store.update(created.id, total_jail_time="90").total_jail_time == "90 Seconds"
        with pytest.raises(RecordValidationError):
            store.update(created.id, total_jail_time="forever")
        with pytest.raises(RecordValidationError):
            store.update(created.id, total_jail_time=None)
        assert store.get(created.id).total_jail_time == "90 Seconds"


def test_undecodable_file_starts_fresh():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "citations.json").write_bytes(b'{"citations": [\xff\xfe]}')

        with RecordStore.open(Path(tmpdir)) as records:
            assert records.citations.list() == []
            assert records.citations.get_count() == 0
            records.citations.create(_citation())

        assert len(list(Path(tmpdir).glob("citations.json.corrupt-*"))) == 1


def test_wrong_shape_files_start_fresh():
    with tempfile.TemporaryDirectory() as tmpdir:
        base = Path(tmpdir)
        (base / "citations.json").write_text(json.dumps({"citations": None}), encoding="utf-8")
        (base / "arrests.json").write_text(
            json.dumps({"arrests": [42, {"id": "ok1", "penalCodes": ["(2)08"]}, {"noId": True}]}),
            encoding="utf-8",
        )
        (base / "users.json").write_text(
            json.dumps({"users": None, "citationCount": "n/a", "arrestCount": -4, "nextUserId": "x"}),
            encoding="utf-8",
        )

        with RecordStore.open(base) as records:
            assert records.citations.list() == []
            assert [a.id for a in records.arrests.list()] == ["ok1"]
            assert records.citations.get_count() == 0
            assert records.arrests.get_count() == 1
            assert len(records.users) == 0
