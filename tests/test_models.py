"""Tests for report models, totals and structural validation."""

import pytest

from blotter.errors import RecordValidationError
from blotter.records.models import (
    Arrest,
    Citation,
    finalize_report,
    format_jail_time,
    parse_jail_time,
    sum_amounts,
)
from blotter.records.penal_codes import PENAL_CODES, describe, lookup


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
    )
    fields.update(overrides)
    return Citation(**fields)


def _arrest(**overrides) -> Arrest:
    fields = dict(
        officer_badges=["101", "102"],
        officer_usernames=["officer1", "officer2"],
        officer_ranks=["Deputy", "Sergeant"],
        officer_user_ids=["1", "2"],
        arrestee_username="robber",
        arrestee_signature="robber",
        penal_codes=["(2)08", "(5)01"],
        amounts_due=["500", "25.5"],
        jail_times=["60 Seconds", "30 Seconds"],
    )
    fields.update(overrides)
    return Arrest(**fields)


def test_citation_totals():
    citation = finalize_report(_citation())
    assert citation.total_amount == "250.00"
    assert citation.total_jail_time == "0 Seconds"


def test_citation_without_jail_times_gets_none_per_code():
    citation = finalize_report(
        _citation(penal_codes=["(8)15", "(8)21"], amounts_due=["250.00", "100.00"], jail_times=[])
    )
    assert citation.jail_times == ["None", "None"]
    assert citation.total_amount == "350.00"


def test_arrest_totals_and_warrant():
    arrest = finalize_report(_arrest())
    assert arrest.total_amount == "525.50"
    assert arrest.total_jail_time == "90 Seconds"
    assert arrest.total_jail_seconds == 90
    assert arrest.warrant_required

    arrest.time_served = True
    assert not arrest.warrant_required


def test_arrest_without_jail_needs_no_warrant():
    arrest = finalize_report(_arrest(jail_times=["None", "0"]))
    assert arrest.total_jail_time == "0 Seconds"
    assert not arrest.warrant_required


def test_mismatched_roster_rejected():
    with pytest.raises(RecordValidationError) as exc:
        finalize_report(_citation(officer_badges=["101", "102"]))
    assert exc.value.field == "officer_badges"


def test_too_many_officers_rejected():
    four = ["a", "b", "c", "d"]
    with pytest.raises(RecordValidationError):
        finalize_report(
            _citation(
                officer_badges=four, officer_usernames=four, officer_ranks=four, officer_user_ids=four
            )
        )


def test_empty_roster_rejected():
    with pytest.raises(RecordValidationError):
        finalize_report(
            _citation(officer_badges=[], officer_usernames=[], officer_ranks=[], officer_user_ids=[])
        )


def test_mismatched_charges_rejected():
    with pytest.raises(RecordValidationError) as exc:
        finalize_report(_citation(amounts_due=["250.00", "10.00"]))
    assert exc.value.field == "penal_codes"


def test_no_penal_codes_rejected():
    with pytest.raises(RecordValidationError):
        finalize_report(_citation(penal_codes=[], amounts_due=[], jail_times=[]))


@pytest.mark.parametrize("amount", ["12.345", "-5", "ten", "1,000", ""])
def test_bad_amount_rejected(amount):
    with pytest.raises(RecordValidationError) as exc:
        finalize_report(_citation(amounts_due=[amount]))
    assert exc.value.field == "amounts_due"


def test_bad_jail_time_rejected():
    with pytest.raises(RecordValidationError):
        finalize_report(_citation(jail_times=["forever"]))


def test_missing_subject_rejected():
    with pytest.raises(RecordValidationError) as exc:
        finalize_report(_citation(violator_signature=" "))
    assert exc.value.field == "violator_signature"


def test_officer_signatures_must_match_roster():
    with pytest.raises(RecordValidationError):
        finalize_report(_arrest(officer_signatures=["only-one"]))
    assert finalize_report(_arrest(officer_signatures=["s1", "s2"])).officer_signatures == ["s1", "s2"]


def test_jail_time_parsing():
    assert parse_jail_time(None) == 0
    assert parse_jail_time("None") == 0
    assert parse_jail_time("60 Seconds") == 60
    assert parse_jail_time("1 second") == 1
    assert format_jail_time(75) == "75 Seconds"


def test_sum_amounts():
    assert sum_amounts(["0.1", "0.2"]) == "0.30"
    assert sum_amounts([]) == "0.00"


def test_arrest_from_legacy_dict():
    arrest = Arrest.from_dict({"id": "x", "mugshot": "aGk=", "arrested_by": 3, "unknown": 1})
    assert arrest.mugshot_base64 == "aGk="
    assert arrest.issued_by == 3


def test_penal_code_table():
    assert len({c.code for c in PENAL_CODES}) == len(PENAL_CODES)
    assert lookup("(2)08").description == "Petty Theft"
    assert describe("(9)99", fallback="Citation") == "Citation"
