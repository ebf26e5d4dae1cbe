"""Citation and arrest report records, plus the invariants they must satisfy."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field, fields
from decimal import Decimal
from typing import Any, Optional

from blotter.errors import RecordValidationError

MAX_OFFICERS = 3

AMOUNT_RE = re.compile(r"^\d+(\.\d{1,2})?$")
_JAIL_RE = re.compile(r"^(\d+)\s*(seconds?|secs?|s)?$", re.IGNORECASE)
_NO_JAIL = {"", "none", "n/a", "0"}


# ---------------------------------------------------------------------------
# Amounts and jail times
# ---------------------------------------------------------------------------


def parse_jail_time(value: Optional[str]) -> int:
    """Convert ``"60 Seconds"`` / ``"None"`` style text to whole seconds."""
    if value is None:
        return 0
    text = str(value).strip()
    if text.lower() in _NO_JAIL:
        return 0
    match = _JAIL_RE.match(text)
    if match is None:
        raise RecordValidationError(f"Invalid jail time: {value!r}", field="jail_times")
    return int(match.group(1))


def format_jail_time(seconds: int) -> str:
    return f"{int(seconds)} Seconds"


def sum_amounts(amounts: list[str]) -> str:
    """Sum decimal-as-text amounts and return the total with two decimals."""
    total = Decimal("0")
    for amount in amounts:
        text = str(amount).strip()
        if not AMOUNT_RE.match(text):
            raise RecordValidationError(f"Invalid amount format: {amount!r}", field="amounts_due")
        total += Decimal(text)
    return str(total.quantize(Decimal("0.01")))


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class Report:
    """Fields shared by citations and arrest reports."""

    id: str = ""
    officer_badges: list[str] = field(default_factory=list)
    officer_usernames: list[str] = field(default_factory=list)
    officer_ranks: list[str] = field(default_factory=list)
    officer_user_ids: list[str] = field(default_factory=list)
    penal_codes: list[str] = field(default_factory=list)
    amounts_due: list[str] = field(default_factory=list)
    jail_times: list[str] = field(default_factory=list)
    total_amount: str = "0.00"
    total_jail_time: str = "0 Seconds"
    additional_notes: Optional[str] = None
    discord_message_id: Optional[str] = None
    issued_by: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""

    kind = "report"

    @property
    def total_jail_seconds(self) -> int:
        return parse_jail_time(self.total_jail_time)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Report":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


@dataclass
class Citation(Report):
    violator_username: str = ""
    violator_signature: str = ""
    violation_type: str = "Citation"

    kind = "citation"


@dataclass
class Arrest(Report):
    arrestee_username: str = ""
    arrestee_signature: str = ""
    mugshot_base64: Optional[str] = None
    time_served: bool = False
    court_date: str = ""
    court_location: str = ""
    court_phone: str = ""
    officer_signatures: list[str] = field(default_factory=list)
    description: Optional[str] = None

    kind = "arrest"

    @property
    def warrant_required(self) -> bool:
        """Derived from the persisted totals; never stored."""
        return not self.time_served and self.total_jail_seconds > 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Arrest":
        d = dict(d)
        # Older files stored the image under ``mugshot`` and the filer as ``arrested_by``.
        if "mugshot_base64" not in d and d.get("mugshot"):
            d["mugshot_base64"] = d["mugshot"]
        if d.get("issued_by") is None and d.get("arrested_by") is not None:
            d["issued_by"] = d["arrested_by"]
        return super().from_dict(d)  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _require_text(value: str, name: str) -> None:
    if not str(value or "").strip():
        raise RecordValidationError(f"{name} is required", field=name)


def validate_report(report: Report) -> None:
    """Check the structural invariants of a report before it is persisted.

    Raises :class:`RecordValidationError` on the first violation.
    """
    roster = {
        "officer_badges": report.officer_badges,
        "officer_usernames": report.officer_usernames,
        "officer_ranks": report.officer_ranks,
        "officer_user_ids": report.officer_user_ids,
    }
    lengths = {len(v) for v in roster.values()}
    if len(lengths) != 1:
        detail = ", ".join(f"{k}={len(v)}" for k, v in roster.items())
        raise RecordValidationError(f"Officer roster arrays differ in length ({detail})", field="officer_badges")
    size = lengths.pop()
    if not 1 <= size <= MAX_OFFICERS:
        raise RecordValidationError(
            f"Between 1 and {MAX_OFFICERS} officers are required, got {size}", field="officer_badges"
        )
    for name, values in roster.items():
        for value in values:
            _require_text(value, name)

    charges = {
        "penal_codes": report.penal_codes,
        "amounts_due": report.amounts_due,
        "jail_times": report.jail_times,
    }
    if len({len(v) for v in charges.values()}) != 1:
        detail = ", ".join(f"{k}={len(v)}" for k, v in charges.items())
        raise RecordValidationError(f"Penal code arrays differ in length ({detail})", field="penal_codes")
    if not report.penal_codes:
        raise RecordValidationError("At least one penal code is required", field="penal_codes")
    for code in report.penal_codes:
        _require_text(code, "penal_codes")

    # Both raise on malformed entries.
    sum_amounts(report.amounts_due)
    for jail in report.jail_times:
        parse_jail_time(jail)

    if isinstance(report, Citation):
        _require_text(report.violator_username, "violator_username")
        _require_text(report.violator_signature, "violator_signature")
    elif isinstance(report, Arrest):
        _require_text(report.arrestee_username, "arrestee_username")
        _require_text(report.arrestee_signature, "arrestee_signature")
        if report.officer_signatures and len(report.officer_signatures) != size:
            raise RecordValidationError(
                "officer_signatures must match the officer roster", field="officer_signatures"
            )


def finalize_report(report: Report) -> Report:
    """Fill defaults, validate, and recompute the totals in place.

    A citation filed without jail times gets ``"None"`` for each penal code.
    """
    if isinstance(report, Citation) and not report.jail_times:
        report.jail_times = ["None"] * len(report.penal_codes)
    validate_report(report)
    report.total_amount = sum_amounts(report.amounts_due)
    report.total_jail_time = format_jail_time(sum(parse_jail_time(j) for j in report.jail_times))
    return report
